# pyrecycle/core/attributes_windows.py
from __future__ import annotations
import logging
import os
from typing import List

import pywintypes
import win32file

from .attributes import FILE_ATTRIBUTE_DIRECTORY, MISSING, FindEntry, PayloadAttributes
from .filetime import datetime_to_filetime, join_size

logger = logging.getLogger(__name__)


def probe_windows(path: str) -> PayloadAttributes:
    # (attributes, ftCreationTime, ftLastAccessTime, ftLastWriteTime, size)
    try:
        attrs, created, accessed, written, size = win32file.GetFileAttributesEx(path)
    except pywintypes.error as e:
        logger.debug("GetFileAttributesEx %s: %s", path, e.strerror)
        return MISSING
    return PayloadAttributes(
        created_at=datetime_to_filetime(created),
        modified_at=datetime_to_filetime(written),
        accessed_at=datetime_to_filetime(accessed),
        size=size,
        is_directory=bool(attrs & FILE_ATTRIBUTE_DIRECTORY),
    )


def find_entries_windows(directory: str, pattern: str) -> List[FindEntry]:
    try:
        found = win32file.FindFilesW(os.path.join(directory, pattern))
    except pywintypes.error as e:
        # winerror maps to errno and the OSError subclass on Windows
        raise OSError(0, f"FindFiles failed: {e.strerror}", directory, e.winerror) from e

    out: List[FindEntry] = []
    for fd in found:
        # WIN32_FIND_DATA: attrs, created, accessed, written, size_hi, size_lo, _, _, name, alt
        attrs, created, accessed, written, size_hi, size_lo = fd[:6]
        name = fd[8]
        if name in ('.', '..'):
            continue
        out.append(FindEntry(
            name=name,
            path=os.path.join(directory, name),
            attributes=PayloadAttributes(
                created_at=datetime_to_filetime(created),
                modified_at=datetime_to_filetime(written),
                accessed_at=datetime_to_filetime(accessed),
                size=join_size(size_hi, size_lo),
                is_directory=bool(attrs & FILE_ATTRIBUTE_DIRECTORY),
            ),
        ))
    return out

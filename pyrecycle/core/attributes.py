from __future__ import annotations
import fnmatch
import logging
import os
import stat
import sys
from dataclasses import dataclass
from typing import Iterator, List

from .filetime import ns_to_filetime

logger = logging.getLogger(__name__)

FILE_ATTRIBUTE_DIRECTORY = 0x10


@dataclass(frozen=True)
class PayloadAttributes:
    created_at: int = 0   # FILETIME ticks
    modified_at: int = 0
    accessed_at: int = 0
    size: int = 0
    is_directory: bool = False
    exists: bool = True


MISSING = PayloadAttributes(exists=False)


@dataclass(frozen=True)
class FindEntry:
    name: str
    path: str
    attributes: PayloadAttributes


def _created_ns(st: os.stat_result) -> int:
    ns = getattr(st, 'st_birthtime_ns', None)
    if ns is not None:
        return ns
    birth = getattr(st, 'st_birthtime', None)
    if birth is not None:
        return int(birth * 1_000_000_000)
    return st.st_ctime_ns


def _from_stat(st: os.stat_result) -> PayloadAttributes:
    is_dir = stat.S_ISDIR(st.st_mode)
    return PayloadAttributes(
        created_at=ns_to_filetime(_created_ns(st)),
        modified_at=ns_to_filetime(st.st_mtime_ns),
        accessed_at=ns_to_filetime(st.st_atime_ns),
        # NTFS reports 0 for directories; keep folder rows comparable
        size=0 if is_dir else st.st_size,
        is_directory=is_dir,
    )


def _probe_posix(path: str) -> PayloadAttributes:
    try:
        st = os.stat(path)
    except OSError as e:
        logger.debug("probe %s: %s", path, e)
        return MISSING
    return _from_stat(st)


def _find_entries_posix(directory: str, pattern: str) -> List[FindEntry]:
    out: List[FindEntry] = []
    pat = pattern.lower()
    with os.scandir(directory) as it:
        for de in it:
            if not fnmatch.fnmatchcase(de.name.lower(), pat):
                continue
            try:
                attrs = _from_stat(de.stat(follow_symlinks=False))
            except OSError as e:
                logger.debug("stat %s: %s", de.path, e)
                attrs = MISSING
            out.append(FindEntry(name=de.name, path=de.path, attributes=attrs))
    return out


if sys.platform == 'win32':
    from .attributes_windows import find_entries_windows as _find_entries
    from .attributes_windows import probe_windows as _probe
else:
    _find_entries = _find_entries_posix
    _probe = _probe_posix


def probe(path: str) -> PayloadAttributes:
    """Return the attributes of path, or MISSING if it cannot be read."""
    return _probe(path)


def find_entries(directory: str, pattern: str = '*') -> Iterator[FindEntry]:
    """List the entries of directory matching pattern, sorted by name.

    The listing is taken before anything is yielded, so the directory
    handle is released even if the caller stops early. OSError propagates
    when the directory itself cannot be opened.
    """
    entries = _find_entries(directory, pattern)
    entries.sort(key=lambda e: e.name)
    return iter(entries)

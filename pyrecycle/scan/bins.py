from __future__ import annotations
import logging
import os
import sys
from dataclasses import dataclass
from typing import Iterable, List

logger = logging.getLogger(__name__)

RECYCLE_DIR = '$Recycle.Bin'


@dataclass
class RecycleBin:
    volume: str
    sid: str
    path: str


def list_volume_roots() -> List[str]:
    """Logical drive roots ("C:\\", "D:\\", ...). Empty outside Windows."""
    if sys.platform != 'win32':
        return []
    import ctypes
    roots = []
    mask = ctypes.windll.kernel32.GetLogicalDrives()
    for i in range(26):
        if mask & (1 << i):
            roots.append(f"{chr(65 + i)}:\\")
    return roots


def find_recycle_bins(volume_roots: Iterable[str]) -> List[RecycleBin]:
    """Per-user recycle bins: <volume>\\$Recycle.Bin\\<SID>."""
    out: List[RecycleBin] = []
    for volume in volume_roots:
        base = os.path.join(volume, RECYCLE_DIR)
        try:
            with os.scandir(base) as it:
                sids = sorted(de.name for de in it if de.is_dir())
        except OSError as e:
            logger.debug("No recycle bin under %s: %s", volume, e)
            continue
        for sid in sids:
            out.append(RecycleBin(volume=volume, sid=sid, path=os.path.join(base, sid)))
    return out

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple

from ..core.attributes import FindEntry, find_entries, probe
from ..fs.recycle.record import DecodeError, read_record
from ..report.rows import RowEmitter

logger = logging.getLogger(__name__)

INFO_PATTERN = '$I*'
INFO_MARKER = 'I'
DATA_MARKER = 'R'

ErrorHandler = Callable[[str, Exception], None]
EntryHandler = Callable[[FindEntry, str], None]


def is_info_name(name: str) -> bool:
    return len(name) >= 2 and name[0] == "$" and name[1].upper() == INFO_MARKER


def payload_name(info_name: str) -> str:
    """$IAB12CD.txt -> $RAB12CD.txt"""
    if not is_info_name(info_name):
        raise ValueError(f"Not a recycle info file name: {info_name!r}")
    return info_name[0] + DATA_MARKER + info_name[2:]


@dataclass
class DumpStats:
    records: int = 0
    rows: int = 0
    skipped: int = 0
    size_mismatches: int = 0
    errors: List[Tuple[str, Exception]] = field(default_factory=list)


def _log_error(path: str, exc: Exception) -> None:
    logger.warning("%s: %s", path, exc)


class RecycleBinDumper:
    def __init__(self, emitter: RowEmitter, absolute_paths: bool = False,
                 on_error: Optional[ErrorHandler] = None) -> None:
        self.emitter = emitter
        self.absolute_paths = absolute_paths
        self.on_error = on_error or _log_error
        self._stats = DumpStats()
        self._stop = False

    def stop(self) -> None:
        self._stop = True

    def _fail(self, path: str, exc: Exception) -> None:
        self._stats.errors.append((path, exc))
        self.on_error(path, exc)

    def _display(self, root: str, rel: str) -> str:
        return os.path.join(root, rel) if self.absolute_paths else rel

    def _foreach_entry(self, directory: str, pattern: str, display: str,
                       handle: EntryHandler) -> None:
        entries = self._list(directory, pattern)
        if entries is None:
            return
        for entry in entries:
            if self._stop:
                return
            mark = self.emitter.checkpoint()
            handle(entry, os.path.join(display, entry.name) if display else entry.name)
            self.emitter.restore(mark)

    def dump(self, root: str) -> DumpStats:
        """Emit one row per $I record of root and per entry below its payload."""
        self._stats = DumpStats()
        start = self.emitter.rows_emitted
        logger.info("Dumping %s", root)

        def handle_info(entry: FindEntry, display: str) -> None:
            self.correlate(root, entry)

        self._foreach_entry(root, INFO_PATTERN, '', handle_info)
        self._stats.rows = self.emitter.rows_emitted - start
        logger.info("%s: %d records, %d rows, %d skipped",
                    root, self._stats.records, self._stats.rows, self._stats.skipped)
        return self._stats

    def correlate(self, root: str, info: FindEntry) -> None:
        if info.attributes.is_directory:
            return
        if not is_info_name(info.name):
            # FindFiles also matches $I* against 8.3 short names
            logger.debug("Ignoring %s: not a recycle info file", info.name)
            return
        try:
            rec = read_record(info.path)
        except (DecodeError, OSError) as e:
            self._stats.skipped += 1
            self._fail(info.path, e)
            return
        self._stats.records += 1

        em = self.emitter
        em.add(rec.original_path)
        em.add_time(rec.deleted_at)
        em.add(rec.original_size)
        em.add_entry(self._display(root, info.name), info.attributes)

        data_name = payload_name(info.name)
        data_path = os.path.join(root, data_name)
        data_display = self._display(root, data_name)
        attrs = probe(data_path)

        # Everything before mark repeats on every row under a deleted folder
        mark = em.checkpoint()
        em.add_entry(data_display, attrs)
        em.emit()
        em.restore(mark)

        if not attrs.exists:
            logger.debug("%s: payload %s missing", info.name, data_name)
            return
        total = attrs.size
        if attrs.is_directory:
            total = self.flatten(data_path, data_display)
        if total != rec.original_size:
            self._stats.size_mismatches += 1
            logger.info("%s: declared size %d, found %d bytes in %s",
                        info.name, rec.original_size, total, data_name)

    def _list(self, directory: str, pattern: str = '*') -> Optional[Iterator[FindEntry]]:
        try:
            return find_entries(directory, pattern)
        except OSError as e:
            self._fail(directory, e)
            return None

    def flatten(self, directory: str, display: str) -> int:
        """Emit a row for every entry below directory; returns the bytes seen.

        Depth-first with an explicit stack of open listings, so tree depth
        is not limited by the interpreter's recursion limit.
        """
        total = 0
        em = self.emitter
        mark = em.checkpoint()
        top = self._list(directory)
        stack: List[Tuple[Iterator[FindEntry], str]] = [(top, display)] if top is not None else []
        while stack and not self._stop:
            entries, parent = stack[-1]
            entry = next(entries, None)
            if entry is None:
                stack.pop()
                continue
            entry_display = os.path.join(parent, entry.name) if parent else entry.name
            em.add_entry(entry_display, entry.attributes)
            em.emit()
            em.restore(mark)
            total += entry.attributes.size
            if entry.attributes.is_directory:
                children = self._list(entry.path)
                if children is not None:
                    stack.append((children, entry_display))
        return total

from __future__ import annotations
import csv
from typing import Callable, List, Sequence, TextIO

from ..core.attributes import PayloadAttributes
from ..core.filetime import format_filetime

HEADER = (
    "OriginalFullPath",
    "DeletedDateTime",
    "DeletedFileSize",
    "RecycleInfoFile",
    "RecycleInfoCreated",
    "RecycleInfoLastModified",
    "RecycleInfoLastAccessed",
    "OriginalFile",
    "OriginalFileCreated",
    "OriginalFileLastModified",
    "OriginalFileLastAccessed",
    "OriginalFileSize",
)

MISSING_MARKER = "Missing"

RowSink = Callable[[List[str]], None]


def csv_sink(stream: TextIO, trailing_separator: bool = True) -> RowSink:
    """Write each row as one CSV line; paths with commas get quoted."""
    writer = csv.writer(stream, lineterminator='\n')

    def write(fields: List[str]) -> None:
        if trailing_separator:
            writer.writerow(list(fields) + [""])
        else:
            writer.writerow(fields)

    return write


class RowEmitter:
    """Line buffer shared by the correlator and the tree walk.

    Fields accumulate in header order. ``checkpoint()``/``restore()`` let a
    caller keep a composed prefix (the inherited columns of one $I record)
    and reuse it for every row below it.
    """

    def __init__(self, sink: RowSink) -> None:
        self._sink = sink
        self._fields: List[str] = []
        self.rows_emitted = 0

    def header(self) -> None:
        self._sink(list(HEADER))

    def add(self, *values) -> None:
        self._fields.extend(str(v) for v in values)

    def add_time(self, ticks: int) -> None:
        self._fields.append(format_filetime(ticks))

    def add_entry(self, display_path: str, attrs: PayloadAttributes) -> None:
        # path, created, modified, accessed, size
        if not attrs.exists:
            self.add(MISSING_MARKER, "", "", "", "")
            return
        self.add(display_path)
        self.add_time(attrs.created_at)
        self.add_time(attrs.modified_at)
        self.add_time(attrs.accessed_at)
        self.add(attrs.size)

    @property
    def fields(self) -> Sequence[str]:
        return tuple(self._fields)

    def checkpoint(self) -> int:
        return len(self._fields)

    def restore(self, mark: int) -> None:
        if mark > len(self._fields):
            raise ValueError(f"checkpoint {mark} is past the end of the line ({len(self._fields)})")
        del self._fields[mark:]

    def emit(self) -> None:
        self._sink(list(self._fields))
        self.rows_emitted += 1

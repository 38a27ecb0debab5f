from __future__ import annotations
import struct
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.filetime import filetime_to_datetime, join_size

# $I file layout (little-endian):
#   V1 (Vista .. 8.1): u64 version, u64 size, FILETIME deleted, u16[260] path
#   V2 (Windows 10+):  u64 version, u64 size, FILETIME deleted, u32 n, u16[n] path
VERSION_1 = 1
VERSION_2 = 2
V1_PATH_UNITS = 260
V1_RECORD_SIZE = 24 + V1_PATH_UNITS * 2  # 544


class DecodeError(ValueError):
    pass


class TruncatedRecord(DecodeError):
    pass


class UnsupportedVersion(DecodeError):
    def __init__(self, version: int):
        super().__init__(f"Unsupported $I record version {version}")
        self.version = version


@dataclass(frozen=True)
class MetadataRecord:
    version: int
    original_size: int
    deleted_at: int  # FILETIME ticks
    original_path: str

    @property
    def deleted_datetime(self) -> Optional[datetime]:
        return filetime_to_datetime(self.deleted_at)


class _Reader:
    def __init__(self, buf: bytes) -> None:
        self.buf = buf
        self.pos = 0

    def take(self, size: int, what: str) -> bytes:
        end = self.pos + size
        if end > len(self.buf):
            raise TruncatedRecord(
                f"Short read for {what} at off={self.pos}: want={size} got={len(self.buf) - self.pos}"
            )
        data = self.buf[self.pos:end]
        self.pos = end
        return data

    def unpack(self, fmt: str, what: str):
        st = struct.Struct(fmt)
        return st.unpack(self.take(st.size, what))


def _decode_path(raw: bytes) -> str:
    path = raw.decode('utf-16le', errors='replace')
    # V1 is NUL padded; V2 writers usually count the terminator in n
    nul = path.find('\x00')
    return path if nul < 0 else path[:nul]


def decode_record(buf: bytes) -> MetadataRecord:
    """Decode one $I metadata record.

    Raises TruncatedRecord when the buffer ends before a field does and
    UnsupportedVersion as soon as the version field is neither 1 nor 2.
    """
    r = _Reader(bytes(buf))
    version, = r.unpack('<Q', 'version')
    if version not in (VERSION_1, VERSION_2):
        raise UnsupportedVersion(version)

    original_size, = r.unpack('<Q', 'size')
    low, high = r.unpack('<II', 'deletion time')
    deleted_at = join_size(high, low)

    if version == VERSION_1:
        raw = r.take(V1_PATH_UNITS * 2, 'path')
    else:
        units, = r.unpack('<I', 'path length')
        raw = r.take(units * 2, 'path')

    return MetadataRecord(
        version=version,
        original_size=original_size,
        deleted_at=deleted_at,
        original_path=_decode_path(raw),
    )


def read_record(path: str) -> MetadataRecord:
    with open(path, 'rb') as f:
        return decode_record(f.read())

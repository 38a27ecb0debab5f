"""Shared fixtures: synthetic $I records and recycle bin folders."""

from __future__ import annotations
import struct

import pytest

from pyrecycle.core.filetime import EPOCH_AS_FILETIME

# 2022-06-18 04:26:40 UTC
DELETED_AT = EPOCH_AS_FILETIME + 1_655_526_400 * 10_000_000
DELETED_AT_TEXT = "2022-06-18 04:26:40"


def _header(version: int, size: int, ticks: int) -> bytes:
    return struct.pack('<QQII', version, size, ticks & 0xFFFFFFFF, ticks >> 32)


def encode_v1(size: int, ticks: int, path: str) -> bytes:
    raw = path.encode('utf-16le')
    assert len(raw) <= 520
    return _header(1, size, ticks) + raw.ljust(520, b'\x00')


def encode_v2(size: int, ticks: int, path: str, units: int | None = None) -> bytes:
    raw = path.encode('utf-16le')
    if units is None:
        units = len(raw) // 2
    return _header(2, size, ticks) + struct.pack('<I', units) + raw


class BinBuilder:
    """Lays out $I/$R pairs under a temporary recycle bin folder."""

    def __init__(self, root):
        self.root = root

    def info(self, suffix: str, data: bytes):
        p = self.root / f"$I{suffix}"
        p.write_bytes(data)
        return p

    def payload_file(self, suffix: str, content: bytes):
        p = self.root / f"$R{suffix}"
        p.write_bytes(content)
        return p

    def payload_dir(self, suffix: str, tree: dict):
        p = self.root / f"$R{suffix}"
        self._make(p, tree)
        return p

    def _make(self, base, tree: dict):
        base.mkdir()
        for name, value in tree.items():
            if isinstance(value, dict):
                self._make(base / name, value)
            else:
                (base / name).write_bytes(value)


@pytest.fixture
def recycle_bin(tmp_path):
    root = tmp_path / "S-1-5-21-1851798247-1933540348-1582327844-1001"
    root.mkdir()
    return BinBuilder(root)

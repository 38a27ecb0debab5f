"""pywin32 backend, driven through stand-in win32file/pywintypes modules."""

import importlib
import os
import sys
import types
from datetime import datetime, timezone

import pytest

from pyrecycle.core.attributes import MISSING
from pyrecycle.core.filetime import datetime_to_filetime

CREATED = datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
ACCESSED = datetime(2021, 6, 7, 8, 9, 10, tzinfo=timezone.utc)
WRITTEN = datetime(2022, 11, 12, 13, 14, 15, tzinfo=timezone.utc)


class WinError(Exception):
    def __init__(self, winerror, funcname, strerror):
        super().__init__(winerror, funcname, strerror)
        self.winerror = winerror
        self.funcname = funcname
        self.strerror = strerror


def _find_data(name, attrs=0x20, size_hi=0, size_lo=0):
    # WIN32_FIND_DATA as pywin32 returns it
    return (attrs, CREATED, ACCESSED, WRITTEN, size_hi, size_lo, 0, 0, name, "")


@pytest.fixture
def backend(monkeypatch):
    calls = {}
    win32file = types.ModuleType("win32file")
    pywintypes = types.ModuleType("pywintypes")
    pywintypes.error = WinError

    def FindFilesW(spec):
        calls["find"] = spec
        result = calls.get("find_result")
        if isinstance(result, Exception):
            raise result
        return result or []

    def GetFileAttributesEx(path):
        calls["probe"] = path
        result = calls.get("probe_result")
        if isinstance(result, Exception):
            raise result
        return result

    win32file.FindFilesW = FindFilesW
    win32file.GetFileAttributesEx = GetFileAttributesEx
    monkeypatch.setitem(sys.modules, "win32file", win32file)
    monkeypatch.setitem(sys.modules, "pywintypes", pywintypes)
    monkeypatch.delitem(sys.modules, "pyrecycle.core.attributes_windows", raising=False)
    module = importlib.import_module("pyrecycle.core.attributes_windows")
    yield module, calls
    sys.modules.pop("pyrecycle.core.attributes_windows", None)


def test_find_entries_maps_find_data(backend):
    mod, calls = backend
    calls["find_result"] = [
        _find_data(".", attrs=0x10),
        _find_data("..", attrs=0x10),
        _find_data("$RBIG.iso", size_hi=1, size_lo=5),
        _find_data("$RFOLDER", attrs=0x10 | 0x02),
    ]

    entries = mod.find_entries_windows(r"C:\bin", "$R*")

    assert calls["find"] == os.path.join(r"C:\bin", "$R*")
    assert [e.name for e in entries] == ["$RBIG.iso", "$RFOLDER"]
    big, folder = entries
    assert big.path == os.path.join(r"C:\bin", "$RBIG.iso")
    assert big.attributes.size == (1 << 32) + 5
    assert not big.attributes.is_directory
    assert big.attributes.created_at == datetime_to_filetime(CREATED)
    assert big.attributes.accessed_at == datetime_to_filetime(ACCESSED)
    assert big.attributes.modified_at == datetime_to_filetime(WRITTEN)
    assert folder.attributes.is_directory
    assert folder.attributes.exists


def test_find_entries_failure_becomes_oserror(backend):
    mod, calls = backend
    calls["find_result"] = WinError(3, "FindFirstFileW", "The system cannot find the path specified.")

    with pytest.raises(OSError) as exc:
        mod.find_entries_windows(r"C:\nope", "*")

    assert exc.value.filename == r"C:\nope"
    assert "cannot find the path" in str(exc.value)
    assert isinstance(exc.value.__cause__, WinError)


def test_probe_maps_attribute_data(backend):
    mod, calls = backend
    calls["probe_result"] = (0x10, CREATED, ACCESSED, WRITTEN, 0)

    attrs = mod.probe_windows(r"C:\bin\$RFOLDER")

    assert calls["probe"] == r"C:\bin\$RFOLDER"
    assert attrs.exists and attrs.is_directory
    assert attrs.created_at == datetime_to_filetime(CREATED)
    assert attrs.accessed_at == datetime_to_filetime(ACCESSED)
    assert attrs.modified_at == datetime_to_filetime(WRITTEN)


def test_probe_file_size(backend):
    mod, calls = backend
    calls["probe_result"] = (0x20, CREATED, ACCESSED, WRITTEN, 5_000_000_000)
    attrs = mod.probe_windows(r"C:\bin\$RBIG.iso")
    assert attrs.size == 5_000_000_000
    assert not attrs.is_directory


def test_probe_failure_is_missing(backend):
    mod, calls = backend
    calls["probe_result"] = WinError(2, "GetFileAttributesEx", "The system cannot find the file specified.")
    assert mod.probe_windows(r"C:\bin\$RGONE") is MISSING

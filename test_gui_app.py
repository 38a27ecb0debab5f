"""GUI worker and CSV export, run without a display."""

import pytest

pytest.importorskip("PySide6.QtWidgets")

from PySide6.QtCore import QCoreApplication  # noqa: E402

from conftest import DELETED_AT, encode_v2  # noqa: E402
from pyrecycle.gui_app import DumpWorker, export_rows, filter_status  # noqa: E402
from pyrecycle.report.rows import HEADER  # noqa: E402


@pytest.fixture(scope="module")
def qt_app():
    return QCoreApplication.instance() or QCoreApplication([])


def test_worker_emits_rows(qt_app, recycle_bin):
    recycle_bin.info("GUI001", encode_v2(2, DELETED_AT, r"C:\gui"))
    recycle_bin.payload_dir("GUI001", {"x": b"12"})
    recycle_bin.info("GUI002", encode_v2(2, DELETED_AT, r"C:\missing"))

    worker = DumpWorker(str(recycle_bin.root))
    seen, status = [], []
    worker.row_ready.connect(seen.append)
    worker.status.connect(status.append)
    worker.run()  # synchronous

    assert len(seen) == 3
    assert worker.rows == seen
    assert status[-1].startswith("Done: 2 records, 3 rows")
    assert status[-1].endswith("0 errors")
    assert worker.summary == status[-1]


def test_export_rows(tmp_path):
    out = tmp_path / "export.csv"
    export_rows(str(out), [["a"] * 12])
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines == [",".join(HEADER) + ",", ",".join(["a"] * 12) + ","]


def test_worker_counts_errors(qt_app, recycle_bin):
    recycle_bin.info("BAD001", b"\x09\x00")
    worker = DumpWorker(str(recycle_bin.root))
    worker.run()
    assert worker.errors == 1
    assert "1 unreadable" in worker.summary
    assert worker.summary.endswith("1 errors")


def test_filter_status_keeps_summary():
    assert filter_status("Done: 2 records", 2, 3) == "Done: 2 records  |  Showing 2 of 3 rows"
    assert filter_status("", 1, 1) == "Showing 1 of 1 rows"


def test_export_rows_with_undecodable_name(tmp_path):
    out = tmp_path / "export.csv"
    export_rows(str(out), [["bad\udcff.txt"] + ["a"] * 11])
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[1].startswith("bad\\udcff.txt,")

# gui_app.py
# pyrecycle GUI – pick a recycle bin → dump its $I/$R pairs into a table.
# Requirements: PySide6 (pywin32 on Windows); other users' bins need Administrator.

from __future__ import annotations
import logging
import sys
from typing import List, Optional

from PySide6.QtCore import Qt, QThread, Signal, Slot, QTimer
from PySide6.QtWidgets import (
    QApplication, QWidget, QMainWindow, QStackedWidget, QVBoxLayout, QHBoxLayout,
    QPushButton, QLabel, QListWidget, QListWidgetItem, QProgressBar, QTreeWidget,
    QTreeWidgetItem, QLineEdit, QMessageBox, QFileDialog
)

from .report.rows import HEADER, MISSING_MARKER, RowEmitter, csv_sink
from .scan.bins import RecycleBin, find_recycle_bins, list_volume_roots
from .scan.dump import RecycleBinDumper

logger = logging.getLogger(__name__)

COL_ORIGINAL_FILE = HEADER.index("OriginalFile")


# ------------------------ Dump thread ------------------------
class DumpWorker(QThread):
    row_ready = Signal(list)       # 12 fields
    status = Signal(str)
    started_dump = Signal()
    finished_dump = Signal()

    def __init__(self, root: str):
        super().__init__()
        self.root = root
        self.rows: List[List[str]] = []
        self.errors = 0
        self.summary = ""
        self._dumper: Optional[RecycleBinDumper] = None
        self._stop = False

    def stop(self):
        self._stop = True
        if self._dumper is not None:
            self._dumper.stop()

    def _on_row(self, fields: List[str]):
        self.rows.append(fields)
        self.row_ready.emit(fields)
        if len(self.rows) % 500 == 0:
            self.status.emit(f"{len(self.rows)} rows ...")

    def _on_error(self, path: str, exc: Exception):
        self.errors += 1
        logger.warning("%s: %s", path, exc)

    def run(self):
        self.started_dump.emit()
        try:
            self.status.emit(f"Reading {self.root} ...")
            self._dumper = RecycleBinDumper(RowEmitter(self._on_row), on_error=self._on_error)
            if self._stop:
                self._dumper.stop()
            stats = self._dumper.dump(self.root)
            self.summary = (
                f"Done: {stats.records} records, {stats.rows} rows, "
                f"{stats.skipped} unreadable, {stats.size_mismatches} size mismatches, "
                f"{self.errors} errors"
            )
            self.status.emit(self.summary)
        except Exception as e:
            logger.exception("Dump of %s failed", self.root)
            self.summary = f"Dump error: {e}"
            self.status.emit(self.summary)
        finally:
            self.finished_dump.emit()


# ------------------------ UI ------------------------
class BinPickerPage(QWidget):
    bin_chosen = Signal(str)

    def __init__(self):
        super().__init__()
        lay = QVBoxLayout(self)
        self.title = QLabel("Select a Recycle Bin to inspect")
        self.title.setStyleSheet("font-size:18px; font-weight:600;")
        lay.addWidget(self.title)

        self.listw = QListWidget()
        self.listw.setStyleSheet("QListWidget{font-size:14px}")
        lay.addWidget(self.listw)

        row = QHBoxLayout()
        self.refresh_btn = QPushButton("Refresh")
        self.refresh_btn.clicked.connect(self.populate)
        self.browse_btn = QPushButton("Browse…")
        self.browse_btn.clicked.connect(self._browse)
        row.addWidget(self.refresh_btn)
        row.addWidget(self.browse_btn)
        row.addStretch(1)
        lay.addLayout(row)

        self.populate()
        self.listw.itemDoubleClicked.connect(self._on_double)

    def populate(self):
        self.listw.clear()
        bins = find_recycle_bins(list_volume_roots())
        if not bins:
            item = QListWidgetItem("No recycle bins found. Use Browse… to pick a folder.")
            item.setFlags(item.flags() & ~Qt.ItemIsEnabled)
            self.listw.addItem(item)
            return
        for b in bins:
            item = QListWidgetItem(f"{b.volume}  —  {b.sid}")
            item.setData(Qt.UserRole, b)
            self.listw.addItem(item)

    def _browse(self):
        path = QFileDialog.getExistingDirectory(self, "Recycle Bin folder")
        if path:
            self.bin_chosen.emit(path)

    def _on_double(self, item: QListWidgetItem):
        b: RecycleBin = item.data(Qt.UserRole)
        if b is not None:
            self.bin_chosen.emit(b.path)


class DumpPage(QWidget):
    back = Signal()

    def __init__(self):
        super().__init__()
        outer = QVBoxLayout(self)
        top = QHBoxLayout()
        self.info = QLabel("Recycle Bin: -")
        self.back_btn = QPushButton("← Back")
        self.back_btn.clicked.connect(self._on_back)
        top.addWidget(self.back_btn)
        top.addWidget(self.info)
        top.addStretch(1)
        outer.addLayout(top)

        search_row = QHBoxLayout()
        search_row.addWidget(QLabel("Filter:"))
        self.search = QLineEdit()
        self.search.setPlaceholderText("Type to filter by original or recycled path ...")
        search_row.addWidget(self.search)
        self.missing_btn = QPushButton("Missing only")
        self.missing_btn.setCheckable(True)
        self.missing_btn.clicked.connect(self._apply_filter)
        search_row.addWidget(self.missing_btn)
        outer.addLayout(search_row)

        self.progress = QProgressBar()
        self.progress.setRange(0, 1)
        outer.addWidget(self.progress)
        self.status = QLabel("…")
        outer.addWidget(self.status)

        self.tree = QTreeWidget()
        self.tree.setHeaderLabels(list(HEADER))
        self.tree.setRootIsDecorated(False)
        self.tree.setColumnWidth(0, 320)
        outer.addWidget(self.tree)

        row = QHBoxLayout()
        self.start_btn = QPushButton("Start")
        self.stop_btn = QPushButton("Stop")
        self.stop_btn.setEnabled(False)
        self.export_btn = QPushButton("Export CSV…")
        self.export_btn.setEnabled(False)
        row.addWidget(self.start_btn)
        row.addWidget(self.stop_btn)
        row.addStretch(1)
        row.addWidget(self.export_btn)
        outer.addLayout(row)

        self.worker: Optional[DumpWorker] = None
        self.root: Optional[str] = None

        self.start_btn.clicked.connect(self._start)
        self.stop_btn.clicked.connect(self._stop)
        self.export_btn.clicked.connect(self._export)
        self.search.textChanged.connect(self._apply_filter)

    def _on_back(self):
        if self.worker and self.worker.isRunning():
            reply = QMessageBox.question(
                self,
                "Stop?",
                "The dump is still running. Stop it and go back?",
                QMessageBox.Yes | QMessageBox.No,
                QMessageBox.No
            )
            if reply == QMessageBox.Yes:
                self._stop()
                QTimer.singleShot(500, lambda: self.back.emit())
            return
        self.back.emit()

    def set_root(self, root: str):
        self.root = root
        self.info.setText(f"Recycle Bin: {root}")
        self.tree.clear()
        self.export_btn.setEnabled(False)

    @Slot()
    def _start(self):
        if not self.root:
            QMessageBox.warning(self, "No folder", "Please pick a recycle bin first")
            return
        if self.worker and self.worker.isRunning():
            return
        self.tree.clear()
        self.status.setText("Preparing …")
        self.progress.setRange(0, 0)
        self.worker = DumpWorker(self.root)
        self.worker.row_ready.connect(self._on_row)
        self.worker.status.connect(self.status.setText)
        self.worker.started_dump.connect(lambda: (self.start_btn.setEnabled(False), self.stop_btn.setEnabled(True)))
        self.worker.finished_dump.connect(self._on_finished)
        self.worker.start()

    @Slot()
    def _stop(self):
        if self.worker and self.worker.isRunning():
            self.worker.stop()
            self.status.setText("Stopping ...")

    @Slot(list)
    def _on_row(self, fields: list):
        node = QTreeWidgetItem([str(f) for f in fields])
        if fields[COL_ORIGINAL_FILE] == MISSING_MARKER:
            node.setForeground(COL_ORIGINAL_FILE, Qt.red)
        self.tree.addTopLevelItem(node)

    @Slot()
    def _on_finished(self):
        self.progress.setRange(0, 1)
        self.start_btn.setEnabled(True)
        self.stop_btn.setEnabled(False)
        self.export_btn.setEnabled(bool(self.worker and self.worker.rows))
        self._apply_filter()

    def _apply_filter(self):
        q = self.search.text().lower().strip()
        missing_only = self.missing_btn.isChecked()
        visible = 0
        for i in range(self.tree.topLevelItemCount()):
            it = self.tree.topLevelItem(i)
            text = (it.text(0) + " " + it.text(COL_ORIGINAL_FILE)).lower()
            show = (q == "" or q in text)
            if missing_only:
                show = show and it.text(COL_ORIGINAL_FILE) == MISSING_MARKER
            it.setHidden(not show)
            if show:
                visible += 1
        summary = self.worker.summary if self.worker else ""
        self.status.setText(filter_status(summary, visible, self.tree.topLevelItemCount()))

    @Slot()
    def _export(self):
        if not self.worker or not self.worker.rows:
            return
        path, _ = QFileDialog.getSaveFileName(self, "Export CSV", "recycle_bin.csv", "CSV (*.csv)")
        if not path:
            return
        try:
            export_rows(path, self.worker.rows)
        except OSError as e:
            QMessageBox.critical(self, "Export failed", str(e))
            return
        self.status.setText(f"Exported {len(self.worker.rows)} rows -> {path}")


def filter_status(summary: str, visible: int, total: int) -> str:
    shown = f"Showing {visible} of {total} rows"
    return f"{summary}  |  {shown}" if summary else shown


def export_rows(path: str, rows: List[List[str]]) -> None:
    with open(path, 'w', encoding='utf-8', newline='', errors='backslashreplace') as f:
        write = csv_sink(f)
        write(list(HEADER))
        for fields in rows:
            write(fields)


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("pyrecycle – Recycle Bin Dumper")
        self.resize(1300, 700)

        self.stack = QStackedWidget()
        self.setCentralWidget(self.stack)

        self.page_pick = BinPickerPage()
        self.page_dump = DumpPage()

        self.stack.addWidget(self.page_pick)
        self.stack.addWidget(self.page_dump)
        self.stack.setCurrentWidget(self.page_pick)

        self.page_pick.bin_chosen.connect(self._on_bin)
        self.page_dump.back.connect(lambda: self.stack.setCurrentWidget(self.page_pick))

    @Slot(str)
    def _on_bin(self, root: str):
        self.page_dump.set_root(root)
        self.stack.setCurrentWidget(self.page_dump)


def main():
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    app = QApplication(sys.argv)
    w = MainWindow()
    w.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()

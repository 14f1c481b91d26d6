"""Main application window (QMainWindow) and ``main()`` entry point."""

from __future__ import annotations

import pathlib
import sys

from PySide6.QtCore import Qt, QUrl
from PySide6.QtGui import QDesktopServices, QKeySequence
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QStatusBar,
    QTreeWidget,
    QTreeWidgetItem,
)

from puttyport.constants import APP_NAME, APP_VERSION, MAX_SESSIONS
from puttyport.dialogs.putty_import import PuttyImportDialog
from puttyport.importers.putty import PuttyRegistryParser, user_message
from puttyport.importers.reconcile import count_importable
from puttyport.importers.task import ImportResult
from puttyport.managers.hosts import HostManager
from puttyport.managers.logger import get_logger, logs_dir
from puttyport.managers.settings import settings_manager
from puttyport.models import HostRecord

log = get_logger(__name__)


# ---------------------------------------------------------------------------
# Main Window
# ---------------------------------------------------------------------------

class PuttyPortApp(QMainWindow):
    """Host list with forwards, plus the PuTTY import entry point."""

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle(f"{APP_NAME}  {APP_VERSION}")
        self.resize(900, 600)

        self._host_mgr = HostManager()

        self._build_ui()
        self._build_menu()
        self._refresh_host_tree()
        log.info("%s %s started", APP_NAME, APP_VERSION)

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        self._host_tree = QTreeWidget()
        self._host_tree.setHeaderLabels(["Host", "Address"])
        self._host_tree.setColumnWidth(0, 320)
        self._host_tree.setRootIsDecorated(True)
        self.setCentralWidget(self._host_tree)

        self._status_lbl = QLabel(f"{APP_NAME} ready.")
        sb = QStatusBar()
        sb.addWidget(self._status_lbl)
        self.setStatusBar(sb)

    def _build_menu(self) -> None:
        bar = self.menuBar()

        # ── File ────────────────────────────────────────────────────────
        file_m = bar.addMenu("&File")
        act_imp = file_m.addAction("&Import PuTTY Sessions…")
        act_imp.setShortcut(QKeySequence("Ctrl+I"))
        act_imp.triggered.connect(self._import_putty)
        act_del = file_m.addAction("&Delete Host")
        act_del.setShortcut(QKeySequence.StandardKey.Delete)
        act_del.triggered.connect(self._delete_host)
        file_m.addSeparator()
        act_quit = file_m.addAction("&Quit")
        act_quit.setShortcut(QKeySequence("Ctrl+Q"))
        act_quit.triggered.connect(self.close)

        # ── Help ────────────────────────────────────────────────────────
        help_m = bar.addMenu("&Help")
        act_logs = help_m.addAction("Open &Log Folder")
        act_logs.triggered.connect(self._open_logs)

    # ------------------------------------------------------------------
    # Host tree
    # ------------------------------------------------------------------

    def _refresh_host_tree(self) -> None:
        self._host_tree.clear()
        for host in sorted(self._host_mgr.all(), key=lambda h: h.nickname.lower()):
            user = f"{host.username}@" if host.username else ""
            item = QTreeWidgetItem([host.nickname, f"{user}{host.hostname}:{host.port}"])
            item.setData(0, Qt.ItemDataRole.UserRole, host.id)
            for pf in self._host_mgr.port_forwards_for_host(host.id):
                if pf.dest_host is None:
                    target = "SOCKS"
                else:
                    target = f"{pf.dest_host}:{pf.dest_port}"
                QTreeWidgetItem(
                    item, [pf.nickname, f"{pf.bind_address}:{pf.source_port} → {target}"]
                )
            self._host_tree.addTopLevelItem(item)
        self._host_tree.expandAll()

    def _current_host(self) -> HostRecord | None:
        item = self._host_tree.currentItem()
        while item is not None and item.parent() is not None:
            item = item.parent()
        if item is None:
            return None
        return self._host_mgr.get_by_id(item.data(0, Qt.ItemDataRole.UserRole))

    def _delete_host(self) -> None:
        host = self._current_host()
        if host is None:
            return
        reply = QMessageBox.question(
            self,
            "Delete Host",
            f"Delete '{host.nickname}' and its port forwards?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        if reply == QMessageBox.StandardButton.Yes:
            self._host_mgr.delete_host(host.id)
            self._refresh_host_tree()
            log.info("Host deleted: %s", host.nickname)

    # ------------------------------------------------------------------
    # PuTTY import
    # ------------------------------------------------------------------

    def _import_putty(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self,
            "Import PuTTY Sessions",
            settings_manager.get("last_import_dir", ""),
            "Registry exports (*.reg);;All files (*)",
        )
        if not path:
            return
        settings_manager.set("last_import_dir", str(pathlib.Path(path).parent))

        result = PuttyRegistryParser.parse_file(path)
        if result.errors:
            log.error("PuTTY import of %s failed: %s", path, result.errors[0])
            QMessageBox.critical(self, "Import Error", user_message(result.errors[0]))
            return

        if count_importable(self._host_mgr, result) == 0:
            QMessageBox.information(
                self, "Import", "All sessions in this file are already imported."
            )
            return
        if result.truncated:
            self._status(f"Only the first {MAX_SESSIONS} sessions of the file are offered.")

        dlg = PuttyImportDialog(result, self._host_mgr, self)
        dlg.imported.connect(self._on_imported)
        dlg.exec()
        dlg.deleteLater()

    def _on_imported(self, result: ImportResult) -> None:
        self._refresh_host_tree()
        self._status(result.summary())

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    def closeEvent(self, event) -> None:
        log.info("%s shutting down", APP_NAME)
        super().closeEvent(event)

    def _open_logs(self) -> None:
        path = logs_dir()
        if path is None:
            QMessageBox.information(self, "Logs", "File logging is disabled.")
            return
        QDesktopServices.openUrl(QUrl.fromLocalFile(str(path)))

    def _status(self, msg: str) -> None:
        self._status_lbl.setText(msg)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)
    window = PuttyPortApp()
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()

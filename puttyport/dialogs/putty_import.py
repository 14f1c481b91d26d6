"""PuTTY import dialog – pick sessions, choose a bind address, import.

The import itself runs in an ``ImportWorker`` on a background QThread so
the host store I/O never blocks the UI.
"""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QObject, QThread, Qt, Signal, Slot
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QButtonGroup,
    QDialog,
    QDialogButtonBox,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QRadioButton,
    QVBoxLayout,
)

from puttyport.constants import BIND_ALL_INTERFACES, BIND_LOCALHOST, C
from puttyport.importers.reconcile import ImportAction, plan_import
from puttyport.importers.task import ImportResult, PuttyImportTask
from puttyport.managers.hosts import HostManager
from puttyport.managers.logger import get_logger
from puttyport.managers.settings import settings_manager
from puttyport.models import ParseResult, SessionDescriptor

log = get_logger(__name__)


# ---------------------------------------------------------------------------
# Worker
# ---------------------------------------------------------------------------

class ImportWorker(QObject):
    """Runs a ``PuttyImportTask`` inside a background QThread."""

    finished = Signal(object)   # ImportResult

    def __init__(self, task: PuttyImportTask) -> None:
        super().__init__()
        self._task = task

    @Slot()
    def run(self) -> None:
        try:
            result = self._task.run()
        except Exception as exc:
            log.exception("PuTTY import crashed")
            result = ImportResult(has_error=True, error_message=str(exc))
        self.finished.emit(result)


def start_worker(worker: ImportWorker, parent: Optional[QObject] = None) -> QThread:
    """Run *worker* on a new QThread that quits and cleans up after it."""
    thread = QThread(parent)
    worker.moveToThread(thread)
    thread.started.connect(worker.run)
    # Direct, so the thread can stop without the caller's event loop
    worker.finished.connect(thread.quit, type=Qt.ConnectionType.DirectConnection)
    thread.finished.connect(worker.deleteLater)
    thread.finished.connect(thread.deleteLater)
    thread.start()
    return thread


# ---------------------------------------------------------------------------
# Dialog
# ---------------------------------------------------------------------------

class PuttyImportDialog(QDialog):
    """Choose which parsed sessions to import and how forwards bind."""

    imported = Signal(object)   # ImportResult

    _BADGES = {
        ImportAction.NEW:     ("new", C["green"]),
        ImportAction.UPDATED: ("update", C["yellow"]),
    }

    def __init__(self, result: ParseResult, host_mgr: HostManager, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Import PuTTY Sessions")
        self.setMinimumSize(560, 480)
        self._result = result
        self._host_mgr = host_mgr
        self._thread: Optional[QThread] = None
        self._worker: Optional[ImportWorker] = None
        self.import_result: Optional[ImportResult] = None
        self._build_ui()
        self._populate()

    # ------------------------------------------------------------------
    # UI
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        root.setSpacing(10)
        root.setContentsMargins(16, 16, 16, 16)

        self._summary_lbl = QLabel()
        root.addWidget(self._summary_lbl)

        self._list = QListWidget()
        root.addWidget(self._list, 1)

        sel_row = QHBoxLayout()
        all_btn = QPushButton("Select All")
        all_btn.clicked.connect(lambda: self._set_all(Qt.CheckState.Checked))
        none_btn = QPushButton("Select None")
        none_btn.clicked.connect(lambda: self._set_all(Qt.CheckState.Unchecked))
        sel_row.addWidget(all_btn)
        sel_row.addWidget(none_btn)
        sel_row.addStretch()
        root.addLayout(sel_row)

        self._warn_lbl = QLabel()
        self._warn_lbl.setWordWrap(True)
        self._warn_lbl.setStyleSheet(f"color: {C['peach']};")
        self._warn_lbl.setVisible(False)
        root.addWidget(self._warn_lbl)

        # ── Bind address ──────────────────────────────────────────────
        bind_grp = QGroupBox("Port forward bind address")
        bind_layout = QVBoxLayout(bind_grp)
        self._bind_group = QButtonGroup(self)
        choices = (
            ("Keep addresses from the PuTTY file", ""),
            ("Localhost only", BIND_LOCALHOST),
            ("All interfaces", BIND_ALL_INTERFACES),
        )
        saved = settings_manager.get("import_bind_address", "")
        for idx, (label, value) in enumerate(choices):
            btn = QRadioButton(label)
            btn.setProperty("bind_address", value)
            self._bind_group.addButton(btn, idx)
            bind_layout.addWidget(btn)
            if value == saved:
                btn.setChecked(True)
        if self._bind_group.checkedButton() is None:
            self._bind_group.button(0).setChecked(True)
        self._bind_group.idToggled.connect(self._update_security_warning)

        self._security_lbl = QLabel(
            "Forwards bound to all interfaces are reachable from other machines "
            "on the network."
        )
        self._security_lbl.setWordWrap(True)
        self._security_lbl.setStyleSheet(f"color: {C['red']};")
        bind_layout.addWidget(self._security_lbl)
        root.addWidget(bind_grp)
        self._update_security_warning()

        self._btns = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok
            | QDialogButtonBox.StandardButton.Cancel
        )
        ok_btn = self._btns.button(QDialogButtonBox.StandardButton.Ok)
        ok_btn.setText("Import")
        ok_btn.setObjectName("primary")
        self._btns.accepted.connect(self._start_import)
        self._btns.rejected.connect(self.reject)
        root.addWidget(self._btns)

    def _populate(self) -> None:
        plan = plan_import(self._host_mgr, self._result)
        pending = 0
        for session, action in plan:
            if action is ImportAction.UNCHANGED:
                continue
            pending += 1
            badge, colour = self._BADGES[action]
            forwards = len(self._result.forwards_for(session.nickname))
            text = f"{session.nickname}  →  {self._target(session)}   [{badge}]"
            if forwards:
                text += f"   {forwards} forward(s)"
            item = QListWidgetItem(text)
            item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
            item.setCheckState(Qt.CheckState.Checked)
            item.setForeground(QColor(colour))
            item.setData(Qt.ItemDataRole.UserRole, session)
            self._list.addItem(item)

        unchanged = len(plan) - pending
        summary = f"{pending} session(s) to import"
        if unchanged:
            summary += f", {unchanged} already up to date"
        self._summary_lbl.setText(summary + ".")

        notes = list(self._result.warnings)
        if notes:
            shown = notes[:5]
            if len(notes) > 5:
                shown.append(f"… and {len(notes) - 5} more")
            self._warn_lbl.setText("\n".join(shown))
            self._warn_lbl.setVisible(True)

    @staticmethod
    def _target(session: SessionDescriptor) -> str:
        user = f"{session.username}@" if session.username else ""
        return f"{user}{session.hostname}:{session.port}"

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    def _set_all(self, state: Qt.CheckState) -> None:
        for i in range(self._list.count()):
            self._list.item(i).setCheckState(state)

    def _update_security_warning(self, *_) -> None:
        self._security_lbl.setVisible(self._bind_address() == BIND_ALL_INTERFACES)

    def _bind_address(self) -> str:
        btn = self._bind_group.checkedButton()
        return btn.property("bind_address") if btn else ""

    def _selected_sessions(self) -> list[SessionDescriptor]:
        return [
            self._list.item(i).data(Qt.ItemDataRole.UserRole)
            for i in range(self._list.count())
            if self._list.item(i).checkState() == Qt.CheckState.Checked
        ]

    def _start_import(self) -> None:
        sessions = self._selected_sessions()
        if not sessions:
            QMessageBox.information(self, "Import", "No sessions selected.")
            return

        bind_address = self._bind_address()
        settings_manager.set("import_bind_address", bind_address)
        task = PuttyImportTask(
            self._host_mgr,
            sessions,
            self._result.port_forwards,
            bind_address,
        )

        self._btns.setEnabled(False)
        self._summary_lbl.setText(f"Importing {len(sessions)} session(s)…")

        self._worker = ImportWorker(task)
        self._worker.finished.connect(self._on_finished)
        self._thread = start_worker(self._worker, self)

    @Slot(object)
    def _on_finished(self, result: ImportResult) -> None:
        # Both objects delete themselves once the thread stops
        if self._thread is not None:
            self._thread.wait()
        self._thread = None
        self._worker = None
        self.import_result = result
        self._btns.setEnabled(True)
        if result.has_error:
            QMessageBox.critical(self, "Import Error", result.error_message)
        elif result.skipped:
            QMessageBox.warning(self, "Import", result.summary())
        else:
            QMessageBox.information(self, "Import", result.summary())
        self.imported.emit(result)
        self.accept()

    def reject(self) -> None:
        if self._thread is not None and self._thread.isRunning():
            return  # import in progress; the worker closes the dialog
        super().reject()
"""Write selected PuTTY sessions and their port forwards into the host store.

Meant to run off the UI thread (see ``dialogs/putty_import.py``).  Each
session is imported on its own: a failure is logged and counted as
skipped, and the work already done for other sessions is kept.
"""

from __future__ import annotations

import dataclasses
from typing import Mapping, Optional, Sequence

from puttyport.importers.reconcile import ImportAction, classify, find_existing_host
from puttyport.managers.logger import get_logger
from puttyport.models import (
    HostRecord,
    PortForwardDescriptor,
    PortForwardRecord,
    SessionDescriptor,
)

log = get_logger(__name__)


@dataclasses.dataclass
class ImportResult:
    imported: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    has_error: bool = False
    error_message: str = ""

    def summary(self) -> str:
        if self.has_error:
            return self.error_message
        parts = [f"Imported {self.imported} session(s)"]
        if self.updated:
            parts.append(f"{self.updated} updated")
        if self.unchanged:
            parts.append(f"{self.unchanged} already up to date")
        if self.skipped:
            parts.append(f"{self.skipped} failed")
        return ", ".join(parts) + "."


class PuttyImportTask:
    """Reconcile parsed sessions with *store* and persist the differences.

    *store* follows the ``HostManager`` contract.  ``bind_address``,
    when non-empty, replaces the bind address of every imported forward.
    """

    def __init__(
        self,
        store,
        sessions: Sequence[SessionDescriptor],
        port_forwards: Optional[Mapping[str, Sequence[PortForwardDescriptor]]] = None,
        bind_address: Optional[str] = None,
    ) -> None:
        self._store = store
        self._sessions = list(sessions)
        self._port_forwards = dict(port_forwards or {})
        self._bind_address = bind_address or None

    def run(self) -> ImportResult:
        result = ImportResult()
        try:
            hosts = self._store.all()
        except Exception:
            log.exception("Cannot read host store")
            result.has_error = True
            result.error_message = "Could not read the existing hosts."
            return result

        for session in self._sessions:
            try:
                action = self._import_session(session, hosts)
            except Exception:
                log.warning("Failed to import session %r", session.nickname, exc_info=True)
                result.skipped += 1
                continue
            if action is ImportAction.UNCHANGED:
                result.unchanged += 1
            else:
                result.imported += 1
                if action is ImportAction.UPDATED:
                    result.updated += 1

        log.info(
            "PuTTY import: %d imported (%d updated), %d unchanged, %d failed",
            result.imported, result.updated, result.unchanged, result.skipped,
        )
        return result

    # ------------------------------------------------------------------
    # Per-session work
    # ------------------------------------------------------------------

    def _import_session(self, session: SessionDescriptor, hosts: list[HostRecord]) -> ImportAction:
        forwards = list(self._port_forwards.get(session.nickname, ()))
        action = classify(hosts, session, forwards, self._store.port_forwards_for_host)
        if action is ImportAction.UNCHANGED:
            log.debug("Session %r unchanged, skipping", session.nickname)
            return action

        existing = find_existing_host(hosts, session.nickname)
        if existing is not None:
            existing.apply_session(session)
            host = self._store.save_host(existing)
        else:
            host = self._store.save_host(HostRecord.from_session(session))
            hosts.append(host)

        self._replace_forwards(host, forwards)
        return action

    def _replace_forwards(self, host: HostRecord, forwards: list[PortForwardDescriptor]) -> None:
        for old in self._store.port_forwards_for_host(host.id):
            self._store.delete_port_forward(old.id)
            log.debug("Deleted port forward %s for host %s", old.nickname, host.nickname)
        for pf in forwards:
            record = PortForwardRecord.from_descriptor(pf, host.id, self._bind_address)
            self._store.save_port_forward(record)
            log.debug("Imported port forward %s for host %s", record.nickname, host.nickname)

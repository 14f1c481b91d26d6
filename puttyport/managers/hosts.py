"""CRUD operations and JSON persistence for hosts and their port forwards."""

from __future__ import annotations

import json
import pathlib
from typing import Optional

from puttyport.constants import HOSTS_FILE
from puttyport.managers.logger import get_logger
from puttyport.models import HostRecord, PortForwardRecord

log = get_logger(__name__)


class HostManager:
    """Manages the host list and port forwards and persists them to disk.

    File layout::

        {"hosts": [...], "port_forwards": [...]}

    Forwards reference their host through ``host_id``.  Writes are not
    synchronised; callers keep to one writer at a time.
    """

    def __init__(self, path: pathlib.Path = HOSTS_FILE) -> None:
        self._path = path
        self._hosts: list[HostRecord] = []
        self._forwards: list[PortForwardRecord] = []
        self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path, "r", encoding="utf-8") as fh:
                raw: dict = json.load(fh)
            self._hosts = [HostRecord.from_dict(d) for d in raw.get("hosts", [])]
            self._forwards = [
                PortForwardRecord.from_dict(d) for d in raw.get("port_forwards", [])
            ]
        except (OSError, ValueError, TypeError, AttributeError) as exc:
            log.warning("Host store %s unreadable, starting empty: %s", self._path, exc)
            self._hosts = []
            self._forwards = []

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as fh:
            json.dump(
                {
                    "hosts": [h.to_dict() for h in self._hosts],
                    "port_forwards": [pf.to_dict() for pf in self._forwards],
                },
                fh,
                indent=2,
            )

    # ------------------------------------------------------------------
    # Hosts
    # ------------------------------------------------------------------

    def all(self) -> list[HostRecord]:
        return list(self._hosts)

    def get_by_id(self, host_id: str) -> Optional[HostRecord]:
        return next((h for h in self._hosts if h.id == host_id), None)

    def get_by_nickname(self, nickname: str) -> Optional[HostRecord]:
        return next((h for h in self._hosts if h.nickname == nickname), None)

    def save_host(self, host: HostRecord) -> HostRecord:
        """Insert *host* or replace the stored entry with the same id."""
        for i, h in enumerate(self._hosts):
            if h.id == host.id:
                self._hosts[i] = host
                break
        else:
            self._hosts.append(host)
        self._save()
        return host

    def delete_host(self, host_id: str) -> None:
        self._hosts = [h for h in self._hosts if h.id != host_id]
        self._forwards = [pf for pf in self._forwards if pf.host_id != host_id]
        self._save()

    # ------------------------------------------------------------------
    # Port forwards
    # ------------------------------------------------------------------

    def port_forwards_for_host(self, host_id: str) -> list[PortForwardRecord]:
        return [pf for pf in self._forwards if pf.host_id == host_id]

    def save_port_forward(self, pf: PortForwardRecord) -> PortForwardRecord:
        for i, existing in enumerate(self._forwards):
            if existing.id == pf.id:
                self._forwards[i] = pf
                break
        else:
            self._forwards.append(pf)
        self._save()
        return pf

    def delete_port_forward(self, pf_id: str) -> None:
        self._forwards = [pf for pf in self._forwards if pf.id != pf_id]
        self._save()

"""Data models for PuttyPort.

Two families live here:

* descriptors (``SessionDescriptor``, ``PortForwardDescriptor``) are the
  immutable output of the registry parser;
* records (``HostRecord``, ``PortForwardRecord``) are what the host store
  persists.  The import step copies descriptors into records, it never
  edits parser output.
"""

from __future__ import annotations

import dataclasses
import enum
import uuid
from typing import Optional

from puttyport.constants import DEFAULT_SSH_PORT, SUPPORTED_PROTOCOL


class ForwardType(str, enum.Enum):
    """Port-forward kinds, valued as stored by the host database."""

    LOCAL = "local"
    REMOTE = "remote"
    DYNAMIC = "dynamic5"

    @property
    def label(self) -> str:
        return {"local": "Local", "remote": "Remote", "dynamic5": "Dynamic"}[self.value]


class AuthAgent(str, enum.Enum):
    """Whether the destination client should offer keys from the SSH agent."""

    NO = "no"
    CONFIRM = "confirm"
    YES = "yes"


# ---------------------------------------------------------------------------
# Parser output
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class PortForwardDescriptor:
    """One parsed forwarding rule.  ``dest_*`` are ``None`` only for dynamic."""

    type: ForwardType
    source_port: int
    dest_host: Optional[str] = None
    dest_port: Optional[int] = None
    bind_address: str = "localhost"
    nickname: str = ""
    host_id: Optional[str] = None

    def with_host(self, host_id: str) -> "PortForwardDescriptor":
        return dataclasses.replace(self, host_id=host_id)

    def __str__(self) -> str:
        if self.type is ForwardType.DYNAMIC:
            return f"{self.type.label} {self.bind_address}:{self.source_port} (SOCKS)"
        return (
            f"{self.type.label} {self.bind_address}:{self.source_port}"
            f" → {self.dest_host}:{self.dest_port}"
        )


@dataclasses.dataclass(frozen=True)
class SessionDescriptor:
    """A validated PuTTY session ready for import."""

    nickname: str
    hostname: str
    username: Optional[str] = None
    port: int = DEFAULT_SSH_PORT
    protocol: str = SUPPORTED_PROTOCOL
    compression: bool = False
    use_auth_agent: AuthAgent = AuthAgent.YES
    # Recorded only; never resolved to a usable key
    public_key_file: Optional[str] = None

    # ── Destination defaults with no PuTTY counterpart ────────────────
    encoding: str = "UTF-8"
    del_key: str = "del"
    want_session: bool = True


@dataclasses.dataclass
class ParseResult:
    """Accumulator owned by a single parse call.

    ``errors`` are fatal: once one is recorded the session list and the
    forward map are emptied.  ``warnings`` describe items that were
    dropped while the rest of the file was still processed.
    """

    valid_sessions: list[SessionDescriptor] = dataclasses.field(default_factory=list)
    errors: list[str] = dataclasses.field(default_factory=list)
    warnings: list[str] = dataclasses.field(default_factory=list)
    truncated: bool = False
    port_forwards: dict[str, list[PortForwardDescriptor]] = dataclasses.field(
        default_factory=dict
    )

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_session(
        self,
        session: SessionDescriptor,
        forwards: list[PortForwardDescriptor] | None = None,
    ) -> None:
        self.valid_sessions.append(session)
        if forwards:
            self.port_forwards[session.nickname] = list(forwards)

    def add_error(self, error: str) -> None:
        self.errors.append(error)
        self.valid_sessions.clear()
        self.port_forwards.clear()

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def mark_truncated(self) -> None:
        self.truncated = True

    def forwards_for(self, nickname: str) -> list[PortForwardDescriptor]:
        return list(self.port_forwards.get(nickname, []))


# ---------------------------------------------------------------------------
# Host store records
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class HostRecord:
    """Persistent host entry in the destination store."""

    nickname: str
    hostname: str
    username: Optional[str] = None
    port: int = DEFAULT_SSH_PORT
    protocol: str = SUPPORTED_PROTOCOL
    compression: bool = False
    use_auth_agent: str = AuthAgent.NO.value
    encoding: str = "UTF-8"
    del_key: str = "del"
    want_session: bool = True
    id: str = dataclasses.field(default_factory=lambda: str(uuid.uuid4()))

    # ── Owned by the destination; imports never touch these ───────────
    color: str = "gray"
    font_size: int = 10
    stay_connected: bool = False
    quick_disconnect: bool = False
    last_connect: int = 0
    pubkey_id: int = -1

    # ------------------------------------------------------------------
    # Import helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_session(cls, session: SessionDescriptor) -> "HostRecord":
        return cls(
            nickname=session.nickname,
            hostname=session.hostname,
            username=session.username,
            port=session.port,
            protocol=session.protocol,
            compression=session.compression,
            use_auth_agent=session.use_auth_agent.value,
            encoding=session.encoding,
            del_key=session.del_key,
            want_session=session.want_session,
        )

    def apply_session(self, session: SessionDescriptor) -> None:
        """Overwrite only the fields a PuTTY export supplies."""
        self.protocol = session.protocol
        self.hostname = session.hostname
        self.port = session.port
        self.username = session.username
        self.compression = session.compression

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "HostRecord":
        valid = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in valid})


@dataclasses.dataclass
class PortForwardRecord:
    """Persistent port forward attached to a host by ``host_id``."""

    host_id: str
    type: str
    source_port: int
    dest_host: Optional[str] = None
    dest_port: Optional[int] = None
    bind_address: str = "localhost"
    nickname: str = ""
    id: str = dataclasses.field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_descriptor(
        cls, pf: PortForwardDescriptor, host_id: str, bind_address: str | None = None
    ) -> "PortForwardRecord":
        return cls(
            host_id=host_id,
            type=pf.type.value,
            source_port=pf.source_port,
            dest_host=pf.dest_host,
            dest_port=pf.dest_port,
            bind_address=bind_address or pf.bind_address,
            nickname=pf.nickname,
        )

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "PortForwardRecord":
        valid = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in valid})

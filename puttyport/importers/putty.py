"""Parser for PuTTY session exports (``regedit /e`` of the Sessions key).

Pipeline::

    bytes ─ decode_registry_bytes ─ looks_like_registry ─ iter_sessions
          ─ protocol filter ─ build_session (+ parse_port_forwards)
          ─ SessionCollector (NFC duplicates, session cap) ─ ParseResult

Only SSH sessions are imported; other protocols are skipped silently.
Fatal problems leave a single error and no sessions in the result; all
other problems drop the one offending item and add a warning.
"""

from __future__ import annotations

import dataclasses
import pathlib
import unicodedata
from typing import BinaryIO, Optional, Union

from puttyport.constants import MAX_FILE_SIZE, MAX_SESSIONS
from puttyport.importers.encoding import decode_registry_bytes
from puttyport.importers.forwards import parse_port_forwards
from puttyport.importers.registry import iter_sessions, looks_like_registry
from puttyport.importers.validators import (
    is_supported_protocol,
    is_valid_hostname,
    is_valid_port,
    is_valid_session_name,
    is_valid_username,
    parse_port,
)
from puttyport.managers.logger import get_logger
from puttyport.models import AuthAgent, ParseResult, PortForwardDescriptor, SessionDescriptor

log = get_logger(__name__)

ERR_TOO_LARGE = "File too large (max 1MB)"
ERR_READ = "File reading error"
ERR_INVALID = "Invalid or corrupted registry file"
ERR_NO_SECTIONS = "No PuTTY SSH sessions found"
ERR_NO_VALID = "No valid SSH sessions found"

_USER_MESSAGES = (
    ("too large", "The file is too large to import (limit is 1 MB)."),
    ("no putty", "The file does not contain any PuTTY sessions."),
    ("no valid", "The file does not contain any PuTTY sessions."),
)


def user_message(error: str) -> str:
    """Turn a parser error into text suitable for a message box."""
    lowered = error.lower()
    for needle, message in _USER_MESSAGES:
        if needle in lowered:
            return message
    return "The file is not a valid PuTTY registry export."


# ---------------------------------------------------------------------------
# Session builder
# ---------------------------------------------------------------------------

def build_session(name: str, values: dict[str, str]) -> Optional[SessionDescriptor]:
    """Build a descriptor from one section, or ``None`` if name/host are bad.

    Invalid usernames and ports are ignored in favour of the defaults.
    """
    if not is_valid_session_name(name):
        return None
    hostname = values.get("HostName")
    if not is_valid_hostname(hostname):
        return None

    fields: dict = {"nickname": name, "hostname": hostname}

    username = values.get("UserName")
    if username and is_valid_username(username):
        fields["username"] = username

    port = parse_port(values.get("PortNumber"))
    if is_valid_port(port):
        fields["port"] = port

    fields["compression"] = values.get("Compression") == "1"
    fields["use_auth_agent"] = (
        AuthAgent.NO if values.get("TryAgent") == "0" else AuthAgent.YES
    )
    key_file = values.get("PublicKeyFile")
    if key_file:
        fields["public_key_file"] = key_file

    return SessionDescriptor(**fields)


# ---------------------------------------------------------------------------
# Duplicate / limit enforcement
# ---------------------------------------------------------------------------

class SessionCollector:
    """Admit sessions into a ``ParseResult`` with first-seen-wins naming.

    Names are compared after NFC normalisation so that composed and
    decomposed spellings of the same name collide.
    """

    def __init__(self, result: ParseResult, limit: int = MAX_SESSIONS) -> None:
        self._result = result
        self._limit = limit
        self._seen: set[str] = set()
        self.dropped_over_limit = 0

    @property
    def accepted(self) -> int:
        return len(self._result.valid_sessions)

    def offer(
        self,
        session: SessionDescriptor,
        forwards: list[PortForwardDescriptor],
    ) -> bool:
        key = unicodedata.normalize("NFC", session.nickname)
        if key in self._seen:
            self._result.add_warning(
                f"Duplicate session name skipped: {session.nickname}"
            )
            return False
        if self.accepted >= self._limit:
            self._result.mark_truncated()
            self.dropped_over_limit += 1
            return False
        self._seen.add(key)
        self._result.add_session(session, forwards)
        return True

    def finish(self) -> None:
        if self.dropped_over_limit:
            self._result.add_warning(
                f"Too many sessions, imported first {self._limit}"
                f" ({self.dropped_over_limit} more skipped)"
            )


# ---------------------------------------------------------------------------
# Port forward creation for a saved host
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class PortForwardCreationResult:
    created: list[PortForwardDescriptor] = dataclasses.field(default_factory=list)
    errors: list[str] = dataclasses.field(default_factory=list)

    def has_errors(self) -> bool:
        return bool(self.errors)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class PuttyRegistryParser:
    """Parses PuTTY registry exports into a :class:`ParseResult`.

    Instances hold no state between calls and may be shared across
    threads.
    """

    def __init__(self, max_file_size: int = MAX_FILE_SIZE,
                 max_sessions: int = MAX_SESSIONS) -> None:
        self.max_file_size = max_file_size
        self.max_sessions = max_sessions

    @classmethod
    def parse_file(cls, path: Union[str, pathlib.Path]) -> ParseResult:
        """Parse the export at *path*."""
        path = pathlib.Path(path)
        parser = cls()
        try:
            size = path.stat().st_size
            with open(path, "rb") as fh:
                return parser.parse_registry_file(fh, size)
        except OSError as exc:
            log.error("Cannot read %s: %s", path, exc)
            result = ParseResult()
            result.add_error(ERR_READ)
            return result

    def parse_registry_file(
        self,
        source: Union[bytes, bytearray, BinaryIO],
        file_size: Optional[int] = None,
    ) -> ParseResult:
        """Parse an export given as bytes or a binary stream.

        *file_size* is the declared length; when it exceeds the cap the
        stream is not read at all.  Never raises.
        """
        result = ParseResult()
        if file_size is None and isinstance(source, (bytes, bytearray)):
            file_size = len(source)
        if file_size is not None and file_size > self.max_file_size:
            log.warning("Rejecting registry file of %d bytes", file_size)
            result.add_error(ERR_TOO_LARGE)
            return result

        try:
            data = self._read_capped(source)
        except OSError as exc:
            log.error("Error reading registry file: %s", exc)
            result.add_error(ERR_READ)
            return result
        if data is None:
            log.warning("Registry stream exceeded %d bytes", self.max_file_size)
            result.add_error(ERR_TOO_LARGE)
            return result

        try:
            self._parse_text(decode_registry_bytes(data), result)
        except Exception:
            log.exception("Unexpected error parsing registry file")
            result.add_error(ERR_INVALID)
        return result

    def _read_capped(self, source: Union[bytes, bytearray, BinaryIO]) -> Optional[bytes]:
        """Read at most one byte past the cap; ``None`` if the cap is exceeded."""
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        else:
            data = source.read(self.max_file_size + 1) or b""
        if len(data) > self.max_file_size:
            return None
        return data

    def _parse_text(self, text: str, result: ParseResult) -> None:
        if not looks_like_registry(text):
            log.warning("Content does not look like a registry export")
            result.add_error(ERR_INVALID)
            return

        collector = SessionCollector(result, self.max_sessions)
        sections = 0
        for name, values in iter_sessions(text):
            sections += 1
            try:
                self._consume_section(name, values, result, collector)
            except Exception:
                log.warning("Failed to parse session %r", name, exc_info=True)
                result.add_warning(f"Invalid session data skipped: {name}")
        collector.finish()

        if not sections:
            result.add_error(ERR_NO_SECTIONS)
        elif not result.valid_sessions:
            result.add_error(ERR_NO_VALID)
        else:
            log.info(
                "Parsed %d PuTTY session(s), %d warning(s)",
                len(result.valid_sessions), len(result.warnings),
            )

    def _consume_section(
        self,
        name: str,
        values: dict[str, str],
        result: ParseResult,
        collector: SessionCollector,
    ) -> None:
        if not is_supported_protocol(values.get("Protocol")):
            log.debug("Skipping non-SSH session %r", name)
            return

        session = build_session(name, values)
        if session is None:
            result.add_warning(f"Invalid session data skipped: {name}")
            return

        bad_entries: list[str] = []
        forwards = parse_port_forwards(
            values.get("PortForwardings"), on_error=bad_entries.append
        )
        if collector.offer(session, forwards):
            for entry in bad_entries:
                result.add_warning(f"Invalid port forward skipped in {name}: {entry}")

    # ------------------------------------------------------------------
    # Forwards for a known destination host
    # ------------------------------------------------------------------

    @staticmethod
    def parse_port_forwards(spec: Optional[str], host_id: Optional[str] = None
                            ) -> list[PortForwardDescriptor]:
        return parse_port_forwards(spec, host_id)

    @staticmethod
    def create_port_forwards_for_host(
        result: ParseResult, session_name: str, host_id: str
    ) -> PortForwardCreationResult:
        """Copy a session's parsed forwards, stamped with *host_id*."""
        creation = PortForwardCreationResult()
        forwards = result.forwards_for(session_name)
        if not host_id:
            creation.errors.extend(
                f"{pf.nickname}: no destination host id" for pf in forwards
            )
            return creation
        creation.created = [pf.with_host(host_id) for pf in forwards]
        return creation

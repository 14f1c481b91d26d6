"""Structure check and line tokenizer for regedit ``.reg`` exports.

File format::

    Windows Registry Editor Version 5.00

    [HKEY_CURRENT_USER\\Software\\SimonTatham\\PuTTY\\Sessions\\My%20Server]
    "HostName"="example.com"
    "PortNumber"=dword:00000016
    "Protocol"="ssh"

Only sections under the PuTTY ``Sessions`` key are reported; all other
sections are skipped without aborting the scan.
"""

from __future__ import annotations

import re
import urllib.parse
from typing import Iterator, Optional

from puttyport.constants import PUTTY_SESSIONS_PATH, REGISTRY_MARKERS
from puttyport.managers.logger import get_logger

log = get_logger(__name__)

_SECTION_RE = re.compile(r"\[(.+)\]")
_VALUE_RE = re.compile(r'"([^"]+)"=(.+)')
_DWORD_RE = re.compile(r"dword:([0-9a-fA-F]{8})")
_STRING_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')
_PLAIN_STRING_RE = re.compile(r'"([^"]*)"')
_STRING_ESCAPE_RE = re.compile(r'\\([\\"])')
_BAD_PERCENT_RE = re.compile(r"%(?![0-9a-fA-F]{2})")


def looks_like_registry(text: str) -> bool:
    """Cheap gate run before the line scan."""
    if not text:
        return False
    return any(marker in text for marker in REGISTRY_MARKERS)


def decode_session_name(encoded: str) -> str:
    """Undo PuTTY's ``%XX`` escaping of session names.

    Raises ``ValueError`` for a stray ``%`` or bytes that are not UTF-8.
    ``+`` is literal: PuTTY never escapes spaces that way.
    """
    if _BAD_PERCENT_RE.search(encoded):
        raise ValueError(f"malformed percent escape in {encoded!r}")
    return urllib.parse.unquote(encoded, encoding="utf-8", errors="strict")


def parse_registry_value(raw: str) -> Optional[str]:
    """Return the value as text, or ``None`` for unsupported syntax.

    ``dword:0000ffff`` becomes ``"65535"``; quoted strings lose their
    quotes and regedit's backslash escaping.
    """
    m = _DWORD_RE.fullmatch(raw)
    if m:
        return str(int(m.group(1), 16))
    m = _STRING_RE.fullmatch(raw)
    if m:
        return _STRING_ESCAPE_RE.sub(r"\1", m.group(1))
    # Hand-edited files leave a trailing backslash unescaped: "dom\"
    m = _PLAIN_STRING_RE.fullmatch(raw)
    if m:
        return m.group(1)
    return None


def iter_sessions(text: str) -> Iterator[tuple[str, dict[str, str]]]:
    """Yield ``(session_name, values)`` for each PuTTY session section.

    Sections are yielded in file order, each one as soon as the next
    header (or the end of input) closes it.  Call again to rescan.
    """
    name: Optional[str] = None
    values: dict[str, str] = {}

    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue

        header = _SECTION_RE.fullmatch(line)
        if header:
            if name is not None:
                yield name, values
            name, values = _open_section(header.group(1)), {}
            continue

        if name is None:
            continue
        pair = _VALUE_RE.fullmatch(line)
        if not pair:
            continue
        key, raw = pair.groups()
        value = parse_registry_value(raw)
        if value is None:
            log.debug("Dropping unsupported value for %s in %r", key, name)
            continue
        values[key] = value

    if name is not None:
        yield name, values


def _open_section(section: str) -> Optional[str]:
    if not section.startswith(PUTTY_SESSIONS_PATH):
        return None
    encoded = section[len(PUTTY_SESSIONS_PATH):]
    try:
        return decode_session_name(encoded)
    except ValueError as exc:
        log.debug("Skipping section with undecodable name: %s", exc)
        return None

"""Field predicates applied to values extracted from a PuTTY session.

Every function is total: any input, including ``None``, yields a bool
(or ``None`` for :func:`parse_port`) and nothing is raised.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

from puttyport.constants import SUPPORTED_PROTOCOL

MAX_SESSION_NAME_LENGTH = 64
MAX_HOSTNAME_LENGTH = 253
MAX_USERNAME_LENGTH = 32

_FORBIDDEN_NAME_CHARS = frozenset('/\\:*?"<>|')
_HOSTNAME_RE = re.compile(r"[a-zA-Z0-9.-]+")
_IPV6_RE = re.compile(r"\[?[0-9a-fA-F:]+\]?")
_PORT_RE = re.compile(r"[0-9]{1,5}")


def is_valid_session_name(name: Optional[str]) -> bool:
    if not name or not name.strip() or len(name) > MAX_SESSION_NAME_LENGTH:
        return False
    return not any(
        unicodedata.category(ch) == "Cc" or ch in _FORBIDDEN_NAME_CHARS
        for ch in name
    )


def is_valid_hostname(hostname: Optional[str]) -> bool:
    """FQDN, IPv4, or IPv6 (bare or bracketed).  Shape check only."""
    if not hostname or not hostname.strip() or len(hostname) > MAX_HOSTNAME_LENGTH:
        return False
    return bool(_HOSTNAME_RE.fullmatch(hostname) or _IPV6_RE.fullmatch(hostname))


def is_valid_username(username: Optional[str]) -> bool:
    if username is None or len(username) > MAX_USERNAME_LENGTH:
        return False
    return all(32 <= ord(ch) <= 126 for ch in username)


def is_valid_port(port: Optional[int]) -> bool:
    return isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535


def is_supported_protocol(protocol: Optional[str]) -> bool:
    return protocol == SUPPORTED_PROTOCOL


def parse_port(text: Optional[str]) -> Optional[int]:
    """Parse plain ASCII digits; signs, blanks and underscores are refused."""
    if text is None or not _PORT_RE.fullmatch(text):
        return None
    return int(text)

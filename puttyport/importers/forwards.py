"""Parser for PuTTY ``PortForwardings`` values.

A value is a comma-separated list of entries::

    [4|6]<type>[<bind>:]<port>=<host>:<port>      type L or R
    [4|6]D[<bind>:]<port>                          dynamic (SOCKS)

IPv6 addresses must be bracketed, e.g. ``6R[ff::2]:11=[ff::1]:12``.  The
``4``/``6`` prefix picks the address family used for the default and
special bind addresses.

Each entry stands alone: a malformed one is dropped and the rest of the
list is still parsed.
"""

from __future__ import annotations

from typing import Callable, Optional

from puttyport.constants import (
    BIND_ALL_INTERFACES,
    BIND_IPV6_ALL,
    BIND_IPV6_LOOPBACK,
    BIND_LOCALHOST,
)
from puttyport.importers.validators import is_valid_hostname, is_valid_port, parse_port
from puttyport.managers.logger import get_logger
from puttyport.models import ForwardType, PortForwardDescriptor

log = get_logger(__name__)

_TYPES = {
    "L": ForwardType.LOCAL,
    "R": ForwardType.REMOTE,
    "D": ForwardType.DYNAMIC,
}
_WILDCARDS = frozenset({BIND_ALL_INTERFACES, BIND_IPV6_ALL})
_LOOPBACKS = frozenset({"127.0.0.1", BIND_LOCALHOST, BIND_IPV6_LOOPBACK})


def split_address_port(spec: str) -> Optional[tuple[str, str]]:
    """Split ``addr:port`` or ``[v6addr]:port``.

    Returns ``None`` when *spec* carries no address part or cannot be
    split unambiguously.  The port half is returned unparsed.
    """
    if not spec:
        return None

    if spec.startswith("["):
        close = spec.find("]")
        if close != -1 and close < len(spec) - 1 and spec[close + 1] == ":":
            return spec[1:close], spec[close + 2:]
        return None

    # An unbracketed IPv6 address cannot be told apart from its port
    if spec.count(":") != 1:
        return None
    addr, _, port = spec.partition(":")
    if not addr or not port:
        return None
    return addr, port


def normalize_bind_address(bind: Optional[str], ipv6_preferred: bool) -> str:
    """Map missing and special bind addresses onto the preferred family."""
    if bind is None:
        return BIND_IPV6_LOOPBACK if ipv6_preferred else BIND_LOCALHOST
    if bind in _WILDCARDS:
        return BIND_IPV6_ALL if ipv6_preferred else BIND_ALL_INTERFACES
    if bind in _LOOPBACKS:
        return BIND_IPV6_LOOPBACK if ipv6_preferred else BIND_LOCALHOST
    return bind


def _parse_listen(spec: str) -> Optional[tuple[Optional[str], int]]:
    """``[bind:]port`` -> ``(bind or None, port)``; invalid binds are dropped."""
    bind: Optional[str] = None
    parts = split_address_port(spec)
    if parts is not None:
        bind, port_text = parts
        if not is_valid_hostname(bind):
            log.debug("Ignoring invalid bind address %r", bind)
            bind = None
    else:
        port_text = spec
    port = parse_port(port_text)
    if not is_valid_port(port):
        return None
    return bind, port


def parse_port_forward(entry: str) -> Optional[PortForwardDescriptor]:
    """Parse one entry such as ``4L127.0.0.1:8080=example.com:80``."""
    nickname = entry.strip()
    spec = nickname
    ipv6_preferred = False
    if spec[:1] in ("4", "6"):
        ipv6_preferred = spec[0] == "6"
        spec = spec[1:]

    fwd_type = _TYPES.get(spec[:1])
    if fwd_type is None:
        return None
    spec = spec[1:]

    if fwd_type is ForwardType.DYNAMIC:
        listen = _parse_listen(spec)
        if listen is None:
            return None
        bind, source_port = listen
        return PortForwardDescriptor(
            type=fwd_type,
            source_port=source_port,
            bind_address=normalize_bind_address(bind, ipv6_preferred),
            nickname=nickname,
        )

    source, sep, dest = spec.partition("=")
    if not sep:
        return None
    listen = _parse_listen(source)
    if listen is None:
        return None
    bind, source_port = listen

    dest_parts = split_address_port(dest)
    if dest_parts is None:
        return None
    dest_host, dest_port_text = dest_parts
    dest_port = parse_port(dest_port_text)
    if not is_valid_hostname(dest_host) or not is_valid_port(dest_port):
        return None

    return PortForwardDescriptor(
        type=fwd_type,
        source_port=source_port,
        dest_host=dest_host,
        dest_port=dest_port,
        bind_address=normalize_bind_address(bind, ipv6_preferred),
        nickname=nickname,
    )


def parse_port_forwards(
    spec: Optional[str],
    host_id: Optional[str] = None,
    on_error: Optional[Callable[[str], None]] = None,
) -> list[PortForwardDescriptor]:
    """Parse a whole ``PortForwardings`` value.

    ``host_id`` is stamped on every descriptor when the destination host
    is already known.  ``on_error`` receives each entry that was dropped.
    """
    forwards: list[PortForwardDescriptor] = []
    if not spec:
        return forwards

    for entry in spec.split(","):
        entry = entry.strip()
        if not entry:
            continue
        try:
            pf = parse_port_forward(entry)
        except Exception:
            log.warning("Port forward parser failed on %r", entry, exc_info=True)
            pf = None
        if pf is None:
            log.debug("Dropping malformed port forward %r", entry)
            if on_error is not None:
                on_error(entry)
            continue
        forwards.append(pf.with_host(host_id) if host_id is not None else pf)
    return forwards

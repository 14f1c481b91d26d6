"""Decide what an import would do to each parsed session.

A session is matched to a stored host by exact nickname.  Only the
fields a PuTTY export can supply are compared; colours, font size and
the other destination-owned settings never influence the outcome.
"""

from __future__ import annotations

import collections
import enum
from typing import Callable, Iterable, Optional

from puttyport.managers.logger import get_logger
from puttyport.models import HostRecord, ParseResult, SessionDescriptor

log = get_logger(__name__)

ForwardsLookup = Callable[[str], Iterable]


class ImportAction(str, enum.Enum):
    NEW = "new"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


def find_existing_host(hosts: Iterable[HostRecord], nickname: str) -> Optional[HostRecord]:
    return next((h for h in hosts if h.nickname == nickname), None)


def _forward_key(pf) -> tuple:
    # Enum members hash by name, so compare on the raw string value
    fwd_type = getattr(pf.type, "value", pf.type)
    return (str(fwd_type), pf.source_port, pf.dest_host, pf.dest_port)


def forwards_differ(existing: Iterable, incoming: Iterable) -> bool:
    """Compare two forward collections as unordered multisets."""
    return collections.Counter(map(_forward_key, existing)) != collections.Counter(
        map(_forward_key, incoming)
    )


def has_significant_differences(
    host: HostRecord,
    session: SessionDescriptor,
    existing_forwards: Iterable = (),
    incoming_forwards: Iterable = (),
) -> bool:
    if host.hostname != session.hostname:
        return True
    if host.port != session.port:
        return True
    if (host.username or None) != (session.username or None):
        return True
    if host.protocol != session.protocol:
        return True
    if bool(host.compression) != session.compression:
        return True
    return forwards_differ(existing_forwards, incoming_forwards)


def classify(
    hosts: Iterable[HostRecord],
    session: SessionDescriptor,
    incoming_forwards: Iterable = (),
    forwards_for: Optional[ForwardsLookup] = None,
) -> ImportAction:
    """Classify *session* against the stored *hosts*.

    ``forwards_for(host_id)`` returns the forwards stored for a host;
    without it the stored host is treated as having none.
    """
    existing = find_existing_host(hosts, session.nickname)
    if existing is None:
        return ImportAction.NEW
    existing_forwards = forwards_for(existing.id) if forwards_for else ()
    if has_significant_differences(existing, session, existing_forwards, incoming_forwards):
        return ImportAction.UPDATED
    return ImportAction.UNCHANGED


def plan_import(store, result: ParseResult) -> list[tuple[SessionDescriptor, ImportAction]]:
    """Pair each session in *result* with the action an import would take.

    *store* is a host store (``all()`` / ``port_forwards_for_host()``).
    Sessions that cannot be classified are logged and left out.
    """
    hosts = store.all()
    plan: list[tuple[SessionDescriptor, ImportAction]] = []
    for session in result.valid_sessions:
        try:
            action = classify(
                hosts,
                session,
                result.forwards_for(session.nickname),
                store.port_forwards_for_host,
            )
        except Exception:
            log.warning("Could not classify session %r", session.nickname, exc_info=True)
            continue
        plan.append((session, action))
    return plan


def count_importable(store, result: ParseResult) -> int:
    """Number of sessions that are new or would change a stored host."""
    return sum(1 for _, action in plan_import(store, result)
               if action is not ImportAction.UNCHANGED)

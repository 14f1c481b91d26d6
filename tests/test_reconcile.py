"""Tests for matching parsed sessions against stored hosts."""

import dataclasses

import pytest

from puttyport.importers.reconcile import (
    ImportAction,
    classify,
    count_importable,
    forwards_differ,
    has_significant_differences,
    plan_import,
)
from puttyport.models import (
    ForwardType,
    HostRecord,
    ParseResult,
    PortForwardDescriptor,
    PortForwardRecord,
    SessionDescriptor,
)


@pytest.fixture
def session():
    return SessionDescriptor(
        nickname="web", hostname="web.example.com", username="deploy", port=2222,
    )


@pytest.fixture
def forwards():
    return [
        PortForwardDescriptor(ForwardType.LOCAL, 8080, "localhost", 80),
        PortForwardDescriptor(ForwardType.DYNAMIC, 1080),
    ]


def _records(host_id, descriptors, bind=None):
    return [PortForwardRecord.from_descriptor(pf, host_id, bind) for pf in descriptors]


def test_new_when_nickname_unknown(session):
    other = HostRecord(nickname="db", hostname="db.example.com")
    assert classify([other], session) is ImportAction.NEW


def test_nickname_match_is_exact(session):
    host = HostRecord.from_session(dataclasses.replace(session, nickname="Web"))
    assert classify([host], session) is ImportAction.NEW


def test_unchanged_when_identical(session):
    host = HostRecord.from_session(session)
    assert classify([host], session) is ImportAction.UNCHANGED


@pytest.mark.parametrize(
    "changes",
    [
        {"hostname": "other.example.com"},
        {"port": 22},
        {"username": "root"},
        {"username": None},
        {"compression": True},
    ],
)
def test_updated_when_compared_field_changes(session, changes):
    host = HostRecord.from_session(session)
    assert classify([host], dataclasses.replace(session, **changes)) is ImportAction.UPDATED


def test_protocol_change_is_significant(session):
    host = HostRecord.from_session(session)
    host.protocol = "telnet"
    assert has_significant_differences(host, session)


def test_empty_and_missing_username_are_equal(session):
    host = HostRecord.from_session(dataclasses.replace(session, username=None))
    host.username = ""
    assert classify([host], dataclasses.replace(session, username=None)) is ImportAction.UNCHANGED


def test_destination_owned_fields_are_ignored(session):
    host = HostRecord.from_session(session)
    host.color = "red"
    host.font_size = 14
    host.stay_connected = True
    host.last_connect = 1700000000
    host.use_auth_agent = "confirm"
    assert classify([host], session) is ImportAction.UNCHANGED


def test_forward_order_is_irrelevant(session, forwards):
    host = HostRecord.from_session(session)
    stored = _records(host.id, reversed(forwards))
    action = classify([host], session, forwards, lambda host_id: stored)
    assert action is ImportAction.UNCHANGED


def test_extra_forward_is_an_update(session, forwards):
    host = HostRecord.from_session(session)
    stored = _records(host.id, forwards[:1])
    action = classify([host], session, forwards, lambda host_id: stored)
    assert action is ImportAction.UPDATED


def test_stored_forwards_without_incoming_is_an_update(session, forwards):
    host = HostRecord.from_session(session)
    stored = _records(host.id, forwards)
    assert classify([host], session, [], lambda host_id: stored) is ImportAction.UPDATED


def test_bind_address_is_not_compared(forwards):
    stored = _records("h", forwards, bind="0.0.0.0")
    assert not forwards_differ(stored, forwards)


def test_duplicate_forwards_compare_as_multiset(forwards):
    local = forwards[0]
    assert forwards_differ([local, local], [local])
    assert not forwards_differ([local, local], [local, local])


def test_record_and_descriptor_types_compare_equal():
    record = PortForwardRecord(host_id="h", type="remote", source_port=9090,
                               dest_host="0.0.0.0", dest_port=443)
    descriptor = PortForwardDescriptor(ForwardType.REMOTE, 9090, "0.0.0.0", 443)
    assert not forwards_differ([record], [descriptor])


def test_different_destination_differs():
    a = PortForwardDescriptor(ForwardType.LOCAL, 8080, "localhost", 80)
    b = PortForwardDescriptor(ForwardType.LOCAL, 8080, "localhost", 81)
    assert forwards_differ([a], [b])


class TestPlanImport:
    def _result(self, *sessions, forwards=None):
        result = ParseResult()
        for s in sessions:
            result.add_session(s, (forwards or {}).get(s.nickname))
        return result

    def test_plan_covers_every_session(self, host_mgr, session):
        host_mgr.save_host(HostRecord.from_session(session))
        fresh = SessionDescriptor(nickname="fresh", hostname="fresh.example.com")
        changed = SessionDescriptor(nickname="db", hostname="db2.example.com")
        host_mgr.save_host(HostRecord(nickname="db", hostname="db.example.com"))

        plan = plan_import(host_mgr, self._result(session, fresh, changed))

        assert [(s.nickname, a) for s, a in plan] == [
            ("web", ImportAction.UNCHANGED),
            ("fresh", ImportAction.NEW),
            ("db", ImportAction.UPDATED),
        ]
        assert count_importable(host_mgr, self._result(session, fresh, changed)) == 2

    def test_plan_uses_stored_forwards(self, host_mgr, session, forwards):
        host = host_mgr.save_host(HostRecord.from_session(session))
        for record in _records(host.id, forwards):
            host_mgr.save_port_forward(record)

        result = self._result(session, forwards={"web": forwards})
        assert plan_import(host_mgr, result) == [(session, ImportAction.UNCHANGED)]
        assert count_importable(host_mgr, result) == 0

    def test_unclassifiable_session_is_left_out(self, session):
        class BrokenForwardsStore:
            def all(self):
                return [HostRecord(nickname="x", hostname="old.example.com")]

            def port_forwards_for_host(self, host_id):
                raise RuntimeError("forward table unavailable")

        stale = SessionDescriptor(nickname="x", hostname="x.example.com")
        plan = plan_import(BrokenForwardsStore(), self._result(session, stale))
        assert plan == [(session, ImportAction.NEW)]

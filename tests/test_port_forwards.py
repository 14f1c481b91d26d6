"""Tests for the PuTTY PortForwardings grammar."""

import pytest

from puttyport.importers.forwards import (
    normalize_bind_address,
    parse_port_forward,
    parse_port_forwards,
    split_address_port,
)
from puttyport.models import ForwardType


def _find(forwards, fwd_type, source_port):
    return next(
        (pf for pf in forwards if pf.type is fwd_type and pf.source_port == source_port),
        None,
    )


def test_local_remote_dynamic():
    forwards = parse_port_forwards("L8080=localhost:80,R9090=0.0.0.0:443,D1080")
    assert len(forwards) == 3

    local = _find(forwards, ForwardType.LOCAL, 8080)
    assert (local.dest_host, local.dest_port) == ("localhost", 80)

    remote = _find(forwards, ForwardType.REMOTE, 9090)
    assert (remote.dest_host, remote.dest_port) == ("0.0.0.0", 443)

    dynamic = _find(forwards, ForwardType.DYNAMIC, 1080)
    assert dynamic.dest_host is None
    assert dynamic.dest_port is None


def test_three_local_forwards_keep_literal_values():
    forwards = parse_port_forwards(
        "L1022=192.168.168.128:22,L1023=192.168.168.128:5900,L64734=127.0.0.1:64734"
    )
    assert [(pf.type, pf.source_port, pf.dest_host, pf.dest_port) for pf in forwards] == [
        (ForwardType.LOCAL, 1022, "192.168.168.128", 22),
        (ForwardType.LOCAL, 1023, "192.168.168.128", 5900),
        (ForwardType.LOCAL, 64734, "127.0.0.1", 64734),
    ]


class TestBindAddress:
    def test_ipv6_loopback_with_prefix(self):
        (pf,) = parse_port_forwards("6L[::1]:8080=localhost:80")
        assert pf.type is ForwardType.LOCAL
        assert pf.source_port == 8080
        assert pf.bind_address == "::1"

    def test_explicit_ipv4_bind(self):
        (pf,) = parse_port_forwards("L192.168.1.1:8080=localhost:80")
        assert pf.bind_address == "192.168.1.1"

    def test_default_bind(self):
        assert parse_port_forwards("L8080=localhost:80")[0].bind_address == "localhost"
        assert parse_port_forwards("6L8080=localhost:80")[0].bind_address == "::1"

    def test_ipv6_wildcard(self):
        (pf,) = parse_port_forwards("6L[::]:8080=localhost:80")
        assert pf.bind_address == "::"

    def test_wildcard_follows_preferred_family(self):
        assert parse_port_forwards("L[::]:8080=h:80")[0].bind_address == "0.0.0.0"
        assert parse_port_forwards("6L0.0.0.0:8080=h:80")[0].bind_address == "::"

    def test_loopback_follows_preferred_family(self):
        assert parse_port_forwards("4L127.0.0.1:8080=h:80")[0].bind_address == "localhost"
        assert parse_port_forwards("6Llocalhost:8080=h:80")[0].bind_address == "::1"

    def test_invalid_bind_falls_back_to_default(self):
        (pf,) = parse_port_forwards("Lbad_host:8080=example.com:80")
        assert pf.source_port == 8080
        assert pf.bind_address == "localhost"

    def test_dynamic_ipv6_bind(self):
        (pf,) = parse_port_forwards("6D[ff::2]:1080")
        assert pf.type is ForwardType.DYNAMIC
        assert pf.bind_address == "ff::2"
        assert pf.source_port == 1080


def test_bracketed_ipv6_destination():
    (pf,) = parse_port_forwards("R9090=[::1]:443")
    assert (pf.dest_host, pf.dest_port) == ("::1", 443)


def test_complex_ipv6():
    (pf,) = parse_port_forwards("6L[2001:db8::1]:8080=[2001:db8::2]:80")
    assert pf.bind_address == "2001:db8::1"
    assert pf.dest_host == "2001:db8::2"
    assert pf.dest_port == 80


@pytest.mark.parametrize(
    "spec",
    [
        "InvalidFormat",
        "",
        "L999999=localhost:80",
        "L8080=",
        "L[::1:8080=localhost:80",
        "L0=localhost:80",
        "L8080=localhost:0",
        "L8080=localhost:65536",
        "L8080=fe80::1:80",
        "L8080",
        "D",
        "Dabc",
        "X8080=localhost:80",
        "6",
    ],
)
def test_malformed_entries_yield_nothing(spec):
    assert parse_port_forwards(spec) == []


def test_malformed_entries_do_not_affect_siblings():
    dropped = []
    forwards = parse_port_forwards(
        "L8080=, D1080 ,InvalidFormat,L[::1:8080=localhost:80,L999999=localhost:80,"
        "R2222=host:22,,",
        on_error=dropped.append,
    )
    assert [(pf.type, pf.source_port) for pf in forwards] == [
        (ForwardType.DYNAMIC, 1080),
        (ForwardType.REMOTE, 2222),
    ]
    assert dropped == [
        "L8080=",
        "InvalidFormat",
        "L[::1:8080=localhost:80",
        "L999999=localhost:80",
    ]


def test_boundary_ports_accepted():
    (pf,) = parse_port_forwards("L65535=example.com:1")
    assert (pf.source_port, pf.dest_port) == (65535, 1)


def test_host_id_is_stamped():
    forwards = parse_port_forwards("L8080=localhost:80,D1080", host_id="host-1")
    assert {pf.host_id for pf in forwards} == {"host-1"}


def test_nickname_is_entry_text():
    pf = parse_port_forward("4L127.0.0.1:8080=example.com:80")
    assert pf.nickname == "4L127.0.0.1:8080=example.com:80"


@pytest.mark.parametrize(
    "spec, expected",
    [
        ("192.168.1.1:8080", ("192.168.1.1", "8080")),
        ("host:22", ("host", "22")),
        ("[::1]:8080", ("::1", "8080")),
        ("[2001:db8::1]:80", ("2001:db8::1", "80")),
        ("8080", None),
        ("", None),
        ("fe80::1:80", None),
        ("[::1:8080", None),
        ("[::1]8080", None),
        ("[::1]", None),
        (":8080", None),
        ("host:", None),
    ],
)
def test_split_address_port(spec, expected):
    assert split_address_port(spec) == expected


@pytest.mark.parametrize(
    "bind, ipv6, expected",
    [
        (None, False, "localhost"),
        (None, True, "::1"),
        ("0.0.0.0", False, "0.0.0.0"),
        ("0.0.0.0", True, "::"),
        ("::", False, "0.0.0.0"),
        ("::", True, "::"),
        ("127.0.0.1", False, "localhost"),
        ("127.0.0.1", True, "::1"),
        ("::1", False, "localhost"),
        ("localhost", True, "::1"),
        ("10.1.2.3", True, "10.1.2.3"),
        ("fd00::5", False, "fd00::5"),
    ],
)
def test_normalize_bind_address(bind, ipv6, expected):
    assert normalize_bind_address(bind, ipv6) == expected

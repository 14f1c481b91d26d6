import os
import tempfile

# Keep logs and settings out of the real home directory; must run before
# any puttyport module is imported.
os.environ.setdefault("PUTTYPORT_HOME", tempfile.mkdtemp(prefix="puttyport-tests-"))

import pytest  # noqa: E402

from puttyport.constants import PUTTY_SESSIONS_PATH  # noqa: E402
from puttyport.importers.putty import PuttyRegistryParser  # noqa: E402
from puttyport.managers.hosts import HostManager  # noqa: E402

REGISTRY_HEADER = "Windows Registry Editor Version 5.00\n\n"


def _session_entry(name, hostname=None, username=None, port=None, protocol="ssh", **extra):
    """Render one PuTTY session section.

    ``port`` and ``extra`` values are written verbatim, so pass
    ``dword:...`` or quoted strings as the registry would hold them.
    """
    lines = [f"[{PUTTY_SESSIONS_PATH}{name}]"]
    if hostname is not None:
        lines.append(f'"HostName"="{hostname}"')
    if username is not None:
        lines.append(f'"UserName"="{username}"')
    if port is not None:
        lines.append(f'"PortNumber"={port}')
    if protocol is not None:
        lines.append(f'"Protocol"="{protocol}"')
    for key, raw in extra.items():
        lines.append(f'"{key}"={raw}')
    return "\n".join(lines) + "\n"


def _registry(*entries):
    return REGISTRY_HEADER + "\n".join(entries)


def _parse(text):
    return PuttyRegistryParser().parse_registry_file(text.encode("utf-8"))


@pytest.fixture
def session_entry():
    return _session_entry


@pytest.fixture
def registry():
    return _registry


@pytest.fixture
def parse():
    return _parse


@pytest.fixture
def host_mgr(tmp_path):
    return HostManager(tmp_path / "hosts.json")

"""Application-wide constants: paths, metadata, import limits, and palette."""

from __future__ import annotations

import os
import pathlib

APP_NAME = "PuttyPort"
APP_VERSION = "1.0.0"
DATA_DIR = pathlib.Path(
    os.environ.get("PUTTYPORT_HOME") or pathlib.Path.home() / ".puttyport"
)
HOSTS_FILE = DATA_DIR / "hosts.json"
SETTINGS_FILE = DATA_DIR / "settings.json"

# ---------------------------------------------------------------------------
# PuTTY registry import limits
# ---------------------------------------------------------------------------
MAX_FILE_SIZE = 1024 * 1024          # 1 MiB, checked before decoding
MAX_SESSIONS = 100                   # per import file
PUTTY_SESSIONS_PATH = "HKEY_CURRENT_USER\\Software\\SimonTatham\\PuTTY\\Sessions\\"
REGISTRY_MARKERS = ("Windows Registry Editor", "[HKEY_")

DEFAULT_SSH_PORT = 22
SUPPORTED_PROTOCOL = "ssh"

# ---------------------------------------------------------------------------
# Port-forward bind addresses
# ---------------------------------------------------------------------------
BIND_LOCALHOST = "localhost"
BIND_ALL_INTERFACES = "0.0.0.0"
BIND_IPV6_LOOPBACK = "::1"
BIND_IPV6_ALL = "::"

# ---------------------------------------------------------------------------
# Catppuccin Mocha subset used by the import dialog
# ---------------------------------------------------------------------------
C: dict[str, str] = {
    "green":     "#a6e3a1",
    "yellow":    "#f9e2af",
    "peach":     "#fab387",
    "red":       "#f38ba8",
}

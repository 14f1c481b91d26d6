"""Centralized logging setup for PuttyPort.

All application modules should obtain loggers via::

    from puttyport.managers.logger import get_logger
    log = get_logger(__name__)

Log file: <data dir>/logs/app.log
  - Rotates at 5 MiB, keeps 3 backups
  - Level: DEBUG
Console:
  - Level: INFO
"""

from __future__ import annotations

import logging
import logging.handlers
import pathlib

_configured = False
_LOGS_DIR: pathlib.Path | None = None


def get_logger(name: str) -> logging.Logger:
    """Return a named logger under the 'puttyport' hierarchy."""
    _configure_once()
    if not name.startswith("puttyport"):
        name = f"puttyport.{name}"
    return logging.getLogger(name)


def logs_dir() -> pathlib.Path | None:
    """Return the logs directory path (None until first call to get_logger)."""
    return _LOGS_DIR


def _configure_once() -> None:
    global _configured, _LOGS_DIR
    if _configured:
        return
    _configured = True

    # Late import to avoid circular imports at module load time
    from puttyport.constants import DATA_DIR  # noqa: PLC0415

    root = logging.getLogger("puttyport")
    if root.handlers:
        return

    root.setLevel(logging.DEBUG)

    _fmt = logging.Formatter(
        "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # ── Rotating file handler ─────────────────────────────────────────
    try:
        _LOGS_DIR = DATA_DIR / "logs"
        _LOGS_DIR.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            _LOGS_DIR / "app.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
    except OSError:
        # Read-only home: console logging only
        _LOGS_DIR = None
    else:
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(_fmt)
        root.addHandler(fh)

    # ── Console handler ───────────────────────────────────────────────
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(logging.Formatter("%(levelname)-8s  %(name)s  %(message)s"))
    root.addHandler(ch)

"""Application settings persistence (<data dir>/settings.json)."""

from __future__ import annotations

import json
import pathlib
from typing import Any

from puttyport.constants import SETTINGS_FILE
from puttyport.managers.logger import get_logger

log = get_logger(__name__)


class SettingsManager:
    """Load/save application-wide preferences."""

    _DEFAULTS: dict[str, Any] = {
        # "" keeps the bind address parsed from each forward
        "import_bind_address": "",
        "last_import_dir":     "",
    }

    def __init__(self, path: pathlib.Path = SETTINGS_FILE) -> None:
        self._path = path
        self._data: dict[str, Any] = dict(self._DEFAULTS)
        self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path, "r", encoding="utf-8") as fh:
                stored = json.load(fh)
            self._data.update(stored)
        except (OSError, ValueError, TypeError) as exc:
            log.warning("Ignoring unreadable settings file %s: %s", self._path, exc)

    def save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as fh:
            json.dump(self._data, fh, indent=2)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        if default is None:
            default = self._DEFAULTS.get(key)
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.save()


# Global singleton
settings_manager = SettingsManager()

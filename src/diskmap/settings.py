"""Read-only JSON settings."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from diskmap.utils import xdg_config_home

log = logging.getLogger(__name__)

_SETTINGS_DIR = "diskmap"
_SETTINGS_FILE = "settings.json"

DEFAULTS: dict[str, Any] = {
    "scan": {
        "progress_interval": 500,
        "skip_hidden": True,
    },
    "treemap": {
        "max_depth": 2,
        "min_size": 20.0,
    },
    "rules": {
        "default_scans": 3,
    },
}


def _lookup(data: dict[str, Any], parts: list[str]) -> tuple[bool, Any]:
    node: Any = data
    for part in parts:
        if not isinstance(node, dict) or part not in node:
            return False, None
        node = node[part]
    return True, node


class Settings:
    """Settings loaded from a JSON file, falling back to :data:`DEFAULTS`.

    Uses dot-notation keys for nested access::

        settings.get("treemap.max_depth")  # reads data["treemap"]["max_depth"]

    The file is never written.
    """

    _instance: Settings | None = None

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or (xdg_config_home() / _SETTINGS_DIR / _SETTINGS_FILE)
        self._data: dict[str, Any] = {}
        self._load()

    @classmethod
    def instance(cls) -> Settings:
        """Return the singleton settings instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, then the built-in default, then ``default``."""
        parts = key.split(".")
        found, value = _lookup(self._data, parts)
        if found:
            return value
        found, value = _lookup(DEFAULTS, parts)
        return value if found else default

    def get_int(self, key: str) -> int:
        try:
            return int(self.get(key))
        except (TypeError, ValueError):
            log.warning("Invalid value for %s in %s, using default", key, self._path)
            return int(_lookup(DEFAULTS, key.split("."))[1])

    def get_float(self, key: str) -> float:
        try:
            return float(self.get(key))
        except (TypeError, ValueError):
            log.warning("Invalid value for %s in %s, using default", key, self._path)
            return float(_lookup(DEFAULTS, key.split("."))[1])

    def _load(self) -> None:
        """Load settings from disk, gracefully handling errors."""
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning("Could not load settings from %s: %s", self._path, e)
            return
        if isinstance(data, dict):
            self._data = data
        else:
            log.warning("Ignoring settings file %s: top level is not an object", self._path)

"""JSON file storage for exclusion rules, trash history and free-space history."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from diskmap.utils import xdg_data_home

log = logging.getLogger(__name__)

_DATA_DIR = xdg_data_home() / "diskmap"

RULES_FILE = _DATA_DIR / "rules.json"
TRASH_HISTORY_FILE = _DATA_DIR / "trash_history.json"
DISK_SPACE_HISTORY_FILE = _DATA_DIR / "disk_space_history.json"


def _ensure_data_dir() -> None:
    """Create the data directory if it doesn't exist."""
    _DATA_DIR.mkdir(parents=True, exist_ok=True)


def _load_list(path: Path, key: str) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    try:
        with open(path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        log.exception("Failed to load %s", path)
        return []
    items = data.get(key, []) if isinstance(data, dict) else []
    return [item for item in items if isinstance(item, dict)]


def _save_list(path: Path, key: str, items: list[dict[str, Any]]) -> None:
    _ensure_data_dir()
    try:
        with open(path, "w") as f:
            json.dump({key: items}, f, indent=2)
    except OSError:
        log.exception("Failed to save %s", path)


def load_rules() -> list[dict[str, Any]]:
    """Load persisted exclusion rule records, or an empty list."""
    return _load_list(RULES_FILE, "rules")


def save_rules(records: list[dict[str, Any]]) -> None:
    _save_list(RULES_FILE, "rules", records)


def load_trash_history() -> list[dict[str, Any]]:
    """Load persisted trash history records, newest first."""
    return _load_list(TRASH_HISTORY_FILE, "items")


def save_trash_history(records: list[dict[str, Any]]) -> None:
    _save_list(TRASH_HISTORY_FILE, "items", records)


def load_disk_space_history() -> list[dict[str, Any]]:
    """Load persisted free-space snapshot records."""
    return _load_list(DISK_SPACE_HISTORY_FILE, "snapshots")


def save_disk_space_history(records: list[dict[str, Any]]) -> None:
    _save_list(DISK_SPACE_HISTORY_FILE, "snapshots", records)

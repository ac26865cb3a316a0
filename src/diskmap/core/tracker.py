"""Tracks items moved to the trash across sessions."""

from __future__ import annotations

import logging

from diskmap.models.trashed_item import SOURCE_FILE_TREE, TrashedItem
from diskmap.storage import load_trash_history, save_trash_history

log = logging.getLogger(__name__)

MAX_HISTORY = 200


class TrashTracker:
    """Newest-first history of trashed items, persisted after every change."""

    def __init__(self) -> None:
        self._items: list[TrashedItem] = []
        for record in load_trash_history():
            try:
                self._items.append(TrashedItem.from_dict(record))
            except (KeyError, TypeError, ValueError):
                log.warning("Ignoring malformed trash history entry: %r", record)

    @property
    def items(self) -> list[TrashedItem]:
        return list(self._items)

    @property
    def total_bytes(self) -> int:
        """Total size of all recorded items."""
        return sum(item.size for item in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def record(self, original_path: str, trash_path: str, size: int, source: str = SOURCE_FILE_TREE) -> TrashedItem:
        """Record a trashed item at the front of the history."""
        item = TrashedItem(original_path=original_path, trash_path=trash_path, size=size, source=source)
        self._items.insert(0, item)
        del self._items[MAX_HISTORY:]
        self._save()
        log.info("Recorded trashed item %s (%d bytes)", original_path, size)
        return item

    def find_by_original_path(self, path: str) -> TrashedItem | None:
        return next((item for item in self._items if item.original_path == path), None)

    def remove(self, item_id: str) -> None:
        self._items = [item for item in self._items if item.id != item_id]
        self._save()

    def remove_by_original_path(self, path: str) -> None:
        self._items = [item for item in self._items if item.original_path != path]
        self._save()

    def clear(self) -> None:
        self._items.clear()
        self._save()

    def _save(self) -> None:
        save_trash_history([item.to_dict() for item in self._items])

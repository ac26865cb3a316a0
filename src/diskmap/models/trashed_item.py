"""Record of an item moved to the trash."""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

SOURCE_FILE_TREE = "file_tree"
SOURCE_SUGGESTION = "suggestion"


@dataclass(slots=True)
class TrashedItem:
    """An item this application moved to the trash."""

    original_path: str
    trash_path: str
    size: int
    source: str = SOURCE_FILE_TREE
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def name(self) -> str:
        return os.path.basename(self.original_path.rstrip(os.sep)) or self.original_path

    @property
    def exists_in_trash(self) -> bool:
        return os.path.lexists(self.trash_path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "original_path": self.original_path,
            "trash_path": self.trash_path,
            "size": self.size,
            "source": self.source,
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrashedItem:
        return cls(
            id=data["id"],
            original_path=data["original_path"],
            trash_path=data["trash_path"],
            size=int(data.get("size", 0)),
            source=data.get("source", SOURCE_FILE_TREE),
            date=datetime.fromisoformat(data["date"]),
        )

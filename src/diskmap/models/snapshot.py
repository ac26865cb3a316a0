"""Free-space snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class DiskSpaceSnapshot:
    """Free bytes on a volume at a point in time."""

    date: datetime
    free_bytes: int

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "free_bytes": self.free_bytes}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiskSpaceSnapshot:
        return cls(date=datetime.fromisoformat(data["date"]), free_bytes=int(data["free_bytes"]))

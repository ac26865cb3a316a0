"""Persisted directory-exclusion rule."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from diskmap.utils import normalize_path


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ExcludedDirectoryRule:
    """User rule that skips a directory for a bounded number of future scans."""

    path: str
    remaining_scans: int
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_now)
    last_matched_at: datetime | None = None
    total_matches: int = 0

    def __post_init__(self) -> None:
        self.remaining_scans = max(0, self.remaining_scans)

    @property
    def is_active(self) -> bool:
        return self.remaining_scans > 0

    @property
    def normalized_path(self) -> str:
        return normalize_path(self.path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "path": self.path,
            "remaining_scans": self.remaining_scans,
            "created_at": self.created_at.isoformat(),
            "last_matched_at": self.last_matched_at.isoformat() if self.last_matched_at else None,
            "total_matches": self.total_matches,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExcludedDirectoryRule:
        last = data.get("last_matched_at")
        return cls(
            id=data["id"],
            path=data["path"],
            remaining_scans=int(data.get("remaining_scans", 0)),
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else _now(),
            last_matched_at=datetime.fromisoformat(last) if last else None,
            total_matches=int(data.get("total_matches", 0)),
        )


@dataclass(frozen=True, slots=True)
class ScanExclusionRule:
    """Immutable scan-time snapshot of an active exclusion rule."""

    id: str
    normalized_path: str

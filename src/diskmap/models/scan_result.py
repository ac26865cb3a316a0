"""Scan progress, result and status types."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from diskmap.core.tree import FileTree

# Age thresholds (seconds) for ScanStatus
_FRESH_SECONDS = 300
_AGING_SECONDS = 3600


@dataclass(frozen=True, slots=True)
class ScanProgress:
    """Point-in-time snapshot of scan counters."""

    files_scanned: int
    directories_scanned: int
    current_path: str
    bytes_scanned: int


@dataclass(slots=True)
class ScanOutcome:
    """What a single engine run produces."""

    tree: FileTree
    matched_exclusion_rule_ids: set[str] = field(default_factory=set)
    files_scanned: int = 0
    directories_scanned: int = 0
    bytes_scanned: int = 0


@dataclass(slots=True)
class ScanResult:
    """A completed scan with its metadata."""

    tree: FileTree
    scan_date: datetime
    duration: float
    total_files: int
    total_directories: int
    scan_root_path: str
    matched_exclusion_rule_ids: set[str] = field(default_factory=set)

    @property
    def total_items(self) -> int:
        return self.total_files + self.total_directories

    def age_seconds(self, now: datetime | None = None) -> float:
        now = now or datetime.now(timezone.utc)
        return (now - self.scan_date).total_seconds()


class ScanStatus(enum.Enum):
    """Coordinator-level scan state."""

    READY = "ready"
    SCANNING = "scanning"
    COMPLETE = "complete"
    RESULTS_AGING = "results_aging"
    OUTDATED = "outdated"
    STOPPED = "stopped"
    FAILED = "failed"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def can_start_scan(self) -> bool:
        return self is not ScanStatus.SCANNING

    @property
    def can_stop_scan(self) -> bool:
        return self is ScanStatus.SCANNING

    @classmethod
    def for_result_age(cls, age_seconds: float) -> ScanStatus:
        if age_seconds < _FRESH_SECONDS:
            return cls.COMPLETE
        if age_seconds < _AGING_SECONDS:
            return cls.RESULTS_AGING
        return cls.OUTDATED


_STATUS_LABELS = {
    ScanStatus.READY: "Scan Now",
    ScanStatus.SCANNING: "Scanning...",
    ScanStatus.COMPLETE: "Scan Complete",
    ScanStatus.RESULTS_AGING: "Results Aging",
    ScanStatus.OUTDATED: "Rescan Needed",
    ScanStatus.STOPPED: "Scan Stopped",
    ScanStatus.FAILED: "Scan Failed",
}

"""Diskmap data models."""

from diskmap.models.node import Node
from diskmap.models.rule import ExcludedDirectoryRule, ScanExclusionRule
from diskmap.models.scan_result import ScanOutcome, ScanProgress, ScanResult, ScanStatus
from diskmap.models.snapshot import DiskSpaceSnapshot
from diskmap.models.suggestion import Suggestion, SuggestionCategory
from diskmap.models.trashed_item import TrashedItem

__all__ = [
    "DiskSpaceSnapshot",
    "ExcludedDirectoryRule",
    "Node",
    "ScanExclusionRule",
    "ScanOutcome",
    "ScanProgress",
    "ScanResult",
    "ScanStatus",
    "Suggestion",
    "SuggestionCategory",
    "TrashedItem",
]

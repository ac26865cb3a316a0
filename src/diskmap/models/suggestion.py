"""Space-waster suggestion types."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class SuggestionCategory(enum.Enum):
    """Kinds of known space wasters."""

    XCODE_DERIVED_DATA = "Xcode Derived Data"
    XCODE_ARCHIVES = "Xcode Archives"
    XCODE_DEVICE_SUPPORT = "Xcode Device Support"
    NODE_MODULES = "node_modules"
    USER_CACHES = "User Caches"
    DOT_CACHE = ".cache"
    LOGS = "Logs"
    HOMEBREW_CACHE = "Homebrew Cache"
    DOCKER_DATA = "Docker Data"
    TRASH = "Trash"

    @property
    def label(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def risk_level(self) -> str:
        """Risk level: 'safe' or 'moderate'."""
        if self in (SuggestionCategory.XCODE_ARCHIVES, SuggestionCategory.DOCKER_DATA):
            return "moderate"
        return "safe"


_DESCRIPTIONS = {
    SuggestionCategory.XCODE_DERIVED_DATA: "Build artifacts that Xcode regenerates automatically",
    SuggestionCategory.XCODE_ARCHIVES: "Archived builds for App Store submissions",
    SuggestionCategory.XCODE_DEVICE_SUPPORT: "Debug symbols for connected iOS devices",
    SuggestionCategory.NODE_MODULES: "npm/yarn dependencies (re-install with npm install)",
    SuggestionCategory.USER_CACHES: "Application caches that will be recreated",
    SuggestionCategory.DOT_CACHE: "CLI tool caches",
    SuggestionCategory.LOGS: "Application log files",
    SuggestionCategory.HOMEBREW_CACHE: "Downloaded Homebrew package files",
    SuggestionCategory.DOCKER_DATA: "Docker images, containers, and volumes",
    SuggestionCategory.TRASH: "Files already in Trash",
}


@dataclass(frozen=True, slots=True)
class Suggestion:
    """A detected space waster with its location and size."""

    category: SuggestionCategory
    path: str
    size: int
    item_count: int

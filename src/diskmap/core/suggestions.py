"""Detection of known space-wasting directories in a scanned tree."""

from __future__ import annotations

import logging
import os

from diskmap.core.tree import FileTree
from diskmap.models.node import Node
from diskmap.models.suggestion import Suggestion, SuggestionCategory

log = logging.getLogger(__name__)

# Path suffixes of well-known waster directories, searched in this order.
KNOWN_WASTERS: tuple[tuple[str, SuggestionCategory], ...] = (
    ("Library/Developer/Xcode/DerivedData", SuggestionCategory.XCODE_DERIVED_DATA),
    ("Library/Developer/Xcode/Archives", SuggestionCategory.XCODE_ARCHIVES),
    ("Library/Developer/Xcode/iOS DeviceSupport", SuggestionCategory.XCODE_DEVICE_SUPPORT),
    ("Library/Caches", SuggestionCategory.USER_CACHES),
    (".cache", SuggestionCategory.DOT_CACHE),
    ("Library/Logs", SuggestionCategory.LOGS),
    ("Library/Caches/Homebrew", SuggestionCategory.HOMEBREW_CACHE),
    ("Library/Containers/com.docker.docker", SuggestionCategory.DOCKER_DATA),
    (".Trash", SuggestionCategory.TRASH),
    (".local/share/Trash", SuggestionCategory.TRASH),
)

DEPENDENCY_DIR_NAME = "node_modules"


def _has_suffix(path: str, suffix: str) -> bool:
    """Whether ``path`` ends with ``suffix`` on a separator boundary."""
    suffix = suffix.replace("/", os.sep)
    return path == suffix or path.endswith(os.sep + suffix)


class SuggestionFinder:
    """Finds reclaimable subtrees in a tree without modifying it."""

    def __init__(self, known_wasters: tuple[tuple[str, SuggestionCategory], ...] = KNOWN_WASTERS) -> None:
        self.known_wasters = known_wasters

    def find(self, tree: FileTree | None) -> list[Suggestion]:
        """Return all suggestions for ``tree``, largest first."""
        if tree is None:
            return []
        results = self.find_known(tree) + self.find_dependency_dirs(tree)
        results.sort(key=lambda s: s.size, reverse=True)
        log.debug("Found %d suggestions", len(results))
        return results

    def find_known(self, tree: FileTree) -> list[Suggestion]:
        results: list[Suggestion] = []
        for suffix, category in self.known_wasters:
            node = self._first_dir_with_suffix(tree, suffix)
            if node is None:
                continue
            if node.is_trashed or node.is_hidden or node.size <= 0:
                continue
            results.append(
                Suggestion(category=category, path=node.path, size=node.size, item_count=node.descendant_count)
            )
        return results

    def find_dependency_dirs(self, tree: FileTree) -> list[Suggestion]:
        """Every ``node_modules`` directory outside trashed or hidden subtrees.

        Matches nested inside another match are not reported.
        """
        results: list[Suggestion] = []
        stack: list[Node] = [tree.root]
        while stack:
            node = stack.pop()
            if node.is_trashed or node.is_hidden:
                continue
            if node.is_dir and node.name == DEPENDENCY_DIR_NAME:
                results.append(
                    Suggestion(
                        category=SuggestionCategory.NODE_MODULES,
                        path=node.path,
                        size=node.size,
                        item_count=node.descendant_count,
                    )
                )
                continue
            stack.extend(c for c in reversed(tree.children(node)) if c.is_dir)
        return results

    @staticmethod
    def _first_dir_with_suffix(tree: FileTree, suffix: str) -> Node | None:
        for node in tree.walk():
            if node.is_dir and _has_suffix(node.path, suffix):
                return node
        return None

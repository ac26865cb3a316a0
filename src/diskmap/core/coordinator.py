"""Single owner of the scanned tree and everything that mutates it."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Iterable, Protocol

from diskmap.core.exclusions import ExclusionRuleSet
from diskmap.core.history import DiskSpaceHistory
from diskmap.core.scanner import CancellationToken, ProgressCallback, ScanEngine
from diskmap.core.suggestions import SuggestionFinder
from diskmap.core.tracker import TrashTracker
from diskmap.core.tree import FileTree
from diskmap.core.treemap import DEFAULT_MAX_DEPTH, DEFAULT_MIN_SIZE, Rect, TreemapRect, layout
from diskmap.errors import DiskMapError, RestoreFailed, ScanCancelled, ScanInProgressError, TrashFailed
from diskmap.models.node import Node
from diskmap.models.scan_result import ScanResult, ScanStatus
from diskmap.models.suggestion import Suggestion
from diskmap.models.trashed_item import SOURCE_FILE_TREE, SOURCE_SUGGESTION, TrashedItem

log = logging.getLogger(__name__)

RulesChangedCallback = Callable[[ExclusionRuleSet], None]


class TrashService(Protocol):
    """Moves paths to a recoverable location and back. Both methods raise OSError."""

    def move_to_trash(self, path: str) -> str:
        """Trash ``path`` and return where it ended up."""

    def restore(self, trash_path: str, original_path: str) -> None:
        """Move ``trash_path`` back to ``original_path``."""


class DiskMapCoordinator:
    """Owns the current scan result and serializes every operation on its tree.

    Callers talk to the tree only through these methods. Layout and
    suggestion queries are read-only.
    """

    def __init__(
        self,
        engine: ScanEngine | None = None,
        rules: ExclusionRuleSet | None = None,
        trash: TrashService | None = None,
        tracker: TrashTracker | None = None,
        finder: SuggestionFinder | None = None,
        on_rules_changed: RulesChangedCallback | None = None,
        history: DiskSpaceHistory | None = None,
    ) -> None:
        self.engine = engine or ScanEngine()
        self.rules = rules if rules is not None else ExclusionRuleSet()
        self.trash = trash
        self.tracker = tracker
        self.finder = finder or SuggestionFinder()
        self.on_rules_changed = on_rules_changed
        self.history = history

        self.result: ScanResult | None = None
        self.error: str | None = None
        self.focus: Node | None = None
        self.suggestions: list[Suggestion] = []
        self._hidden: list[Node] = []
        self._was_cancelled = False
        self._scanning = False
        self._cancel_token: CancellationToken | None = None
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="diskmap-scan")

    # ── state ───────────────────────────────────────────────────────────

    @property
    def tree(self) -> FileTree | None:
        return self.result.tree if self.result else None

    @property
    def is_scanning(self) -> bool:
        return self._scanning

    @property
    def status(self) -> ScanStatus:
        if self._scanning:
            return ScanStatus.SCANNING
        if self.error is not None:
            return ScanStatus.FAILED
        if self.result is None:
            return ScanStatus.STOPPED if self._was_cancelled else ScanStatus.READY
        return ScanStatus.for_result_age(self.result.age_seconds())

    @property
    def hidden_nodes(self) -> list[Node]:
        return list(self._hidden)

    # ── scanning ────────────────────────────────────────────────────────

    def scan(
        self,
        root_path: str,
        on_progress: ProgressCallback | None = None,
        ignore_rules: bool = False,
    ) -> ScanResult:
        """Scan ``root_path`` and publish the result.

        Raises:
            ScanInProgressError: if another scan is running.
            ScanCancelled: if :meth:`stop_scan` was called. The previous
                result, if any, stays published.
        """
        with self._lock:
            if self._scanning:
                raise ScanInProgressError("a scan is already running")
            self._scanning = True
            self._was_cancelled = False
            self.error = None
            token = self._cancel_token = CancellationToken()

        rules = [] if ignore_rules else self.rules.active_rules()
        started = time.monotonic()
        try:
            outcome = self.engine.scan(root_path, rules, on_progress, token)
        except ScanCancelled:
            self._was_cancelled = True
            log.info("Scan of %s cancelled", root_path)
            raise
        except Exception as e:
            self.error = str(e) or e.__class__.__name__
            log.exception("Scan of %s failed", root_path)
            raise
        finally:
            with self._lock:
                self._scanning = False
                self._cancel_token = None

        result = ScanResult(
            tree=outcome.tree,
            scan_date=datetime.now(timezone.utc),
            duration=time.monotonic() - started,
            total_files=outcome.files_scanned,
            total_directories=outcome.directories_scanned,
            scan_root_path=outcome.tree.root.path,
            matched_exclusion_rule_ids=outcome.matched_exclusion_rule_ids,
        )
        self.result = result
        self.focus = None
        self._hidden.clear()

        if self.rules.consume_matched(result.matched_exclusion_rule_ids):
            self._notify_rules_changed()
        if self.history is not None:
            self.history.record_free_space(result.scan_root_path)
        self.refresh_suggestions()
        return result

    def start_scan(
        self,
        root_path: str,
        on_progress: ProgressCallback | None = None,
        ignore_rules: bool = False,
    ) -> Future[ScanResult]:
        """Run :meth:`scan` on the background worker."""
        if self._scanning:
            raise ScanInProgressError("a scan is already running")
        return self._executor.submit(self.scan, root_path, on_progress, ignore_rules)

    def stop_scan(self) -> None:
        token = self._cancel_token
        if token is not None:
            token.cancel()

    def rescan_directory(self, node: Node, on_progress: ProgressCallback | None = None) -> Node:
        """Rescan one directory (e.g. after access was granted) and graft the result."""
        tree = self._require_tree()
        if node not in tree or not node.is_dir:
            raise DiskMapError(f"{node.path} is not a directory in the current tree")

        try:
            subtree = self.engine.scan_subtree(node.path, on_progress)
        except ScanCancelled:
            node.awaiting_permission = False
            raise

        tree.graft_children(node, subtree)
        self._drop_stale_nodes(tree, node)
        if node.is_permission_denied:
            log.info("Still no access to %s", node.path)
        else:
            log.info("Rescanned %s: %d items", node.path, node.descendant_count)
        self.refresh_suggestions()
        return node

    def retry_denied_directory(self, node: Node, on_progress: ProgressCallback | None = None) -> Node:
        node.is_permission_denied = False
        node.awaiting_permission = True
        return self.rescan_directory(node, on_progress)

    def pending_directories(self) -> list[Node]:
        """Directories that could not be read or are waiting for access."""
        tree = self.tree
        if tree is None:
            return []
        return [n for n in tree.walk() if n.is_permission_denied or n.awaiting_permission]

    # ── trash ───────────────────────────────────────────────────────────

    def trash_nodes(self, nodes: Iterable[Node]) -> list[Node]:
        """Move ``nodes`` to the trash and mark them in the tree.

        Stops at the first failure; nodes trashed before it stay marked.

        Raises:
            TrashFailed: if the trash capability fails for a node.
        """
        tree = self._require_tree()
        trash = self._require_trash()
        done: list[Node] = []
        try:
            for node in nodes:
                try:
                    location = trash.move_to_trash(node.path)
                except OSError as e:
                    raise TrashFailed(f"Could not move {node.path} to trash: {e}") from e
                if self.tracker is not None:
                    self.tracker.record(node.path, location, node.size, SOURCE_FILE_TREE)
                self._retreat_focus(node)
                tree.mark_as_trashed(node, location)
                done.append(node)
        finally:
            if done:
                self.refresh_suggestions()
        return done

    def trash_suggestion(self, suggestion: Suggestion) -> None:
        tree = self._require_tree()
        trash = self._require_trash()
        try:
            location = trash.move_to_trash(suggestion.path)
        except OSError as e:
            raise TrashFailed(f"Could not move {suggestion.path} to trash: {e}") from e
        if self.tracker is not None:
            self.tracker.record(suggestion.path, location, suggestion.size, SOURCE_SUGGESTION)
        node = tree.find_node(suggestion.path)
        if node is not None:
            self._retreat_focus(node)
            tree.mark_as_trashed(node, location)
        self.refresh_suggestions()

    def restore_node(self, node: Node) -> None:
        """Restore a trashed node to its original path.

        Raises:
            RestoreFailed: if the trash capability fails. The tree is unchanged.
        """
        if not node.is_trashed or node.trash_location is None:
            return
        tree = self._require_tree()
        trash = self._require_trash()
        try:
            trash.restore(node.trash_location, node.path)
        except OSError as e:
            raise RestoreFailed(f"Could not restore {node.path}: {e}") from e
        tree.unmark_trashed(node)
        if self.tracker is not None:
            self.tracker.remove_by_original_path(node.path)
        self.refresh_suggestions()

    def restore_item(self, item: TrashedItem) -> None:
        """Restore a trash-history entry, unmarking its node if it is in the tree."""
        trash = self._require_trash()
        try:
            trash.restore(item.trash_path, item.original_path)
        except OSError as e:
            raise RestoreFailed(f"Could not restore {item.original_path}: {e}") from e
        if self.tracker is not None:
            self.tracker.remove(item.id)
        tree = self.tree
        if tree is not None:
            node = tree.find_node(item.original_path)
            if node is not None and node.is_trashed:
                tree.unmark_trashed(node)
            self.refresh_suggestions()

    # ── hide ────────────────────────────────────────────────────────────

    def hide_node(self, node: Node) -> None:
        tree = self._require_tree()
        if node.is_hidden:
            return
        self._retreat_focus(node)
        tree.hide(node)
        self._hidden.append(node)
        self.refresh_suggestions()

    def unhide_node(self, node: Node) -> None:
        tree = self._require_tree()
        tree.unhide(node)
        self._hidden = [n for n in self._hidden if n.id != node.id]
        self.refresh_suggestions()

    def unhide_all(self) -> None:
        tree = self._require_tree()
        for node in self._hidden:
            tree.unhide(node)
        self._hidden.clear()
        self.refresh_suggestions()

    # ── queries ─────────────────────────────────────────────────────────

    def navigate_to(self, path: str) -> Node | None:
        """Focus the treemap on the directory at ``path`` if it exists."""
        tree = self.tree
        if tree is None:
            return None
        node = tree.find_node(path)
        if node is None or not node.is_dir:
            return None
        self.focus = node
        return node

    def zoom_out(self) -> Node | None:
        tree = self.tree
        if tree is None or self.focus is None:
            return None
        self.focus = tree.parent(self.focus)
        return self.focus

    def layout(
        self,
        bounds: Rect,
        max_depth: int = DEFAULT_MAX_DEPTH,
        min_size: float = DEFAULT_MIN_SIZE,
    ) -> list[TreemapRect]:
        """Treemap of the focused directory, or of the root when nothing is focused."""
        tree = self.tree
        if tree is None:
            return []
        return layout(tree, self.focus or tree.root, bounds, max_depth, min_size)

    def refresh_suggestions(self) -> list[Suggestion]:
        self.suggestions = self.finder.find(self.tree)
        return self.suggestions

    def close(self) -> None:
        self.stop_scan()
        self._executor.shutdown(wait=True)

    # ── helpers ─────────────────────────────────────────────────────────

    def _retreat_focus(self, node: Node) -> None:
        """Move the focus to ``node``'s parent if ``node`` contains it."""
        tree = self.tree
        if tree is None or self.focus is None:
            return
        if self.focus.id == node.id or any(a.id == node.id for a in tree.ancestors(self.focus)):
            self.focus = tree.parent(node)

    def _drop_stale_nodes(self, tree: FileTree, rescanned: Node) -> None:
        """Re-resolve the focus and forget hidden nodes replaced by a rescan of ``rescanned``."""
        if self.focus is not None and self.focus not in tree:
            found = tree.find_node(self.focus.path, start=rescanned)
            self.focus = found if found is not None and found.is_dir else rescanned
        self._hidden = [n for n in self._hidden if n in tree]

    def _notify_rules_changed(self) -> None:
        if self.on_rules_changed is not None:
            self.on_rules_changed(self.rules)

    def _require_tree(self) -> FileTree:
        tree = self.tree
        if tree is None:
            raise DiskMapError("no scan result available")
        return tree

    def _require_trash(self) -> TrashService:
        if self.trash is None:
            raise DiskMapError("no trash service configured")
        return self.trash

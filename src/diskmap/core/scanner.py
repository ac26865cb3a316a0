"""Recursive directory scanner producing a :class:`FileTree`."""

from __future__ import annotations

import logging
import os
import stat
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol

from diskmap.core.tree import FileTree
from diskmap.errors import ScanCancelled
from diskmap.models.node import Node
from diskmap.models.rule import ScanExclusionRule
from diskmap.models.scan_result import ScanOutcome, ScanProgress
from diskmap.utils import allocated_size, format_elapsed, normalize_path

log = logging.getLogger(__name__)

ProgressCallback = Callable[[ScanProgress], None]

DEFAULT_PROGRESS_INTERVAL = 500


@dataclass(frozen=True, slots=True)
class EntryInfo:
    """Metadata for one directory entry."""

    name: str
    path: str
    is_dir: bool
    is_symlink: bool
    size: int


class DirectoryLister(Protocol):
    """Filesystem access used by the scanner."""

    def list_directory(self, path: str) -> list[str]:
        """Return child paths of ``path``. Raises OSError if it cannot be read."""

    def entry_info(self, path: str) -> EntryInfo:
        """Return metadata for ``path`` without following symlinks. Raises OSError."""


class OsDirectoryLister:
    """:class:`DirectoryLister` backed by ``os.scandir`` and ``os.lstat``."""

    def __init__(self, skip_hidden: bool = True) -> None:
        self.skip_hidden = skip_hidden

    def list_directory(self, path: str) -> list[str]:
        with os.scandir(path) as it:
            names = [e.name for e in it if not (self.skip_hidden and e.name.startswith("."))]
        names.sort()
        return [os.path.join(path, name) for name in names]

    def entry_info(self, path: str) -> EntryInfo:
        st = os.lstat(path)
        return EntryInfo(
            name=os.path.basename(path),
            path=path,
            is_dir=stat.S_ISDIR(st.st_mode),
            is_symlink=stat.S_ISLNK(st.st_mode),
            size=allocated_size(st),
        )


class CancellationToken:
    """Cooperative cancellation flag shared between a scan and its caller."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ScanCancelled("scan cancelled")


def _display_name(path: str) -> str:
    return os.path.basename(path) or path


class _ScanRun:
    """Counters and lookup tables for one scan invocation."""

    def __init__(
        self,
        lister: DirectoryLister,
        rules: Iterable[ScanExclusionRule],
        on_progress: ProgressCallback | None,
        cancel_token: CancellationToken,
        progress_interval: int,
    ) -> None:
        self.lister = lister
        self.rules_by_path = {r.normalized_path: r.id for r in rules}
        self.on_progress = on_progress
        self.cancel_token = cancel_token
        self.progress_interval = max(1, progress_interval)
        self.matched: set[str] = set()
        self.files_scanned = 0
        self.directories_scanned = 0
        self.bytes_scanned = 0

    def run(self, root_path: str) -> FileTree:
        self.cancel_token.raise_if_cancelled()
        tree = FileTree(Node(path=root_path, name=_display_name(root_path), is_dir=True))
        rule_id = self.rules_by_path.get(root_path)
        if rule_id is not None:
            self._mark_excluded(tree.root, rule_id)
        else:
            self._fill_directory(tree, tree.root)
        tree.finalize()
        self.report(root_path)
        return tree

    def report(self, current_path: str) -> None:
        if self.on_progress is None:
            return
        self.on_progress(
            ScanProgress(
                files_scanned=self.files_scanned,
                directories_scanned=self.directories_scanned,
                current_path=current_path,
                bytes_scanned=self.bytes_scanned,
            )
        )

    def _mark_excluded(self, node: Node, rule_id: str) -> None:
        node.excluded_by_rule_id = rule_id
        self.directories_scanned += 1
        self.matched.add(rule_id)
        log.debug("Skipping %s (exclusion rule %s)", node.path, rule_id)

    def _fill_directory(self, tree: FileTree, node: Node) -> None:
        """List ``node``'s directory and attach its entries, recursing into subdirectories."""
        self.cancel_token.raise_if_cancelled()
        self.directories_scanned += 1

        try:
            entries = self.lister.list_directory(node.path)
        except OSError as e:
            log.debug("Cannot list %s: %s", node.path, e)
            node.is_permission_denied = True
            return

        for entry_path in entries:
            self.cancel_token.raise_if_cancelled()

            rule_id = self.rules_by_path.get(entry_path)
            if rule_id is not None:
                child = tree.add_child(node, Node(path=entry_path, name=_display_name(entry_path), is_dir=True))
                self._mark_excluded(child, rule_id)
                continue

            try:
                info = self.lister.entry_info(entry_path)
            except OSError as e:
                log.debug("Cannot read metadata for %s: %s", entry_path, e)
                continue

            if info.is_symlink:
                continue

            if info.is_dir:
                child = tree.add_child(node, Node(path=info.path, name=info.name, is_dir=True))
                self._fill_directory(tree, child)
                continue

            tree.add_child(node, Node(path=info.path, name=info.name, is_dir=False, size=info.size))
            self.files_scanned += 1
            self.bytes_scanned += info.size
            if self.files_scanned % self.progress_interval == 0:
                self.report(info.path)


class ScanEngine:
    """Builds a :class:`FileTree` from a directory, depth-first and sequentially.

    The engine keeps no state between calls; every invocation gets its own
    counters. Exclusion rules are read from the snapshot passed in and are
    never modified here.
    """

    def __init__(
        self,
        lister: DirectoryLister | None = None,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
    ) -> None:
        self.lister = lister or OsDirectoryLister()
        self.progress_interval = progress_interval

    def scan(
        self,
        root_path: str,
        exclusion_rules: Iterable[ScanExclusionRule] = (),
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ScanOutcome:
        """Scan ``root_path`` and return the finalized tree.

        Raises:
            ScanCancelled: if ``cancel_token`` was raised. No partial tree is
                returned.
        """
        root = normalize_path(root_path)
        run = _ScanRun(
            self.lister,
            tuple(exclusion_rules),
            on_progress,
            cancel_token or CancellationToken(),
            self.progress_interval,
        )
        started = time.monotonic()
        tree = run.run(root)
        log.info(
            "Scanned %s: %d files, %d directories in %s",
            root,
            run.files_scanned,
            run.directories_scanned,
            format_elapsed(time.monotonic() - started),
        )
        return ScanOutcome(
            tree=tree,
            matched_exclusion_rule_ids=set(run.matched),
            files_scanned=run.files_scanned,
            directories_scanned=run.directories_scanned,
            bytes_scanned=run.bytes_scanned,
        )

    def scan_subtree(
        self,
        path: str,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> FileTree:
        """Scan one directory with no exclusion rules in effect."""
        return self.scan(path, (), on_progress, cancel_token).tree

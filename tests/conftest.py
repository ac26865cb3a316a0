"""Shared test fixtures."""

from __future__ import annotations

import os
from typing import Any, Callable

import pytest

import diskmap.storage as storage
from diskmap.core.scanner import EntryInfo
from diskmap.core.tree import FileTree
from diskmap.models.node import Node

# Nested layout: {"file.txt": size, "dir": {...}}
Layout = dict[str, Any]


@pytest.fixture
def isolate_storage(tmp_path, monkeypatch):
    """Redirect storage to a temp directory."""
    data_dir = tmp_path / "diskmap_data"
    data_dir.mkdir()
    monkeypatch.setattr(storage, "_DATA_DIR", data_dir)
    monkeypatch.setattr(storage, "RULES_FILE", data_dir / "rules.json")
    monkeypatch.setattr(storage, "TRASH_HISTORY_FILE", data_dir / "trash_history.json")
    monkeypatch.setattr(storage, "DISK_SPACE_HISTORY_FILE", data_dir / "disk_space_history.json")
    return data_dir


def _add_layout(tree: FileTree, parent: Node, layout: Layout) -> None:
    for name, value in layout.items():
        path = os.path.join(parent.path, name)
        if isinstance(value, dict):
            child = tree.add_child(parent, Node(path=path, name=name, is_dir=True))
            _add_layout(tree, child, value)
        else:
            tree.add_child(parent, Node(path=path, name=name, is_dir=False, size=value))


@pytest.fixture
def build_tree() -> Callable[..., FileTree]:
    """Return a function building a finalized tree from a nested dict layout."""

    def _build(root_path: str, layout: Layout, finalize: bool = True) -> FileTree:
        tree = FileTree(Node(path=root_path, name=os.path.basename(root_path) or root_path, is_dir=True))
        _add_layout(tree, tree.root, layout)
        if finalize:
            tree.finalize()
        return tree

    return _build


class FakeLister:
    """In-memory DirectoryLister.

    ``denied`` paths fail to list, ``broken`` paths fail metadata lookups and
    ``symlinks`` paths report as symbolic links.
    """

    def __init__(
        self,
        root: str,
        layout: Layout,
        denied: set[str] | None = None,
        broken: set[str] | None = None,
        symlinks: set[str] | None = None,
    ) -> None:
        self.denied = set(denied or ())
        self.broken = set(broken or ())
        self.symlinks = set(symlinks or ())
        self.listing: dict[str, list[str]] = {}
        self.infos: dict[str, EntryInfo] = {}
        self.list_calls: list[str] = []
        self._add(root, layout)

    def _add(self, path: str, layout: Layout) -> None:
        self.listing[path] = []
        for name, value in layout.items():
            child = os.path.join(path, name)
            self.listing[path].append(child)
            is_dir = isinstance(value, dict)
            self.infos[child] = EntryInfo(
                name=name,
                path=child,
                is_dir=is_dir and child not in self.symlinks,
                is_symlink=child in self.symlinks,
                size=0 if is_dir else value,
            )
            if is_dir:
                self._add(child, value)

    def list_directory(self, path: str) -> list[str]:
        self.list_calls.append(path)
        if path in self.denied:
            raise PermissionError(13, "Permission denied", path)
        if path not in self.listing:
            raise FileNotFoundError(2, "No such file or directory", path)
        return list(self.listing[path])

    def entry_info(self, path: str) -> EntryInfo:
        if path in self.broken:
            raise OSError(5, "Input/output error", path)
        return self.infos[path]


@pytest.fixture
def fake_lister() -> Callable[..., FakeLister]:
    """Return the FakeLister class as a factory."""
    return FakeLister


@pytest.fixture
def disk_tree(tmp_path):
    """A small real directory tree on disk."""
    root = tmp_path / "root"
    (root / "docs").mkdir(parents=True)
    (root / "docs" / "report.txt").write_bytes(b"r" * 5000)
    (root / "docs" / "notes.md").write_bytes(b"n" * 100)
    (root / "src" / "pkg").mkdir(parents=True)
    (root / "src" / "pkg" / "main.py").write_bytes(b"m" * 2000)
    (root / "big.bin").write_bytes(b"b" * 20000)
    (root / ".hidden").write_bytes(b"h" * 9000)
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_bytes(b"ref")
    return root

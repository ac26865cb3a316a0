"""Arena-backed file tree with size rollup.

Nodes are owned by the :class:`FileTree` arena and refer to each other only by
id. Directory sizes are rollups of their children and are kept current by the
mutation methods below, which never touch the filesystem except for the size
re-read in :meth:`FileTree.unmark_trashed`.

The tree is single-writer: callers must serialize mutations.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from diskmap.models.node import Node
from diskmap.utils import is_under, read_file_size

log = logging.getLogger(__name__)

SizeReader = Callable[[str], int]


def _by_size(node: Node) -> int:
    return node.size


class FileTree:
    """A rooted tree of :class:`Node` objects stored in an id-keyed arena."""

    def __init__(self, root: Node) -> None:
        if root.child_ids:
            raise ValueError("root node already has children; build trees with add_child()")
        root.parent_id = None
        self._nodes: dict[int, Node] = {root.id: root}
        self.root_id = root.id

    # ── access ──────────────────────────────────────────────────────────

    @property
    def root(self) -> Node:
        return self._nodes[self.root_id]

    def node(self, node_id: int) -> Node:
        """Return the node with ``node_id``. Raises KeyError if it is not in this tree."""
        return self._nodes[node_id]

    def get(self, node_id: int) -> Node | None:
        return self._nodes.get(node_id)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: object) -> bool:
        if isinstance(node, Node):
            return self._nodes.get(node.id) is node
        return node in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return self.walk()

    def children(self, node: Node) -> list[Node]:
        """Children of ``node`` in their current (size-descending) order."""
        return [self._nodes[cid] for cid in node.child_ids]

    def parent(self, node: Node) -> Node | None:
        if node.parent_id is None:
            return None
        return self._nodes.get(node.parent_id)

    def ancestors(self, node: Node) -> Iterator[Node]:
        """Yield the parent of ``node``, then its parent, up to the root."""
        current = self.parent(node)
        while current is not None:
            yield current
            current = self.parent(current)

    def depth(self, node: Node) -> int:
        return sum(1 for _ in self.ancestors(node))

    def walk(self, start: Node | None = None) -> Iterator[Node]:
        """Pre-order traversal of ``start`` (default: the root) and its subtree."""
        stack = [start or self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(self._nodes[cid] for cid in reversed(current.child_ids))

    # ── construction ────────────────────────────────────────────────────

    def add_child(self, parent: Node, child: Node) -> Node:
        """Attach a freshly created ``child`` under ``parent``."""
        if child.id in self._nodes:
            raise ValueError(f"node {child.id} is already in the tree")
        if child.child_ids:
            raise ValueError("only leaf nodes can be attached; add descendants one by one")
        child.parent_id = parent.id
        parent.child_ids.append(child.id)
        self._nodes[child.id] = child
        return child

    def graft_children(self, target: Node, subtree: FileTree) -> None:
        """Replace ``target``'s children with the children of ``subtree.root``.

        ``target``'s old descendants are dropped from the arena. The subtree's
        root itself is discarded; its permission flags are copied onto
        ``target``. ``target`` is finalized and its ancestors rolled up.
        """
        for old_child_id in list(target.child_ids):
            self._drop_subtree(self._nodes[old_child_id])
        target.child_ids = []

        source_root = subtree.root
        for node in subtree.walk():
            if node is source_root:
                continue
            if node.parent_id == source_root.id:
                node.parent_id = target.id
                target.child_ids.append(node.id)
            self._nodes[node.id] = node

        target.is_permission_denied = source_root.is_permission_denied
        target.excluded_by_rule_id = source_root.excluded_by_rule_id
        target.awaiting_permission = False
        self.finalize(target)
        parent = self.parent(target)
        if parent is not None:
            self.recalculate_size_upward(parent)

    # ── rollup ──────────────────────────────────────────────────────────

    def finalize(self, start: Node | None = None) -> None:
        """Bottom-up rollup of sizes and counts, unfiltered, then sort children.

        Used once on a freshly scanned subtree before any mutation.
        """
        start = start or self.root
        order: list[Node] = []
        stack = [start]
        while stack:
            current = stack.pop()
            order.append(current)
            stack.extend(self._nodes[cid] for cid in current.child_ids)

        for node in reversed(order):
            if not node.is_dir:
                continue
            children = self.children(node)
            node.size = sum(c.size for c in children)
            node.descendant_count = sum(c.descendant_count + 1 for c in children)
            self._sort(node, children)

    def recalculate_size_upward(self, node: Node) -> None:
        """Re-sum ``node`` from its direct children, then each ancestor in turn.

        Trashed and hidden children are left out of the sums. Only direct
        children are read, so the cost is proportional to depth.
        """
        current: Node | None = node
        while current is not None:
            if current.is_dir:
                children = self.children(current)
                counted = [c for c in children if c.counts_toward_parent]
                current.size = sum(c.size for c in counted)
                current.descendant_count = sum(c.descendant_count + 1 for c in counted)
                self._sort(current, children)
            current = self.parent(current)

    def sort_children(self, node: Node) -> None:
        self._sort(node, self.children(node))

    @staticmethod
    def _sort(node: Node, children: list[Node]) -> None:
        children.sort(key=_by_size, reverse=True)
        node.child_ids = [c.id for c in children]

    # ── mutation ────────────────────────────────────────────────────────

    def remove_child(self, parent: Node, child: Node) -> None:
        """Permanently detach ``child`` (and its subtree) from ``parent``."""
        if child.id not in parent.child_ids:
            log.debug("Node %s is not a child of %s", child.path, parent.path)
            return
        parent.child_ids.remove(child.id)
        self._drop_subtree(child)
        self.recalculate_size_upward(parent)

    def mark_as_trashed(self, node: Node, trash_location: str | None) -> None:
        node.is_trashed = True
        node.trash_location = trash_location
        self._rollup_parent(node)

    def unmark_trashed(self, node: Node, size_reader: SizeReader = read_file_size) -> None:
        """Clear the trashed flag; files get their size re-read from disk.

        The file may have changed while it sat in the trash. An unreadable
        file ends up with size 0.
        """
        node.is_trashed = False
        node.trash_location = None
        if not node.is_dir:
            node.size = size_reader(node.path)
        self._rollup_parent(node)

    def hide(self, node: Node) -> None:
        """Exclude ``node`` from its ancestors' sizes.

        A UI zoomed into ``node`` has to move its focus to the parent itself.
        """
        node.is_hidden = True
        self._rollup_parent(node)

    def unhide(self, node: Node) -> None:
        node.is_hidden = False
        self._rollup_parent(node)

    def _rollup_parent(self, node: Node) -> None:
        parent = self.parent(node)
        if parent is not None:
            self.recalculate_size_upward(parent)

    def _drop_subtree(self, node: Node) -> None:
        for descendant in list(self.walk(node)):
            del self._nodes[descendant.id]
        node.parent_id = None

    # ── queries ─────────────────────────────────────────────────────────

    def find_node(self, path: str, start: Node | None = None) -> Node | None:
        """Find the node at ``path`` inside ``start``'s subtree (default: root).

        Only descends into children whose path is ``path`` or an ancestor of
        it on a separator boundary.
        """
        current = start or self.root
        if not is_under(path, current.path):
            return None
        while current.path != path:
            for child in self.children(current):
                if is_under(path, child.path):
                    current = child
                    break
            else:
                return None
        return current

    def fraction_of_parent(self, node: Node) -> float:
        parent = self.parent(node)
        if parent is None or parent.size == 0:
            return 1.0
        return node.size / parent.size

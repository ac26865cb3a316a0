"""Tree node dataclass."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field

_id_lock = threading.Lock()
_ids = itertools.count(1)


def next_node_id() -> int:
    """Return a process-unique node id."""
    with _id_lock:
        return next(_ids)


@dataclass(slots=True, eq=False)
class Node:
    """One filesystem entry in a :class:`~diskmap.core.tree.FileTree`.

    Nodes do not hold references to each other. The owning tree resolves
    ``parent_id`` and ``child_ids`` through its arena.

    For directories ``size`` and ``descendant_count`` are rollups maintained by
    the tree. For files ``size`` is the allocated size read at scan time.
    """

    path: str
    name: str
    is_dir: bool
    size: int = 0
    descendant_count: int = 0
    id: int = field(default_factory=next_node_id)
    parent_id: int | None = None
    child_ids: list[int] = field(default_factory=list)

    is_permission_denied: bool = False
    awaiting_permission: bool = False
    is_trashed: bool = False
    is_hidden: bool = False
    trash_location: str | None = None
    excluded_by_rule_id: str | None = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_excluded(self) -> bool:
        return self.excluded_by_rule_id is not None

    @property
    def counts_toward_parent(self) -> bool:
        """Whether this node contributes to its parent's filtered rollup."""
        return not (self.is_trashed or self.is_hidden)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

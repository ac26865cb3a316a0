"""Squarified treemap layout (Bruls, Huizing and van Wijk).

Pure functions: the layout reads the tree and never modifies it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from diskmap.core.classifier import FileCategory, classify
from diskmap.core.tree import FileTree
from diskmap.models.node import Node

DEFAULT_MAX_DEPTH = 2
DEFAULT_MIN_SIZE = 20.0
NESTED_PADDING = 2.0


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned rectangle with its origin at the top-left corner."""

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    def inset(self, dx: float, dy: float) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.width - 2 * dx, self.height - 2 * dy)

    def intersection_area(self, other: Rect) -> float:
        w = min(self.max_x, other.max_x) - max(self.x, other.x)
        h = min(self.max_y, other.max_y) - max(self.y, other.y)
        if w <= 0 or h <= 0:
            return 0.0
        return w * h


@dataclass(frozen=True, slots=True)
class TreemapRect:
    node: Node
    rect: Rect
    depth: int
    color_category: FileCategory


def _worst_aspect_ratio(row: list[float], shorter: float) -> float:
    """Highest aspect ratio among the items of ``row`` laid along ``shorter``."""
    if not row or shorter <= 0:
        return math.inf
    row_length = sum(row) / shorter
    worst = 0.0
    for area in row:
        if area <= 0 or row_length <= 0:
            continue
        item_width = area / row_length
        worst = max(worst, item_width / shorter, shorter / item_width)
    return worst


def squarify(areas: list[float], bounds: Rect) -> list[Rect]:
    """Partition ``bounds`` into one rectangle per area, in input order.

    ``areas`` should already be scaled to sum to ``bounds.area``.
    """
    remaining = list(areas)
    rects: list[Rect] = []
    current = bounds

    while remaining:
        shorter = min(current.width, current.height)
        horizontal = current.width >= current.height

        row: list[float] = []
        best = math.inf
        while remaining:
            ratio = _worst_aspect_ratio(row + [remaining[0]], shorter)
            if ratio > best:
                break
            row.append(remaining.pop(0))
            best = ratio

        row_total = sum(row)
        total = row_total + sum(remaining)
        fraction = row_total / total if total > 0 else 1.0

        if horizontal:
            # Row is a column on the left edge spanning the full height
            row_width = fraction * current.width
            y = current.y
            for area in row:
                height = (area / row_total if row_total > 0 else 0.0) * current.height
                rects.append(Rect(current.x, y, row_width, height))
                y += height
            current = Rect(current.x + row_width, current.y, current.width - row_width, current.height)
        else:
            row_height = fraction * current.height
            x = current.x
            for area in row:
                width = (area / row_total if row_total > 0 else 0.0) * current.width
                rects.append(Rect(x, current.y, width, row_height))
                x += width
            current = Rect(current.x, current.y + row_height, current.width, current.height - row_height)

    return rects


def layout(
    tree: FileTree,
    node: Node,
    bounds: Rect,
    max_depth: int = DEFAULT_MAX_DEPTH,
    min_size: float = DEFAULT_MIN_SIZE,
    current_depth: int = 0,
) -> list[TreemapRect]:
    """Lay out the children of ``node`` inside ``bounds``.

    Children with zero size or hidden are dropped before the layout. Rectangles
    narrower or shorter than ``min_size`` are dropped from the output only, so
    their siblings keep the same geometry. Directory children are recursed into
    while ``current_depth < max_depth``, using their rectangle inset by a small
    padding.

    Returns:
        A flat list of rectangles, each tagged with its recursion depth.
    """
    if not node.is_dir or not node.child_ids or node.size <= 0:
        return []

    children = [c for c in tree.children(node) if c.size > 0 and not c.is_hidden]
    if not children:
        return []

    total_size = sum(c.size for c in children)
    total_area = bounds.area
    areas = [c.size / total_size * total_area for c in children]

    result: list[TreemapRect] = []
    for child, rect in zip(children, squarify(areas, bounds)):
        if rect.width < min_size or rect.height < min_size:
            continue

        result.append(
            TreemapRect(
                node=child,
                rect=rect,
                depth=current_depth,
                color_category=classify(child.path, child.is_dir),
            )
        )

        if child.is_dir and current_depth < max_depth:
            inner = rect.inset(NESTED_PADDING, NESTED_PADDING)
            if inner.width > min_size and inner.height > min_size:
                result.extend(layout(tree, child, inner, max_depth, min_size, current_depth + 1))

    return result

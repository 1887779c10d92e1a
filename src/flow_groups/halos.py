"""Padded bounding rectangles ("halos") around expanded groups.

A halo encloses the visible members of an expanded group. Vertical padding
grows with the number of nested halo-bearing groups below it, by a step
that decays per level, so outer halos stay distinguishable from inner ones
without growing linearly. Horizontal padding is constant.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from flow_groups.config import AxisPadding, DimensionsFn, HaloPaddingConfig, default_dimensions
from flow_groups.model.flow import Node
from flow_groups.model.hierarchy import HierarchyIndex

DEFAULT_GROUP_LABEL = "Group"


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return self.width * self.height

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Halo:
    group_id: str
    label: str
    bounds: Rect
    depth: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"groupId": self.group_id, "label": self.label, "bounds": self.bounds.to_dict()}


def compute_node_bounds(nodes: Iterable[Node], dimensions_fn: DimensionsFn | None = None) -> Bounds | None:
    """Axis-aligned box around ``nodes``; None for no nodes or non-finite input."""
    dims = dimensions_fn or default_dimensions
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    for node in nodes:
        size = dims(node)
        x, y = node.position.x, node.position.y
        min_x = min(min_x, x)
        min_y = min(min_y, y)
        max_x = max(max_x, x + size.width)
        max_y = max(max_y, y + size.height)
    if not all(math.isfinite(v) for v in (min_x, min_y, max_x, max_y)):
        return None
    return Bounds(min_x, min_y, max_x, max_y)


def halo_padding_for_depth(depth: int, axis: AxisPadding) -> float:
    """``base + sum(max(min_step, round(increment * decay**level)))`` over ``depth`` levels."""
    if depth <= 0:
        return axis.base
    padding = axis.base
    for level in range(depth):
        step = axis.increment * axis.decay**level
        # Half-up rounding, not Python's round-half-even.
        applied = max(axis.min_step, math.floor(step + 0.5)) if math.isfinite(step) else axis.min_step
        padding += applied
    return padding


def _eligible_depths(index: HierarchyIndex, eligible: set[str]) -> dict[str, int]:
    """Height of each eligible group's subtree of eligible nested groups."""
    child_groups: dict[str, list[str]] = {gid: [] for gid in eligible}
    for node in index.nodes:
        if node.id in eligible and node.parent_group_id in eligible:
            child_groups[node.parent_group_id].append(node.id)

    memo: dict[str, int] = {}

    def visit(group_id: str, stack: set[str]) -> int:
        if group_id in memo:
            return memo[group_id]
        if group_id in stack:
            return 0
        stack.add(group_id)
        children = child_groups.get(group_id, [])
        depth = max((visit(c, stack) for c in children), default=-1) + 1
        stack.discard(group_id)
        memo[group_id] = depth
        return depth

    for group_id in child_groups:
        visit(group_id, set())
    return memo


def compute_halos(
    nodes: Sequence[Node],
    dimensions_fn: DimensionsFn | None = None,
    padding: Any = None,
) -> list[Halo]:
    """One halo per expanded, not group-hidden group with at least one visible member.

    Collapsed sub-groups are hidden, so they neither get a halo nor add to
    their parent's depth. Halos come back in node order; use
    ``sort_halos_by_area`` for hit-testing order.
    """
    if not nodes:
        return []
    config = HaloPaddingConfig.from_value(padding)
    index = HierarchyIndex(nodes)

    candidates: list[tuple[Node, Bounds]] = []
    for group in index.nodes:
        if not group.is_group or group.group_hidden or group.is_collapsed:
            continue
        members = [index.by_id[mid] for mid in index.descendant_list(group.id)]
        visible = [m for m in members if m.is_visible]
        if not visible:
            continue
        bounds = compute_node_bounds(visible, dimensions_fn)
        if bounds is None:
            continue
        candidates.append((group, bounds))

    depths = _eligible_depths(index, {g.id for g, _ in candidates})

    halos: list[Halo] = []
    for group, bounds in candidates:
        depth = depths.get(group.id, 0)
        pad_x = halo_padding_for_depth(0, config.x)
        pad_y = halo_padding_for_depth(depth, config.y)
        halos.append(
            Halo(
                group_id=group.id,
                label=group.label or DEFAULT_GROUP_LABEL,
                bounds=Rect(
                    x=bounds.min_x - pad_x,
                    y=bounds.min_y - pad_y,
                    width=(bounds.max_x - bounds.min_x) + pad_x * 2,
                    height=(bounds.max_y - bounds.min_y) + pad_y * 2,
                ),
                depth=depth,
            )
        )
    return halos


def sort_halos_by_area(halos: Iterable[Halo]) -> list[Halo]:
    """Smallest first, so the innermost halo wins a double-click."""
    return sorted(halos, key=lambda h: h.bounds.area)

"""Layered layout public API."""

from __future__ import annotations

from flow_groups.layout.engine import layout, positions_changed, run_layout
from flow_groups.layout.sugiyama import (
    AugmentedGraph,
    ComponentLayout,
    DummyEdge,
    LayerAssignment,
    SugiyamaLayout,
    assign_perpendicular,
    assign_primary,
    build_group_depth_map,
    count_crossings,
    greedy_fas_ordering,
    initial_ordering,
    insert_dummy_nodes,
    minimise_crossings,
    place_in_order,
    remove_cycles,
)
from flow_groups.layout.types import DUMMY_PREFIX, LayoutNode, LayoutResult

__all__ = [
    "DUMMY_PREFIX",
    "AugmentedGraph",
    "ComponentLayout",
    "DummyEdge",
    "LayerAssignment",
    "LayoutNode",
    "LayoutResult",
    "SugiyamaLayout",
    "assign_perpendicular",
    "assign_primary",
    "build_group_depth_map",
    "count_crossings",
    "greedy_fas_ordering",
    "initial_ordering",
    "insert_dummy_nodes",
    "layout",
    "minimise_crossings",
    "place_in_order",
    "positions_changed",
    "remove_cycles",
    "run_layout",
]

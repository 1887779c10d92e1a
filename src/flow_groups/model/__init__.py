"""Data model and group hierarchy queries."""

from flow_groups.model.flow import SYNTHETIC_FLAG, Edge, Flow, Node, Point, Size
from flow_groups.model.hierarchy import (
    HierarchyIndex,
    ancestors,
    children_of,
    descendant_list,
    descendants,
    group_nesting_depth,
    is_ancestor_of,
)

__all__ = [
    "SYNTHETIC_FLAG",
    "Edge",
    "Flow",
    "HierarchyIndex",
    "Node",
    "Point",
    "Size",
    "ancestors",
    "children_of",
    "descendant_list",
    "descendants",
    "group_nesting_depth",
    "is_ancestor_of",
]

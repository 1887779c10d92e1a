"""flow-groups: group hierarchy, visibility, halos and layered layout for flow diagrams."""

from flow_groups.commands import ToolResult, execute_tool, execute_tool_calls
from flow_groups.config import HaloPaddingConfig, LayoutConfig
from flow_groups.halos import Halo, Rect, compute_halos, sort_halos_by_area
from flow_groups.layout import layout, positions_changed, run_layout
from flow_groups.model import Edge, Flow, Node, Point, Size, descendants, is_ancestor_of
from flow_groups.ops import create_group, toggle_expansion, ungroup
from flow_groups.subtree import collapse_subtree, get_all_descendants
from flow_groups.synthetic import compute_synthetic_edges
from flow_groups.types import Direction, GroupDisplayState, NodeKind
from flow_groups.validation import ValidationResult, validate_membership
from flow_groups.visibility import apply_group_visibility, apply_visibility

__all__ = [
    "Direction",
    "Edge",
    "Flow",
    "GroupDisplayState",
    "Halo",
    "HaloPaddingConfig",
    "LayoutConfig",
    "Node",
    "NodeKind",
    "Point",
    "Rect",
    "Size",
    "ToolResult",
    "ValidationResult",
    "apply_group_visibility",
    "apply_visibility",
    "collapse_subtree",
    "compute_halos",
    "compute_synthetic_edges",
    "create_group",
    "descendants",
    "execute_tool",
    "execute_tool_calls",
    "get_all_descendants",
    "is_ancestor_of",
    "layout",
    "positions_changed",
    "run_layout",
    "sort_halos_by_area",
    "toggle_expansion",
    "ungroup",
    "validate_membership",
]

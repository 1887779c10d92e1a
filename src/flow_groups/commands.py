"""Tool registry: named group commands over a flow.

The REST layer and the AI tool-execution layer both call ``execute_tool``
with a tool name and a params mapping using the wire (camelCase) names.
Every tool returns a ``ToolResult``; bad requests never raise.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from flow_groups import ops
from flow_groups.layout import run_layout
from flow_groups.model.flow import Flow, Point
from flow_groups.subtree import collapse_subtree
from flow_groups.validation import (
    find_group,
    validate_attach,
    validate_common_parent,
    validate_group_id,
    validate_membership,
)
from flow_groups.visibility import apply_group_visibility

logger = logging.getLogger(__name__)

Params = Mapping[str, Any]


@dataclass(frozen=True)
class ToolResult:
    success: bool
    error: str | None = None
    updated_flow: Flow | None = None
    group_id: str | None = None
    did_change: bool | None = None

    @classmethod
    def fail(cls, error: str) -> ToolResult:
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            out["error"] = self.error
        if self.updated_flow is not None:
            out["updatedFlow"] = self.updated_flow.to_dict()
        if self.group_id is not None:
            out["groupId"] = self.group_id
        if self.did_change is not None:
            out["didChange"] = self.did_change
        return out


def next_group_id(flow: Flow) -> str:
    """First ``group-N`` id (N from 1) not used by any node."""
    taken = {n.id for n in flow.nodes}
    n = 1
    while f"group-{n}" in taken:
        n += 1
    return f"group-{n}"


def default_group_label(flow: Flow) -> str:
    return f"Group {sum(1 for n in flow.nodes if n.is_group) + 1}"


def _parse_position(raw: Any) -> Point | None:
    if not isinstance(raw, Mapping):
        return None
    return Point(x=float(raw.get("x", 0.0)), y=float(raw.get("y", 0.0)))


# ─── Tools ───────────────────────────────────────────────────────────────────


def _create_group(flow: Flow, params: Params) -> ToolResult:
    member_ids = params.get("memberIds")
    if not isinstance(member_ids, (list, tuple)):
        return ToolResult.fail("memberIds is required")
    member_ids = [str(m) for m in member_ids]

    for check in (validate_membership(member_ids, flow.nodes), validate_common_parent(member_ids, flow.nodes)):
        if not check:
            return ToolResult.fail(check.error or "Invalid group")

    group_id = params.get("groupId") or next_group_id(flow)
    check = validate_group_id(group_id, flow.nodes)
    if not check:
        return ToolResult.fail(check.error or "Invalid group id")

    grouped = ops.create_group(
        flow,
        group_id,
        member_ids,
        label=params.get("label") or default_group_label(flow),
        position=_parse_position(params.get("position")),
        collapse=params.get("collapsed", True) is not False,
    )
    return ToolResult(success=True, updated_flow=apply_group_visibility(grouped.nodes, grouped.edges), group_id=group_id)


def _ungroup(flow: Flow, params: Params) -> ToolResult:
    group_id = params.get("groupId")
    if not group_id:
        return ToolResult.fail("groupId is required")
    if find_group(group_id, flow.nodes) is None:
        return ToolResult.fail(f"Group {group_id} not found")
    result = ops.ungroup(flow, group_id)
    return ToolResult(success=True, updated_flow=apply_group_visibility(result.nodes, result.edges), group_id=group_id)


def _toggle_group_expansion(flow: Flow, params: Params) -> ToolResult:
    group_id = params.get("groupId")
    if not group_id:
        return ToolResult.fail("groupId is required")
    if find_group(group_id, flow.nodes) is None:
        return ToolResult.fail(f"Group {group_id} not found")

    collapsed: bool | None = None
    if isinstance(params.get("expand"), bool):
        collapsed = not params["expand"]
    elif isinstance(params.get("collapsed"), bool):
        collapsed = params["collapsed"]
    result = ops.toggle_expansion(flow, group_id, collapsed)
    return ToolResult(success=True, updated_flow=apply_group_visibility(result.nodes, result.edges), group_id=group_id)


def _toggle_subtree_collapse(flow: Flow, params: Params) -> ToolResult:
    node_id = params.get("nodeId")
    if not node_id:
        return ToolResult.fail("nodeId is required")
    node = flow.find_node(node_id)
    if node is None:
        return ToolResult.fail(f"Node {node_id} not found")
    collapsed = params.get("collapsed")
    if not isinstance(collapsed, bool):
        collapsed = node.data.get("collapsed") is not True
    return ToolResult(success=True, updated_flow=collapse_subtree(flow, node_id, collapsed))


def _auto_layout(flow: Flow, params: Params) -> ToolResult:
    result = run_layout(flow.nodes, flow.edges, params.get("direction") or "LR")
    return ToolResult(success=True, updated_flow=result.flow, did_change=result.did_change)


def _attach_to_group(flow: Flow, params: Params) -> ToolResult:
    node_id = params.get("nodeId")
    group_id = params.get("groupId")
    if not node_id or not group_id:
        return ToolResult.fail("nodeId and groupId are required")
    check = validate_attach(node_id, group_id, flow.nodes)
    if not check:
        return ToolResult.fail(check.error or "Invalid attach")
    result = ops.attach_to_group(flow, node_id, group_id)
    return ToolResult(success=True, updated_flow=apply_group_visibility(result.nodes, result.edges), group_id=group_id)


def _detach_from_group(flow: Flow, params: Params) -> ToolResult:
    node_id = params.get("nodeId")
    if not node_id:
        return ToolResult.fail("nodeId is required")
    node = flow.find_node(node_id)
    if node is None:
        return ToolResult.fail(f"Node {node_id} not found")
    if node.parent_group_id is None:
        return ToolResult.fail(f"Node {node_id} is not in a group")
    result = ops.detach_from_group(flow, node_id)
    return ToolResult(success=True, updated_flow=apply_group_visibility(result.nodes, result.edges))


_TOOLS: dict[str, Callable[[Flow, Params], ToolResult]] = {
    "createGroup": _create_group,
    "ungroup": _ungroup,
    "toggleGroupExpansion": _toggle_group_expansion,
    "toggleSubtreeCollapse": _toggle_subtree_collapse,
    "autoLayout": _auto_layout,
    "attachToGroup": _attach_to_group,
    "detachFromGroup": _detach_from_group,
}


def tool_names() -> list[str]:
    return list(_TOOLS)


def execute_tool(name: str, params: Params | None, flow: Flow) -> ToolResult:
    """Dispatch one tool call. Unknown names and bad params come back as failures."""
    tool = _TOOLS.get(name)
    if tool is None:
        return ToolResult.fail(f"Unknown tool: {name}")
    logger.debug("executing tool %s", name)
    try:
        return tool(flow, params or {})
    except (ValueError, TypeError) as e:
        logger.debug("tool %s failed: %s", name, e)
        return ToolResult.fail(str(e))


def execute_tool_calls(flow: Flow, calls: Iterable[Mapping[str, Any]]) -> tuple[Flow, list[ToolResult]]:
    """Run ``{"name": ..., "params": ...}`` calls in order.

    Each successful call feeds its flow to the next one; a failed call
    leaves the flow as it was and the batch carries on.
    """
    results: list[ToolResult] = []
    current = flow
    for call in calls:
        result = execute_tool(str(call.get("name", "")), call.get("params"), current)
        if result.success and result.updated_flow is not None:
            current = result.updated_flow
        results.append(result)
    return current, results

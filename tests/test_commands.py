"""Tests for the tool registry shared by the REST and assistant layers."""

from __future__ import annotations

from flow_groups.commands import (
    ToolResult,
    default_group_label,
    execute_tool,
    execute_tool_calls,
    next_group_id,
    tool_names,
)
from flow_groups.model import Edge, Flow, Node, Point
from flow_groups.types import NodeKind

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_flow() -> Flow:
    return Flow(
        nodes=[
            Node(id="a", position=Point(0, 0)),
            Node(id="b", position=Point(100, 0)),
            Node(id="external", position=Point(300, 0)),
        ],
        edges=[Edge("a-external", "a", "external")],
    )


def grouped_flow() -> Flow:
    result = execute_tool("createGroup", {"memberIds": ["a", "b"], "groupId": "g1", "label": "G"}, make_flow())
    assert result.success
    return result.updated_flow


# ─── createGroup ──────────────────────────────────────────────────────────────


class TestCreateGroup:
    def test_collapsed_group_hides_members(self):
        result = execute_tool("createGroup", {"memberIds": ["a", "b"], "groupId": "g1"}, make_flow())
        assert result.success and result.error is None
        assert result.group_id == "g1"
        flow = result.updated_flow
        assert flow.find_node("a").hidden is True
        assert flow.find_node("g1").hidden is False

    def test_boundary_edge_becomes_synthetic(self):
        flow = grouped_flow()
        synthetic = [e for e in flow.edges if e.is_synthetic]
        assert [(e.id, e.source, e.target) for e in synthetic] == [("group-edge-g1->external", "g1", "external")]

    def test_auto_id_and_label(self):
        result = execute_tool("createGroup", {"memberIds": ["a", "b"]}, make_flow())
        assert result.group_id == "group-1"
        assert result.updated_flow.find_node("group-1").label == "Group 1"

    def test_position_param(self):
        params = {"memberIds": ["a", "b"], "groupId": "g1", "position": {"x": 5, "y": 6}}
        result = execute_tool("createGroup", params, make_flow())
        assert result.updated_flow.find_node("g1").position == Point(5, 6)

    def test_validation_error_reported(self):
        result = execute_tool("createGroup", {"memberIds": ["a"]}, make_flow())
        assert result == ToolResult(success=False, error="Group must contain at least 2 nodes")

    def test_missing_member_ids(self):
        assert execute_tool("createGroup", {}, make_flow()).error == "memberIds is required"

    def test_taken_id(self):
        result = execute_tool("createGroup", {"memberIds": ["a", "b"], "groupId": "external"}, make_flow())
        assert result.error == "Node ID external already exists"

    def test_different_parents_rejected(self):
        flow = grouped_flow()
        result = execute_tool("createGroup", {"memberIds": ["a", "external"]}, flow)
        assert not result.success
        assert "different parent groups" in result.error

    def test_sub_group(self):
        flow = grouped_flow()
        flow = execute_tool("toggleGroupExpansion", {"groupId": "g1", "expand": True}, flow).updated_flow
        result = execute_tool("createGroup", {"memberIds": ["a", "b"], "groupId": "inner"}, flow)
        assert result.success
        assert result.updated_flow.find_node("inner").parent_group_id == "g1"


# ─── ungroup / toggle ─────────────────────────────────────────────────────────


class TestUngroupAndToggle:
    def test_ungroup_round_trip(self):
        result = execute_tool("ungroup", {"groupId": "g1"}, grouped_flow())
        assert result.success
        flow = result.updated_flow
        for nid in ("a", "b"):
            n = flow.find_node(nid)
            assert (n.hidden, n.group_hidden, n.parent_group_id) == (False, False, None)
        assert not any(e.is_synthetic for e in flow.edges)

    def test_ungroup_unknown(self):
        assert execute_tool("ungroup", {"groupId": "nope"}, make_flow()).error == "Group nope not found"

    def test_toggle_expand_removes_synthetic_edge(self):
        result = execute_tool("toggleGroupExpansion", {"groupId": "g1", "expand": True}, grouped_flow())
        flow = result.updated_flow
        assert flow.find_node("a").hidden is False
        assert flow.find_node("g1").hidden is True
        assert not any(e.is_synthetic for e in flow.edges)

    def test_toggle_flips_without_params(self):
        flow = execute_tool("toggleGroupExpansion", {"groupId": "g1"}, grouped_flow()).updated_flow
        assert flow.find_node("g1").is_collapsed is False

    def test_toggle_collapsed_param(self):
        flow = execute_tool("toggleGroupExpansion", {"groupId": "g1", "collapsed": True}, grouped_flow()).updated_flow
        assert flow.find_node("g1").is_collapsed is True

    def test_toggle_unknown(self):
        assert not execute_tool("toggleGroupExpansion", {"groupId": "nope"}, make_flow()).success


# ─── Other tools ──────────────────────────────────────────────────────────────


class TestOtherTools:
    def test_subtree_collapse_toggles(self):
        result = execute_tool("toggleSubtreeCollapse", {"nodeId": "a"}, make_flow())
        assert result.success
        assert result.updated_flow.find_node("external").hidden is True
        again = execute_tool("toggleSubtreeCollapse", {"nodeId": "a"}, result.updated_flow)
        assert again.updated_flow.find_node("external").hidden is False

    def test_subtree_unknown_node(self):
        assert execute_tool("toggleSubtreeCollapse", {"nodeId": "zz"}, make_flow()).error == "Node zz not found"

    def test_auto_layout_reports_change(self):
        first = execute_tool("autoLayout", {}, make_flow())
        assert first.success and first.did_change is True
        second = execute_tool("autoLayout", {}, first.updated_flow)
        assert second.did_change is False

    def test_auto_layout_bad_direction(self):
        result = execute_tool("autoLayout", {"direction": "sideways"}, make_flow())
        assert not result.success
        assert "Unknown direction" in result.error

    def test_attach_and_detach(self):
        flow = grouped_flow()
        attached = execute_tool("attachToGroup", {"nodeId": "external", "groupId": "g1"}, flow)
        assert attached.success
        assert attached.updated_flow.find_node("external").hidden is True
        detached = execute_tool("detachFromGroup", {"nodeId": "external"}, attached.updated_flow)
        assert detached.updated_flow.find_node("external").parent_group_id is None

    def test_attach_cycle_rejected(self):
        flow = Flow(
            nodes=[
                Node(id="outer", kind=NodeKind.GROUP),
                Node(id="inner", kind=NodeKind.GROUP, parent_group_id="outer"),
            ]
        )
        result = execute_tool("attachToGroup", {"nodeId": "outer", "groupId": "inner"}, flow)
        assert result.error == "Cannot add outer to its own descendant inner"

    def test_detach_top_level_rejected(self):
        assert not execute_tool("detachFromGroup", {"nodeId": "a"}, make_flow()).success

    def test_unknown_tool(self):
        assert execute_tool("fly", {}, make_flow()).error == "Unknown tool: fly"

    def test_registry_names(self):
        assert "createGroup" in tool_names()
        assert "autoLayout" in tool_names()


# ─── Batches ──────────────────────────────────────────────────────────────────


class TestBatch:
    def test_threads_flow_through_calls(self):
        calls = [
            {"name": "createGroup", "params": {"memberIds": ["a", "b"], "groupId": "g1"}},
            {"name": "toggleGroupExpansion", "params": {"groupId": "g1", "expand": True}},
        ]
        flow, results = execute_tool_calls(make_flow(), calls)
        assert [r.success for r in results] == [True, True]
        assert flow.find_node("g1").is_collapsed is False

    def test_failure_keeps_flow_and_continues(self):
        calls = [
            {"name": "ungroup", "params": {"groupId": "missing"}},
            {"name": "createGroup", "params": {"memberIds": ["a", "b"]}},
        ]
        flow, results = execute_tool_calls(make_flow(), calls)
        assert [r.success for r in results] == [False, True]
        assert flow.find_node("group-1") is not None


class TestHelpers:
    def test_next_group_id_skips_taken(self):
        flow = Flow(nodes=[Node(id="group-1"), Node(id="group-2")])
        assert next_group_id(flow) == "group-3"

    def test_default_label_counts_groups(self):
        flow = Flow(nodes=[Node(id="x", kind=NodeKind.GROUP)])
        assert default_group_label(flow) == "Group 2"

    def test_result_to_dict(self):
        out = ToolResult(success=True, group_id="g", did_change=False).to_dict()
        assert out == {"success": True, "groupId": "g", "didChange": False}

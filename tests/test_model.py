"""Tests for the flow data model and group hierarchy queries."""

from __future__ import annotations

import pytest

from flow_groups.model import (
    Edge,
    Flow,
    HierarchyIndex,
    Node,
    Point,
    ancestors,
    children_of,
    descendant_list,
    descendants,
    group_nesting_depth,
    is_ancestor_of,
)
from flow_groups.types import Direction, GroupDisplayState, NodeKind

# ─── Helpers ──────────────────────────────────────────────────────────────────


def node(node_id: str, parent: str | None = None, **kwargs) -> Node:
    return Node(id=node_id, parent_group_id=parent, **kwargs)


def group(group_id: str, parent: str | None = None, collapsed: bool = False) -> Node:
    return Node(id=group_id, kind=NodeKind.GROUP, parent_group_id=parent, is_collapsed=collapsed)


def nested_nodes() -> list[Node]:
    """outer > inner > {a, b}; outer > c; d top-level."""
    return [
        group("outer"),
        group("inner", parent="outer"),
        node("a", parent="inner"),
        node("b", parent="inner"),
        node("c", parent="outer"),
        node("d"),
    ]


# ─── Wire Format ──────────────────────────────────────────────────────────────


class TestNodeWireFormat:
    def test_from_dict_reads_camel_case_fields(self):
        n = Node.from_dict(
            {
                "id": "g1",
                "type": "group",
                "position": {"x": 10, "y": 20},
                "parentGroupId": "outer",
                "isCollapsed": True,
                "hidden": False,
                "groupHidden": True,
                "data": {"label": "Team", "color": "red"},
            }
        )
        assert n.kind is NodeKind.GROUP
        assert n.position == Point(10.0, 20.0)
        assert n.parent_group_id == "outer"
        assert n.is_collapsed is True
        assert n.group_hidden is True
        assert n.label == "Team"
        assert n.data == {"color": "red"}

    def test_missing_fields_default(self):
        n = Node.from_dict({"id": "a"})
        assert n.kind is NodeKind.REGULAR
        assert n.position == Point(0.0, 0.0)
        assert n.parent_group_id is None
        assert not n.hidden and not n.group_hidden and not n.is_collapsed

    def test_unknown_keys_round_trip(self):
        raw = {"id": "a", "type": "default", "position": {"x": 1, "y": 2}, "width": 300, "selected": True}
        out = Node.from_dict(raw).to_dict()
        assert out["width"] == 300
        assert out["selected"] is True

    def test_label_goes_back_into_data(self):
        out = Node.from_dict({"id": "a", "data": {"label": "Alpha"}}).to_dict()
        assert out["data"]["label"] == "Alpha"

    def test_empty_parent_is_top_level(self):
        assert Node.from_dict({"id": "a", "parentGroupId": ""}).parent_group_id is None

    def test_non_mapping_rejected(self):
        with pytest.raises(TypeError):
            Node.from_dict(["a"])  # type: ignore[arg-type]


class TestEdgeWireFormat:
    def test_synthetic_flag_read_from_data(self):
        e = Edge.from_dict({"id": "x", "source": "g", "target": "b", "data": {"isSyntheticGroupEdge": True}})
        assert e.is_synthetic
        assert e.to_dict()["data"]["isSyntheticGroupEdge"] is True

    def test_default_id(self):
        assert Edge.from_dict({"source": "a", "target": "b"}).id == "a-b"

    def test_key_is_ordered_pair(self):
        assert Edge(id="e", source="a", target="b").key == ("a", "b")


class TestFlow:
    def test_from_dict_and_back(self):
        raw = {
            "nodes": [{"id": "a", "type": "default", "position": {"x": 0, "y": 0}}],
            "edges": [{"id": "e1", "source": "a", "target": "a"}],
        }
        flow = Flow.from_dict(raw)
        out = flow.to_dict()
        assert [n["id"] for n in out["nodes"]] == ["a"]
        assert out["edges"][0]["source"] == "a"

    def test_missing_lists(self):
        flow = Flow.from_dict({})
        assert flow.nodes == [] and flow.edges == []

    def test_find_node(self):
        flow = Flow(nodes=[node("a"), node("b")])
        assert flow.find_node("b").id == "b"
        assert flow.find_node("zz") is None

    def test_real_and_synthetic_split(self):
        flow = Flow(edges=[Edge("e1", "a", "b"), Edge("s1", "g", "b", is_synthetic=True)])
        assert [e.id for e in flow.real_edges()] == ["e1"]
        assert [e.id for e in flow.synthetic_edges()] == ["s1"]


# ─── Enums ────────────────────────────────────────────────────────────────────


class TestEnums:
    def test_direction_parse(self):
        assert Direction.parse("lr") is Direction.LR
        assert Direction.parse("TD") is Direction.TB
        assert Direction.parse(None) is Direction.LR

    def test_direction_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown direction"):
            Direction.parse("XY")

    def test_direction_axes(self):
        assert Direction.RL.is_horizontal and Direction.RL.is_reversed
        assert not Direction.TB.is_horizontal and not Direction.TB.is_reversed

    def test_group_display_state_inversion(self):
        collapsed = group("g", collapsed=True)
        expanded = group("g", collapsed=False)
        assert collapsed.display_state is GroupDisplayState.COLLAPSED
        assert collapsed.display_state.shows_group_node
        assert not collapsed.display_state.shows_members
        assert expanded.display_state.shows_members
        assert node("a").display_state is None


# ─── Hierarchy ────────────────────────────────────────────────────────────────


class TestDescendants:
    def test_transitive_closure(self):
        assert descendants("outer", nested_nodes()) == {"inner", "a", "b", "c"}

    def test_direct_members_only_for_leaf_group(self):
        assert descendants("inner", nested_nodes()) == {"a", "b"}

    def test_unknown_and_regular_nodes_have_none(self):
        assert descendants("missing", nested_nodes()) == set()
        assert descendants("d", nested_nodes()) == set()

    def test_discovery_order(self):
        assert descendant_list("outer", nested_nodes()) == ["inner", "c", "a", "b"]

    def test_cycle_terminates(self):
        nodes = [group("x", parent="y"), group("y", parent="x"), node("m", parent="x")]
        assert descendants("x", nodes) == {"y", "m"}

    def test_excludes_group_itself_in_cycle(self):
        nodes = [group("x", parent="x")]
        assert "x" not in descendants("x", nodes)


class TestAncestors:
    def test_nearest_first(self):
        assert ancestors("a", nested_nodes()) == ["inner", "outer"]

    def test_top_level(self):
        assert ancestors("d", nested_nodes()) == []

    def test_dangling_reference_stops(self):
        assert ancestors("a", [node("a", parent="ghost")]) == []

    def test_cycle_terminates(self):
        nodes = [group("x", parent="y"), group("y", parent="x")]
        assert ancestors("x", nodes) == ["y"]

    def test_nesting_depth(self):
        assert group_nesting_depth("a", nested_nodes()) == 2
        assert group_nesting_depth("d", nested_nodes()) == 0


class TestRelations:
    def test_is_ancestor_of(self):
        nodes = nested_nodes()
        assert is_ancestor_of("outer", "a", nodes)
        assert not is_ancestor_of("a", "outer", nodes)
        assert not is_ancestor_of("inner", "c", nodes)

    def test_children_of(self):
        assert children_of("outer", nested_nodes()) == ["inner", "c"]

    def test_index_lookup(self):
        index = HierarchyIndex(nested_nodes())
        assert "a" in index
        assert index.get("missing") is None
        assert index.children_of("inner") == ["a", "b"]

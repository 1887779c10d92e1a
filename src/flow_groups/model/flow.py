"""Flow data model: nodes, edges and their JSON wire form.

Nodes and edges are frozen dataclasses. Every engine pass builds new
instances with ``dataclasses.replace`` and returns new lists, so a ``Flow``
handed to the engine is never modified.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from flow_groups.types import GroupDisplayState, NodeKind

_NODE_KEYS = frozenset(
    {"id", "type", "position", "parentGroupId", "isCollapsed", "hidden", "groupHidden", "subtreeHidden", "data"}
)
_EDGE_KEYS = frozenset({"id", "source", "target", "hidden", "groupHidden", "data"})

SYNTHETIC_FLAG = "isSyntheticGroupEdge"


@dataclass(frozen=True)
class Point:
    """A 2D point in canvas coordinates (top-left origin)."""

    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Node:
    """A diagram node. Group nodes own their members through ``parent_group_id``."""

    id: str
    kind: NodeKind = NodeKind.REGULAR
    position: Point = field(default_factory=Point)
    parent_group_id: str | None = None
    is_collapsed: bool = False
    hidden: bool = False
    group_hidden: bool = False
    subtree_hidden: bool = False
    label: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_group(self) -> bool:
        return self.kind is NodeKind.GROUP

    @property
    def display_state(self) -> GroupDisplayState | None:
        if not self.is_group:
            return None
        return GroupDisplayState.from_collapsed(self.is_collapsed)

    @property
    def is_visible(self) -> bool:
        return not self.hidden and not self.group_hidden

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Node:
        if not isinstance(raw, Mapping):
            raise TypeError(f"node must be a mapping, got {type(raw).__name__}")
        data = dict(raw.get("data") or {})
        label = data.pop("label", None)
        pos = raw.get("position") or {}
        return cls(
            id=str(raw["id"]),
            kind=NodeKind.from_wire(raw.get("type")),
            position=Point(x=float(pos.get("x", 0.0)), y=float(pos.get("y", 0.0))),
            parent_group_id=raw.get("parentGroupId") or None,
            is_collapsed=raw.get("isCollapsed") is True,
            hidden=bool(raw.get("hidden", False)),
            group_hidden=bool(raw.get("groupHidden", False)),
            subtree_hidden=raw.get("subtreeHidden") is True,
            label=label,
            data=data,
            extra={k: v for k, v in raw.items() if k not in _NODE_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        out["id"] = self.id
        out["type"] = self.kind.value
        out["position"] = {"x": self.position.x, "y": self.position.y}
        if self.parent_group_id is not None:
            out["parentGroupId"] = self.parent_group_id
        if self.is_group:
            out["isCollapsed"] = self.is_collapsed
        out["hidden"] = self.hidden
        out["groupHidden"] = self.group_hidden
        if self.subtree_hidden:
            out["subtreeHidden"] = True
        data = dict(self.data)
        if self.label is not None:
            data["label"] = self.label
        out["data"] = data
        return out


@dataclass(frozen=True)
class Edge:
    """A directed edge. Synthetic edges are derived boundary edges of collapsed groups."""

    id: str
    source: str
    target: str
    is_synthetic: bool = False
    hidden: bool = False
    group_hidden: bool = False
    label: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.target)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Edge:
        if not isinstance(raw, Mapping):
            raise TypeError(f"edge must be a mapping, got {type(raw).__name__}")
        data = dict(raw.get("data") or {})
        label = data.pop("label", None)
        is_synthetic = data.pop(SYNTHETIC_FLAG, False) is True
        source = str(raw["source"])
        target = str(raw["target"])
        return cls(
            id=str(raw.get("id") or f"{source}-{target}"),
            source=source,
            target=target,
            is_synthetic=is_synthetic,
            hidden=bool(raw.get("hidden", False)),
            group_hidden=bool(raw.get("groupHidden", False)),
            label=label,
            data=data,
            extra={k: v for k, v in raw.items() if k not in _EDGE_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        out["id"] = self.id
        out["source"] = self.source
        out["target"] = self.target
        out["hidden"] = self.hidden
        out["groupHidden"] = self.group_hidden
        data = dict(self.data)
        if self.label is not None:
            data["label"] = self.label
        if self.is_synthetic:
            data[SYNTHETIC_FLAG] = True
        if data:
            out["data"] = data
        return out


@dataclass(frozen=True)
class Flow:
    """The unit of input and output for every engine function."""

    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Flow:
        if not isinstance(raw, Mapping):
            raise TypeError(f"flow must be a mapping, got {type(raw).__name__}")
        return cls(
            nodes=[Node.from_dict(n) for n in raw.get("nodes") or []],
            edges=[Edge.from_dict(e) for e in raw.get("edges") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    def node_map(self) -> dict[str, Node]:
        return {n.id: n for n in self.nodes}

    def find_node(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def real_edges(self) -> list[Edge]:
        return [e for e in self.edges if not e.is_synthetic]

    def synthetic_edges(self) -> list[Edge]:
        return [e for e in self.edges if e.is_synthetic]

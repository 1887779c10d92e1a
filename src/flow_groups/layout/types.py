"""Layout types shared by the layered pipeline and its callers."""

from __future__ import annotations

from dataclasses import dataclass, field

from flow_groups.model.flow import Flow
from flow_groups.types import Direction


@dataclass
class LayoutNode:
    """A positioned node (top-left corner) together with its rank and order in the rank."""

    id: str
    layer: int
    order: int
    x: float
    y: float
    width: float
    height: float
    component: int = 0


@dataclass
class LayoutResult:
    """Everything one layout run produced; ``flow`` is what callers persist."""

    flow: Flow
    nodes: list[LayoutNode]
    direction: Direction
    ranks: dict[str, int] = field(default_factory=dict)
    group_depths: dict[str, int] = field(default_factory=dict)
    reversed_edges: set[tuple[str, str]] = field(default_factory=set)
    did_change: bool = False


# Prefix for the placeholder nodes that carry long edges across ranks.
DUMMY_PREFIX = "__dummy_"

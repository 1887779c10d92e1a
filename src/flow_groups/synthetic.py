"""Boundary edges for collapsed groups.

When a group is collapsed its members disappear, and so would every edge
that crosses the group boundary. A synthetic edge stands in for those
edges: ``member -> outside`` becomes ``group -> outside`` and
``outside -> member`` becomes ``outside -> group``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from flow_groups.model.flow import Edge, Node
from flow_groups.model.hierarchy import HierarchyIndex

logger = logging.getLogger(__name__)

GROUP_EDGE_PREFIX = "group-edge-"


def synthetic_edge_id(source: str, target: str) -> str:
    return f"{GROUP_EDGE_PREFIX}{source}->{target}"


def make_synthetic_edge(source: str, target: str) -> Edge:
    return Edge(id=synthetic_edge_id(source, target), source=source, target=target, is_synthetic=True)


def compute_synthetic_edges(nodes: Sequence[Node], real_edges: Iterable[Edge]) -> list[Edge]:
    """Derive boundary edges for every collapsed group in ``nodes``.

    Synthetic edges already present in ``real_edges`` are ignored, so the
    result depends only on the real edge set and running it again on its
    own output adds nothing. Several real edges crossing the same boundary
    in the same direction collapse to one synthetic edge.
    """
    index = HierarchyIndex(nodes)
    real = [e for e in real_edges if not e.is_synthetic]
    collapsed_groups = [n for n in index.nodes if n.is_group and n.is_collapsed]

    result: list[Edge] = []
    seen: set[tuple[str, str]] = set()
    for group in collapsed_groups:
        members = index.descendants(group.id)
        if not members:
            continue
        for edge in real:
            source_in = edge.source in members
            target_in = edge.target in members
            if source_in and not target_in:
                key = (group.id, edge.target)
            elif target_in and not source_in:
                key = (edge.source, group.id)
            else:
                continue
            if key in seen:
                continue
            seen.add(key)
            result.append(make_synthetic_edge(*key))

    logger.debug("computed %d synthetic edges for %d collapsed groups", len(result), len(collapsed_groups))
    return result


def synthetic_edge_keys(edges: Iterable[Edge]) -> frozenset[tuple[str, str]]:
    """Ordered ``(source, target)`` pairs of the synthetic edges in ``edges``."""
    return frozenset(e.key for e in edges if e.is_synthetic)


def boundary_edges_changed(before: Iterable[Edge], after: Iterable[Edge]) -> bool:
    return synthetic_edge_keys(before) != synthetic_edge_keys(after)

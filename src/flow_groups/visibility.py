"""Derive ``hidden`` / ``group_hidden`` flags from group collapse state.

Group nodes are inverted relative to their members: a collapsed group is
drawn and its members are hidden; an expanded group hides its own node and
shows the members inside a halo. ``group_hidden`` marks hiding caused by a
collapsed ancestor, which re-expansion undoes. Hiding from anywhere else is
kept as long as ``group_hidden`` is false.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from flow_groups.model.flow import Edge, Flow, Node
from flow_groups.model.hierarchy import HierarchyIndex
from flow_groups.synthetic import compute_synthetic_edges

logger = logging.getLogger(__name__)


def ancestor_hidden_map(nodes: Sequence[Node]) -> dict[str, bool]:
    """Map node id -> True when some ancestor group is collapsed.

    Each walk stops at a memoized ancestor, a dangling reference or a cycle,
    and every node on the walked path is memoized with the same answer.
    """
    index = HierarchyIndex(nodes)
    memo: dict[str, bool] = {}

    for node in index.nodes:
        if node.id in memo:
            continue
        path: list[str] = []
        seen: set[str] = {node.id}
        current = node
        result = False
        while True:
            if current.id in memo:
                result = memo[current.id]
                break
            path.append(current.id)
            parent_id = current.parent_group_id
            if parent_id is None:
                break
            if parent_id in seen:
                logger.warning("cycle in group hierarchy at %r; treating as top-level", parent_id)
                break
            parent = index.get(parent_id)
            if parent is None:
                break
            if parent.is_collapsed:
                result = True
                break
            seen.add(parent_id)
            current = parent
        for node_id in path:
            memo[node_id] = result

    return memo


def node_visibility(node: Node, hidden_by_ancestor: bool) -> Node:
    """Recompute the derived flags of one node."""
    if node.is_group:
        own_hidden = not node.is_collapsed
    else:
        own_hidden = node.hidden and not node.group_hidden
    return replace(
        node,
        group_hidden=hidden_by_ancestor,
        hidden=hidden_by_ancestor or node.subtree_hidden or own_hidden,
    )


def edge_visibility(edges: Sequence[Edge], nodes: Sequence[Node]) -> list[Edge]:
    """An edge is hidden when either endpoint is hidden."""
    lookup = {n.id: n for n in nodes}
    result: list[Edge] = []
    for edge in edges:
        source = lookup.get(edge.source)
        target = lookup.get(edge.target)
        group_hidden = bool((source and source.group_hidden) or (target and target.group_hidden))
        hidden = bool((source and source.hidden) or (target and target.hidden))
        result.append(replace(edge, group_hidden=group_hidden, hidden=hidden))
    return result


def apply_visibility(nodes: Sequence[Node], edges: Sequence[Edge]) -> Flow:
    """Recompute node and edge flags; the edge list itself is kept as given."""
    hidden_map = ancestor_hidden_map(nodes)
    next_nodes = [node_visibility(n, hidden_map.get(n.id, False)) for n in nodes]
    return Flow(nodes=next_nodes, edges=edge_visibility(edges, next_nodes))


def apply_group_visibility(nodes: Sequence[Node], edges: Sequence[Edge]) -> Flow:
    """Full visibility pass: flags, fresh synthetic edges, then edge flags.

    Prior synthetic edges are dropped and rebuilt from the real edges only.
    """
    hidden_map = ancestor_hidden_map(nodes)
    next_nodes = [node_visibility(n, hidden_map.get(n.id, False)) for n in nodes]
    real_edges = [e for e in edges if not e.is_synthetic]
    synthetic = compute_synthetic_edges(next_nodes, real_edges)
    return Flow(nodes=next_nodes, edges=edge_visibility(real_edges + synthetic, next_nodes))


def refresh(flow: Flow) -> Flow:
    return apply_group_visibility(flow.nodes, flow.edges)

"""Edge-based subtree collapse.

Unlike groups, which follow ``parent_group_id``, a subtree follows outgoing
edges from a root node. Collapsing it hides every node reachable from the
root and marks them ``subtree_hidden`` so the visibility pass keeps them
hidden until the subtree is expanded again.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from flow_groups.model.flow import Edge, Flow, Node
from flow_groups.visibility import apply_group_visibility


def get_all_descendants(node_id: str, nodes: Sequence[Node], edges: Sequence[Edge]) -> list[str]:
    """Ids reachable from ``node_id`` over real edges, breadth first, root excluded."""
    known = {n.id for n in nodes}
    if node_id not in known:
        return []
    outgoing: dict[str, list[str]] = {}
    for edge in edges:
        if edge.is_synthetic:
            continue
        outgoing.setdefault(edge.source, []).append(edge.target)

    visited: set[str] = {node_id}
    order: list[str] = []
    queue: list[str] = [node_id]
    while queue:
        current = queue.pop(0)
        for child in outgoing.get(current, []):
            if child in visited or child not in known:
                continue
            visited.add(child)
            order.append(child)
            queue.append(child)
    return order


def collapse_subtree(flow: Flow, node_id: str, collapsed: bool) -> Flow:
    """Hide (``collapsed=True``) or reveal everything downstream of ``node_id``."""
    root = flow.find_node(node_id)
    if root is None:
        return flow

    descendant_set = set(get_all_descendants(node_id, flow.nodes, flow.edges))
    nodes: list[Node] = []
    for node in flow.nodes:
        if node.id == node_id:
            node = replace(node, data={**node.data, "collapsed": collapsed})
        elif node.id in descendant_set:
            node = replace(node, hidden=collapsed, subtree_hidden=collapsed)
        nodes.append(node)

    edges = [
        replace(e, hidden=collapsed) if e.source in descendant_set or e.target in descendant_set else e
        for e in flow.edges
    ]
    return apply_group_visibility(nodes, edges)

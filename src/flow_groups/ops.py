"""Pure group mutations.

Every function returns a new ``Flow`` and leaves its input untouched. None
of them recompute visibility or synthetic edges; run
``apply_group_visibility`` on the result before handing it to a renderer.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from flow_groups.model.flow import Flow, Node, Point
from flow_groups.types import NodeKind

# New group nodes sit this far above the centroid of their members.
GROUP_POSITION_OFFSET_Y: float = 80


def group_centroid(members: Sequence[Node]) -> Point:
    """Centroid of member positions, shifted up by ``GROUP_POSITION_OFFSET_Y``."""
    if not members:
        return Point(0.0, 0.0)
    cx = sum(m.position.x for m in members) / len(members)
    cy = sum(m.position.y for m in members) / len(members)
    return Point(cx, cy - GROUP_POSITION_OFFSET_Y)


def create_group(
    flow: Flow,
    group_id: str,
    member_ids: Sequence[str],
    label: str | None = None,
    position: Point | None = None,
    collapse: bool = True,
) -> Flow:
    """Wrap ``member_ids`` in a new group node.

    The group takes the members' shared parent, so grouping nodes that already
    sit inside a group creates a sub-group rather than lifting them out.

    Raises:
        ValueError: If ``group_id`` is empty.
    """
    if not group_id:
        raise ValueError("group_id is required")

    member_set = set(member_ids)
    members = [n for n in flow.nodes if n.id in member_set]
    parents = {m.parent_group_id for m in members}
    parent_id = parents.pop() if len(parents) == 1 else None

    nodes = [replace(n, parent_group_id=group_id) if n.id in member_set else n for n in flow.nodes]
    group = Node(
        id=group_id,
        kind=NodeKind.GROUP,
        position=position if position is not None else group_centroid(members),
        parent_group_id=parent_id,
        is_collapsed=collapse,
        hidden=False,
        group_hidden=False,
        label=label,
    )
    nodes.append(group)
    return Flow(nodes=nodes, edges=list(flow.edges))


def ungroup(flow: Flow, group_id: str) -> Flow:
    """Remove a group node and lift its direct members one level up.

    Members move to the removed group's own parent; they only become
    top-level when the group itself was top-level. Unknown ids and
    non-group nodes leave the flow unchanged.
    """
    group = next((n for n in flow.nodes if n.id == group_id and n.is_group), None)
    if group is None:
        return flow

    nodes: list[Node] = []
    for node in flow.nodes:
        if node.id == group_id:
            continue
        if node.parent_group_id == group_id:
            node = replace(
                node,
                parent_group_id=group.parent_group_id,
                hidden=False,
                group_hidden=False,
                subtree_hidden=False,
            )
        nodes.append(node)

    edges = [e for e in flow.edges if e.source != group_id and e.target != group_id]
    return Flow(nodes=nodes, edges=edges)


def toggle_expansion(flow: Flow, group_id: str, collapsed: bool | None = None) -> Flow:
    """Set ``is_collapsed`` on a group, or flip it when ``collapsed`` is None."""
    group = next((n for n in flow.nodes if n.id == group_id and n.is_group), None)
    if group is None:
        return flow

    next_collapsed = (not group.is_collapsed) if collapsed is None else collapsed
    nodes = [
        replace(n, is_collapsed=next_collapsed, hidden=False, group_hidden=False) if n.id == group_id else n
        for n in flow.nodes
    ]
    return Flow(nodes=nodes, edges=list(flow.edges))


def attach_to_group(flow: Flow, node_id: str, group_id: str) -> Flow:
    """Make ``node_id`` a direct member of ``group_id``. Callers validate first."""
    nodes = [replace(n, parent_group_id=group_id) if n.id == node_id else n for n in flow.nodes]
    return Flow(nodes=nodes, edges=list(flow.edges))


def detach_from_group(flow: Flow, node_id: str) -> Flow:
    """Move ``node_id`` out of its group into the group's own parent."""
    by_id = flow.node_map()
    node = by_id.get(node_id)
    if node is None or node.parent_group_id is None:
        return flow
    parent = by_id.get(node.parent_group_id)
    new_parent = parent.parent_group_id if parent is not None else None
    nodes = [replace(n, parent_group_id=new_parent) if n.id == node_id else n for n in flow.nodes]
    return Flow(nodes=nodes, edges=list(flow.edges))

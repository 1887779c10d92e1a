"""Group hierarchy queries over the ``parent_group_id`` relation.

All queries take an explicit node list. Nodes live in one list and every
relation is an id reference, so traversals use explicit stacks with a
visited set and stop quietly on dangling references or cycles left behind
by older data.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from flow_groups.model.flow import Node

logger = logging.getLogger(__name__)


class HierarchyIndex:
    """Id lookup and child lists for a node list, built once per query batch."""

    def __init__(self, nodes: Iterable[Node]) -> None:
        self.nodes: list[Node] = list(nodes)
        self.by_id: dict[str, Node] = {n.id: n for n in self.nodes}
        self.children: dict[str, list[str]] = {}
        for node in self.nodes:
            if node.parent_group_id is not None:
                self.children.setdefault(node.parent_group_id, []).append(node.id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.by_id

    def get(self, node_id: str) -> Node | None:
        return self.by_id.get(node_id)

    def children_of(self, group_id: str) -> list[str]:
        return list(self.children.get(group_id, []))

    def descendant_list(self, group_id: str) -> list[str]:
        """All transitive members of ``group_id`` in discovery order."""
        if group_id not in self.by_id:
            return []
        visited: set[str] = {group_id}
        result: list[str] = []
        stack: list[str] = [group_id]
        while stack:
            current = stack.pop()
            for child_id in self.children.get(current, []):
                if child_id in visited:
                    logger.warning("cycle in group hierarchy at %r under %r", child_id, group_id)
                    continue
                visited.add(child_id)
                result.append(child_id)
                stack.append(child_id)
        return result

    def descendants(self, group_id: str) -> set[str]:
        return set(self.descendant_list(group_id))

    def ancestors(self, node_id: str) -> list[str]:
        """Parent chain of ``node_id``, nearest first."""
        node = self.by_id.get(node_id)
        if node is None:
            return []
        chain: list[str] = []
        seen: set[str] = {node_id}
        parent_id = node.parent_group_id
        while parent_id is not None:
            if parent_id in seen:
                logger.warning("cycle in group hierarchy above %r at %r", node_id, parent_id)
                break
            parent = self.by_id.get(parent_id)
            if parent is None:
                break
            seen.add(parent_id)
            chain.append(parent_id)
            parent_id = parent.parent_group_id
        return chain

    def is_ancestor_of(self, a: str, b: str) -> bool:
        return b in self.descendants(a)


def descendants(group_id: str, nodes: Iterable[Node]) -> set[str]:
    """Transitive closure of members under ``group_id``; never contains ``group_id`` itself."""
    return HierarchyIndex(nodes).descendants(group_id)


def descendant_list(group_id: str, nodes: Iterable[Node]) -> list[str]:
    return HierarchyIndex(nodes).descendant_list(group_id)


def is_ancestor_of(a: str, b: str, nodes: Iterable[Node]) -> bool:
    """True if ``b`` is a (transitive) member of ``a``."""
    return HierarchyIndex(nodes).is_ancestor_of(a, b)


def ancestors(node_id: str, nodes: Iterable[Node]) -> list[str]:
    return HierarchyIndex(nodes).ancestors(node_id)


def children_of(group_id: str, nodes: Iterable[Node]) -> list[str]:
    return HierarchyIndex(nodes).children_of(group_id)


def group_nesting_depth(node_id: str, nodes: Iterable[Node]) -> int:
    """Number of groups enclosing ``node_id``."""
    return len(HierarchyIndex(nodes).ancestors(node_id))

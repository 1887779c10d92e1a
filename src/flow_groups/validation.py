"""Pre-condition checks for group mutations.

Validation never raises: bad requests come from users or the AI assistant
and are reported back as a ``ValidationResult`` with a message naming the
offending ids.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from flow_groups.model.flow import Node
from flow_groups.model.hierarchy import HierarchyIndex


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(valid=True)

    @classmethod
    def fail(cls, error: str) -> ValidationResult:
        return cls(valid=False, error=error)

    def __bool__(self) -> bool:
        return self.valid


def validate_membership(candidate_ids: Sequence[str], nodes: Iterable[Node]) -> ValidationResult:
    """Check that ``candidate_ids`` may form a new group.

    Sub-grouping (all candidates already share a parent) and super-grouping
    (candidates are group nodes) are both allowed. A node may never be
    grouped with one of its own descendants or ancestors.
    """
    if len(candidate_ids) < 2:
        return ValidationResult.fail("Group must contain at least 2 nodes")

    seen: set[str] = set()
    duplicates: list[str] = []
    for node_id in candidate_ids:
        if node_id in seen and node_id not in duplicates:
            duplicates.append(node_id)
        seen.add(node_id)
    if duplicates:
        return ValidationResult.fail(f"Cannot group duplicate nodes: {', '.join(duplicates)}")

    index = HierarchyIndex(nodes)
    for node_id in candidate_ids:
        if node_id not in index:
            return ValidationResult.fail(f"Node {node_id} not found")

    # One traversal per candidate, then an O(n^2) pair check.
    descendant_sets = {node_id: index.descendants(node_id) for node_id in candidate_ids}
    for i, a in enumerate(candidate_ids):
        for b in candidate_ids[i + 1 :]:
            if b in descendant_sets[a]:
                return ValidationResult.fail(f"Cannot group node {a} with its descendant {b}")
            if a in descendant_sets[b]:
                return ValidationResult.fail(f"Cannot group node {b} with its descendant {a}")

    return ValidationResult.ok()


def validate_common_parent(candidate_ids: Sequence[str], nodes: Iterable[Node]) -> ValidationResult:
    """Candidates must share the same direct parent (or all be top-level)."""
    index = HierarchyIndex(nodes)
    parents: dict[str | None, list[str]] = {}
    for node_id in candidate_ids:
        node = index.get(node_id)
        if node is None:
            return ValidationResult.fail(f"Node {node_id} not found")
        parents.setdefault(node.parent_group_id, []).append(node_id)
    if len(parents) > 1:
        nested = [nid for parent, ids in parents.items() if parent is not None for nid in ids]
        return ValidationResult.fail(f"Cannot group nodes from different parent groups: {', '.join(nested)}")
    return ValidationResult.ok()


def validate_group_id(group_id: str, nodes: Iterable[Node]) -> ValidationResult:
    if not group_id:
        return ValidationResult.fail("groupId must not be empty")
    if any(n.id == group_id for n in nodes):
        return ValidationResult.fail(f"Node ID {group_id} already exists")
    return ValidationResult.ok()


def find_group(group_id: str, nodes: Iterable[Node]) -> Node | None:
    for node in nodes:
        if node.id == group_id and node.is_group:
            return node
    return None


def validate_attach(child_id: str, group_id: str, nodes: Iterable[Node]) -> ValidationResult:
    """Check that ``child_id`` can become a direct member of ``group_id``."""
    index = HierarchyIndex(nodes)
    child = index.get(child_id)
    if child is None:
        return ValidationResult.fail(f"Node {child_id} not found")
    group = index.get(group_id)
    if group is None or not group.is_group:
        return ValidationResult.fail(f"Group {group_id} not found")
    if child_id == group_id:
        return ValidationResult.fail(f"Cannot add group {group_id} to itself")
    if index.is_ancestor_of(child_id, group_id):
        return ValidationResult.fail(f"Cannot add {child_id} to its own descendant {group_id}")
    return ValidationResult.ok()

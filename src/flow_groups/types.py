"""Shared type definitions for flow-groups.

Enums and small types used across the model, visibility, halo and layout passes.
"""

from __future__ import annotations

from enum import Enum


class Direction(Enum):
    LR = "LR"
    RL = "RL"
    TB = "TB"
    BT = "BT"

    @classmethod
    def default(cls) -> Direction:
        return cls.LR

    @classmethod
    def parse(cls, value: str | Direction | None) -> Direction:
        """Resolve a direction string ('LR', 'RL', 'TB'/'TD', 'BT'); None gives the default."""
        if value is None:
            return cls.default()
        if isinstance(value, Direction):
            return value
        key = value.upper()
        if key not in _DIRECTION_MAP:
            raise ValueError(f"Unknown direction '{value}'; use LR, RL, TB, or BT")
        return _DIRECTION_MAP[key]

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.LR, Direction.RL)

    @property
    def is_reversed(self) -> bool:
        return self in (Direction.RL, Direction.BT)


_DIRECTION_MAP: dict[str, Direction] = {
    "LR": Direction.LR,
    "RL": Direction.RL,
    "TB": Direction.TB,
    "TD": Direction.TB,
    "BT": Direction.BT,
}


class NodeKind(Enum):
    REGULAR = "default"  # wire type "default"
    GROUP = "group"  # wire type "group"

    @classmethod
    def from_wire(cls, value: str | None) -> NodeKind:
        return cls.GROUP if value == "group" else cls.REGULAR


class GroupDisplayState(Enum):
    """Display state of a group node.

    A collapsed group is drawn as one node and hides its members. An expanded
    group hides its own node and shows its members inside a halo.
    """

    COLLAPSED = "collapsed"
    EXPANDED = "expanded"

    @classmethod
    def from_collapsed(cls, is_collapsed: bool) -> GroupDisplayState:
        return cls.COLLAPSED if is_collapsed else cls.EXPANDED

    @property
    def shows_group_node(self) -> bool:
        return self is GroupDisplayState.COLLAPSED

    @property
    def shows_members(self) -> bool:
        return self is GroupDisplayState.EXPANDED

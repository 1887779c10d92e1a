"""Centralized configuration for flow-groups."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from flow_groups.model.flow import Node, Size

DimensionsFn = Callable[[Node], Size]

# Default node box, shared with the rendering layer.
NODE_WIDTH: float = 172
NODE_HEIGHT: float = 36

RANK_SEP: float = 50
NODE_SEP: float = 50
MEMBER_GAP: float = 80


@dataclass(frozen=True)
class AxisPadding:
    """Halo padding along one axis: ``base`` plus a decaying step per nesting level."""

    base: float = 16
    increment: float = 0
    decay: float = 1
    min_step: float = 0

    @classmethod
    def from_value(cls, value: Any, fallback: AxisPadding) -> AxisPadding:
        """Merge a number (the base) or a partial mapping onto ``fallback``.

        Non-numeric fields fall back to the default rather than failing.
        """
        if _is_number(value):
            return cls(base=value, increment=fallback.increment, decay=fallback.decay, min_step=fallback.min_step)
        if isinstance(value, AxisPadding):
            return value
        if not isinstance(value, Mapping):
            return fallback

        def pick(*keys: str, default: float) -> float:
            for key in keys:
                if _is_number(value.get(key)):
                    return value[key]
            return default

        return cls(
            base=pick("base", default=fallback.base),
            increment=pick("increment", default=fallback.increment),
            decay=pick("decay", default=fallback.decay),
            min_step=pick("min_step", "minStep", default=fallback.min_step),
        )


DEFAULT_X_PADDING = AxisPadding(base=18)
DEFAULT_Y_PADDING = AxisPadding(base=12, increment=8, decay=0.7, min_step=1)


@dataclass(frozen=True)
class HaloPaddingConfig:
    """Padding used around expanded groups. Only the vertical axis grows with depth."""

    x: AxisPadding = DEFAULT_X_PADDING
    y: AxisPadding = DEFAULT_Y_PADDING

    @classmethod
    def from_value(cls, value: Any = None) -> HaloPaddingConfig:
        """Accept None, a number, ``{"base": ...}``, or ``{"x": ..., "y": ...}``."""
        if value is None:
            return cls()
        if isinstance(value, HaloPaddingConfig):
            return value
        if isinstance(value, Mapping) and ("x" in value or "y" in value):
            x_value = value.get("x")
            y_value = value.get("y")
        else:
            x_value = y_value = value
        return cls(
            x=AxisPadding.from_value(x_value, DEFAULT_X_PADDING),
            y=AxisPadding.from_value(y_value, DEFAULT_Y_PADDING),
        )


@dataclass
class LayoutConfig:
    """Configuration for the layered layout pipeline."""

    node_width: float = NODE_WIDTH
    node_height: float = NODE_HEIGHT
    rank_sep: float = RANK_SEP
    node_sep: float = NODE_SEP
    member_gap: float = MEMBER_GAP
    component_gap: float = NODE_SEP
    crossing_passes: int = 24
    coordinate_passes: int = 8
    size_overrides: dict[str, Size] = field(default_factory=dict)

    def dimensions(self, node: Node) -> Size:
        return self.size_overrides.get(node.id, Size(self.node_width, self.node_height))


def default_dimensions(node: Node) -> Size:
    return Size(NODE_WIDTH, NODE_HEIGHT)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)

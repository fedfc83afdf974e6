"""Rollup layers and their per-layer policy constants."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Literal

__all__ = [
    "CHILD_LAYER",
    "DEFAULT_BUFFERS",
    "LAYERS",
    "Layer",
    "LayerPolicy",
    "ROLLUP_LAYERS",
    "get_layer_policy",
    "validate_layer",
]

Layer = Literal["daily", "weekly", "monthly", "yearly"]

LAYERS: tuple[str, ...] = ("daily", "weekly", "monthly", "yearly")

# Layers produced by the engine, bottom-up. "daily" is only ever a child.
ROLLUP_LAYERS: tuple[str, ...] = ("weekly", "monthly", "yearly")

CHILD_LAYER: dict[str, str] = {
    "weekly": "daily",
    "monthly": "weekly",
    "yearly": "monthly",
}

# A full additional period after the period ends. Months and years are
# approximated with a fixed day count.
DEFAULT_BUFFERS: dict[str, timedelta] = {
    "daily": timedelta(days=1),
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
    "yearly": timedelta(days=365),
}


@dataclass(frozen=True)
class LayerPolicy:
    """How one rollup layer is advanced.

    Attributes
    ----------
    layer : str
        Parent layer produced by the rollup
    child_layer : str
        Layer whose summaries feed the rollup
    buffer : timedelta
        Maturation buffer applied after the period's end
    week_start_on : int
        First weekday of a week (0=Monday); only used by weekly windows
    """

    layer: str
    child_layer: str
    buffer: timedelta
    week_start_on: int = 0


def validate_layer(layer: str, *, rollup_only: bool = False) -> str:
    """Return ``layer`` if it is known.

    Raises
    ------
    ValueError
        If the layer is unknown, or is not a rollup layer when
        ``rollup_only`` is set
    """
    allowed = ROLLUP_LAYERS if rollup_only else LAYERS
    if layer not in allowed:
        raise ValueError(f"Unknown layer: {layer!r} (expected one of {', '.join(allowed)})")
    return layer


def get_layer_policy(
    layer: str,
    *,
    buffers: dict[str, timedelta] | None = None,
    week_start_on: int = 0,
) -> LayerPolicy:
    """Build the policy for a rollup layer, with optional buffer overrides."""
    validate_layer(layer, rollup_only=True)
    merged = {**DEFAULT_BUFFERS, **(buffers or {})}
    return LayerPolicy(
        layer=layer,
        child_layer=CHILD_LAYER[layer],
        buffer=merged[layer],
        week_start_on=week_start_on,
    )

"""Structural deltas between two shapes of the same element."""

from .delta import ChangeKind, DeltaFlag, DeltaKind, ElementDelta
from .builder import DeltaBuilder, ShapeNode, diff_shapes, take_snapshot

__all__ = [
    "ChangeKind",
    "DeltaFlag",
    "DeltaKind",
    "ElementDelta",
    "DeltaBuilder",
    "ShapeNode",
    "diff_shapes",
    "take_snapshot",
]

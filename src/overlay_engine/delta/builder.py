"""Snapshot an element's shape before a mutation and diff it afterwards."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from overlay_engine.model.elements import Element, ElementHandle
from overlay_engine.runtime import telemetry

from .delta import DeltaFlag, DeltaKind, ElementDelta


@dataclass(frozen=True, slots=True)
class ShapeNode:
    """Identity, content fingerprint and ordered children of one element."""

    handle: ElementHandle
    fingerprint: Optional[str]
    children: Tuple["ShapeNode", ...] = ()


def take_snapshot(element: Element) -> ShapeNode:
    return ShapeNode(
        handle=element.handle,
        fingerprint=element.fingerprint,
        children=tuple(take_snapshot(child) for child in element.children),
    )


def diff_shapes(before: ShapeNode, after: ShapeNode) -> Optional[ElementDelta]:
    """Return the delta turning ``before`` into ``after``, ``None`` if equal.

    Children match when they share a handle and keep their relative position.
    A child that moved past its siblings is reported as removed from its old
    position and added at its new one. Matched and added children are
    reported in their new order, removed children follow in their old order.
    """

    children = _diff_children(before.children, after.children)
    flags = set()
    if before.fingerprint != after.fingerprint:
        flags.add(DeltaFlag.CONTENT)
    if children:
        flags.add(DeltaFlag.CHILDREN)
    if not flags:
        return None
    return ElementDelta(after.handle, DeltaKind.CHANGED, frozenset(flags), children)


def _diff_children(
    old: Tuple[ShapeNode, ...], new: Tuple[ShapeNode, ...]
) -> Tuple[ElementDelta, ...]:
    previous: Dict[ElementHandle, ShapeNode] = {node.handle: node for node in old}
    stable = _stable_handles(
        [node.handle for node in old],
        [node.handle for node in new if node.handle in previous],
    )
    result: List[ElementDelta] = []
    for node in new:
        if node.handle not in stable:
            result.append(ElementDelta(node.handle, DeltaKind.ADDED))
            continue
        delta = diff_shapes(previous[node.handle], node)
        if delta is not None:
            result.append(delta)
    for node in old:
        if node.handle not in stable:
            result.append(ElementDelta(node.handle, DeltaKind.REMOVED))
    return tuple(result)


def _stable_handles(
    old: Sequence[ElementHandle], new: Sequence[ElementHandle]
) -> Set[ElementHandle]:
    """Handles of the longest run of children that kept their relative order.

    Ties prefer keeping the child that comes later in the old order, so the
    result only depends on the two sequences.
    """

    rows, cols = len(old), len(new)
    common = [[0] * (cols + 1) for _ in range(rows + 1)]
    for i in range(rows - 1, -1, -1):
        for j in range(cols - 1, -1, -1):
            if old[i] == new[j]:
                common[i][j] = common[i + 1][j + 1] + 1
            else:
                common[i][j] = max(common[i + 1][j], common[i][j + 1])

    stable: Set[ElementHandle] = set()
    i = j = 0
    while i < rows and j < cols:
        if old[i] == new[j]:
            stable.add(old[i])
            i += 1
            j += 1
        elif common[i + 1][j] >= common[i][j + 1]:
            i += 1
        else:
            j += 1
    return stable


class DeltaBuilder:
    """Remembers the shape of ``element`` at construction time.

    The element must be consistent when the builder is created; the snapshot
    of an inconsistent element describes stale structure.
    """

    def __init__(self, element: Element) -> None:
        self.element = element
        self.before = take_snapshot(element)
        self.delta: Optional[ElementDelta] = None

    def build_deltas(self) -> Optional[ElementDelta]:
        after = take_snapshot(self.element)
        self.delta = diff_shapes(self.before, after)
        telemetry.record_event(
            "delta.built",
            level="debug",
            data={
                "element": str(self.element.handle),
                "records": sum(1 for _ in self.delta.walk()) if self.delta else 0,
            },
        )
        return self.delta


__all__ = ["DeltaBuilder", "ShapeNode", "diff_shapes", "take_snapshot"]

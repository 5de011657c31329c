"""Structural change records emitted after a unit changed."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple

from overlay_engine.model.elements import ElementHandle


class DeltaKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class DeltaFlag(str, Enum):
    CONTENT = "content"
    CHILDREN = "children"


class ChangeKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CONTENT_CHANGED = "content-changed"
    CHILDREN_CHANGED = "children-changed"


_KIND_MARKS = {DeltaKind.ADDED: "+", DeltaKind.REMOVED: "-", DeltaKind.CHANGED: "*"}


@dataclass(frozen=True, slots=True)
class ElementDelta:
    """One affected element plus the deltas of its affected children."""

    handle: ElementHandle
    kind: DeltaKind
    flags: FrozenSet[DeltaFlag] = frozenset()
    children: Tuple["ElementDelta", ...] = ()

    def has_flag(self, flag: DeltaFlag) -> bool:
        return flag in self.flags

    def change_kinds(self) -> FrozenSet[ChangeKind]:
        if self.kind is DeltaKind.ADDED:
            return frozenset({ChangeKind.ADDED})
        if self.kind is DeltaKind.REMOVED:
            return frozenset({ChangeKind.REMOVED})
        kinds = set()
        if DeltaFlag.CONTENT in self.flags:
            kinds.add(ChangeKind.CONTENT_CHANGED)
        if DeltaFlag.CHILDREN in self.flags:
            kinds.add(ChangeKind.CHILDREN_CHANGED)
        return frozenset(kinds)

    def affected_children(self, kind: Optional[DeltaKind] = None) -> Tuple["ElementDelta", ...]:
        if kind is None:
            return self.children
        return tuple(child for child in self.children if child.kind is kind)

    def added_children(self) -> Tuple["ElementDelta", ...]:
        return self.affected_children(DeltaKind.ADDED)

    def removed_children(self) -> Tuple["ElementDelta", ...]:
        return self.affected_children(DeltaKind.REMOVED)

    def changed_children(self) -> Tuple["ElementDelta", ...]:
        return self.affected_children(DeltaKind.CHANGED)

    def walk(self) -> Iterator["ElementDelta"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, path: Sequence[str]) -> Optional["ElementDelta"]:
        wanted = tuple(path)
        return next((delta for delta in self.walk() if delta.handle.path == wanted), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": list(self.handle.path),
            "element_kind": self.handle.kind.value,
            "occurrence": self.handle.occurrence,
            "kind": self.kind.value,
            "flags": sorted(flag.value for flag in self.flags),
            "children": [child.to_dict() for child in self.children],
        }

    def __str__(self) -> str:
        lines: List[str] = []
        self._render(lines, 0)
        return "\n".join(lines)

    def _render(self, lines: List[str], depth: int) -> None:
        flags = ", ".join(sorted(flag.value.upper() for flag in self.flags))
        lines.append(
            f"{'  ' * depth}{self.handle.name}[{_KIND_MARKS[self.kind]}]: {{{flags}}}"
        )
        for child in self.children:
            child._render(lines, depth + 1)


__all__ = ["ChangeKind", "DeltaFlag", "DeltaKind", "ElementDelta"]

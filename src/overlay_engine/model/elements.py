"""Generic element tree: named nodes kept in an id arena."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence, Tuple


class ElementKind(str, Enum):
    PROJECT = "project"
    ROOT = "root"
    FOLDER = "folder"
    UNIT = "unit"
    CLASS = "class"
    FUNCTION = "function"
    VARIABLE = "variable"


DECLARATION_KINDS = frozenset({ElementKind.CLASS, ElementKind.FUNCTION, ElementKind.VARIABLE})


@dataclass(frozen=True, slots=True)
class ElementHandle:
    """Identity of an element: its name path plus the kind discriminator."""

    path: Tuple[str, ...]
    kind: ElementKind
    occurrence: int = 1

    @property
    def name(self) -> str:
        return self.path[-1] if self.path else ""

    def __str__(self) -> str:
        label = "/".join(self.path)
        if self.occurrence > 1:
            label = f"{label}#{self.occurrence}"
        return f"{label} [{self.kind.value}]"


class ElementTree:
    """Arena that hands out element ids and resolves them back.

    Parents point at children through owned lists; children only remember
    their parent's id and look it up here.
    """

    def __init__(self) -> None:
        self._slots: Dict[int, "Element"] = {}
        self._ids = itertools.count(1)
        self.root: Optional["Element"] = None

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator["Element"]:
        return iter(list(self._slots.values()))

    def register(self, element: "Element") -> int:
        element_id = next(self._ids)
        self._slots[element_id] = element
        if self.root is None and element.parent_id is None:
            self.root = element
        return element_id

    def lookup(self, element_id: Optional[int]) -> Optional["Element"]:
        if element_id is None:
            return None
        return self._slots.get(element_id)

    def contains(self, element: "Element") -> bool:
        return self._slots.get(element.id) is element

    def release(self, element: "Element") -> None:
        """Free ``element`` and its whole subtree from the arena."""

        for child in element._children:
            self.release(child)
        element._children = []
        self._slots.pop(element.id, None)

    def find(
        self, path: Sequence[str], kind: Optional[ElementKind] = None
    ) -> Optional["Element"]:
        node = self.root
        if node is None or not path or path[0] != node.name:
            return None
        for name in path[1:]:
            node = next((child for child in node._children if child.name == name), None)
            if node is None:
                return None
        if kind is not None and node.kind is not kind:
            return None
        return node


class Element:
    """Node of an ``ElementTree``.

    Containers are always open and consistent; units override both to track
    the state of their buffer.
    """

    def __init__(
        self,
        tree: ElementTree,
        name: str,
        kind: ElementKind,
        *,
        parent: Optional["Element"] = None,
        occurrence: int = 1,
    ) -> None:
        if not name:
            raise ValueError("element name cannot be empty")
        self.tree = tree
        self.name = name
        self.kind = kind
        self.occurrence = occurrence
        self.parent_id = parent.id if parent is not None else None
        self._children: List[Element] = []
        self.id = tree.register(self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.handle}>"

    @property
    def parent(self) -> Optional["Element"]:
        return self.tree.lookup(self.parent_id)

    @property
    def children(self) -> Tuple["Element", ...]:
        return tuple(self._children)

    @property
    def path(self) -> Tuple[str, ...]:
        names: List[str] = []
        node: Optional[Element] = self
        while node is not None:
            names.append(node.name)
            node = node.parent
        return tuple(reversed(names))

    @property
    def handle(self) -> ElementHandle:
        return ElementHandle(self.path, self.kind, self.occurrence)

    @property
    def fingerprint(self) -> Optional[str]:
        return None

    def is_open(self) -> bool:
        return True

    def is_consistent(self) -> bool:
        return True

    def is_attached(self) -> bool:
        """Whether the element is still part of the canonical tree."""

        if not self.tree.contains(self):
            return False
        parent = self.parent
        if parent is None:
            return self.tree.root is self
        return any(child is self for child in parent._children) and parent.is_attached()

    def ancestor(self, kind: ElementKind) -> Optional["Element"]:
        node = self.parent
        while node is not None:
            if node.kind is kind:
                return node
            node = node.parent
        return None

    def child(self, name: str, kind: Optional[ElementKind] = None) -> Optional["Element"]:
        for candidate in self._children:
            if candidate.name == name and (kind is None or candidate.kind is kind):
                return candidate
        return None

    def add_child(self, child: "Element") -> "Element":
        if child.parent_id != self.id:
            raise ValueError(f"{child!r} was not created under {self!r}")
        if any(existing is child for existing in self._children):
            return child
        self._children.append(child)
        return child

    def remove_child(self, child: "Element") -> None:
        self._children = [existing for existing in self._children if existing is not child]
        self.tree.release(child)

    def walk(self) -> Iterator["Element"]:
        yield self
        for child in self._children:
            yield from child.walk()


__all__ = [
    "DECLARATION_KINDS",
    "Element",
    "ElementHandle",
    "ElementKind",
    "ElementTree",
]

"""Source units, their declarations, and working-copy overlays."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Tuple, Union

from overlay_engine.buffer import Buffer, BufferBacking
from overlay_engine.runtime import telemetry
from overlay_engine.status import InvalidElementKind
from overlay_engine.store.base import Marker

from .elements import Element, ElementKind, ElementTree
from .outline import Outline, OutlineEntry, parse_outline

if TYPE_CHECKING:
    from .project import Project


@dataclass(frozen=True, slots=True)
class DetachedOrigin:
    """Overlay with its own buffer, cloned from a distinct primary."""

    primary: "SourceUnit"


@dataclass(frozen=True, slots=True)
class PrimaryOrigin:
    """Overlay that is its own primary and edits the shared buffer in place."""


OverlayOrigin = Union[DetachedOrigin, PrimaryOrigin]


class Declaration(Element):
    """Class, function or variable declared inside a unit."""

    def __init__(
        self,
        tree: ElementTree,
        entry: OutlineEntry,
        *,
        parent: Element,
        occurrence: int = 1,
    ) -> None:
        super().__init__(tree, entry.name, entry.kind, parent=parent, occurrence=occurrence)
        self._fingerprint = entry.fingerprint
        self.start_line = entry.start_line
        self.end_line = entry.end_line

    @property
    def fingerprint(self) -> str:
        return self._fingerprint


class SourceUnit(Element):
    """A ``.py`` module of the model, bound to one resource in the store.

    Opening a unit loads its buffer and parses it into declarations. The unit
    is consistent while its declarations were derived from the buffer's
    current version.
    """

    def __init__(self, tree: ElementTree, name: str, *, parent: Element) -> None:
        super().__init__(tree, name, ElementKind.UNIT, parent=parent)
        self.origin: Optional[OverlayOrigin] = None
        self._buffer: Optional[Buffer] = None
        self._structure_version: Optional[int] = None
        self._fingerprint: Optional[str] = None
        self._problems: Tuple[str, ...] = ()
        self._marker: Optional[Marker] = None

    # -- resource -----------------------------------------------------------

    @property
    def project(self) -> "Project":
        project = self.ancestor(ElementKind.PROJECT)
        if project is None:
            raise RuntimeError(f"{self!r} does not belong to a project")
        return project  # type: ignore[return-value]

    @property
    def resource_path(self) -> str:
        return "/".join(self.path[1:])

    @property
    def marker(self) -> Optional[Marker]:
        return self._marker

    def resource_exists(self) -> bool:
        return self.project.store.exists(self.resource_path)

    def backing(self) -> BufferBacking:
        project = self.project
        return BufferBacking(
            store=project.store,
            path=self.resource_path,
            encoding=project.encoding_for(self),
            keep_history=project.options.keep_history,
        )

    def has_resource_changed(self) -> bool:
        """Whether the store recorded a modification since the last sync point."""

        return self._marker != self.project.store.modification_marker(self.resource_path)

    def update_timestamp(self) -> None:
        self._marker = self.project.store.modification_marker(self.resource_path)

    # -- lifecycle ----------------------------------------------------------

    def is_open(self) -> bool:
        return self._buffer is not None and not self._buffer.is_closed()

    def open(self) -> "SourceUnit":
        if self.is_open():
            return self
        buffer = Buffer.load(self.backing(), name=self.resource_path, owner=self)
        self._attach_buffer(buffer)
        self._marker = buffer.marker
        self.make_consistent()
        return self

    def close(self) -> None:
        if self._buffer is not None:
            self._buffer.close()
        self._buffer = None
        self._structure_version = None
        for child in self.children:
            self.remove_child(child)

    @property
    def buffer(self) -> Buffer:
        if not self.is_open():
            self.open()
        assert self._buffer is not None
        return self._buffer

    @property
    def source(self) -> str:
        return self.buffer.contents

    @property
    def fingerprint(self) -> Optional[str]:
        return self._fingerprint

    @property
    def problems(self) -> Tuple[str, ...]:
        return self._problems

    def is_consistent(self) -> bool:
        if not self.is_open():
            return True
        return self._structure_version == self.buffer.version

    def make_consistent(self) -> None:
        """Re-derive the declarations from the current buffer contents."""

        buffer = self.buffer
        if self._structure_version == buffer.version:
            return
        outline = parse_outline(buffer.contents)
        self._rebuild(outline)
        self._structure_version = buffer.version

    def _rebuild(self, outline: Outline) -> None:
        for child in self.children:
            self.remove_child(child)
        _populate(self, outline.children)
        self._fingerprint = outline.fingerprint
        self._problems = outline.problems

    def _attach_buffer(self, buffer: Buffer) -> None:
        buffer.subscribe("saved", self._on_saved)
        self._buffer = buffer

    def _on_saved(self, buffer: Buffer, marker: object) -> None:
        del buffer
        self._marker = marker

    # -- working copies -------------------------------------------------------

    def is_working_copy(self) -> bool:
        return self.origin is not None

    def is_primary(self) -> bool:
        return not isinstance(self.origin, DetachedOrigin)

    @property
    def primary(self) -> "SourceUnit":
        if isinstance(self.origin, DetachedOrigin):
            return self.origin.primary
        return self

    def working_copy(self) -> "SourceUnit":
        """Create a detached overlay cloned from this unit.

        The overlay is registered in the arena under this unit's parent but
        is not one of the parent's children, so edits never leak into the
        canonical tree before a commit.
        """

        if isinstance(self.origin, DetachedOrigin):
            raise InvalidElementKind("cannot clone a detached working copy", element=self)
        parent = self.parent
        if parent is None:
            raise RuntimeError(f"{self!r} has no parent")

        if self.is_open():
            text, marker = self.buffer.contents, self._marker
        else:
            text, marker = self.backing().load()

        overlay = SourceUnit(self.tree, self.name, parent=parent)
        overlay.origin = DetachedOrigin(self)
        overlay._attach_buffer(
            Buffer.from_text(text, name=f"{self.resource_path} (working copy)", owner=overlay)
        )
        overlay._marker = marker
        overlay.make_consistent()
        telemetry.record_event(
            "unit.working_copy",
            level="debug",
            data={"unit": self.resource_path, "open": self.is_open()},
        )
        return overlay

    def become_working_copy(self) -> "SourceUnit":
        """Turn this unit into its own primary overlay, sharing its buffer."""

        if isinstance(self.origin, DetachedOrigin):
            raise InvalidElementKind("a detached working copy cannot become primary", element=self)
        self.open()
        self.origin = PrimaryOrigin()
        return self

    def discard_working_copy(self) -> None:
        """Drop the overlay; in-place edits are forgotten and reloaded on demand."""

        if self.origin is None:
            return
        detached = isinstance(self.origin, DetachedOrigin)
        self.origin = None
        self.close()
        if detached:
            self.tree.release(self)


def _populate(parent: Element, entries: Tuple[OutlineEntry, ...]) -> None:
    seen: Dict[Tuple[str, ElementKind], int] = {}
    for entry in entries:
        key = (entry.name, entry.kind)
        seen[key] = seen.get(key, 0) + 1
        declaration = Declaration(parent.tree, entry, parent=parent, occurrence=seen[key])
        parent.add_child(declaration)
        _populate(declaration, entry.children)


__all__ = [
    "Declaration",
    "DetachedOrigin",
    "OverlayOrigin",
    "PrimaryOrigin",
    "SourceUnit",
]

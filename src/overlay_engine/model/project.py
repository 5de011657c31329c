"""Project root, build roots and folders of the canonical tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from overlay_engine.runtime.config import EngineSettings, load_settings
from overlay_engine.store.base import ResourceStore, normalize_path

from .elements import Element, ElementKind, ElementTree
from .patterns import PathPattern, compile_patterns, is_excluded
from .units import SourceUnit


@dataclass(frozen=True, slots=True)
class ProjectOptions:
    encoding: Optional[str] = None
    keep_history: bool = True

    @classmethod
    def from_settings(cls, settings: EngineSettings | None = None) -> "ProjectOptions":
        settings = settings or load_settings()
        return cls(encoding=settings.encoding, keep_history=settings.keep_history)


class BuildRoot(Element):
    """Folder whose units take part in the build, filtered by path patterns."""

    def __init__(
        self,
        tree: ElementTree,
        name: str,
        *,
        parent: Element,
        inclusion_patterns: Iterable[str | PathPattern] = (),
        exclusion_patterns: Iterable[str | PathPattern] = (),
        on_build_path: bool = True,
    ) -> None:
        super().__init__(tree, name, ElementKind.ROOT, parent=parent)
        self.inclusion_patterns: Tuple[PathPattern, ...] = compile_patterns(inclusion_patterns)
        self.exclusion_patterns: Tuple[PathPattern, ...] = compile_patterns(exclusion_patterns)
        self.on_build_path = on_build_path

    def relative_path(self, element: Element) -> str:
        return "/".join(element.path[len(self.path):])

    def excludes(self, element: Element) -> bool:
        return is_excluded(
            self.relative_path(element), self.inclusion_patterns, self.exclusion_patterns
        )


class Project(Element):
    """Root of a canonical tree, owning the store its units persist to."""

    def __init__(
        self,
        name: str,
        store: ResourceStore,
        *,
        options: ProjectOptions | None = None,
    ) -> None:
        super().__init__(ElementTree(), name, ElementKind.PROJECT)
        self.store = store
        self.options = options or ProjectOptions.from_settings()

    def encoding_for(self, element: Element) -> Optional[str]:
        """Configured text encoding; ``None`` means the platform default."""

        del element
        return self.options.encoding

    def add_root(
        self,
        name: str,
        *,
        inclusion_patterns: Iterable[str] = (),
        exclusion_patterns: Iterable[str] = (),
        on_build_path: bool = True,
    ) -> BuildRoot:
        root = BuildRoot(
            self.tree,
            name,
            parent=self,
            inclusion_patterns=inclusion_patterns,
            exclusion_patterns=exclusion_patterns,
            on_build_path=on_build_path,
        )
        return self.add_child(root)  # type: ignore[return-value]

    def add_folder(self, parent: Element, name: str) -> Element:
        existing = parent.child(name)
        if existing is not None:
            return existing
        return parent.add_child(Element(self.tree, name, ElementKind.FOLDER, parent=parent))

    def add_unit(self, parent: Element, name: str) -> SourceUnit:
        existing = parent.child(name, ElementKind.UNIT)
        if existing is not None:
            return existing  # type: ignore[return-value]
        return parent.add_child(SourceUnit(self.tree, name, parent=parent))  # type: ignore[return-value]

    def roots(self) -> Tuple[BuildRoot, ...]:
        return tuple(child for child in self.children if isinstance(child, BuildRoot))

    def unit(self, resource_path: str) -> Optional[SourceUnit]:
        path = (self.name, *normalize_path(resource_path).split("/"))
        found = self.tree.find(path, ElementKind.UNIT)
        return found if isinstance(found, SourceUnit) else None


__all__ = ["BuildRoot", "Project", "ProjectOptions"]

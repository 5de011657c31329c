"""Decides whether a unit takes part in the build."""

from __future__ import annotations

import keyword
from typing import Optional, Protocol

from .elements import ElementKind
from .project import BuildRoot
from .units import SourceUnit

UNIT_SUFFIX = ".py"


def is_valid_unit_name(name: str) -> bool:
    if not name.endswith(UNIT_SUFFIX):
        return False
    stem = name[: -len(UNIT_SUFFIX)]
    return stem.isidentifier() and not keyword.iskeyword(stem)


class MembershipPredicate(Protocol):
    def is_managed(self, unit: SourceUnit) -> bool:
        """Inside a live build root, reachable in the store, validly named."""
        ...

    def is_excluded(self, unit: SourceUnit) -> bool:
        """Filtered out by the owning root's inclusion/exclusion patterns."""
        ...


class BuildMembership:
    """Default predicate driven by the project's build roots."""

    def build_root(self, unit: SourceUnit) -> Optional[BuildRoot]:
        root = unit.ancestor(ElementKind.ROOT)
        return root if isinstance(root, BuildRoot) else None

    def is_excluded(self, unit: SourceUnit) -> bool:
        root = self.build_root(unit)
        if root is None:
            return False
        return root.excludes(unit)

    def is_managed(self, unit: SourceUnit) -> bool:
        root = self.build_root(unit)
        if root is None or not root.on_build_path or not root.is_attached():
            return False
        if not unit.resource_exists():
            return False
        return is_valid_unit_name(unit.name)


__all__ = [
    "BuildMembership",
    "MembershipPredicate",
    "UNIT_SUFFIX",
    "is_valid_unit_name",
]

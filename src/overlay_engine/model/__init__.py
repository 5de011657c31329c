"""Canonical source model: element arena, units, overlays and build roots."""

from .elements import DECLARATION_KINDS, Element, ElementHandle, ElementKind, ElementTree
from .outline import Outline, OutlineEntry, parse_outline
from .units import Declaration, DetachedOrigin, OverlayOrigin, PrimaryOrigin, SourceUnit
from .patterns import PathPattern, compile_patterns, is_excluded
from .project import BuildRoot, Project, ProjectOptions
from .membership import BuildMembership, MembershipPredicate, is_valid_unit_name

__all__ = [
    "DECLARATION_KINDS",
    "Element",
    "ElementHandle",
    "ElementKind",
    "ElementTree",
    "Outline",
    "OutlineEntry",
    "parse_outline",
    "Declaration",
    "DetachedOrigin",
    "OverlayOrigin",
    "PrimaryOrigin",
    "SourceUnit",
    "PathPattern",
    "compile_patterns",
    "is_excluded",
    "BuildRoot",
    "Project",
    "ProjectOptions",
    "BuildMembership",
    "MembershipPredicate",
    "is_valid_unit_name",
]

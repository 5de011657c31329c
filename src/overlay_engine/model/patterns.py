"""Inclusion/exclusion path patterns for build roots.

Patterns are relative, ``/``-separated and case-sensitive. ``*`` matches any
run of characters inside one segment, ``?`` exactly one character, and a
``**`` segment matches zero or more whole segments. A trailing ``/`` is short
for ``/**``, so ``tests/`` matches everything below ``tests``.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple


@dataclass(frozen=True, slots=True)
class PathPattern:
    pattern: str
    segments: Tuple[str, ...]

    @classmethod
    def parse(cls, pattern: str) -> "PathPattern":
        text = pattern.replace("\\", "/").lstrip("/")
        if not text:
            raise ValueError("pattern cannot be empty")
        if text.endswith("/"):
            text += "**"
        segments = tuple(segment for segment in text.split("/") if segment)
        return cls(pattern=pattern, segments=segments)

    def matches(self, path: str) -> bool:
        parts = tuple(part for part in path.split("/") if part)
        return _match(self.segments, parts)


def compile_patterns(patterns: Iterable[str | PathPattern]) -> Tuple[PathPattern, ...]:
    return tuple(
        pattern if isinstance(pattern, PathPattern) else PathPattern.parse(pattern)
        for pattern in patterns
    )


def is_excluded(
    path: str,
    inclusion: Sequence[PathPattern] = (),
    exclusion: Sequence[PathPattern] = (),
) -> bool:
    """Exclusion wins over inclusion; no inclusion patterns means ``**``."""

    if any(pattern.matches(path) for pattern in exclusion):
        return True
    if inclusion and not any(pattern.matches(path) for pattern in inclusion):
        return True
    return False


def _match(pattern: Sequence[str], parts: Sequence[str]) -> bool:
    if not pattern:
        return not parts
    head = pattern[0]
    if head == "**":
        return any(_match(pattern[1:], parts[index:]) for index in range(len(parts) + 1))
    if not parts:
        return False
    return _segment_matches(head, parts[0]) and _match(pattern[1:], parts[1:])


def _segment_matches(pattern: str, segment: str) -> bool:
    # fnmatch would treat [...] as a character class.
    return fnmatch.fnmatchcase(segment, pattern.replace("[", "[[]"))


__all__ = ["PathPattern", "compile_patterns", "is_excluded"]

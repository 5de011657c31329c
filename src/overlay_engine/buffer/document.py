"""Core document data structure for overlay_engine buffers."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace

_REVISIONS = itertools.count(1)


def next_revision() -> int:
    return next(_REVISIONS)


@dataclass(frozen=True, slots=True)
class BufferDocument:
    """Immutable text snapshot.

    Versions come from a process-wide counter, so two documents never share a
    version even after a rollback reinstates an older one. ``dirty`` means the
    text has not been written to the store yet.
    """

    text: str = ""
    version: int = field(default_factory=next_revision)
    dirty: bool = False

    @classmethod
    def from_text(cls, text: str, *, dirty: bool = False) -> "BufferDocument":
        return cls(text=text, dirty=dirty)

    def replace(self, *, text: str, dirty: bool | None = None) -> "BufferDocument":
        """Return a new document with ``text`` and a fresh version."""

        return BufferDocument(text=text, dirty=self.dirty if dirty is None else dirty)

    def update_range(self, start: int, end: int, new_text: str) -> "BufferDocument":
        """Return a dirty document with ``text[start:end]`` replaced by ``new_text``."""

        if start < 0 or end < start or end > len(self.text):
            raise IndexError(f"Range [{start}:{end}] outside document of {len(self.text)}")
        return BufferDocument(
            text=self.text[:start] + new_text + self.text[end:], dirty=True
        )

    def mark_clean(self) -> "BufferDocument":
        return replace(self, dirty=False)

    @property
    def length(self) -> int:
        return len(self.text)


__all__ = ["BufferDocument", "next_revision"]

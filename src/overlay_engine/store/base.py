"""Contract between the model and whatever persists unit contents."""

from __future__ import annotations

from typing import Hashable, Optional, Protocol, Sequence, runtime_checkable

Marker = Hashable


class StoreError(RuntimeError):
    """Raised by stores when a read or write cannot be applied.

    ``reason`` is one of ``missing``, ``read_only``, ``out_of_sync`` or
    ``io``; a failed write never leaves partial content behind.
    """

    def __init__(self, message: str, *, path: str | None = None, reason: str = "io"):
        super().__init__(message)
        self.path = path
        self.reason = reason


@runtime_checkable
class ResourceStore(Protocol):
    """Byte-level persistence addressed by ``/``-separated relative paths."""

    def exists(self, path: str) -> bool:
        """Return whether a resource is currently reachable at ``path``."""
        ...

    def read_bytes(self, path: str) -> bytes:
        """Return the full content of ``path`` or raise ``StoreError``."""
        ...

    def write_bytes(
        self,
        path: str,
        data: bytes,
        *,
        overwrite: bool = False,
        keep_history: bool = False,
    ) -> Marker:
        """Replace or create ``path`` with ``data`` in one all-or-nothing step.

        ``overwrite`` permits replacing content the store knows to be out of
        sync with what it last handed out. ``keep_history`` preserves the
        previous content when the resource already exists. Returns the new
        modification marker.
        """
        ...

    def modification_marker(self, path: str) -> Optional[Marker]:
        """Opaque marker of the last modification event, ``None`` if missing."""
        ...

    def history(self, path: str) -> Sequence[bytes]:
        """Previous contents preserved by ``keep_history`` writes, oldest first."""
        ...


def normalize_path(path: str) -> str:
    parts = [part for part in path.replace("\\", "/").split("/") if part not in ("", ".")]
    if any(part == ".." for part in parts):
        raise StoreError(f"Path '{path}' escapes the store", path=path)
    return "/".join(parts)


__all__ = ["Marker", "ResourceStore", "StoreError", "normalize_path"]

"""Boundary between buffers and the persisted store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from overlay_engine.runtime.config import platform_encoding
from overlay_engine.status import EncodingFailure, ModelError, StoreWriteFailure
from overlay_engine.store.base import Marker, ResourceStore, StoreError


class BufferStateError(RuntimeError):
    """Raised when a buffer is used in a state that does not allow the call."""

    def __init__(self, message: str, *, buffer_name: str | None = None) -> None:
        super().__init__(message)
        self.buffer_name = buffer_name


@dataclass(frozen=True, slots=True)
class BufferBacking:
    """Where a buffer loads from and saves to, and with which encoding."""

    store: ResourceStore
    path: str
    encoding: Optional[str] = None
    keep_history: bool = True

    @property
    def resolved_encoding(self) -> str:
        return self.encoding or platform_encoding()

    def exists(self) -> bool:
        return self.store.exists(self.path)

    def marker(self) -> Optional[Marker]:
        return self.store.modification_marker(self.path)

    def load(self) -> Tuple[str, Optional[Marker]]:
        """Return the decoded content and its marker; missing resources read as empty."""

        if not self.store.exists(self.path):
            return "", None
        try:
            raw = self.store.read_bytes(self.path)
        except StoreError as exc:
            raise ModelError(f"Cannot read '{self.path}': {exc}") from exc
        try:
            text = raw.decode(self.resolved_encoding)
        except (LookupError, UnicodeDecodeError) as exc:
            raise EncodingFailure(
                f"Cannot decode '{self.path}' as {self.resolved_encoding}: {exc}"
            ) from exc
        return text, self.store.modification_marker(self.path)

    def encode(self, text: str) -> bytes:
        try:
            return text.encode(self.resolved_encoding)
        except (LookupError, UnicodeEncodeError) as exc:
            raise EncodingFailure(
                f"Cannot encode '{self.path}' as {self.resolved_encoding}: {exc}"
            ) from exc

    def persist(self, text: str, *, force: bool = False) -> Marker:
        data = self.encode(text)
        try:
            return self.store.write_bytes(
                self.path, data, overwrite=force, keep_history=self.keep_history
            )
        except StoreError as exc:
            raise StoreWriteFailure(f"Cannot save '{self.path}': {exc}") from exc


__all__ = ["BufferBacking", "BufferStateError"]

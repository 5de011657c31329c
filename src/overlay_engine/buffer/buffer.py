"""Mutable text content bound to one unit, with save and rollback support."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Callable, ContextManager, Dict, List, Optional

from overlay_engine.runtime import telemetry
from overlay_engine.store.base import Marker

from .document import BufferDocument
from .sync import BufferBacking, BufferStateError

BufferListener = Callable[["Buffer", object], None]

BUFFER_EVENTS = ("changed", "saved", "closed")


class Buffer:
    def __init__(
        self,
        *,
        name: str = "buffer",
        owner: object | None = None,
        backing: Optional[BufferBacking] = None,
        document: Optional[BufferDocument] = None,
        marker: Optional[Marker] = None,
    ) -> None:
        self.name = name
        self.owner = owner
        self.backing = backing
        self.document = document or BufferDocument()
        self.marker = marker
        self._closed = False
        self._listeners: Dict[str, List[BufferListener]] = {}

    @classmethod
    def from_text(
        cls, text: str, *, name: str = "buffer", owner: object | None = None
    ) -> "Buffer":
        return cls(name=name, owner=owner, document=BufferDocument.from_text(text))

    @classmethod
    def load(
        cls, backing: BufferBacking, *, name: str | None = None, owner: object | None = None
    ) -> "Buffer":
        text, marker = backing.load()
        return cls(
            name=name or backing.path,
            owner=owner,
            backing=backing,
            document=BufferDocument.from_text(text),
            marker=marker,
        )

    @property
    def contents(self) -> str:
        return self.document.text

    @property
    def version(self) -> int:
        return self.document.version

    def is_synchronized(self) -> bool:
        return not self.document.dirty

    def has_unsaved_changes(self) -> bool:
        return self.document.dirty

    def is_closed(self) -> bool:
        return self._closed

    def set_contents(self, text: str) -> None:
        self._ensure_open()
        self.document = self.document.replace(text=text, dirty=True)
        self._emit("changed", self.document.version)

    def replace(self, offset: int, length: int, text: str) -> None:
        self._ensure_open()
        self.document = self.document.update_range(offset, offset + length, text)
        self._emit("changed", self.document.version)

    def append(self, text: str) -> None:
        self.replace(self.document.length, 0, text)

    def restore(self, document: BufferDocument) -> None:
        """Reinstate a previously held document, version and sync flag included."""

        self._ensure_open()
        self.document = document
        self._emit("changed", document.version)

    def save(self, *, force: bool = False) -> Optional[Marker]:
        """Write the contents through the backing store.

        A synchronized buffer is only written again when ``force`` is set.
        """

        self._ensure_open()
        if self.backing is None:
            raise BufferStateError(
                f"Buffer '{self.name}' has no backing resource", buffer_name=self.name
            )
        if not self.document.dirty and not force:
            return self.marker

        with telemetry.span(
            "buffer::save",
            component="buffer",
            metadata={"buffer": self.name, "force": force},
        ):
            marker = self.backing.persist(self.document.text, force=force)

        self.document = self.document.mark_clean()
        self.marker = marker
        self._emit("saved", marker)
        return marker

    def transaction(self, label: str) -> "Transaction":
        return Transaction(self, label)

    def subscribe(self, event: str, callback: BufferListener) -> None:
        if event not in BUFFER_EVENTS:
            raise ValueError(f"Unknown buffer event '{event}'")
        self._listeners.setdefault(event, []).append(callback)

    def unsubscribe(self, event: str, callback: BufferListener) -> None:
        callbacks = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def close(self) -> None:
        if self._closed:
            return
        self._emit("closed", None)
        self._closed = True
        self._listeners.clear()

    def _emit(self, event: str, payload: object) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(self, payload)

    def _ensure_open(self) -> None:
        if self._closed:
            raise BufferStateError(f"Buffer '{self.name}' is closed", buffer_name=self.name)


class Transaction(AbstractContextManager["Transaction"]):
    """Holds back the buffer's document and reinstates it if the block raises.

    The held copy only lives for one ``with`` block; it is dropped on both
    success and failure.
    """

    def __init__(self, buffer: Buffer, label: str) -> None:
        self.buffer = buffer
        self.label = label
        self.rolled_back = False
        self._held: Optional[BufferDocument] = None
        self._span_cm: Optional[ContextManager[object]] = None

    @property
    def held_document(self) -> Optional[BufferDocument]:
        return self._held

    def __enter__(self) -> "Transaction":
        self._held = self.buffer.document
        self._span_cm = telemetry.span(
            name=f"buffer::{self.label}",
            component=True,
            metadata={"buffer": self.buffer.name},
        )
        self._span_cm.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc_type is not None and self._held is not None:
                self.buffer.restore(self._held)
                self.rolled_back = True
                telemetry.record_event(
                    "buffer.rollback",
                    level="warning",
                    data={"buffer": self.buffer.name, "label": self.label},
                )
        finally:
            self._held = None
            if self._span_cm is not None:
                self._span_cm.__exit__(exc_type, exc, tb)
        return False


__all__ = ["Buffer", "BufferListener", "Transaction", "BUFFER_EVENTS"]

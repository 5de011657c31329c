"""Buffer abstractions: versioned documents, persistence and rollback."""

from .buffer import BUFFER_EVENTS, Buffer, BufferListener, Transaction
from .document import BufferDocument, next_revision
from .sync import BufferBacking, BufferStateError

__all__ = [
    "BUFFER_EVENTS",
    "Buffer",
    "BufferBacking",
    "BufferDocument",
    "BufferListener",
    "BufferStateError",
    "Transaction",
    "next_revision",
]

"""Persisted-store primitives the commit protocol writes through."""

from .base import Marker, ResourceStore, StoreError, normalize_path
from .filesystem import FileSystemStore
from .memory import InMemoryStore

__all__ = [
    "Marker",
    "ResourceStore",
    "StoreError",
    "normalize_path",
    "FileSystemStore",
    "InMemoryStore",
]

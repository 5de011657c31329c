"""Dictionary-backed store used by hosts without a disk and by tests."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Sequence

from overlay_engine.runtime import telemetry

from .base import StoreError, normalize_path


@dataclass(slots=True)
class _Entry:
    data: bytes
    stamp: int
    read_only: bool = False
    out_of_sync: bool = False
    history: List[bytes] = field(default_factory=list)


class InMemoryStore:
    """Keeps resources in memory; markers are modification stamps.

    Every modification event draws a fresh stamp, so rewriting identical
    bytes still counts as a change.
    """

    def __init__(self, files: Optional[Mapping[str, bytes | str]] = None) -> None:
        self._entries: Dict[str, _Entry] = {}
        self._stamps = itertools.count(1)
        for path, data in (files or {}).items():
            raw = data.encode("utf-8") if isinstance(data, str) else data
            self._entries[normalize_path(path)] = _Entry(raw, next(self._stamps))

    def __contains__(self, path: str) -> bool:
        return self.exists(path)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self._entries

    def read_bytes(self, path: str) -> bytes:
        return self._entry(path).data

    def write_bytes(
        self,
        path: str,
        data: bytes,
        *,
        overwrite: bool = False,
        keep_history: bool = False,
    ) -> int:
        key = normalize_path(path)
        entry = self._entries.get(key)
        if entry is not None:
            if entry.read_only:
                raise StoreError(f"'{key}' is read-only", path=key, reason="read_only")
            if entry.out_of_sync and not overwrite:
                raise StoreError(
                    f"'{key}' is out of sync with the store", path=key, reason="out_of_sync"
                )
            if keep_history:
                entry.history.append(entry.data)
            entry.data = bytes(data)
            entry.out_of_sync = False
            entry.stamp = next(self._stamps)
        else:
            entry = _Entry(bytes(data), next(self._stamps))
            self._entries[key] = entry

        telemetry.record_event(
            "store.write",
            level="debug",
            data={"path": key, "bytes": len(data), "stamp": entry.stamp},
        )
        return entry.stamp

    def modification_marker(self, path: str) -> Optional[int]:
        entry = self._entries.get(normalize_path(path))
        return entry.stamp if entry is not None else None

    def history(self, path: str) -> Sequence[bytes]:
        entry = self._entries.get(normalize_path(path))
        return tuple(entry.history) if entry is not None else ()

    def delete(self, path: str) -> None:
        self._entries.pop(normalize_path(path), None)

    def set_read_only(self, path: str, read_only: bool = True) -> None:
        self._entry(path).read_only = read_only

    def touch(self, path: str) -> int:
        """Record a modification event without changing the bytes."""

        entry = self._entry(path)
        entry.stamp = next(self._stamps)
        return entry.stamp

    def modify_externally(
        self, path: str, data: bytes | str, *, synchronized: bool = True
    ) -> None:
        """Simulate an edit made behind the engine's back.

        With ``synchronized=False`` the store has not noticed the change yet:
        the marker stays put but plain writes are refused until ``refresh``
        or an overwriting write.
        """

        raw = data.encode("utf-8") if isinstance(data, str) else data
        key = normalize_path(path)
        entry = self._entries.get(key)
        if entry is None:
            self._entries[key] = _Entry(raw, next(self._stamps), out_of_sync=not synchronized)
            return
        entry.data = raw
        if synchronized:
            entry.stamp = next(self._stamps)
        else:
            entry.out_of_sync = True

    def refresh(self, path: str) -> None:
        entry = self._entry(path)
        if entry.out_of_sync:
            entry.out_of_sync = False
            entry.stamp = next(self._stamps)

    def _entry(self, path: str) -> _Entry:
        key = normalize_path(path)
        try:
            return self._entries[key]
        except KeyError as exc:
            raise StoreError(f"'{key}' does not exist", path=key, reason="missing") from exc


__all__ = ["InMemoryStore"]

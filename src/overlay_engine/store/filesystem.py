"""Store backed by a directory tree on the local file system."""

from __future__ import annotations

import os
import tempfile
from contextlib import suppress
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from overlay_engine.runtime import telemetry
from overlay_engine.runtime.config import EngineSettings, load_settings

from .base import StoreError, normalize_path

FileMarker = Tuple[int, int, int, int]  # (mtime_ns, ctime_ns, size, inode)


def _stat_marker(target: Path) -> FileMarker:
    stat = target.stat()
    return (stat.st_mtime_ns, stat.st_ctime_ns, stat.st_size, stat.st_ino)


class FileSystemStore:
    """Writes go to a sibling temp file first and land with ``os.replace``.

    The store remembers the marker of every file it read or wrote. A file
    whose marker moved since then was changed externally and is treated as
    out of sync: plain writes are refused until ``refresh`` or an
    overwriting write.
    """

    def __init__(self, root: Path | str, *, settings: EngineSettings | None = None) -> None:
        self.root = Path(root)
        self.settings = settings or load_settings()
        self.history_root = self.root / self.settings.history_dir
        self._known: Dict[str, FileMarker] = {}

    def _resolve(self, path: str) -> Tuple[str, Path]:
        key = normalize_path(path)
        if not key:
            raise StoreError("Empty resource path", path=path)
        return key, self.root / key

    def exists(self, path: str) -> bool:
        _, target = self._resolve(path)
        return target.is_file()

    def read_bytes(self, path: str) -> bytes:
        key, target = self._resolve(path)
        try:
            data = target.read_bytes()
            self._known[key] = _stat_marker(target)
        except FileNotFoundError as exc:
            raise StoreError(f"'{key}' does not exist", path=key, reason="missing") from exc
        except OSError as exc:
            raise StoreError(f"Cannot read '{key}': {exc}", path=key) from exc
        return data

    def write_bytes(
        self,
        path: str,
        data: bytes,
        *,
        overwrite: bool = False,
        keep_history: bool = False,
    ) -> FileMarker:
        key, target = self._resolve(path)
        if target.exists():
            if not os.access(target, os.W_OK):
                raise StoreError(f"'{key}' is read-only", path=key, reason="read_only")
            known = self._known.get(key)
            if known is not None and known != _stat_marker(target) and not overwrite:
                raise StoreError(
                    f"'{key}' is out of sync with the store", path=key, reason="out_of_sync"
                )
            if keep_history:
                self._preserve(key, target)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
            )
        except OSError as exc:
            raise StoreError(f"Cannot write '{key}': {exc}", path=key) from exc

        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, target)
        except OSError as exc:
            with suppress(OSError):
                os.unlink(tmp_name)
            raise StoreError(f"Cannot write '{key}': {exc}", path=key) from exc

        marker = _stat_marker(target)
        self._known[key] = marker
        telemetry.record_event(
            "store.write",
            level="debug",
            data={"path": key, "bytes": len(data), "root": str(self.root)},
        )
        return marker

    def modification_marker(self, path: str) -> Optional[FileMarker]:
        _, target = self._resolve(path)
        try:
            return _stat_marker(target)
        except FileNotFoundError:
            return None

    def history(self, path: str) -> Sequence[bytes]:
        key, _ = self._resolve(path)
        folder = self.history_root / key
        if not folder.is_dir():
            return ()
        return tuple(entry.read_bytes() for entry in sorted(folder.iterdir()))

    def refresh(self, path: str) -> None:
        key, target = self._resolve(path)
        if target.is_file():
            self._known[key] = _stat_marker(target)
        else:
            self._known.pop(key, None)

    def _preserve(self, key: str, target: Path) -> None:
        folder = self.history_root / key
        try:
            folder.mkdir(parents=True, exist_ok=True)
            index = sum(1 for _ in folder.iterdir()) + 1
            (folder / f"{index:06d}").write_bytes(target.read_bytes())
        except OSError as exc:
            raise StoreError(f"Cannot preserve history for '{key}': {exc}", path=key) from exc


__all__ = ["FileSystemStore", "FileMarker"]

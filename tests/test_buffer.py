from __future__ import annotations

from typing import List

import pytest

from overlay_engine.buffer import Buffer, BufferBacking, BufferDocument, BufferStateError
from overlay_engine.status import EncodingFailure, StoreWriteFailure
from overlay_engine.store import InMemoryStore


def make_buffer(text: str = "x = 1\n", *, encoding: str = "utf-8") -> tuple[Buffer, InMemoryStore]:
    store = InMemoryStore({"pkg/mod.py": text})
    backing = BufferBacking(store, "pkg/mod.py", encoding=encoding)
    return Buffer.load(backing), store


def test_document_versions_never_repeat() -> None:
    first = BufferDocument.from_text("a")
    second = first.replace(text="a")
    clean = second.mark_clean()

    assert first.version != second.version
    assert clean.version == second.version


def test_update_range_marks_dirty_and_checks_bounds() -> None:
    document = BufferDocument.from_text("hello")

    edited = document.update_range(0, 1, "J")

    assert edited.text == "Jello"
    assert edited.dirty
    with pytest.raises(IndexError):
        document.update_range(3, 10, "")


def test_load_reads_text_and_marker() -> None:
    buffer, store = make_buffer("y = 2\n")

    assert buffer.contents == "y = 2\n"
    assert buffer.marker == store.modification_marker("pkg/mod.py")
    assert buffer.is_synchronized()


def test_edits_bump_version_and_notify() -> None:
    buffer, _ = make_buffer()
    seen: List[object] = []
    buffer.subscribe("changed", lambda _buffer, payload: seen.append(payload))
    version = buffer.version

    buffer.append("z = 3\n")

    assert buffer.contents == "x = 1\nz = 3\n"
    assert buffer.has_unsaved_changes()
    assert buffer.version != version
    assert seen == [buffer.version]


def test_save_writes_and_updates_marker() -> None:
    buffer, store = make_buffer()
    saved: List[object] = []
    buffer.subscribe("saved", lambda _buffer, marker: saved.append(marker))
    buffer.set_contents("x = 2\n")

    marker = buffer.save()

    assert store.read_bytes("pkg/mod.py") == b"x = 2\n"
    assert marker == store.modification_marker("pkg/mod.py")
    assert buffer.marker == marker
    assert buffer.is_synchronized()
    assert saved == [marker]
    assert store.history("pkg/mod.py") == (b"x = 1\n",)


def test_clean_save_is_a_no_op_unless_forced() -> None:
    buffer, store = make_buffer()
    marker = buffer.marker

    assert buffer.save() == marker
    assert buffer.save(force=True) != marker
    assert store.read_bytes("pkg/mod.py") == b"x = 1\n"


def test_save_without_backing_is_rejected() -> None:
    buffer = Buffer.from_text("a = 1\n")
    buffer.set_contents("a = 2\n")

    with pytest.raises(BufferStateError):
        buffer.save()


def test_transaction_rolls_back_on_failed_save() -> None:
    buffer, store = make_buffer()
    before = buffer.document
    store.set_read_only("pkg/mod.py")

    with pytest.raises(StoreWriteFailure):
        with buffer.transaction("commit") as transaction:
            buffer.set_contents("x = 99\n")
            buffer.save()

    assert transaction.rolled_back
    assert buffer.document is before
    assert buffer.contents == "x = 1\n"
    assert store.read_bytes("pkg/mod.py") == b"x = 1\n"


def test_transaction_keeps_changes_on_success() -> None:
    buffer, _ = make_buffer()

    with buffer.transaction("edit") as transaction:
        buffer.set_contents("x = 5\n")

    assert not transaction.rolled_back
    assert transaction.held_document is None
    assert buffer.contents == "x = 5\n"


def test_unencodable_text_raises_encoding_failure() -> None:
    buffer, store = make_buffer(encoding="ascii")
    buffer.set_contents("name = 'café'\n")

    with pytest.raises(EncodingFailure):
        buffer.save()

    assert store.read_bytes("pkg/mod.py") == b"x = 1\n"
    assert buffer.has_unsaved_changes()


def test_closed_buffer_refuses_edits() -> None:
    buffer, _ = make_buffer()
    closed: List[object] = []
    buffer.subscribe("closed", lambda _buffer, payload: closed.append(payload))

    buffer.close()

    assert buffer.is_closed()
    assert closed == [None]
    with pytest.raises(BufferStateError):
        buffer.set_contents("")


def test_unknown_event_rejected() -> None:
    buffer, _ = make_buffer()

    with pytest.raises(ValueError):
        buffer.subscribe("moved", lambda _buffer, payload: None)

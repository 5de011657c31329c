from __future__ import annotations

from overlay_engine.delta import ChangeKind, DeltaBuilder, DeltaFlag, DeltaKind
from overlay_engine.model import ElementKind, Project, ProjectOptions, SourceUnit
from overlay_engine.store import InMemoryStore

SOURCE = """\
def keep():
    return 1


def drop():
    return 2


class Box:
    size = 1
"""


def make_unit(text: str = SOURCE) -> SourceUnit:
    store = InMemoryStore({"src/box.py": text})
    project = Project("demo", store, options=ProjectOptions(encoding="utf-8"))
    unit = project.add_unit(project.add_root("src"), "box.py")
    return unit.open()


def rewrite(unit: SourceUnit, text: str) -> None:
    unit.buffer.set_contents(text)
    unit.make_consistent()


def test_no_change_yields_no_delta() -> None:
    unit = make_unit()
    builder = DeltaBuilder(unit)

    rewrite(unit, SOURCE + "\n\n")

    assert builder.build_deltas() is None


def test_added_and_removed_declarations() -> None:
    unit = make_unit()
    builder = DeltaBuilder(unit)

    rewrite(unit, SOURCE.replace("def drop():\n    return 2", "def fresh():\n    return 3"))
    delta = builder.build_deltas()

    assert delta is not None
    assert delta.kind is DeltaKind.CHANGED
    assert delta.change_kinds() == frozenset({ChangeKind.CHILDREN_CHANGED})
    assert [child.handle.name for child in delta.added_children()] == ["fresh"]
    assert [child.handle.name for child in delta.removed_children()] == ["drop"]
    assert delta.find(("demo", "src", "box.py", "keep")) is None
    assert [child.kind for child in delta.children] == [DeltaKind.ADDED, DeltaKind.REMOVED]


def test_nested_content_change_propagates_children_flag() -> None:
    unit = make_unit()
    builder = DeltaBuilder(unit)

    rewrite(unit, SOURCE.replace("size = 1", "size = 2"))
    delta = builder.build_deltas()

    assert delta is not None
    (box,) = delta.changed_children()
    assert box.handle.kind is ElementKind.CLASS
    assert box.flags == frozenset({DeltaFlag.CHILDREN})
    (size,) = box.children
    assert size.change_kinds() == frozenset({ChangeKind.CONTENT_CHANGED})


def test_kind_change_is_remove_plus_add() -> None:
    unit = make_unit("value = 1\n")
    builder = DeltaBuilder(unit)

    rewrite(unit, "def value():\n    pass\n")
    delta = builder.build_deltas()

    assert delta is not None
    assert [(child.kind, child.handle.kind) for child in delta.children] == [
        (DeltaKind.ADDED, ElementKind.FUNCTION),
        (DeltaKind.REMOVED, ElementKind.VARIABLE),
    ]


def test_unit_content_change_sets_content_flag() -> None:
    unit = make_unit("import os\nx = 1\n")
    builder = DeltaBuilder(unit)

    rewrite(unit, "import sys\nx = 1\n")
    delta = builder.build_deltas()

    assert delta is not None
    assert delta.flags == frozenset({DeltaFlag.CONTENT})
    assert delta.children == ()
    assert "box.py[*]: {CONTENT}" in str(delta)


def test_to_dict_is_nested() -> None:
    unit = make_unit("x = 1\n")
    builder = DeltaBuilder(unit)

    rewrite(unit, "x = 1\ny = 2\n")
    payload = builder.build_deltas().to_dict()

    assert payload["kind"] == "changed"
    assert payload["flags"] == ["children"]
    assert payload["children"][0]["path"] == ["demo", "src", "box.py", "y"]
    assert payload["children"][0]["kind"] == "added"


def test_swapped_declarations_report_the_moved_one() -> None:
    unit = make_unit("def a():\n    pass\n\n\ndef b():\n    pass\n")
    builder = DeltaBuilder(unit)

    rewrite(unit, "def b():\n    pass\n\n\ndef a():\n    pass\n")
    delta = builder.build_deltas()

    assert delta is not None
    assert delta.flags == frozenset({DeltaFlag.CHILDREN})
    assert [(child.kind, child.handle.name) for child in delta.children] == [
        (DeltaKind.ADDED, "a"),
        (DeltaKind.REMOVED, "a"),
    ]


def test_moving_one_child_keeps_the_others_matched() -> None:
    unit = make_unit("x = 1\ny = 2\nz = 3\n")
    builder = DeltaBuilder(unit)

    rewrite(unit, "y = 2\nz = 30\nx = 1\n")
    delta = builder.build_deltas()

    assert delta is not None
    assert [(child.kind, child.handle.name) for child in delta.children] == [
        (DeltaKind.CHANGED, "z"),
        (DeltaKind.ADDED, "x"),
        (DeltaKind.REMOVED, "x"),
    ]
    assert delta.children[0].flags == frozenset({DeltaFlag.CONTENT})

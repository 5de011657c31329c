from overlay_engine.model import ElementKind, parse_outline

SOURCE = """\
import os

LIMIT = 3


@decorate
def helper(value):
    return value + LIMIT


class Service:
    name: str = "svc"

    def run(self):
        return helper(1)

    async def stop(self):
        pass
"""


def test_outline_lists_top_level_declarations() -> None:
    outline = parse_outline(SOURCE)

    assert [(entry.name, entry.kind) for entry in outline.children] == [
        ("LIMIT", ElementKind.VARIABLE),
        ("helper", ElementKind.FUNCTION),
        ("Service", ElementKind.CLASS),
    ]
    assert outline.problems == ()


def test_class_members_become_children() -> None:
    service = parse_outline(SOURCE).children[2]

    assert [(entry.name, entry.kind) for entry in service.children] == [
        ("name", ElementKind.VARIABLE),
        ("run", ElementKind.FUNCTION),
        ("stop", ElementKind.FUNCTION),
    ]


def test_decorator_lines_belong_to_the_declaration() -> None:
    helper = parse_outline(SOURCE).children[1]

    assert helper.start_line == 6
    assert helper.end_line == 8


def test_fingerprint_tracks_own_lines_only() -> None:
    before = parse_outline(SOURCE)
    after = parse_outline(SOURCE.replace("return helper(1)", "return helper(2)"))

    assert before.children[2].fingerprint == after.children[2].fingerprint
    assert before.children[2].children[1].fingerprint != after.children[2].children[1].fingerprint
    assert before.fingerprint == after.fingerprint


def test_fingerprint_ignores_blank_lines_and_trailing_spaces() -> None:
    before = parse_outline("x = 1\n")
    after = parse_outline("\n\nx = 1   \n\n")

    assert before.children[0].fingerprint == after.children[0].fingerprint
    assert before.fingerprint == after.fingerprint


def test_adding_a_sibling_keeps_the_unit_fingerprint() -> None:
    before = parse_outline("def a():\n    pass\n")
    after = parse_outline("def a():\n    pass\n\ndef b():\n    pass\n")

    assert before.fingerprint == after.fingerprint
    assert len(after.children) == 2


def test_tuple_assignment_declares_each_name() -> None:
    outline = parse_outline("a, (b, c) = 1, (2, 3)\nself.x = 4\n")

    assert [entry.name for entry in outline.children] == ["a", "b", "c"]


def test_syntax_error_reports_problem_and_empty_outline() -> None:
    outline = parse_outline("def broken(:\n")

    assert outline.children == ()
    assert outline.has_problems
    assert outline.problems[0].startswith("line 1")

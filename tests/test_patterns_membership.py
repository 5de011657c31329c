from __future__ import annotations

import pytest

from overlay_engine.model import (
    BuildMembership,
    PathPattern,
    Project,
    ProjectOptions,
    compile_patterns,
    is_excluded,
    is_valid_unit_name,
)
from overlay_engine.store import InMemoryStore


@pytest.mark.parametrize(
    ("pattern", "path", "expected"),
    [
        ("tests/**", "tests/a/b.py", True),
        ("tests/**", "tests", True),
        ("tests/*", "tests/a.py", True),
        ("tests/*", "tests/a/b.py", False),
        ("**/tests/**", "src/tests/x.py", True),
        ("**/tests/**", "tests/x.py", True),
        ("tests/", "tests/deep/x.py", True),
        ("*.py", "a.py", True),
        ("*.py", "pkg/a.py", False),
        ("a?.py", "ab.py", True),
        ("a?.py", "abc.py", False),
        ("Foo.py", "foo.py", False),
        ("[x].py", "[x].py", True),
    ],
)
def test_pattern_matching(pattern: str, path: str, expected: bool) -> None:
    assert PathPattern.parse(pattern).matches(path) is expected


def test_exclusion_wins_over_inclusion() -> None:
    inclusion = compile_patterns(["src/**"])
    exclusion = compile_patterns(["src/**/Foo.py"])

    assert not is_excluded("src/pkg/Bar.py", inclusion, exclusion)
    assert is_excluded("src/pkg/Foo.py", inclusion, exclusion)
    assert is_excluded("lib/Bar.py", inclusion, exclusion)
    assert not is_excluded("anything.py")


def test_empty_pattern_rejected() -> None:
    with pytest.raises(ValueError):
        PathPattern.parse("/")


@pytest.mark.parametrize(
    ("name", "expected"),
    [("mod.py", True), ("_private.py", True), ("class.py", False), ("1st.py", False), ("mod.txt", False)],
)
def test_unit_name_validation(name: str, expected: bool) -> None:
    assert is_valid_unit_name(name) is expected


def make_project(**root_options) -> tuple[Project, InMemoryStore]:
    store = InMemoryStore({"src/pkg/mod.py": "x = 1\n", "src/pkg/Foo.py": "y = 2\n"})
    project = Project("demo", store, options=ProjectOptions(encoding="utf-8"))
    root = project.add_root("src", **root_options)
    pkg = project.add_folder(root, "pkg")
    project.add_unit(pkg, "mod.py")
    project.add_unit(pkg, "Foo.py")
    return project, store


def test_membership_follows_build_root() -> None:
    project, _ = make_project(exclusion_patterns=["**/Foo.py"])
    membership = BuildMembership()
    mod = project.unit("src/pkg/mod.py")
    foo = project.unit("src/pkg/Foo.py")

    assert membership.is_managed(mod)
    assert not membership.is_excluded(mod)
    assert membership.is_excluded(foo)
    assert membership.build_root(mod) is project.roots()[0]


def test_membership_requires_existing_resource() -> None:
    project, store = make_project()
    store.delete("src/pkg/mod.py")

    assert not BuildMembership().is_managed(project.unit("src/pkg/mod.py"))


def test_membership_requires_root_on_build_path() -> None:
    project, _ = make_project(on_build_path=False)

    assert not BuildMembership().is_managed(project.unit("src/pkg/mod.py"))


def test_unit_outside_any_root_is_unmanaged() -> None:
    store = InMemoryStore({"docs/conf.py": "x = 1\n"})
    project = Project("demo", store)
    unit = project.add_unit(project.add_folder(project, "docs"), "conf.py")

    assert not BuildMembership().is_managed(unit)
    assert not BuildMembership().is_excluded(unit)

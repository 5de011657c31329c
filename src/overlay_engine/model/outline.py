"""Derive the structural outline of a Python unit from its source text.

Only declarations that shape the model are kept: classes, functions and
assignments to plain names at module or class level. Function bodies are
opaque. Each entry gets a content fingerprint computed from the source lines
it owns itself, i.e. its span minus the spans of its children, ignoring blank
lines and trailing whitespace. Adding or removing a sibling therefore never
changes the fingerprint of the enclosing entry.
"""

from __future__ import annotations

import ast
import hashlib
import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Set, Tuple

from .elements import ElementKind

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True, slots=True)
class OutlineEntry:
    name: str
    kind: ElementKind
    fingerprint: str
    start_line: int
    end_line: int
    children: Tuple["OutlineEntry", ...] = ()


@dataclass(frozen=True, slots=True)
class Outline:
    fingerprint: str
    children: Tuple[OutlineEntry, ...] = ()
    problems: Tuple[str, ...] = ()

    @property
    def has_problems(self) -> bool:
        return bool(self.problems)


def parse_outline(text: str) -> Outline:
    """Return the outline of ``text``; syntax errors yield an empty outline."""

    lines = _LINE_BREAK.split(text)
    try:
        module = ast.parse(text)
    except SyntaxError as exc:
        problem = f"line {exc.lineno}: {exc.msg}" if exc.lineno else str(exc.msg)
        return Outline(_fingerprint(lines, range(1, len(lines) + 1)), (), (problem,))
    except ValueError as exc:
        return Outline(_fingerprint(lines, range(1, len(lines) + 1)), (), (str(exc),))

    children = _entries(module.body, lines)
    owned = set(range(1, len(lines) + 1)) - _covered(children)
    return Outline(_fingerprint(lines, owned), children)


def _entries(body: Sequence[ast.stmt], lines: Sequence[str]) -> Tuple[OutlineEntry, ...]:
    result: List[OutlineEntry] = []
    for node in body:
        start = _start_line(node)
        end = node.end_lineno or node.lineno
        for name, kind in _declared_names(node):
            children: Tuple[OutlineEntry, ...] = ()
            if isinstance(node, ast.ClassDef):
                children = _entries(node.body, lines)
            owned = set(range(start, end + 1)) - _covered(children)
            result.append(
                OutlineEntry(
                    name=name,
                    kind=kind,
                    fingerprint=_fingerprint(lines, owned),
                    start_line=start,
                    end_line=end,
                    children=children,
                )
            )
    return tuple(result)


def _declared_names(node: ast.stmt) -> List[Tuple[str, ElementKind]]:
    if isinstance(node, ast.ClassDef):
        return [(node.name, ElementKind.CLASS)]
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        return [(node.name, ElementKind.FUNCTION)]
    if isinstance(node, ast.Assign):
        names: List[Tuple[str, ElementKind]] = []
        for target in node.targets:
            names.extend((name, ElementKind.VARIABLE) for name in _target_names(target))
        return names
    if isinstance(node, ast.AnnAssign):
        return [(name, ElementKind.VARIABLE) for name in _target_names(node.target)]
    return []


def _target_names(target: ast.expr) -> List[str]:
    if isinstance(target, ast.Name):
        return [target.id]
    if isinstance(target, (ast.Tuple, ast.List)):
        names: List[str] = []
        for element in target.elts:
            names.extend(_target_names(element))
        return names
    return []


def _start_line(node: ast.stmt) -> int:
    decorators = getattr(node, "decorator_list", None) or []
    return min([node.lineno] + [decorator.lineno for decorator in decorators])


def _covered(entries: Iterable[OutlineEntry]) -> Set[int]:
    lines: Set[int] = set()
    for entry in entries:
        lines.update(range(entry.start_line, entry.end_line + 1))
    return lines


def _fingerprint(lines: Sequence[str], owned: Iterable[int]) -> str:
    digest = hashlib.sha256()
    for number in sorted(owned):
        line = lines[number - 1].rstrip()
        if line.strip():
            digest.update(line.encode("utf-8", "surrogatepass"))
            digest.update(b"\n")
    return digest.hexdigest()


__all__ = ["Outline", "OutlineEntry", "parse_outline"]

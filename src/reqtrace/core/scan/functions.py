"""Function location over a scanned C buffer.

A single top-level pass walks the code spans looking for ``identifier (``
anchors at brace depth zero. For each anchor the parameter list is matched
with the balanced-delimiter matcher (so ``THANDLE(FOO) x`` parameters or
function-pointer parameters are one more nesting level), then the next code
``{``, ``;`` or anchor decides between a definition and a declaration.

Test functions are definitions whose anchor is a registration macro such as
``TEST_FUNCTION(name)``; they are collected in source order in
``FunctionIndex.tests`` (no global registry).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .delimiters import match_delimiter
from .source import ScannedSource

DEFAULT_TEST_ANCHORS: Tuple[str, ...] = ("TEST_FUNCTION", "CTEST_FUNCTION")

C_KEYWORDS: FrozenSet[str] = frozenset(
    {
        "auto", "break", "case", "char", "const", "continue", "default", "do",
        "double", "else", "enum", "extern", "float", "for", "goto", "if",
        "inline", "int", "long", "register", "restrict", "return", "short",
        "signed", "sizeof", "static", "struct", "switch", "typedef", "union",
        "unsigned", "void", "volatile", "while", "_Alignof", "_Alignas",
        "_Static_assert", "_Generic", "alignof", "alignas", "static_assert",
        "decltype", "new", "delete", "catch", "throw", "defined",
        "__attribute__", "__declspec", "__cdecl", "__stdcall",
    }
)

_ANCHOR = re.compile(r"\b([A-Za-z_]\w*)\s*\(")
_TOP_LEVEL_EVENT = re.compile(r"\b([A-Za-z_]\w*)\s*\(|[{}]")
_TERMINATOR = re.compile(r"\b([A-Za-z_]\w*)\s*\(|[{;]")


@dataclass(frozen=True)
class FunctionRecord:
    """A located function signature and, for definitions, its body.

    Offsets are half-open. ``body_range`` spans from the opening ``{`` to one
    past the closing ``}``; it is None for declarations and for unterminated
    definitions.
    """

    name: str
    anchor: str
    signature_start: int
    params_range: Tuple[int, int]
    body_open: Optional[int] = None
    body_range: Optional[Tuple[int, int]] = None
    call_sites: Tuple[Tuple[int, str], ...] = ()
    is_test: bool = False

    @property
    def signature_range(self) -> Tuple[int, int]:
        end = self.body_open if self.body_open is not None else self.params_range[1]
        return self.signature_start, end

    @property
    def unterminated(self) -> bool:
        return self.body_open is not None and self.body_range is None

    @property
    def calls(self) -> FrozenSet[str]:
        return frozenset(name for _, name in self.call_sites)


@dataclass
class FunctionIndex:
    """All functions found in one buffer, in source order."""

    functions: List[FunctionRecord] = field(default_factory=list)

    @property
    def definitions(self) -> List[FunctionRecord]:
        return [f for f in self.functions if f.body_range is not None]

    @property
    def tests(self) -> List[FunctionRecord]:
        return [f for f in self.definitions if f.is_test]

    @property
    def unterminated(self) -> List[FunctionRecord]:
        return [f for f in self.functions if f.unterminated]

    @property
    def helpers(self) -> Dict[str, FunctionRecord]:
        """Locally defined non-test functions by name (first definition wins)."""
        found: Dict[str, FunctionRecord] = {}
        for func in self.definitions:
            if not func.is_test and func.name not in found:
                found[func.name] = func
        return found

    def containing(self, offset: int) -> Optional[FunctionRecord]:
        for func in self.definitions:
            start, end = func.body_range  # type: ignore[misc]
            if start <= offset < end:
                return func
        return None


def _directive_end(source: ScannedSource, offset: int) -> Optional[int]:
    """If ``offset`` sits on a preprocessor directive, return the directive end."""
    text = source.text
    line = source.line_of(offset)
    first = line
    # Walk back over backslash-continued lines to the directive's first line.
    while first > 1:
        prev_start, prev_end = source.line_bounds(first - 1)
        if text[prev_start:prev_end].rstrip().endswith("\\"):
            first -= 1
        else:
            break
    start, _ = source.line_bounds(first)
    if not text[start:].lstrip(" \t").startswith("#"):
        return None
    last = line
    while last < source.line_count:
        s, e = source.line_bounds(last)
        if not text[s:e].rstrip().endswith("\\"):
            break
        last += 1
    return source.line_bounds(last)[1]


def _find_terminator(source: ScannedSource, pos: int) -> Optional[re.Match[str]]:
    """Next ``{``, ``;`` or call-like anchor after a parameter list.

    Keyword groups such as ``__attribute__((unused))`` are stepped over.
    """
    while True:
        m = next(source.finditer_code(_TERMINATOR, pos), None)
        if m is None or m.group(1) is None or m.group(1) not in C_KEYWORDS:
            return m
        close = match_delimiter(source, m.end() - 1)
        if close is None:
            return None
        pos = close + 1


def _first_argument(source: ScannedSource, open_paren: int, close_paren: int) -> str:
    depth = 0
    text = source.text
    for i in range(open_paren + 1, close_paren):
        ch = text[i]
        if not source.is_code(i):
            continue
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == "," and depth == 0:
            return text[open_paren + 1 : i].strip()
    return text[open_paren + 1 : close_paren].strip()


def collect_call_sites(source: ScannedSource, start: int, end: int) -> Tuple[Tuple[int, str], ...]:
    """Return ``(offset, name)`` for every ``name(`` in code within the range."""
    sites = []
    for m in source.finditer_code(_ANCHOR, start, end):
        name = m.group(1)
        if name not in C_KEYWORDS:
            sites.append((m.start(), name))
    return tuple(sites)


def locate_functions(
    source: ScannedSource,
    test_anchors: Sequence[str] = DEFAULT_TEST_ANCHORS,
) -> FunctionIndex:
    """Locate every top-level function declaration and definition.

    Args:
        source: Scanned source buffer
        test_anchors: Registration macros whose definitions are test functions

    Returns:
        FunctionIndex with records in source order.
    """
    text = source.text
    anchors = set(test_anchors)
    index = FunctionIndex()
    pos = 0

    while pos < len(text):
        event = next(source.finditer_code(_TOP_LEVEL_EVENT, pos), None)
        if event is None:
            break

        directive_end = _directive_end(source, event.start())
        if directive_end is not None:
            pos = max(directive_end, event.end())
            continue

        token = event.group(0)
        if token == "{":
            # Aggregate bodies (struct, enum, initializer): skip whole.
            close = match_delimiter(source, event.start(), "{", "}")
            if close is None:
                break
            pos = close + 1
            continue
        if token == "}":
            pos = event.end()
            continue

        name = event.group(1)
        if name in C_KEYWORDS:
            pos = event.end()
            continue

        open_paren = event.end() - 1
        close_paren = match_delimiter(source, open_paren)
        if close_paren is None:
            break

        terminator = _find_terminator(source, close_paren + 1)
        is_test = name in anchors
        func_name = _first_argument(source, open_paren, close_paren) if is_test else name

        if terminator is None or terminator.group(0) != "{":
            index.functions.append(
                FunctionRecord(
                    name=func_name,
                    anchor=name,
                    signature_start=event.start(),
                    params_range=(open_paren, close_paren + 1),
                    is_test=is_test,
                )
            )
            pos = close_paren + 1
            continue

        body_open = terminator.start()
        body_close = match_delimiter(source, body_open, "{", "}")
        if body_close is None:
            index.functions.append(
                FunctionRecord(
                    name=func_name,
                    anchor=name,
                    signature_start=event.start(),
                    params_range=(open_paren, close_paren + 1),
                    body_open=body_open,
                    is_test=is_test,
                )
            )
            break

        index.functions.append(
            FunctionRecord(
                name=func_name,
                anchor=name,
                signature_start=event.start(),
                params_range=(open_paren, close_paren + 1),
                body_open=body_open,
                body_range=(body_open, body_close + 1),
                call_sites=collect_call_sites(source, body_open + 1, body_close),
                is_test=is_test,
            )
        )
        pos = body_close + 1

    return index


def registered_tests(index: FunctionIndex) -> List[Tuple[str, Tuple[int, int]]]:
    """Ordered ``(test_name, body_range)`` registration list."""
    return [(f.name, f.body_range) for f in index.tests if f.body_range is not None]


def called_helpers(func: FunctionRecord, helpers: Dict[str, FunctionRecord]) -> Iterable[Tuple[int, FunctionRecord]]:
    """Yield ``(call_offset, helper)`` for direct calls to local helpers."""
    for offset, name in func.call_sites:
        helper = helpers.get(name)
        if helper is not None and helper is not func:
            yield offset, helper


__all__ = [
    "DEFAULT_TEST_ANCHORS",
    "C_KEYWORDS",
    "FunctionRecord",
    "FunctionIndex",
    "locate_functions",
    "collect_call_sites",
    "registered_tests",
    "called_helpers",
]

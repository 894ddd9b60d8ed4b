"""Deprecated source patterns.

Two line-level checks run over every source file:

- ``#define ENABLE_MOCKS`` / ``#undef ENABLE_MOCKS`` must be written as the
  umock_c include headers instead.
- ``vld.h`` must not be included at all. The fix deletes the include, and the
  surrounding ``#ifdef USE_VLD`` block too when nothing but blank lines and
  comments would be left in it.

A ``// force`` comment (any case) on the same line keeps that line as is.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from reqtrace.core.edits import Edit
from reqtrace.core.models import Violation, ViolationKind
from reqtrace.core.scan.source import ScannedSource

logger = logging.getLogger(__name__)

ENABLE_MOCKS_INCLUDE = (
    '#include "umock_c/umock_c_ENABLE_MOCKS.h" // ============================== ENABLE_MOCKS'
)
DISABLE_MOCKS_INCLUDE = (
    '#include "umock_c/umock_c_DISABLE_MOCKS.h" // ============================== DISABLE_MOCKS'
)

_DIRECTIVE = re.compile(r"[ \t]*#[ \t]*(\w+)")
_MOCK_DIRECTIVE = re.compile(r"([ \t]*)#[ \t]*(define|undef)[ \t]+ENABLE_MOCKS\b")
_VLD_INCLUDE = re.compile(r'[ \t]*#[ \t]*include[ \t]*[<"]vld\.h[>"]')
_VLD_GUARD = re.compile(r"[ \t]*#[ \t]*(?:ifdef[ \t]+USE_VLD\b|if[ \t]+defined[ \t]*\(?[ \t]*USE_VLD\b)")
_FORCE = re.compile(r"//[ \t]*force\b", re.IGNORECASE)
_COMMENT_ONLY = re.compile(r"[ \t]*(?://.*|/\*.*\*/[ \t]*)?")


@dataclass
class PatternScan:
    violations: List[Violation] = field(default_factory=list)
    edits: List[Edit] = field(default_factory=list)


@dataclass
class _Block:
    opener: int
    closer: Optional[int] = None
    has_else: bool = False


def _is_forced(line_text: str) -> bool:
    return _FORCE.search(line_text) is not None


def _directive_lines(source: ScannedSource) -> Dict[int, str]:
    """``{line: directive_name}`` for preprocessor lines that are real code."""
    found: Dict[int, str] = {}
    text = source.text
    for line in range(1, source.line_count + 1):
        start, end = source.line_bounds(line)
        m = _DIRECTIVE.match(text, start, end)
        if m is None:
            continue
        hash_at = text.index("#", start, end)
        if source.is_code(hash_at):
            found[line] = m.group(1)
    return found


def _enclosing_blocks(directives: Dict[int, str]) -> Dict[int, _Block]:
    """Map every line inside a conditional to its innermost block."""
    stack: List[_Block] = []
    blocks: List[_Block] = []
    for line in sorted(directives):
        name = directives[line]
        if name in ("if", "ifdef", "ifndef"):
            block = _Block(opener=line)
            stack.append(block)
            blocks.append(block)
        elif name in ("else", "elif") and stack:
            stack[-1].has_else = True
        elif name == "endif" and stack:
            stack.pop().closer = line

    inner: Dict[int, _Block] = {}
    for block in blocks:
        if block.closer is None:
            continue
        for line in range(block.opener + 1, block.closer):
            current = inner.get(line)
            if current is None or current.opener < block.opener:
                inner[line] = block
    return inner


def _line_range(source: ScannedSource, first: int, last: int) -> Tuple[int, int]:
    """Offsets covering lines ``first..last`` including the final newline."""
    start = source.line_bounds(first)[0]
    if last < source.line_count:
        end = source.line_bounds(last + 1)[0]
    else:
        end = len(source.text)
    return start, end


def check_enable_mocks(source: ScannedSource) -> PatternScan:
    scan = PatternScan()
    text = source.text
    for line, name in _directive_lines(source).items():
        if name not in ("define", "undef"):
            continue
        start, end = source.line_bounds(line)
        m = _MOCK_DIRECTIVE.match(text, start, end)
        if m is None or _is_forced(text[start:end]):
            continue
        enabling = m.group(2) == "define"
        scan.violations.append(
            Violation(
                ViolationKind.DEPRECATED_MOCK_PATTERN,
                source.path,
                line,
                text.index("#", start, end) - start + 1,
                f"#{m.group(2)} ENABLE_MOCKS is deprecated; include "
                f"umock_c/umock_c_{'ENABLE' if enabling else 'DISABLE'}_MOCKS.h instead",
            )
        )
        replacement = m.group(1) + (ENABLE_MOCKS_INCLUDE if enabling else DISABLE_MOCKS_INCLUDE)
        scan.edits.append(Edit(start, end, replacement, reason="enable_mocks"))
    return scan


def check_vld_include(source: ScannedSource) -> PatternScan:
    scan = PatternScan()
    text = source.text
    directives = _directive_lines(source)
    blocks = _enclosing_blocks(directives)
    removals = set()

    vld_lines = []
    for line, name in directives.items():
        if name != "include":
            continue
        start, end = source.line_bounds(line)
        m = _VLD_INCLUDE.match(text, start, end)
        if m is None or _is_forced(text[start:end]):
            continue
        vld_lines.append(line)
        scan.violations.append(
            Violation(
                ViolationKind.FORBIDDEN_INCLUDE,
                source.path,
                line,
                text.index("#", start, end) - start + 1,
                "vld.h must not be included",
            )
        )

    for line in vld_lines:
        block = blocks.get(line)
        if block is not None and not block.has_else and _removable_guard(source, block, vld_lines):
            removals.add(_line_range(source, block.opener, block.closer))
        else:
            removals.add(_line_range(source, line, line))

    # Drop line removals already covered by a whole-block removal.
    for start, end in sorted(removals):
        if any(s <= start and end <= e and (s, e) != (start, end) for s, e in removals):
            continue
        scan.edits.append(Edit(start, end, "", reason="vld_include"))
    return scan


def _removable_guard(source: ScannedSource, block: _Block, vld_lines: List[int]) -> bool:
    start, end = source.line_bounds(block.opener)
    if _VLD_GUARD.match(source.text, start, end) is None:
        return False
    for line in range(block.opener + 1, block.closer):  # type: ignore[arg-type]
        if line in vld_lines:
            continue
        s, e = source.line_bounds(line)
        if _COMMENT_ONLY.fullmatch(source.text, s, e) is None:
            return False
    return True


def check_patterns(
    source: ScannedSource,
    *,
    enable_mocks: bool = True,
    vld_include: bool = True,
) -> PatternScan:
    """Run the enabled deprecated-pattern checks over ``source``."""
    result = PatternScan()
    if enable_mocks:
        found = check_enable_mocks(source)
        result.violations.extend(found.violations)
        result.edits.extend(found.edits)
    if vld_include:
        found = check_vld_include(source)
        result.violations.extend(found.violations)
        result.edits.extend(found.edits)
    if result.violations:
        logger.debug("%s: %d deprecated pattern(s)", source.path, len(result.violations))
    return result


__all__ = [
    "ENABLE_MOCKS_INCLUDE",
    "DISABLE_MOCKS_INCLUDE",
    "PatternScan",
    "check_enable_mocks",
    "check_vld_include",
    "check_patterns",
]

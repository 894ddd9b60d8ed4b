"""Lexical classification of C source text.

Splits a buffer into contiguous spans of code, string literals, character
literals, line comments and block comments. The classifier knows nothing about
requirement tags or test markers; it only has to be right about where quotes
and comments begin and end so that later passes are not fooled by braces,
parentheses or brackets inside them.

Malformed input never raises: an unterminated literal or comment is closed
implicitly (at the offending newline for literals, at EOF for comments) and an
anomaly is recorded.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple


class SpanKind(str, Enum):
    CODE = "code"
    STRING = "string_literal"
    CHAR = "char_literal"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"

    @property
    def is_comment(self) -> bool:
        return self in (SpanKind.LINE_COMMENT, SpanKind.BLOCK_COMMENT)

    @property
    def is_literal(self) -> bool:
        return self in (SpanKind.STRING, SpanKind.CHAR)


@dataclass(frozen=True)
class SourceSpan:
    """Half-open ``[start, end)`` character range of a single kind."""

    start: int
    end: int
    kind: SpanKind

    def __len__(self) -> int:
        return self.end - self.start

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end


@dataclass(frozen=True)
class LexIssue:
    """An unterminated construct found while classifying."""

    kind: SpanKind
    offset: int
    message: str


@dataclass
class LexResult:
    spans: List[SourceSpan] = field(default_factory=list)
    issues: List[LexIssue] = field(default_factory=list)


# Start of anything that is not plain code.
_CODE_BREAK = re.compile(r'"|\'|//|/\*')

# Inside literals an escape consumes exactly one following character
# (newline included, which is a line continuation).
_STRING_STOP = re.compile(r'\\.|"|\n', re.DOTALL)
_CHAR_STOP = re.compile(r"\\.|'|\n", re.DOTALL)

# A line comment ends at a newline that is not escaped by a backslash.
_LINE_COMMENT_STOP = re.compile(r"\\\r?\n|\n")


def _scan_literal(text: str, pos: int, stop: re.Pattern[str], quote: str) -> Tuple[int, bool]:
    """Return ``(end, terminated)`` for a literal opened at ``pos``."""
    cursor = pos + 1
    while True:
        m = stop.search(text, cursor)
        if m is None:
            return len(text), False
        token = m.group(0)
        if token == quote:
            return m.end(), True
        if token == "\n":
            # Raw newline: C does not allow it, close the literal here.
            return m.start(), False
        cursor = m.end()


def _scan_line_comment(text: str, pos: int) -> int:
    cursor = pos + 2
    while True:
        m = _LINE_COMMENT_STOP.search(text, cursor)
        if m is None:
            return len(text)
        if m.group(0).startswith("\\"):
            cursor = m.end()
            continue
        end = m.start()
        # Keep a trailing CR with the newline, not the comment payload.
        if end > pos and text[end - 1] == "\r":
            end -= 1
        return end


def classify(text: str) -> LexResult:
    """Classify every character of ``text`` into exactly one span.

    Args:
        text: Full source buffer.

    Returns:
        LexResult with spans ordered, contiguous and non-overlapping, plus any
        unterminated-construct issues.
    """
    result = LexResult()
    spans = result.spans
    length = len(text)
    pos = 0
    code_start = 0

    def flush_code(upto: int) -> None:
        if upto > code_start:
            spans.append(SourceSpan(code_start, upto, SpanKind.CODE))

    while pos < length:
        m = _CODE_BREAK.search(text, pos)
        if m is None:
            break
        start = m.start()
        token = m.group(0)
        flush_code(start)

        if token == '"':
            end, ok = _scan_literal(text, start, _STRING_STOP, '"')
            kind = SpanKind.STRING
            if not ok:
                result.issues.append(LexIssue(kind, start, "unterminated string literal"))
        elif token == "'":
            end, ok = _scan_literal(text, start, _CHAR_STOP, "'")
            kind = SpanKind.CHAR
            if not ok:
                result.issues.append(LexIssue(kind, start, "unterminated character literal"))
        elif token == "//":
            end = _scan_line_comment(text, start)
            kind = SpanKind.LINE_COMMENT
        else:
            close = text.find("*/", start + 2)
            kind = SpanKind.BLOCK_COMMENT
            if close == -1:
                end = length
                result.issues.append(LexIssue(kind, start, "unterminated block comment"))
            else:
                end = close + 2

        spans.append(SourceSpan(start, end, kind))
        pos = end
        code_start = end

    flush_code(length)
    return result


__all__ = [
    "SpanKind",
    "SourceSpan",
    "LexIssue",
    "LexResult",
    "classify",
]

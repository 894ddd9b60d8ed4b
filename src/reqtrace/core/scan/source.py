"""Scanned view of one source buffer.

``ScannedSource`` bundles the raw text with its span classification and a
line index so that every later pass can ask "is this offset code?" or
"which line is this?" in logarithmic time.
"""
from __future__ import annotations

import bisect
import re
from functools import cached_property
from typing import Iterator, List, Optional, Tuple

from .lexer import LexIssue, SourceSpan, SpanKind, classify


class ScannedSource:
    """Source text plus its lexical spans."""

    def __init__(self, text: str, path: str = "<memory>") -> None:
        self.text = text
        self.path = path
        lexed = classify(text)
        self.spans: List[SourceSpan] = lexed.spans
        self.issues: List[LexIssue] = lexed.issues
        self._starts = [s.start for s in self.spans]

    # ------------------------------------------------------------------
    # Span queries
    # ------------------------------------------------------------------

    def span_index(self, offset: int) -> int:
        """Index of the span containing ``offset`` (-1 when out of range)."""
        if offset < 0 or offset >= len(self.text):
            return -1
        return bisect.bisect_right(self._starts, offset) - 1

    def span_at(self, offset: int) -> Optional[SourceSpan]:
        idx = self.span_index(offset)
        return self.spans[idx] if idx >= 0 else None

    def kind_at(self, offset: int) -> Optional[SpanKind]:
        span = self.span_at(offset)
        return span.kind if span is not None else None

    def is_code(self, offset: int) -> bool:
        return self.kind_at(offset) is SpanKind.CODE

    def spans_between(self, start: int, end: int) -> Iterator[SourceSpan]:
        """Yield spans overlapping ``[start, end)`` in order."""
        idx = max(self.span_index(start), 0) if start < len(self.text) else len(self.spans)
        while idx < len(self.spans):
            span = self.spans[idx]
            if span.start >= end:
                break
            if span.end > start:
                yield span
            idx += 1

    def code_segments(self, start: int = 0, end: Optional[int] = None) -> Iterator[Tuple[int, int]]:
        """Yield ``(seg_start, seg_end)`` code-only pieces of ``[start, end)``."""
        stop = len(self.text) if end is None else end
        for span in self.spans_between(start, stop):
            if span.kind is SpanKind.CODE:
                yield max(span.start, start), min(span.end, stop)

    def finditer_code(
        self, pattern: re.Pattern[str], start: int = 0, end: Optional[int] = None
    ) -> Iterator[re.Match[str]]:
        """Yield matches of ``pattern`` that start inside code.

        The pattern is matched against the full text (so it may look across
        span boundaries, e.g. ``name  (`` with a comment in between is not
        matched, but ``name\\n(`` is), only the match start must be code.
        """
        stop = len(self.text) if end is None else end
        for seg_start, seg_end in self.code_segments(start, stop):
            pos = seg_start
            while pos < seg_end:
                m = pattern.search(self.text, pos, stop)
                if m is None or m.start() >= seg_end:
                    break
                yield m
                pos = max(m.end(), m.start() + 1)

    # ------------------------------------------------------------------
    # Line queries
    # ------------------------------------------------------------------

    @cached_property
    def _line_starts(self) -> List[int]:
        starts = [0]
        starts.extend(m.end() for m in re.finditer(r"\n", self.text))
        return starts

    def line_of(self, offset: int) -> int:
        """1-based line number of ``offset``."""
        return bisect.bisect_right(self._line_starts, offset)

    def position(self, offset: int) -> Tuple[int, int]:
        """1-based ``(line, column)`` of ``offset``."""
        line = self.line_of(offset)
        return line, offset - self._line_starts[line - 1] + 1

    def line_bounds(self, line: int) -> Tuple[int, int]:
        """``(start, end)`` of 1-based ``line`` excluding its newline."""
        starts = self._line_starts
        if line < 1 or line > len(starts):
            raise IndexError(f"line {line} out of range")
        start = starts[line - 1]
        end = starts[line] - 1 if line < len(starts) else len(self.text)
        if end > start and self.text[end - 1] == "\r":
            end -= 1
        return start, end

    @property
    def line_count(self) -> int:
        return len(self._line_starts)


__all__ = ["ScannedSource"]

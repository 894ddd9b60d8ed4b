"""Comment extraction and grouping.

Comments are a pure projection of the lexer's comment spans: no rescanning of
text happens here. Each record carries the raw text (delimiters included) and a
payload with the delimiters removed, which is what marker and exemption
matching look at.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .functions import FunctionIndex, FunctionRecord
from .lexer import SpanKind
from .source import ScannedSource


class CommentStyle(str, Enum):
    LINE = "//"
    TRIPLE_SLASH = "///"
    BLOCK = "/* */"


@dataclass(frozen=True)
class CommentRecord:
    start: int
    end: int
    kind: SpanKind
    style: CommentStyle
    raw_text: str
    text: str
    containing_function: Optional[str] = None

    @property
    def range(self):
        return self.start, self.end


def comment_payload(raw: str) -> str:
    """Strip comment delimiters (and decoration asterisks) from ``raw``."""
    if raw.startswith("/*"):
        body = raw[2:-2] if raw.endswith("*/") and len(raw) >= 4 else raw[2:]
        body = body.lstrip("*").rstrip("*")
        if body.startswith("!"):
            body = body[1:]
        return body.strip()
    body = raw[2:].lstrip("/")
    if body.startswith("!"):
        body = body[1:]
    return body.strip()


def _style_of(raw: str) -> CommentStyle:
    if raw.startswith("/*"):
        return CommentStyle.BLOCK
    if raw.startswith("///"):
        return CommentStyle.TRIPLE_SLASH
    return CommentStyle.LINE


def extract_comments(
    source: ScannedSource,
    start: int = 0,
    end: Optional[int] = None,
    functions: Optional[FunctionIndex] = None,
) -> List[CommentRecord]:
    """Return the comments overlapping ``[start, end)`` in source order."""
    stop = len(source.text) if end is None else end
    records: List[CommentRecord] = []
    for span in source.spans_between(start, stop):
        if not span.kind.is_comment:
            continue
        raw = source.text[span.start : span.end]
        owner = functions.containing(span.start) if functions is not None else None
        records.append(
            CommentRecord(
                start=span.start,
                end=span.end,
                kind=span.kind,
                style=_style_of(raw),
                raw_text=raw,
                text=comment_payload(raw),
                containing_function=owner.name if owner is not None else None,
            )
        )
    return records


@dataclass(frozen=True)
class CommentGroup:
    """A block comment, or line comments on consecutive lines."""

    comments: tuple

    @property
    def start(self) -> int:
        return self.comments[0].start

    @property
    def end(self) -> int:
        return self.comments[-1].end

    @property
    def is_block(self) -> bool:
        return self.comments[0].kind is SpanKind.BLOCK_COMMENT


_BLANK = re.compile(r"[ \t]*\r?\n[ \t]*")


def group_comments(source: ScannedSource, comments: List[CommentRecord]) -> List[CommentGroup]:
    groups: List[CommentGroup] = []
    run: List[CommentRecord] = []
    for comment in comments:
        if comment.kind is SpanKind.BLOCK_COMMENT:
            if run:
                groups.append(CommentGroup(tuple(run)))
                run = []
            groups.append(CommentGroup((comment,)))
            continue
        if run and _BLANK.fullmatch(source.text, run[-1].end, comment.start) is None:
            groups.append(CommentGroup(tuple(run)))
            run = []
        run.append(comment)
    if run:
        groups.append(CommentGroup(tuple(run)))
    return groups


def has_exemption(
    source: ScannedSource,
    func: FunctionRecord,
    keyword: str,
) -> bool:
    """True when ``func`` carries a ``keyword`` exemption comment.

    The comment payload must equal ``keyword`` (case-insensitive) and sit on
    the line the declaration starts on or on the line directly above it.
    """
    decl_line = source.line_of(func.signature_start)
    start = source.line_bounds(max(decl_line - 1, 1))[0]
    end = source.line_bounds(decl_line)[1]
    wanted = keyword.lower()
    for comment in extract_comments(source, start, end):
        if comment.text.lower() == wanted:
            return True
    return False


__all__ = [
    "CommentStyle",
    "CommentRecord",
    "CommentGroup",
    "comment_payload",
    "extract_comments",
    "group_comments",
    "has_exemption",
]

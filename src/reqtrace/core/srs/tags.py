"""Requirement tag extraction.

A requirement tag looks like::

    /* Codes_SRS_MODULE_01_002: [ text of the requirement ]*/
    // Tests_SRS_MODULE_01_002: [ text that may continue
    //     on the next line ]

Tags are searched inside comment groups (one block comment, or a run of line
comments on consecutive lines). The group text is masked first: comment
delimiters and block-comment ``*`` leaders become spaces, so offsets into the
masked copy are offsets into the source and the payload can span lines.

The payload ends at the first unescaped ``]`` at bracket depth zero. The scan
never runs past the end of the group or into the next tag head, so adjacent
tags cannot swallow each other.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from reqtrace.core.models import Anomaly, AnomalyKind
from reqtrace.core.scan.comments import (
    CommentGroup,
    CommentStyle,
    extract_comments,
    group_comments,
)
from reqtrace.core.scan.lexer import SpanKind
from reqtrace.core.scan.source import ScannedSource

logger = logging.getLogger(__name__)

CODES = "Codes"
TESTS = "Tests"

TAG_HEAD = re.compile(
    r"(?<![A-Za-z0-9_])(Codes|Tests)_(SRS_([A-Z0-9_]+?)_(\d+)_(\d+))\s*:\s*\["
)

_WS = re.compile(r"\s+")
_BLOCK_LEADER = re.compile(r"\n([ \t]*)(\*+)(?=[ \t\r\n]|$)")


def collapse_whitespace(text: str) -> str:
    return _WS.sub(" ", text).strip()


def strip_bold(text: str) -> str:
    """Remove ``**`` only when it wraps the entire payload."""
    inner = text.strip()
    if len(inner) >= 4 and inner.startswith("**") and inner.endswith("**"):
        return inner[2:-2].strip()
    return inner


def normalize_tag_text(text: str) -> str:
    """Comparable form of a payload: bold wrapping removed, whitespace collapsed."""
    return collapse_whitespace(strip_bold(text))


def find_payload_end(text: str, start: int, stop: int) -> Optional[int]:
    """Offset of the ``]`` closing a payload that opened just before ``start``.

    A backslash escapes the next character. Returns None when ``stop`` is
    reached first.
    """
    depth = 1
    i = start
    while i < stop:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


@dataclass(frozen=True)
class RequirementTag:
    """One ``<Family>_SRS_<MODULE>_<DD>_<DDD>: [ payload ]`` occurrence."""

    family: str
    requirement_id: str
    module: str
    category: str
    number: str
    head_start: int
    payload_start: int
    payload_end: int
    bracket_text: str
    raw_payload: str
    style: CommentStyle
    line: int = 0
    column: int = 0

    @property
    def prefix(self) -> str:
        return f"{self.family}_SRS_"

    @property
    def tag_name(self) -> str:
        return f"{self.family}_{self.requirement_id}"

    @property
    def source_range(self) -> Tuple[int, int]:
        return self.head_start, self.payload_end + 1

    @property
    def leading_whitespace(self) -> str:
        return self.raw_payload[: len(self.raw_payload) - len(self.raw_payload.lstrip())]

    @property
    def trailing_whitespace(self) -> str:
        return self.raw_payload[len(self.raw_payload.rstrip()) :]

    @property
    def multiline(self) -> bool:
        return "\n" in self.raw_payload

    @property
    def text(self) -> str:
        return normalize_tag_text(self.bracket_text)


@dataclass
class TagScan:
    tags: List[RequirementTag] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)


def mask_group(source: ScannedSource, group: CommentGroup) -> str:
    """Group text with delimiters replaced by spaces (same length)."""
    base = group.start
    chars = list(source.text[base : group.end])

    def blank(start: int, end: int) -> None:
        for i in range(start - base, end - base):
            if chars[i] not in "\r\n":
                chars[i] = " "

    for comment in group.comments:
        raw = comment.raw_text
        if comment.kind is SpanKind.BLOCK_COMMENT:
            blank(comment.start, comment.start + 2)
            if raw.endswith("*/") and len(raw) >= 4:
                blank(comment.end - 2, comment.end)
            for m in _BLOCK_LEADER.finditer(raw):
                blank(comment.start + m.start(2), comment.start + m.end(2))
        else:
            slashes = len(raw) - len(raw.lstrip("/"))
            blank(comment.start, comment.start + slashes)
    return "".join(chars)


def _style_at(group: CommentGroup, offset: int) -> CommentStyle:
    for comment in group.comments:
        if comment.start <= offset < comment.end:
            return comment.style
    return group.comments[0].style


def extract_tags(source: ScannedSource) -> TagScan:
    """Extract every requirement tag from the comments of ``source``."""
    scan = TagScan()
    comments = extract_comments(source)
    for group in group_comments(source, comments):
        masked = mask_group(source, group)
        base = group.start
        heads = list(TAG_HEAD.finditer(masked))
        for i, head in enumerate(heads):
            stop = heads[i + 1].start() if i + 1 < len(heads) else len(masked)
            close = find_payload_end(masked, head.end(), stop)
            head_start = base + head.start()
            if close is None:
                line, col = source.position(head_start)
                scan.anomalies.append(
                    Anomaly(
                        AnomalyKind.UNTERMINATED_TAG,
                        source.path,
                        line,
                        col,
                        f"{head.group(1)}_{head.group(2)} payload has no closing ']'",
                    )
                )
                logger.debug("%s:%d: unterminated tag %s", source.path, line, head.group(2))
                continue
            line, col = source.position(head_start)
            scan.tags.append(
                RequirementTag(
                    family=head.group(1),
                    requirement_id=head.group(2),
                    module=head.group(3),
                    category=head.group(4),
                    number=head.group(5),
                    head_start=head_start,
                    payload_start=base + head.end(),
                    payload_end=base + close,
                    bracket_text=masked[head.end() : close],
                    raw_payload=source.text[base + head.end() : base + close],
                    style=_style_at(group, head_start),
                    line=line,
                    column=col,
                )
            )
    return scan


__all__ = [
    "CODES",
    "TESTS",
    "TAG_HEAD",
    "RequirementTag",
    "TagScan",
    "collapse_whitespace",
    "strip_bold",
    "normalize_tag_text",
    "find_payload_end",
    "mask_group",
    "extract_tags",
]

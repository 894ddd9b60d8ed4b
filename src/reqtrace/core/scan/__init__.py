"""Lexical layer: span classification, delimiter matching, functions, comments."""
from __future__ import annotations

from .comments import (
    CommentGroup,
    CommentRecord,
    CommentStyle,
    extract_comments,
    group_comments,
    has_exemption,
)
from .delimiters import match_delimiter
from .functions import FunctionIndex, FunctionRecord, locate_functions
from .lexer import LexIssue, SourceSpan, SpanKind, classify
from .source import ScannedSource

__all__ = [
    "CommentGroup",
    "CommentRecord",
    "CommentStyle",
    "extract_comments",
    "group_comments",
    "has_exemption",
    "match_delimiter",
    "FunctionIndex",
    "FunctionRecord",
    "locate_functions",
    "LexIssue",
    "SourceSpan",
    "SpanKind",
    "classify",
    "ScannedSource",
]

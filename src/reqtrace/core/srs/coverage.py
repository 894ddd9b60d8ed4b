"""Every test function must be preceded by at least one requirement tag."""
from __future__ import annotations

import logging
from typing import List

from reqtrace.core.models import Violation, ViolationKind
from reqtrace.core.scan.comments import has_exemption
from reqtrace.core.scan.functions import FunctionIndex, FunctionRecord
from reqtrace.core.scan.lexer import SpanKind
from reqtrace.core.scan.source import ScannedSource

from .tags import RequirementTag

logger = logging.getLogger(__name__)

EXEMPTION_TOKEN = "no-srs"


def leading_comment_start(source: ScannedSource, func: FunctionRecord) -> int:
    """Start of the comment block directly above ``func``.

    Only comments and whitespace may sit between that block and the
    declaration. Returns the declaration offset when there is none.
    """
    text = source.text
    anchor = func.signature_start
    idx = source.span_index(anchor)
    if idx < 0 or text[source.spans[idx].start : anchor].strip():
        return anchor
    start = anchor
    idx -= 1
    while idx >= 0:
        span = source.spans[idx]
        if span.kind.is_comment:
            start = span.start
        elif span.kind is SpanKind.CODE:
            tail = text[span.start : span.end]
            if tail.strip():
                break
            start = span.start
        else:
            break
        idx -= 1
    return start


def check_test_coverage(
    source: ScannedSource,
    functions: FunctionIndex,
    tags: List[RequirementTag],
) -> List[Violation]:
    violations: List[Violation] = []
    for func in functions.tests:
        if has_exemption(source, func, EXEMPTION_TOKEN):
            continue
        start = leading_comment_start(source, func)
        if any(start <= tag.head_start < func.signature_start for tag in tags):
            continue
        line, col = source.position(func.signature_start)
        violations.append(
            Violation(
                ViolationKind.MISSING_TAG,
                source.path,
                line,
                col,
                f"test '{func.name}' is not preceded by a requirement tag",
            )
        )
    logger.debug("%s: %d test(s) without requirement tags", source.path, len(violations))
    return violations


__all__ = ["EXEMPTION_TOKEN", "leading_comment_start", "check_test_coverage"]

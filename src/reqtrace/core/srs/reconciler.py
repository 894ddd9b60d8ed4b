"""Reconcile requirement tag text against canonical requirement text.

Drift is judged on whitespace-collapsed text. Canonical text is normalized the
way requirement documents are (Markdown escapes and code marks dropped) before
it is compared or written into a fix. A fix only ever replaces the
payload between ``[`` and ``]``; the prefix token, the comment delimiters and
everything outside the brackets stay as they are. Padding inside the brackets
follows the tag itself when it is on one line, otherwise the padding most
single-line tags in the same file use.
"""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from reqtrace.core.edits import Edit
from reqtrace.core.models import Anomaly, AnomalyKind, Violation, ViolationKind
from reqtrace.core.scan.comments import CommentStyle
from reqtrace.core.scan.source import ScannedSource

from .canonical import normalize_canonical_text
from .tags import TAG_HEAD, RequirementTag, find_payload_end

logger = logging.getLogger(__name__)

DEFAULT_PADDING: Tuple[str, str] = (" ", " ")


@dataclass
class Reconciliation:
    violations: List[Violation] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)
    edits: List[Edit] = field(default_factory=list)


def dominant_padding(tags: List[RequirementTag]) -> Tuple[str, str]:
    """Most common ``(leading, trailing)`` padding among single-line tags."""
    counts = Counter(
        (tag.leading_whitespace, tag.trailing_whitespace) for tag in tags if not tag.multiline
    )
    if not counts:
        return DEFAULT_PADDING
    return counts.most_common(1)[0][0]


def unsafe_reason(replacement: str, style: CommentStyle) -> Optional[str]:
    """Why ``replacement`` would not survive a re-scan, or None when it is safe."""
    if find_payload_end(replacement + "]", 0, len(replacement) + 1) != len(replacement):
        return "unbalanced brackets or trailing escape"
    if TAG_HEAD.search(replacement):
        return "text contains another tag head"
    if style is CommentStyle.BLOCK and "*/" in replacement:
        return "text would close the block comment"
    if style is not CommentStyle.BLOCK and ("\n" in replacement or "\r" in replacement):
        return "text would leave the line comment"
    return None


def _shorten(text: str, limit: int = 60) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


class Reconciler:
    """Compare the tags of one file with the canonical map."""

    def __init__(
        self,
        source: ScannedSource,
        canonical: Mapping[str, str],
        *,
        report_unknown: bool = False,
    ) -> None:
        self.source = source
        self.canonical = canonical
        self.report_unknown = report_unknown

    def _violation(self, kind: ViolationKind, tag: RequirementTag, message: str) -> Violation:
        return Violation(kind, self.source.path, tag.line, tag.column, message)

    def _anomaly(self, kind: AnomalyKind, tag: RequirementTag, message: str) -> Anomaly:
        return Anomaly(kind, self.source.path, tag.line, tag.column, message)

    def reconcile(self, tags: List[RequirementTag]) -> Reconciliation:
        result = Reconciliation()
        padding = dominant_padding(tags)
        unknown: Dict[Tuple[str, str], List[RequirementTag]] = defaultdict(list)

        for tag in tags:
            raw = self.canonical.get(tag.requirement_id)
            if raw is None:
                unknown[(tag.family, tag.requirement_id)].append(tag)
                if self.report_unknown:
                    result.anomalies.append(
                        self._anomaly(
                            AnomalyKind.UNKNOWN_REQUIREMENT,
                            tag,
                            f"{tag.tag_name} has no canonical requirement",
                        )
                    )
                continue

            expected = normalize_canonical_text(raw)
            if tag.text == expected:
                continue

            result.violations.append(
                self._violation(
                    ViolationKind.TEXT_DRIFT,
                    tag,
                    f"{tag.tag_name} text '{_shorten(tag.text)}' differs from "
                    f"canonical '{_shorten(expected)}'",
                )
            )
            lead, trail = (
                (tag.leading_whitespace, tag.trailing_whitespace) if not tag.multiline else padding
            )
            replacement = f"{lead}{expected}{trail}"
            reason = unsafe_reason(replacement, tag.style)
            if reason is not None:
                result.anomalies.append(
                    self._anomaly(AnomalyKind.UNSAFE_FIX, tag, f"{tag.tag_name} not fixed: {reason}")
                )
                logger.info("%s:%d: skipping fix of %s (%s)", self.source.path, tag.line, tag.tag_name, reason)
                continue
            result.edits.append(
                Edit(tag.payload_start, tag.payload_end, replacement, reason=tag.tag_name)
            )

        for (family, requirement_id), occurrences in unknown.items():
            first = occurrences[0]
            for tag in occurrences[1:]:
                if tag.text != first.text:
                    result.violations.append(
                        self._violation(
                            ViolationKind.DUPLICATE_ID_CONFLICT,
                            tag,
                            f"{family}_{requirement_id} text differs from line {first.line} "
                            "and there is no canonical text to decide",
                        )
                    )
        return result


def reconcile_tags(
    source: ScannedSource,
    tags: List[RequirementTag],
    canonical: Mapping[str, str],
    *,
    report_unknown: bool = False,
) -> Reconciliation:
    return Reconciler(source, canonical, report_unknown=report_unknown).reconcile(tags)


__all__ = [
    "DEFAULT_PADDING",
    "Reconciliation",
    "Reconciler",
    "dominant_padding",
    "unsafe_reason",
    "reconcile_tags",
]

"""Arrange/Act/Assert marker validation for test functions.

Each test body is reduced to an ordered list of stage markers taken from its
comments and fed through a small state machine::

    NoMarkersSeen -> ArrangeSeen -> ActSeen -> AssertSeen (terminal)

Stages may be skipped (each skipped stage is reported as ``Missing<Stage>``),
but a marker whose stage is not after the last one seen is ``WrongOrder``,
so any marker after ``AssertSeen`` is one too.

When a test body does not cover all three stages by itself, markers from the
locally defined helpers it calls directly are spliced in at the call sites and
the machine runs again. Only one level of helpers is followed.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from reqtrace.core.models import Anomaly, AnomalyKind, Violation, ViolationKind
from reqtrace.core.scan.comments import CommentRecord, extract_comments, has_exemption
from reqtrace.core.scan.functions import FunctionIndex, FunctionRecord, called_helpers
from reqtrace.core.scan.source import ScannedSource

logger = logging.getLogger(__name__)

EXEMPTION_TOKEN = "no-aaa"


class Stage(IntEnum):
    ARRANGE = 1
    ACT = 2
    ASSERT = 3

    @property
    def label(self) -> str:
        return self.name.lower()


_MISSING_KIND = {
    Stage.ARRANGE: ViolationKind.MISSING_ARRANGE,
    Stage.ACT: ViolationKind.MISSING_ACT,
    Stage.ASSERT: ViolationKind.MISSING_ASSERT,
}

# "arrange", "act - do it", "Act & Assert", "act and assert", "act/assert"
_MARKER = re.compile(
    r"(?:arrange|act|assert)\b(?:\s*(?:&|\band\b|/|\+|,)\s*(?:arrange|act|assert)\b)*",
    re.IGNORECASE,
)
_STAGE_WORD = re.compile(r"arrange|act|assert", re.IGNORECASE)


@dataclass(frozen=True)
class Marker:
    """A stage marker at a source offset (the call site for helper markers)."""

    stage: Stage
    offset: int
    via: Optional[str] = None


def parse_marker(payload: str) -> List[Stage]:
    """Return the stages named at the start of a comment payload."""
    m = _MARKER.match(payload)
    if m is None:
        return []
    return [Stage[word.upper()] for word in _STAGE_WORD.findall(m.group(0))]


def markers_in(comments: List[CommentRecord]) -> List[Marker]:
    markers: List[Marker] = []
    for comment in comments:
        for stage in parse_marker(comment.text):
            markers.append(Marker(stage, comment.start))
    return markers


@dataclass
class StageRun:
    """Outcome of one pass of the state machine."""

    seen: List[Stage] = field(default_factory=list)
    wrong_order: Optional[Marker] = None
    previous: Optional[Stage] = None

    @property
    def missing(self) -> List[Stage]:
        if self.wrong_order is not None:
            return []
        return [stage for stage in Stage if stage not in self.seen]

    @property
    def complete(self) -> bool:
        return self.wrong_order is None and not self.missing


def run_stages(markers: List[Marker]) -> StageRun:
    run = StageRun()
    last = 0
    for marker in markers:
        if marker.stage <= last:
            run.wrong_order = marker
            run.previous = Stage(last)
            return run
        run.seen.append(marker.stage)
        last = marker.stage
    return run


@dataclass
class FunctionVerdict:
    """AAA verdict for one test function."""

    name: str
    exempt: bool = False
    delegated: bool = False
    violations: List[Violation] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations


class AAAValidator:
    """Validate AAA markers for every test function of one scanned file."""

    def __init__(
        self,
        source: ScannedSource,
        functions: FunctionIndex,
        *,
        delegate_to_helpers: bool = True,
    ) -> None:
        self.source = source
        self.functions = functions
        self.delegate_to_helpers = delegate_to_helpers
        self._helpers = functions.helpers
        self._helper_markers: Dict[str, List[Marker]] = {}

    def _body_markers(self, func: FunctionRecord) -> List[Marker]:
        start, end = func.body_range  # type: ignore[misc]
        return markers_in(extract_comments(self.source, start, end))

    def _markers_of_helper(self, helper: FunctionRecord) -> List[Marker]:
        cached = self._helper_markers.get(helper.name)
        if cached is None:
            cached = self._body_markers(helper)
            self._helper_markers[helper.name] = cached
        return cached

    def _delegated_markers(
        self, func: FunctionRecord, own: List[Marker], verdict: FunctionVerdict
    ) -> List[Marker]:
        merged: List[Tuple[int, int, Marker]] = [(m.offset, i, m) for i, m in enumerate(own)]
        order = len(merged)
        for call_offset, helper in called_helpers(func, self._helpers):
            helper_markers = self._markers_of_helper(helper)
            if not helper_markers:
                continue
            for marker in helper_markers:
                merged.append((call_offset, order, Marker(marker.stage, call_offset, via=helper.name)))
                order += 1
            nested = sorted(
                {
                    inner.name
                    for _, inner in called_helpers(helper, self._helpers)
                    if self._markers_of_helper(inner)
                }
            )
            if nested:
                verdict.anomalies.append(
                    self._anomaly(
                        AnomalyKind.DELEGATION_DEPTH,
                        call_offset,
                        f"helper '{helper.name}' delegates further to {', '.join(nested)}; "
                        "only direct helpers are followed",
                    )
                )
        merged.sort(key=lambda item: (item[0], item[1]))
        return [marker for _, _, marker in merged]

    def check_function(self, func: FunctionRecord) -> FunctionVerdict:
        verdict = FunctionVerdict(name=func.name)
        if has_exemption(self.source, func, EXEMPTION_TOKEN):
            verdict.exempt = True
            logger.debug("%s: %s exempt from AAA", self.source.path, func.name)
            return verdict

        own = self._body_markers(func)
        run = run_stages(own)
        if run.wrong_order is None and run.missing and self.delegate_to_helpers:
            merged = self._delegated_markers(func, own, verdict)
            if len(merged) > len(own):
                verdict.delegated = True
                run = run_stages(merged)

        if run.wrong_order is not None:
            marker = run.wrong_order
            where = f" (via {marker.via})" if marker.via else ""
            verdict.violations.append(
                self._violation(
                    ViolationKind.WRONG_ORDER,
                    marker.offset,
                    f"test '{func.name}': '{marker.stage.label}' marker{where} "
                    f"after '{run.previous.label}'",
                )
            )
            return verdict

        for stage in run.missing:
            verdict.violations.append(
                self._violation(
                    _MISSING_KIND[stage],
                    func.signature_start,
                    f"test '{func.name}' has no '{stage.label}' marker",
                )
            )
        return verdict

    def validate(self) -> List[FunctionVerdict]:
        return [self.check_function(func) for func in self.functions.tests]

    def _violation(self, kind: ViolationKind, offset: int, message: str) -> Violation:
        line, col = self.source.position(offset)
        return Violation(kind, self.source.path, line, col, message)

    def _anomaly(self, kind: AnomalyKind, offset: int, message: str) -> Anomaly:
        line, col = self.source.position(offset)
        return Anomaly(kind, self.source.path, line, col, message)


def validate_aaa(
    source: ScannedSource,
    functions: FunctionIndex,
    *,
    delegate_to_helpers: bool = True,
) -> Tuple[List[Violation], List[Anomaly]]:
    """Check every test function in ``functions``.

    Returns:
        ``(violations, anomalies)`` for the whole file.
    """
    violations: List[Violation] = []
    anomalies: List[Anomaly] = []
    validator = AAAValidator(source, functions, delegate_to_helpers=delegate_to_helpers)
    for verdict in validator.validate():
        violations.extend(verdict.violations)
        anomalies.extend(verdict.anomalies)
    return violations, anomalies


__all__ = [
    "EXEMPTION_TOKEN",
    "Stage",
    "Marker",
    "StageRun",
    "FunctionVerdict",
    "AAAValidator",
    "parse_marker",
    "markers_in",
    "run_stages",
    "validate_aaa",
]

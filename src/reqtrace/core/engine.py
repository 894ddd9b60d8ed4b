"""Per-file check pipeline and the parallel runner.

``check_source`` runs every enabled pass over one in-memory file: it does no
I/O and shares nothing with other calls, so ``CheckRunner`` can fan files out
to a thread pool. The canonical requirement map is the only shared input and
is only read.
"""
from __future__ import annotations

import concurrent.futures
import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from reqtrace.core.aaa.validator import validate_aaa
from reqtrace.core.config.sections import CheckSettings
from reqtrace.core.discovery import DiscoveredFile
from reqtrace.core.edits import Edit, apply_edits
from reqtrace.core.exceptions import SourceReadError
from reqtrace.core.models import (
    Anomaly,
    AnomalyKind,
    FileReport,
    FileRole,
    RunReport,
    Violation,
    ViolationKind,
)
from reqtrace.core.patterns import check_patterns
from reqtrace.core.scan.functions import locate_functions
from reqtrace.core.scan.lexer import SpanKind
from reqtrace.core.scan.source import ScannedSource
from reqtrace.core.srs.coverage import check_test_coverage
from reqtrace.core.srs.placement import check_placement
from reqtrace.core.srs.reconciler import reconcile_tags
from reqtrace.core.srs.tags import RequirementTag, extract_tags
from reqtrace.core.utils.io import atomic_write_text, read_source

logger = logging.getLogger(__name__)

_LEX_ANOMALY = {
    SpanKind.STRING: AnomalyKind.UNTERMINATED_STRING,
    SpanKind.CHAR: AnomalyKind.UNTERMINATED_CHAR,
    SpanKind.BLOCK_COMMENT: AnomalyKind.UNTERMINATED_COMMENT,
}


@dataclass(frozen=True)
class SourceFile:
    """A file's text tagged with its role; ``path`` is used for reporting only."""

    path: str
    text: str
    role: FileRole


def check_source(
    source_file: SourceFile,
    canonical: Optional[Mapping[str, str]] = None,
    settings: Optional[CheckSettings] = None,
    *,
    fix: bool = False,
) -> FileReport:
    """Run all enabled checks over one file.

    Args:
        source_file: File text, display path and role
        canonical: ``{requirement_id: text}`` map
        settings: Check switches (defaults when omitted)
        fix: Also compute the corrected buffer (``FileReport.fixed_text``)

    Returns:
        FileReport with violations ordered by position.
    """
    settings = settings or CheckSettings()
    canonical = canonical or {}
    source = ScannedSource(source_file.text, source_file.path)
    report = FileReport(
        path=source_file.path,
        role=source_file.role,
        original_text=source_file.text,
    )
    edits: List[Edit] = []

    for issue in source.issues:
        line, col = source.position(issue.offset)
        report.anomalies.append(
            Anomaly(_LEX_ANOMALY[issue.kind], source.path, line, col, issue.message)
        )

    functions = locate_functions(source, settings.test_anchors)
    for func in functions.unterminated:
        line, col = source.position(func.signature_start)
        report.anomalies.append(
            Anomaly(
                AnomalyKind.UNTERMINATED_FUNCTION,
                source.path,
                line,
                col,
                f"body of '{func.name}' has no closing brace; not analyzed",
            )
        )

    if settings.aaa_enabled and source_file.role is FileRole.TEST:
        violations, anomalies = validate_aaa(
            source, functions, delegate_to_helpers=settings.delegate_to_helpers
        )
        report.violations.extend(violations)
        report.anomalies.extend(anomalies)

    if settings.srs_enabled:
        scan = extract_tags(source)
        report.tags = scan.tags
        report.anomalies.extend(scan.anomalies)

        reconciliation = reconcile_tags(
            source, scan.tags, canonical, report_unknown=settings.report_unknown_ids
        )
        report.violations.extend(reconciliation.violations)
        report.anomalies.extend(reconciliation.anomalies)
        edits.extend(reconciliation.edits)

        if settings.placement:
            report.violations.extend(check_placement(source.path, source_file.role, scan.tags))
        if settings.test_tags and source_file.role is FileRole.TEST:
            report.violations.extend(check_test_coverage(source, functions, scan.tags))

    if settings.enable_mocks or settings.vld_include:
        patterns = check_patterns(
            source, enable_mocks=settings.enable_mocks, vld_include=settings.vld_include
        )
        report.violations.extend(patterns.violations)
        edits.extend(patterns.edits)

    report.violations.sort(key=lambda v: (v.line, v.column, v.kind.value))

    if fix:
        fixed, rejected = apply_edits(source_file.text, edits)
        for edit in rejected:
            line, col = source.position(min(edit.start, max(len(source.text) - 1, 0)))
            report.anomalies.append(
                Anomaly(
                    AnomalyKind.OVERLAPPING_EDIT,
                    source.path,
                    line,
                    col,
                    f"fix '{edit.reason}' overlaps another fix; skipped",
                )
            )
        report.fixed_text = fixed
    return report


def find_cross_file_conflicts(
    reports: Sequence[FileReport], canonical: Mapping[str, str]
) -> List[Violation]:
    """``DuplicateIdConflict`` for ids without canonical text whose tag text differs between files."""
    first_seen: Dict[Tuple[str, str], Tuple[str, RequirementTag]] = {}
    flagged = defaultdict(set)
    violations: List[Violation] = []
    for report in reports:
        for tag in report.tags:
            if tag.requirement_id in canonical:
                continue
            key = (tag.family, tag.requirement_id)
            seen = first_seen.get(key)
            if seen is None:
                first_seen[key] = (report.path, tag)
                continue
            path, first = seen
            if path == report.path or tag.text == first.text or report.path in flagged[key]:
                continue
            flagged[key].add(report.path)
            violations.append(
                Violation(
                    ViolationKind.DUPLICATE_ID_CONFLICT,
                    report.path,
                    tag.line,
                    tag.column,
                    f"{tag.tag_name} text differs from {path}:{first.line} "
                    "and there is no canonical text to decide",
                )
            )
    return violations


class CheckRunner:
    """Check many files, one task per file, and aggregate a RunReport."""

    def __init__(
        self,
        settings: CheckSettings,
        canonical: Optional[Mapping[str, str]] = None,
        *,
        fix: bool = False,
        write: bool = True,
    ) -> None:
        self.settings = settings
        self.canonical = dict(canonical or {})
        self.fix = fix
        self.write = write

    def check_file(self, discovered: DiscoveredFile) -> FileReport:
        text = read_source(discovered.path)
        return check_source(
            SourceFile(discovered.relative, text, discovered.role),
            self.canonical,
            self.settings,
            fix=self.fix,
        )

    @staticmethod
    def _failed(discovered: DiscoveredFile, message: str) -> FileReport:
        return FileReport(
            path=discovered.relative,
            role=discovered.role,
            anomalies=[Anomaly(AnomalyKind.ANALYSIS_FAILED, discovered.relative, 1, 1, message)],
        )

    def _run_sequential(self, files: Sequence[DiscoveredFile]) -> Dict[int, FileReport]:
        results: Dict[int, FileReport] = {}
        timeout = self.settings.timeout_seconds
        deadline = time.monotonic() + timeout if timeout else None
        for index, discovered in enumerate(files):
            if deadline is not None and time.monotonic() > deadline:
                results[index] = self._failed(discovered, "run timeout reached; file not analyzed")
                continue
            try:
                results[index] = self.check_file(discovered)
            except SourceReadError as exc:
                results[index] = self._failed(discovered, str(exc))
            except Exception as exc:
                logger.exception("analysis of %s failed", discovered.relative)
                results[index] = self._failed(discovered, f"analysis failed: {exc}")
        return results

    def _run_parallel(self, files: Sequence[DiscoveredFile]) -> Dict[int, FileReport]:
        results: Dict[int, FileReport] = {}
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=self.settings.max_workers)
        futures = {executor.submit(self.check_file, f): i for i, f in enumerate(files)}
        try:
            for future in concurrent.futures.as_completed(futures, timeout=self.settings.timeout_seconds):
                index = futures[future]
                discovered = files[index]
                try:
                    results[index] = future.result()
                except SourceReadError as exc:
                    results[index] = self._failed(discovered, str(exc))
                except Exception as exc:
                    logger.error("analysis of %s failed: %s", discovered.relative, exc)
                    results[index] = self._failed(discovered, f"analysis failed: {exc}")
        except concurrent.futures.TimeoutError:
            logger.warning("run timeout of %ss reached", self.settings.timeout_seconds)
            for future, index in futures.items():
                if index not in results:
                    future.cancel()
                    results[index] = self._failed(files[index], "run timeout reached; file not analyzed")
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return results

    def run(self, files: Sequence[DiscoveredFile]) -> RunReport:
        started = time.monotonic()
        if self.settings.max_workers <= 1 or len(files) <= 1:
            results = self._run_sequential(files)
        else:
            results = self._run_parallel(files)

        run = RunReport(files=[results[i] for i in range(len(files))])
        run.violations.extend(find_cross_file_conflicts(run.files, self.canonical))

        if self.fix and self.write:
            self._write_fixes(files, run)
        logger.info(
            "checked %d file(s) in %.2fs: %d violation(s)",
            len(files),
            time.monotonic() - started,
            len(run.all_violations),
        )
        return run

    def _write_fixes(self, files: Sequence[DiscoveredFile], run: RunReport) -> None:
        for discovered, report in zip(files, run.files):
            if not report.changed:
                continue
            try:
                atomic_write_text(Path(discovered.path), report.fixed_text or "")
            except OSError as exc:
                logger.error("cannot write fixes to %s: %s", discovered.relative, exc)
                report.anomalies.append(
                    Anomaly(
                        AnomalyKind.ANALYSIS_FAILED,
                        report.path,
                        1,
                        1,
                        f"fixes not written: {exc}",
                    )
                )
                report.fixed_text = None
                continue
            logger.info("fixed %s", discovered.relative)


__all__ = ["SourceFile", "check_source", "find_cross_file_conflicts", "CheckRunner"]

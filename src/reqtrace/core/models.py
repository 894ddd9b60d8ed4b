"""
Data models shared by every reqtrace check.

This module defines the records emitted by the scanning passes:
- Violation: a structural finding (missing AAA marker, text drift, ...)
- Anomaly: a soft finding about malformed input or skipped analysis
- FileReport / RunReport: per-file and per-run aggregation
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from reqtrace.core.srs.tags import RequirementTag


class ViolationKind(str, Enum):
    """Kinds of structural violations reported to CI."""

    MISSING_ARRANGE = "MissingArrange"
    MISSING_ACT = "MissingAct"
    MISSING_ASSERT = "MissingAssert"
    WRONG_ORDER = "WrongOrder"
    MISSING_TAG = "MissingTag"
    TEXT_DRIFT = "TextDrift"
    WRONG_PREFIX_FOR_FILE_ROLE = "WrongPrefixForFileRole"
    DUPLICATE_ID_CONFLICT = "DuplicateIdConflict"
    DEPRECATED_MOCK_PATTERN = "DeprecatedMockPattern"
    FORBIDDEN_INCLUDE = "ForbiddenInclude"


class AnomalyKind(str, Enum):
    """Kinds of soft anomalies; never fatal, never counted as violations."""

    UNTERMINATED_STRING = "unterminated_string"
    UNTERMINATED_CHAR = "unterminated_char"
    UNTERMINATED_COMMENT = "unterminated_comment"
    UNTERMINATED_FUNCTION = "unterminated_function"
    UNTERMINATED_TAG = "unterminated_tag"
    UNKNOWN_REQUIREMENT = "unknown_requirement"
    UNSAFE_FIX = "unsafe_fix"
    OVERLAPPING_EDIT = "overlapping_edit"
    DELEGATION_DEPTH = "delegation_depth"
    ANALYSIS_FAILED = "analysis_failed"


class FileRole(str, Enum):
    """Role of a source file, decided by path convention."""

    PRODUCTION = "production"
    TEST = "test"


@dataclass(frozen=True)
class Violation:
    """A structural violation at a source location."""

    kind: ViolationKind
    path: str
    line: int
    column: int
    message: str

    def sort_key(self) -> tuple:
        return (self.path, self.line, self.column, self.kind.value)

    def format(self) -> str:
        return f"{self.path}:{self.line}:{self.column}: {self.kind.value}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.path,
            "line": self.line,
            "column": self.column,
            "kind": self.kind.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class Anomaly:
    """A soft finding (malformed input, skipped fix, failed analysis)."""

    kind: AnomalyKind
    path: str
    line: int
    column: int
    message: str

    def format(self) -> str:
        return f"{self.path}:{self.line}:{self.column}: {self.kind.value}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.path,
            "line": self.line,
            "column": self.column,
            "kind": self.kind.value,
            "message": self.message,
        }


@dataclass
class FileReport:
    """Result of checking a single file."""

    path: str
    role: FileRole
    violations: List[Violation] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)
    tags: List["RequirementTag"] = field(default_factory=list)
    original_text: Optional[str] = None
    fixed_text: Optional[str] = None

    @property
    def changed(self) -> bool:
        """True when auto-fix produced a buffer that differs from the input."""
        return self.fixed_text is not None and self.fixed_text != self.original_text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.path,
            "role": self.role.value,
            "violations": [v.to_dict() for v in self.violations],
            "anomalies": [a.to_dict() for a in self.anomalies],
            "fixed": self.changed,
        }


@dataclass
class RunReport:
    """Aggregated result of checking many files."""

    files: List[FileReport] = field(default_factory=list)
    violations: List[Violation] = field(default_factory=list)
    anomalies: List[Anomaly] = field(default_factory=list)

    @property
    def all_violations(self) -> List[Violation]:
        found = [v for report in self.files for v in report.violations]
        found.extend(self.violations)
        return sorted(found, key=Violation.sort_key)

    @property
    def all_anomalies(self) -> List[Anomaly]:
        found = [a for report in self.files for a in report.anomalies]
        found.extend(self.anomalies)
        return found

    @property
    def ok(self) -> bool:
        return not self.all_violations

    def summary(self) -> Dict[str, Any]:
        counts = Counter(v.kind.value for v in self.all_violations)
        return {
            "files": len(self.files),
            "violations": sum(counts.values()),
            "anomalies": len(self.all_anomalies),
            "fixed_files": sum(1 for r in self.files if r.changed),
            "by_kind": dict(sorted(counts.items())),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary(),
            "files": [r.to_dict() for r in self.files],
            "violations": [v.to_dict() for v in self.violations],
            "anomalies": [a.to_dict() for a in self.anomalies],
        }


__all__ = [
    "ViolationKind",
    "AnomalyKind",
    "FileRole",
    "Violation",
    "Anomaly",
    "FileReport",
    "RunReport",
]

"""Tag family placement: production code carries ``Codes_SRS_`` tags, tests carry ``Tests_SRS_``."""
from __future__ import annotations

from typing import Iterable, List

from reqtrace.core.models import FileRole, Violation, ViolationKind

from .tags import CODES, TESTS, RequirementTag

EXPECTED_FAMILY = {
    FileRole.PRODUCTION: CODES,
    FileRole.TEST: TESTS,
}


def check_placement(path: str, role: FileRole, tags: Iterable[RequirementTag]) -> List[Violation]:
    """One ``WrongPrefixForFileRole`` per tag whose family does not fit ``role``."""
    expected = EXPECTED_FAMILY[role]
    violations: List[Violation] = []
    for tag in tags:
        if tag.family == expected:
            continue
        violations.append(
            Violation(
                ViolationKind.WRONG_PREFIX_FOR_FILE_ROLE,
                path,
                tag.line,
                tag.column,
                f"{tag.tag_name} in a {role.value} file; expected {expected}_SRS_ prefix",
            )
        )
    return violations


__all__ = ["EXPECTED_FAMILY", "check_placement"]

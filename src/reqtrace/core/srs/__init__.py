"""Requirement tags: extraction, canonical text, reconciliation, placement, coverage."""
from __future__ import annotations

from .canonical import (
    CanonicalRequirement,
    load_canonical_requirements,
    normalize_canonical_text,
    parse_requirements_markdown,
    resolve_requirement_files,
)
from .coverage import check_test_coverage
from .placement import check_placement
from .reconciler import Reconciliation, Reconciler, reconcile_tags
from .tags import RequirementTag, TagScan, extract_tags

__all__ = [
    "CanonicalRequirement",
    "load_canonical_requirements",
    "normalize_canonical_text",
    "parse_requirements_markdown",
    "resolve_requirement_files",
    "check_test_coverage",
    "check_placement",
    "Reconciliation",
    "Reconciler",
    "reconcile_tags",
    "RequirementTag",
    "TagScan",
    "extract_tags",
]

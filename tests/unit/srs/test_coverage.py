"""Tests for the requirement-tag-per-test check."""
from __future__ import annotations

from reqtrace.core.models import ViolationKind
from reqtrace.core.scan.functions import locate_functions
from reqtrace.core.scan.source import ScannedSource
from reqtrace.core.srs.coverage import check_test_coverage, leading_comment_start
from reqtrace.core.srs.tags import extract_tags


def _check(text: str):
    source = ScannedSource(text, "widget_ut.c")
    return check_test_coverage(source, locate_functions(source), extract_tags(source).tags)


def test_tag_directly_above_test_satisfies_check() -> None:
    text = "/* Tests_SRS_WIDGET_01_001: [ text ]*/\nTEST_FUNCTION(t)\n{\n}\n"

    assert _check(text) == []


def test_tag_within_leading_comment_block_counts() -> None:
    text = (
        "// Tests_SRS_WIDGET_01_001: [ one ]\n"
        "\n"
        "/* some explanation */\n"
        "TEST_FUNCTION(t)\n{\n}\n"
    )

    assert _check(text) == []


def test_regular_comment_only_is_missing_tag() -> None:
    text = "/* just a description */\nTEST_FUNCTION(t)\n{\n}\n"

    violations = _check(text)

    assert [(v.kind, v.line) for v in violations] == [(ViolationKind.MISSING_TAG, 2)]


def test_tag_above_previous_test_does_not_count() -> None:
    text = (
        "/* Tests_SRS_WIDGET_01_001: [ one ]*/\n"
        "TEST_FUNCTION(first)\n{\n}\n"
        "TEST_FUNCTION(second)\n{\n}\n"
    )

    violations = _check(text)

    assert [v.message for v in violations] == ["test 'second' is not preceded by a requirement tag"]


def test_tag_inside_body_does_not_count() -> None:
    text = "TEST_FUNCTION(t)\n{\n    // Tests_SRS_WIDGET_01_001: [ one ]\n}\n"

    assert len(_check(text)) == 1


def test_no_srs_exemption() -> None:
    text = "TEST_FUNCTION(t) // no-srs\n{\n}\n"

    assert _check(text) == []


def test_leading_comment_start_without_comments() -> None:
    text = "int x;\nTEST_FUNCTION(t)\n{\n}\n"
    source = ScannedSource(text)
    func = locate_functions(source).tests[0]

    assert leading_comment_start(source, func) == func.signature_start

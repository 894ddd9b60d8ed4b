"""Tests for reconciling tag text with canonical requirement text."""
from __future__ import annotations

from reqtrace.core.edits import apply_edits
from reqtrace.core.models import AnomalyKind, ViolationKind
from reqtrace.core.scan.comments import CommentStyle
from reqtrace.core.scan.source import ScannedSource
from reqtrace.core.srs.reconciler import dominant_padding, reconcile_tags, unsafe_reason
from reqtrace.core.srs.tags import extract_tags

CANONICAL = {
    "SRS_LINE_COMMENT_TEST_02_001": "test_module_create shall allocate memory for a test module.",
    "SRS_WIDGET_01_001": "widget_create shall allocate a widget.",
    "SRS_WIDGET_01_002": "If size is 0, widget_create shall fail and return NULL.",
}


def _reconcile(text: str, canonical=CANONICAL, **kwargs):
    source = ScannedSource(text, "widget.c")
    tags = extract_tags(source).tags
    return reconcile_tags(source, tags, canonical, **kwargs)


def _fix(text: str, canonical=CANONICAL) -> str:
    fixed, rejected = apply_edits(text, _reconcile(text, canonical).edits)
    assert rejected == []
    return fixed


def test_drifted_block_tag_is_fixed_in_place() -> None:
    text = "/* Codes_SRS_LINE_COMMENT_TEST_02_001: [ allocate memory - WRONG TEXT ]*/\n"

    result = _reconcile(text)
    fixed = _fix(text)

    assert [v.kind for v in result.violations] == [ViolationKind.TEXT_DRIFT]
    assert fixed == (
        "/* Codes_SRS_LINE_COMMENT_TEST_02_001: "
        "[ test_module_create shall allocate memory for a test module. ]*/\n"
    )


def test_matching_text_produces_nothing() -> None:
    text = "// Codes_SRS_WIDGET_01_001: [ widget_create shall allocate a widget. ]\n"

    result = _reconcile(text)

    assert result.violations == []
    assert result.edits == []


def test_whitespace_differences_are_not_drift() -> None:
    text = (
        "// Codes_SRS_WIDGET_01_002: [ If size is 0,   widget_create shall\n"
        "//   fail and return NULL. ]\n"
    )

    assert _reconcile(text).violations == []


def test_bold_wrapped_tag_matching_canonical_is_not_drift() -> None:
    text = "/* Codes_SRS_WIDGET_01_001: [** widget_create shall allocate a widget. **]*/\n"

    assert _reconcile(text).violations == []


ESCAPED_CANONICAL = {
    "SRS_SLOT_01_001": "If next_available_slot \\< window_count then  test_function shall increment the count.",
}


def test_canonical_escapes_and_spacing_are_normalized_before_comparison() -> None:
    text = (
        "/* Codes_SRS_SLOT_01_001: [ If next_available_slot < window_count then "
        "test_function shall increment the count. ]*/\n"
    )

    assert _reconcile(text, ESCAPED_CANONICAL).violations == []


def test_fix_writes_normalized_canonical_text_and_converges() -> None:
    text = "/* Codes_SRS_SLOT_01_001: [ stale ]*/\n"

    fixed = _fix(text, ESCAPED_CANONICAL)

    assert fixed == (
        "/* Codes_SRS_SLOT_01_001: [ If next_available_slot < window_count then "
        "test_function shall increment the count. ]*/\n"
    )
    assert _reconcile(fixed, ESCAPED_CANONICAL).violations == []


def test_reconciliation_is_idempotent() -> None:
    text = (
        "/* Codes_SRS_WIDGET_01_001: [ old text ]*/\n"
        "// Codes_SRS_WIDGET_01_002: [ something\n"
        "//     else entirely ]\n"
        "/* Codes_SRS_LINE_COMMENT_TEST_02_001: [ stale ]*/\n"
    )

    once = _fix(text)
    twice = _fix(once)

    assert once != text
    assert twice == once
    assert _reconcile(once).violations == []


def test_fix_keeps_prefix_family_and_delimiters() -> None:
    text = "/// Tests_SRS_WIDGET_01_001: [old]\n"

    fixed = _fix(text)

    assert fixed == "/// Tests_SRS_WIDGET_01_001: [widget_create shall allocate a widget.]\n"


def test_multiline_tag_is_rewritten_with_file_padding() -> None:
    text = (
        "/* Codes_SRS_WIDGET_01_001: [  widget_create shall allocate a widget.  ]*/\n"
        "/* Codes_SRS_WIDGET_01_002: [ If size\n"
        "   is zero then fail ]*/\n"
    )

    fixed = _fix(text)

    assert (
        "/* Codes_SRS_WIDGET_01_002: [  If size is 0, widget_create shall fail and return NULL.  ]*/"
        in fixed
    )


def test_consecutive_drifted_tags_are_fixed_independently() -> None:
    text = (
        "/* Codes_SRS_WIDGET_01_001: [ wrong one ]*/\n"
        "/* Codes_SRS_WIDGET_01_002: [ wrong two ]*/\n"
    )

    fixed = _fix(text)

    assert fixed == (
        "/* Codes_SRS_WIDGET_01_001: [ widget_create shall allocate a widget. ]*/\n"
        "/* Codes_SRS_WIDGET_01_002: [ If size is 0, widget_create shall fail and return NULL. ]*/\n"
    )


def test_outside_of_payload_is_byte_identical() -> None:
    text = "int a;\r\n/*   Codes_SRS_WIDGET_01_001 : [ nope ]   */\r\nint b;\r\n"

    fixed = _fix(text)

    assert fixed == "int a;\r\n/*   Codes_SRS_WIDGET_01_001 : [ widget_create shall allocate a widget. ]   */\r\nint b;\r\n"


def test_unknown_ids_are_left_alone() -> None:
    text = "// Codes_SRS_OTHER_01_001: [ anything ]\n"

    quiet = _reconcile(text)
    loud = _reconcile(text, report_unknown=True)

    assert quiet.violations == [] and quiet.anomalies == [] and quiet.edits == []
    assert [a.kind for a in loud.anomalies] == [AnomalyKind.UNKNOWN_REQUIREMENT]


def test_duplicate_unknown_ids_with_different_text_conflict() -> None:
    text = (
        "// Codes_SRS_OTHER_01_001: [ first ]\n"
        "int x;\n"
        "// Codes_SRS_OTHER_01_001: [ second ]\n"
    )

    result = _reconcile(text)

    assert [v.kind for v in result.violations] == [ViolationKind.DUPLICATE_ID_CONFLICT]
    assert result.violations[0].line == 3


def test_both_families_drift_against_canonical() -> None:
    text = (
        "// Codes_SRS_WIDGET_01_001: [ widget_create shall allocate a widget. ]\n"
        "int x;\n"
        "// Tests_SRS_WIDGET_01_001: [ widget_create allocates ]\n"
    )

    result = _reconcile(text)

    assert [(v.kind, v.line) for v in result.violations] == [(ViolationKind.TEXT_DRIFT, 3)]


def test_unsafe_fix_is_reported_not_applied() -> None:
    canonical = {"SRS_WIDGET_01_001": "widget_create shall close */ early."}
    text = "/* Codes_SRS_WIDGET_01_001: [ old ]*/\n"

    result = _reconcile(text, canonical)

    assert [v.kind for v in result.violations] == [ViolationKind.TEXT_DRIFT]
    assert [a.kind for a in result.anomalies] == [AnomalyKind.UNSAFE_FIX]
    assert result.edits == []


class TestHelpers:
    def test_dominant_padding_is_most_common_single_line_padding(self) -> None:
        source = ScannedSource(
            "// Codes_SRS_A_01_001: [a]\n"
            "int x;\n"
            "// Codes_SRS_A_01_002: [b]\n"
            "int y;\n"
            "// Codes_SRS_A_01_003: [ c ]\n"
        )

        assert dominant_padding(extract_tags(source).tags) == ("", "")

    def test_dominant_padding_default(self) -> None:
        assert dominant_padding([]) == (" ", " ")

    def test_unsafe_reason(self) -> None:
        assert unsafe_reason(" fine [0] ", CommentStyle.BLOCK) is None
        assert unsafe_reason(" a ] b ", CommentStyle.BLOCK) is not None
        assert unsafe_reason(" trailing \\", CommentStyle.BLOCK) is not None
        assert unsafe_reason(" see Codes_SRS_A_01_001: [x] ", CommentStyle.BLOCK) is not None
        assert unsafe_reason(" a\nb ", CommentStyle.LINE) is not None

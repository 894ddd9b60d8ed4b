"""Tests for the per-file pipeline, discovery and the parallel runner."""
from __future__ import annotations

from pathlib import Path

import pytest

from reqtrace.core.config import CheckSettings
from reqtrace.core.discovery import DiscoveredFile, classify_role, discover_files
from reqtrace.core.engine import CheckRunner, SourceFile, check_source, find_cross_file_conflicts
from reqtrace.core.models import AnomalyKind, FileRole, ViolationKind
from reqtrace.core.patterns import ENABLE_MOCKS_INCLUDE

CANONICAL = {
    "SRS_WIDGET_01_001": "widget_create shall allocate a widget.",
    "SRS_WIDGET_01_002": "If size is 0, widget_create shall fail and return NULL.",
}

DRIFTING_TEST = """\
#define ENABLE_MOCKS
#include "widget.h"
#undef ENABLE_MOCKS

/* Tests_SRS_WIDGET_01_001: [ widget_create allocates ]*/
TEST_FUNCTION(widget_create_succeeds)
{
    ///act
    WIDGET_HANDLE h = widget_create(1);
    ///assert
    ASSERT_IS_NOT_NULL(h);
}
"""


def _test_file(text: str, path: str = "widget_ut.c") -> SourceFile:
    return SourceFile(path, text, FileRole.TEST)


class TestCheckSource:
    def test_reports_every_pass_sorted_by_position(self) -> None:
        report = check_source(_test_file(DRIFTING_TEST), CANONICAL)

        assert [(v.line, v.kind) for v in report.violations] == [
            (1, ViolationKind.DEPRECATED_MOCK_PATTERN),
            (3, ViolationKind.DEPRECATED_MOCK_PATTERN),
            (5, ViolationKind.TEXT_DRIFT),
            (6, ViolationKind.MISSING_ARRANGE),
        ]
        assert report.fixed_text is None

    def test_fix_applies_tag_and_pattern_edits_once(self) -> None:
        report = check_source(_test_file(DRIFTING_TEST), CANONICAL, fix=True)

        assert report.changed
        fixed = report.fixed_text
        assert fixed.count("umock_c_ENABLE_MOCKS.h") == 1
        assert fixed.count("umock_c_DISABLE_MOCKS.h") == 1
        assert "/* Tests_SRS_WIDGET_01_001: [ widget_create shall allocate a widget. ]*/" in fixed

        again = check_source(_test_file(fixed), CANONICAL, fix=True)
        assert [v.kind for v in again.violations] == [ViolationKind.MISSING_ARRANGE]
        assert not again.changed

    def test_production_files_skip_aaa_and_coverage(self) -> None:
        text = "void widget_destroy(void* p)\n{\n    free(p);\n}\n"

        report = check_source(SourceFile("widget.c", text, FileRole.PRODUCTION), CANONICAL)

        assert report.violations == []

    def test_missing_tag_on_test_file(self) -> None:
        text = "TEST_FUNCTION(t)\n{\n    // arrange\n    // act\n    // assert\n}\n"

        report = check_source(_test_file(text), CANONICAL)

        assert [v.kind for v in report.violations] == [ViolationKind.MISSING_TAG]

    def test_settings_switch_passes_off(self) -> None:
        settings = CheckSettings(aaa_enabled=False, srs_enabled=False, enable_mocks=False, vld_include=False)

        report = check_source(_test_file(DRIFTING_TEST), CANONICAL, settings)

        assert report.violations == []
        assert report.tags == []

    def test_malformed_input_becomes_anomalies(self) -> None:
        text = 'TEST_FUNCTION(t)\n{\n    const char* s = "oops;\n    if (x) {\n'

        report = check_source(_test_file(text), CANONICAL)

        kinds = {a.kind for a in report.anomalies}
        assert AnomalyKind.UNTERMINATED_STRING in kinds
        assert AnomalyKind.UNTERMINATED_FUNCTION in kinds

    def test_overlapping_fix_is_dropped_with_anomaly(self) -> None:
        text = "#define ENABLE_MOCKS /* Codes_SRS_WIDGET_01_001: [ stale ]*/\n"

        report = check_source(SourceFile("widget.c", text, FileRole.PRODUCTION), CANONICAL, fix=True)

        assert [a.kind for a in report.anomalies] == [AnomalyKind.OVERLAPPING_EDIT]
        assert report.fixed_text == f"{ENABLE_MOCKS_INCLUDE}\n"


def test_cross_file_conflicts_for_ids_without_canonical_text() -> None:
    a = check_source(SourceFile("a.c", "// Codes_SRS_X_01_001: [ one ]\n", FileRole.PRODUCTION), {})
    b = check_source(SourceFile("b.c", "// Codes_SRS_X_01_001: [ two ]\n", FileRole.PRODUCTION), {})
    c = check_source(SourceFile("c.c", "// Codes_SRS_X_01_001: [ one ]\n", FileRole.PRODUCTION), {})

    conflicts = find_cross_file_conflicts([a, b, c], {})

    assert [(v.kind, v.path) for v in conflicts] == [(ViolationKind.DUPLICATE_ID_CONFLICT, "b.c")]
    assert find_cross_file_conflicts([a, b], {"SRS_X_01_001": "one"}) == []


class TestDiscovery:
    @pytest.mark.parametrize(
        "relative, role",
        [
            ("src/widget.c", FileRole.PRODUCTION),
            ("tests/widget_ut/widget_ut.c", FileRole.TEST),
            ("tests/widget_int/main.c", FileRole.TEST),
            ("widget_ut.cpp", FileRole.TEST),
            ("inc/widget.h", FileRole.PRODUCTION),
        ],
    )
    def test_classify_role(self, relative: str, role: FileRole) -> None:
        assert classify_role(relative, CheckSettings().test_file_patterns) is role

    def test_walks_includes_minus_excludes(self, widget_repo: Path) -> None:
        (widget_repo / "deps" / "lib").mkdir(parents=True)
        (widget_repo / "deps" / "lib" / "dep.c").write_text("", encoding="utf-8")
        (widget_repo / "README.md").write_text("", encoding="utf-8")
        settings = CheckSettings(exclude=("deps/**",))

        files = discover_files(widget_repo, settings)

        assert [(f.relative, f.role) for f in files] == [
            ("src/widget.c", FileRole.PRODUCTION),
            ("tests/widget_ut/widget_ut.c", FileRole.TEST),
        ]

    def test_explicit_paths(self, widget_repo: Path) -> None:
        files = discover_files(widget_repo, CheckSettings(), [widget_repo / "src"])

        assert [f.relative for f in files] == ["src/widget.c"]


class TestCheckRunner:
    def _files(self, root: Path):
        return discover_files(root, CheckSettings())

    @pytest.mark.parametrize("workers", [1, 4])
    def test_clean_repository(self, widget_repo: Path, workers: int) -> None:
        runner = CheckRunner(CheckSettings(max_workers=workers), CANONICAL)

        run = runner.run(self._files(widget_repo))

        assert run.ok
        assert [r.path for r in run.files] == ["src/widget.c", "tests/widget_ut/widget_ut.c"]

    def test_fix_writes_files_atomically(self, widget_repo: Path) -> None:
        target = widget_repo / "src" / "widget.c"
        target.write_text(target.read_text(encoding="utf-8").replace("allocate a widget.", "make one."), encoding="utf-8")

        run = CheckRunner(CheckSettings(), CANONICAL, fix=True).run(self._files(widget_repo))

        assert [v.kind for v in run.all_violations] == [ViolationKind.TEXT_DRIFT]
        assert run.summary()["fixed_files"] == 1
        assert "allocate a widget." in target.read_text(encoding="utf-8")
        assert CheckRunner(CheckSettings(), CANONICAL).run(self._files(widget_repo)).ok

    def test_fix_without_write_leaves_disk_alone(self, widget_repo: Path) -> None:
        target = widget_repo / "src" / "widget.c"
        target.write_text("#define ENABLE_MOCKS\n", encoding="utf-8")

        run = CheckRunner(CheckSettings(), CANONICAL, fix=True, write=False).run(self._files(widget_repo))

        assert run.files[0].changed
        assert target.read_text(encoding="utf-8") == "#define ENABLE_MOCKS\n"

    def test_unreadable_file_is_an_anomaly(self, tmp_path: Path) -> None:
        missing = DiscoveredFile(tmp_path / "gone.c", "gone.c", FileRole.PRODUCTION)

        run = CheckRunner(CheckSettings(max_workers=1)).run([missing])

        assert run.ok
        assert [a.kind for a in run.all_anomalies] == [AnomalyKind.ANALYSIS_FAILED]

    def test_worker_exception_does_not_stop_the_run(self, widget_repo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        import reqtrace.core.engine as engine

        real = engine.check_source

        def flaky(source_file, *args, **kwargs):
            if source_file.path.endswith("widget.c"):
                raise RuntimeError("boom")
            return real(source_file, *args, **kwargs)

        monkeypatch.setattr(engine, "check_source", flaky)

        run = CheckRunner(CheckSettings(max_workers=2), CANONICAL).run(self._files(widget_repo))

        assert [r.path for r in run.files] == ["src/widget.c", "tests/widget_ut/widget_ut.c"]
        assert [a.kind for a in run.files[0].anomalies] == [AnomalyKind.ANALYSIS_FAILED]
        assert "boom" in run.files[0].anomalies[0].message
        assert run.files[1].anomalies == []

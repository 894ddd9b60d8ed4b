"""Tests for canonical requirement loading from Markdown."""
from __future__ import annotations

import logging
from pathlib import Path

import pytest

from reqtrace.core.exceptions import CanonicalSpecError
from reqtrace.core.srs.canonical import (
    load_canonical_requirements,
    normalize_canonical_text,
    parse_requirements_markdown,
    resolve_requirement_files,
)

DOCUMENT = """\
# widget requirements

## widget_create

```c
WIDGET_HANDLE widget_create(int size);
```

**SRS_WIDGET_01_001: [** `widget_create` shall allocate a widget. **]**

**SRS_WIDGET_01_002: [** If `size` is 0, `widget_create` shall fail
and return `NULL`. **]**

**SRS_WIDGET_01_003: [** `widget_compare` shall return 1 when `a\\<b`
and `items[0]` is set. **]**
"""


def test_parses_every_requirement() -> None:
    found = parse_requirements_markdown(DOCUMENT, "widget.md")

    assert [r.requirement_id for r in found] == [
        "SRS_WIDGET_01_001",
        "SRS_WIDGET_01_002",
        "SRS_WIDGET_01_003",
    ]
    assert found[0].text == "widget_create shall allocate a widget."
    assert found[0].path == "widget.md"
    assert found[0].line == 9


def test_multiline_requirement_is_collapsed() -> None:
    found = parse_requirements_markdown(DOCUMENT)

    assert found[1].text == "If size is 0, widget_create shall fail and return NULL."


def test_markdown_escapes_are_removed_and_brackets_kept() -> None:
    found = parse_requirements_markdown(DOCUMENT)

    assert found[2].text == "widget_compare shall return 1 when a<b and items[0] is set."


@pytest.mark.parametrize(
    "markdown, plain",
    [
        ("** text **", "text"),
        ("a \\> b", "a > b"),
        ("path \\\\ name", "path \\ name"),
        ("`code`  here", "code here"),
    ],
)
def test_normalize_canonical_text(markdown: str, plain: str) -> None:
    assert normalize_canonical_text(markdown) == plain


def test_unclosed_requirement_is_skipped_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    text = "**SRS_A_01_001: [** never closed\n\n**SRS_A_01_002: [** fine **]**\n"

    with caplog.at_level(logging.WARNING):
        found = parse_requirements_markdown(text, "a.md")

    assert [r.requirement_id for r in found] == ["SRS_A_01_002"]
    assert "SRS_A_01_001" in caplog.text


class TestLoading:
    def test_resolves_globs_relative_to_root(self, tmp_path: Path) -> None:
        (tmp_path / "devdoc" / "sub").mkdir(parents=True)
        (tmp_path / "devdoc" / "a.md").write_text("", encoding="utf-8")
        (tmp_path / "devdoc" / "sub" / "b.md").write_text("", encoding="utf-8")
        (tmp_path / "devdoc" / "notes.txt").write_text("", encoding="utf-8")

        files = resolve_requirement_files(tmp_path, ["devdoc/**/*.md"])

        assert [p.relative_to(tmp_path).as_posix() for p in files] == ["devdoc/a.md", "devdoc/sub/b.md"]

    def test_absolute_file_pattern(self, tmp_path: Path) -> None:
        doc = tmp_path / "reqs.md"
        doc.write_text("", encoding="utf-8")

        assert resolve_requirement_files(Path("/nonexistent"), [str(doc)]) == [doc]

    def test_load_builds_id_to_text_map(self, tmp_path: Path) -> None:
        doc = tmp_path / "widget.md"
        doc.write_text(DOCUMENT, encoding="utf-8")

        canonical = load_canonical_requirements([doc])

        assert canonical["SRS_WIDGET_01_001"] == "widget_create shall allocate a widget."
        assert len(canonical) == 3

    def test_first_definition_wins(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        first = tmp_path / "a.md"
        second = tmp_path / "b.md"
        first.write_text("**SRS_A_01_001: [** original **]**\n", encoding="utf-8")
        second.write_text("**SRS_A_01_001: [** changed **]**\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING):
            canonical = load_canonical_requirements([first, second])

        assert canonical == {"SRS_A_01_001": "original"}
        assert "redefined" in caplog.text

    def test_unreadable_document_raises(self, tmp_path: Path) -> None:
        with pytest.raises(CanonicalSpecError) as excinfo:
            load_canonical_requirements([tmp_path / "missing.md"])

        assert excinfo.value.context["path"].endswith("missing.md")

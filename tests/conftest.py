import os
import sys
from pathlib import Path
from typing import Callable

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'reqtrace'
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from reqtrace.core.logging_setup import reset_logging_for_tests  # noqa: E402
from reqtrace.core.scan.source import ScannedSource  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch):
    """Drop REQTRACE_* overrides from the developer's shell and reset logging."""
    for key in list(os.environ):
        if key.startswith("REQTRACE_"):
            monkeypatch.delenv(key, raising=False)
    yield
    reset_logging_for_tests()


@pytest.fixture
def scanned() -> Callable[..., ScannedSource]:
    """Factory: ``scanned(text, path="x.c")`` -> ScannedSource."""

    def _make(text: str, path: str = "sample.c") -> ScannedSource:
        return ScannedSource(text, path)

    return _make


SAMPLE_TEST_FILE = """\
#include "testrunnerswitcher.h"
#include "umock_c/umock_c.h"

BEGIN_TEST_SUITE(widget_ut)

/* Tests_SRS_WIDGET_01_001: [ widget_create shall allocate a widget. ]*/
TEST_FUNCTION(widget_create_allocates)
{
    ///arrange
    int size = 4;

    ///act
    WIDGET_HANDLE result = widget_create(size);

    ///assert
    ASSERT_IS_NOT_NULL(result);

    ///cleanup
    widget_destroy(result);
}

/* Tests_SRS_WIDGET_01_002: [ If size is 0, widget_create shall fail and return NULL. ]*/
TEST_FUNCTION(widget_create_with_zero_size_fails)
{
    ///arrange
    int size = 0;

    ///act
    WIDGET_HANDLE result = widget_create(size);

    ///assert
    ASSERT_IS_NULL(result);
}

END_TEST_SUITE(widget_ut)
"""

SAMPLE_PRODUCTION_FILE = """\
#include <stdlib.h>
#include "widget.h"

WIDGET_HANDLE widget_create(int size)
{
    WIDGET_HANDLE result;
    /* Codes_SRS_WIDGET_01_002: [ If size is 0, widget_create shall fail and return NULL. ]*/
    if (size == 0)
    {
        result = NULL;
    }
    else
    {
        /* Codes_SRS_WIDGET_01_001: [ widget_create shall allocate a widget. ]*/
        result = malloc(sizeof(WIDGET));
    }
    return result;
}
"""

SAMPLE_REQUIREMENTS = """\
# widget requirements

```c
WIDGET_HANDLE widget_create(int size);
```

**SRS_WIDGET_01_001: [** `widget_create` shall allocate a widget. **]**

**SRS_WIDGET_01_002: [** If `size` is 0, `widget_create` shall fail and return `NULL`. **]**
"""


@pytest.fixture
def widget_repo(tmp_path: Path) -> Path:
    """A small repository: one production file, one test file, one requirement document."""
    (tmp_path / ".git").mkdir()
    (tmp_path / "src").mkdir()
    (tmp_path / "tests" / "widget_ut").mkdir(parents=True)
    (tmp_path / "devdoc").mkdir()
    (tmp_path / "src" / "widget.c").write_text(SAMPLE_PRODUCTION_FILE, encoding="utf-8")
    (tmp_path / "tests" / "widget_ut" / "widget_ut.c").write_text(SAMPLE_TEST_FILE, encoding="utf-8")
    (tmp_path / "devdoc" / "widget_requirements.md").write_text(SAMPLE_REQUIREMENTS, encoding="utf-8")
    return tmp_path

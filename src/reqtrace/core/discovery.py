"""Source file discovery and file-role classification.

Roles follow path conventions: unit and integration test sources live in
``*_ut`` / ``*_int`` directories or carry those suffixes; everything else is
production code.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Sequence

from reqtrace.core.config.sections import CheckSettings
from reqtrace.core.models import FileRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredFile:
    path: Path
    relative: str
    role: FileRole


def _matches_any(relative: str, patterns: Iterable[str]) -> bool:
    name = PurePosixPath(relative).name
    return any(fnmatchcase(relative, p) or fnmatchcase(name, p) for p in patterns)


def classify_role(relative: str, test_file_patterns: Sequence[str]) -> FileRole:
    """Role of a file given its repository-relative POSIX path."""
    if _matches_any(relative, test_file_patterns):
        return FileRole.TEST
    return FileRole.PRODUCTION


def _relative(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def _walk(directory: Path, root: Path, settings: CheckSettings) -> Iterable[Path]:
    for pattern in settings.include:
        for candidate in directory.glob(pattern):
            if candidate.is_file() and not _matches_any(_relative(candidate, root), settings.exclude):
                yield candidate


def discover_files(
    root: Path,
    settings: CheckSettings,
    paths: Optional[Sequence[Path]] = None,
) -> List[DiscoveredFile]:
    """Collect the files to check.

    Args:
        root: Repository root; relative paths and role patterns are based on it
        settings: Include/exclude globs and test-file patterns
        paths: Explicit files or directories. Files are taken as given (no
            include/exclude filtering); directories are walked with the globs.
            Defaults to walking ``root``.

    Returns:
        Files sorted by relative path, each with its role.
    """
    root = Path(root).resolve()
    found = {}
    for target in paths or [root]:
        target = Path(target)
        if not target.is_absolute():
            target = Path.cwd() / target
        if target.is_file():
            found[target.resolve()] = None
        elif target.is_dir():
            for candidate in _walk(target, root, settings):
                found[candidate.resolve()] = None
        else:
            logger.warning("path does not exist: %s", target)

    files = []
    for path in found:
        relative = _relative(path, root)
        files.append(DiscoveredFile(path, relative, classify_role(relative, settings.test_file_patterns)))
    files.sort(key=lambda f: f.relative)
    logger.debug("discovered %d file(s) under %s", len(files), root)
    return files


__all__ = ["DiscoveredFile", "classify_role", "discover_files"]

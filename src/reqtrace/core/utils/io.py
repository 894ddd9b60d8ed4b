"""File helpers: tolerant source reads, atomic text writes, YAML reads."""
from __future__ import annotations

import fcntl
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from reqtrace.core.exceptions import SourceReadError

PathLike = Union[str, Path]


def read_source(path: PathLike) -> str:
    """Read a C source file as text.

    Undecodable bytes are replaced rather than rejected: a stray Latin-1
    character in a comment must not stop the file from being checked.

    Raises:
        SourceReadError: If the file cannot be read.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8", errors="replace", newline="") as handle:
            return handle.read()
    except OSError as exc:
        raise SourceReadError(f"Cannot read {path}: {exc.strerror or exc}", path=str(path)) from exc


def atomic_write_text(path: PathLike, content: str, *, encoding: str = "utf-8") -> None:
    """Write ``content`` to ``path`` through a temp file + fsync + rename.

    Line endings are written exactly as found in ``content``.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding=encoding,
            newline="",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            delete=False,
        ) as handle:
            tmp_path = Path(handle.name)
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        if path.exists():
            os.chmod(tmp_path, path.stat().st_mode & 0o7777)
        os.replace(str(tmp_path), str(path))
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()


def read_yaml(path: PathLike, default: Any = None, raise_on_error: bool = False) -> Any:
    """Read a YAML document.

    Returns ``default`` when the file is missing or empty. Parse errors are
    returned as ``default`` too unless ``raise_on_error`` is set.
    """
    path = Path(path)
    if not path.exists():
        if raise_on_error:
            raise FileNotFoundError(f"File not found: {path}")
        return default
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError:
        if raise_on_error:
            raise
        return default
    return default if data is None else data


__all__ = ["read_source", "atomic_write_text", "read_yaml"]

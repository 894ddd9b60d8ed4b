"""
Bundled reqtrace data: default configuration and JSON schemas (as YAML).
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path


def get_data_path(subpackage: str, filename: str = "") -> Path:
    """
    Absolute path to a bundled data directory or file.

    Example:
        >>> get_data_path("config", "defaults.yaml")
        PosixPath('/.../reqtrace/data/config/defaults.yaml')
    """
    base = Path(str(resources.files("reqtrace.data") / subpackage))
    return base / filename if filename else base


__all__ = ["get_data_path"]

"""Shared helpers."""
from __future__ import annotations

from .io import atomic_write_text, read_source, read_yaml
from .merge import deep_merge, merge_lists

__all__ = ["atomic_write_text", "read_source", "read_yaml", "deep_merge", "merge_lists"]

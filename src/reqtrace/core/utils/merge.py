"""Deep merge for layered configuration documents.

Lists are replaced by later layers unless the overriding list starts with a
``"+"`` marker, in which case its remaining items are appended (handy for
adding one more exclude glob in a project file without restating the
defaults).
"""
from __future__ import annotations

from typing import Any, Dict, List

APPEND_MARKER = "+"


def merge_lists(base: List[Any], override: List[Any]) -> List[Any]:
    """Replace ``base`` with ``override`` or append when ``override[0] == "+"``.

    Example:
        >>> merge_lists(["*.c"], ["+", "*.h"])
        ['*.c', '*.h']
        >>> merge_lists(["*.c"], ["*.h"])
        ['*.h']
    """
    if override and override[0] == APPEND_MARKER:
        return [*base, *[item for item in override[1:] if item not in base]]
    return list(override)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``.

    Example:
        >>> deep_merge({"scan": {"max_workers": 4, "include": ["*.c"]}},
        ...            {"scan": {"max_workers": 1}})
        {'scan': {'max_workers': 1, 'include': ['*.c']}}
    """
    result: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            result[key] = merge_lists(current, value)
        else:
            result[key] = value
    return result


__all__ = ["APPEND_MARKER", "deep_merge", "merge_lists"]

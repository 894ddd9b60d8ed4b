"""Balanced-delimiter matching over code spans.

Only delimiter characters classified as code move the nesting depth, so
braces inside string literals (JSON snippets, format strings) and parentheses
inside comments never end a match early or late. Macro-wrapped types such as
``THANDLE(FOO) handle`` are just one more nesting level.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional

from .source import ScannedSource


@lru_cache(maxsize=16)
def _delimiter_pattern(open_char: str, close_char: str) -> re.Pattern[str]:
    return re.compile(f"[{re.escape(open_char)}{re.escape(close_char)}]")


def match_delimiter(
    source: ScannedSource,
    open_offset: int,
    open_char: str = "(",
    close_char: str = ")",
) -> Optional[int]:
    """Return the offset of the delimiter closing the one at ``open_offset``.

    Args:
        source: Scanned source buffer
        open_offset: Offset of the opening delimiter (must be code)
        open_char: Opening delimiter character
        close_char: Closing delimiter character

    Returns:
        Offset of the matching ``close_char``, or None when the buffer ends
        before the nesting returns to zero.

    Raises:
        ValueError: If ``open_offset`` is not a code ``open_char``.
    """
    text = source.text
    if not (0 <= open_offset < len(text)) or text[open_offset] != open_char:
        raise ValueError(f"offset {open_offset} is not {open_char!r}")
    if not source.is_code(open_offset):
        raise ValueError(f"offset {open_offset} is not classified as code")

    pattern = _delimiter_pattern(open_char, close_char)
    depth = 0
    for seg_start, seg_end in source.code_segments(open_offset):
        for m in pattern.finditer(text, seg_start, seg_end):
            if m.group(0) == open_char:
                depth += 1
            else:
                depth -= 1
                if depth == 0:
                    return m.start()
    return None


__all__ = ["match_delimiter"]

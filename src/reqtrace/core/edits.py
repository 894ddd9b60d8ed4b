"""Minimal text substitutions.

Every auto-fix is expressed as an ``Edit`` on the original buffer. Edits are
applied in one pass from the left, so the output is byte-identical to the input
outside the replaced ranges and no edit can see another edit's output.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edit:
    """Replace ``text[start:end]`` with ``replacement``."""

    start: int
    end: int
    replacement: str
    reason: str = ""


def apply_edits(text: str, edits: Iterable[Edit]) -> Tuple[str, List[Edit]]:
    """Apply non-overlapping edits to ``text``.

    Returns:
        ``(new_text, rejected)`` where ``rejected`` holds edits dropped because
        they overlap an edit that starts earlier.
    """
    ordered = sorted(edits, key=lambda e: (e.start, e.end))
    accepted: List[Edit] = []
    rejected: List[Edit] = []
    for edit in ordered:
        if not (0 <= edit.start <= edit.end <= len(text)):
            rejected.append(edit)
            continue
        if accepted and accepted[-1].end > edit.start:
            logger.debug("dropping overlapping edit at %d (%s)", edit.start, edit.reason)
            rejected.append(edit)
            continue
        accepted.append(edit)

    pieces: List[str] = []
    cursor = 0
    for edit in accepted:
        pieces.append(text[cursor : edit.start])
        pieces.append(edit.replacement)
        cursor = edit.end
    pieces.append(text[cursor:])
    return "".join(pieces), rejected


__all__ = ["Edit", "apply_edits"]

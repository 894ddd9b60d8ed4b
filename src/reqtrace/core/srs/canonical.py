"""Canonical requirement text from Markdown requirement documents.

Requirement documents declare requirements as::

    **SRS_MODULE_01_002: [** text of the requirement **]**

The parser finds each ``SRS_<MODULE>_<DD>_<DDD>: [`` head, takes the payload up
to the matching ``]`` and normalizes it into the form source comments carry:
bold wrapping removed, Markdown escapes and inline-code backticks dropped,
whitespace collapsed.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from reqtrace.core.exceptions import CanonicalSpecError

from .tags import collapse_whitespace, find_payload_end, strip_bold

logger = logging.getLogger(__name__)

REQUIREMENT_HEAD = re.compile(r"(?<![A-Za-z0-9_])(SRS_[A-Z0-9_]+?_\d+_\d+)\s*:\s*\[")

_MARKDOWN_ESCAPE = re.compile(r"\\([\\`*_{}\[\]()#+\-.!<>|~])")
_CODE_MARK = re.compile(r"(?<!\\)`")


@dataclass(frozen=True)
class CanonicalRequirement:
    requirement_id: str
    text: str
    path: str = "<memory>"
    line: int = 0


def normalize_canonical_text(text: str) -> str:
    """Turn a Markdown payload into the plain text a source comment carries."""
    plain = strip_bold(text)
    plain = _CODE_MARK.sub("", plain)
    plain = _MARKDOWN_ESCAPE.sub(r"\1", plain)
    return collapse_whitespace(plain)


def parse_requirements_markdown(text: str, path: str = "<memory>") -> List[CanonicalRequirement]:
    """Parse every requirement declared in one Markdown document."""
    heads = list(REQUIREMENT_HEAD.finditer(text))
    found: List[CanonicalRequirement] = []
    for i, head in enumerate(heads):
        stop = heads[i + 1].start() if i + 1 < len(heads) else len(text)
        close = find_payload_end(text, head.end(), stop)
        if close is None:
            logger.warning("%s: requirement %s has no closing ']'", path, head.group(1))
            continue
        found.append(
            CanonicalRequirement(
                requirement_id=head.group(1),
                text=normalize_canonical_text(text[head.end() : close]),
                path=path,
                line=text.count("\n", 0, head.start()) + 1,
            )
        )
    return found


def resolve_requirement_files(root: Path, patterns: Sequence[str]) -> List[Path]:
    """Expand glob ``patterns`` relative to ``root`` (absolute patterns allowed)."""
    files = set()
    for pattern in patterns:
        candidate = Path(pattern)
        if candidate.is_absolute():
            if candidate.is_file():
                files.add(candidate)
                continue
            anchor = Path(candidate.anchor)
            matches = anchor.glob(str(candidate.relative_to(anchor)))
        else:
            matches = root.glob(pattern)
        files.update(p for p in matches if p.is_file())
    return sorted(files)


def load_canonical_requirements(paths: Iterable[Path]) -> Dict[str, str]:
    """Build the ``{requirement_id: text}`` map from requirement documents.

    Raises:
        CanonicalSpecError: If a document cannot be read.
    """
    canonical: Dict[str, CanonicalRequirement] = {}
    for path in paths:
        try:
            text = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise CanonicalSpecError(f"Cannot read requirement document: {exc}", path=str(path)) from exc
        for req in parse_requirements_markdown(text, str(path)):
            existing = canonical.get(req.requirement_id)
            if existing is None:
                canonical[req.requirement_id] = req
            elif existing.text != req.text:
                logger.warning(
                    "%s:%d: %s redefined with different text (first defined at %s:%d)",
                    req.path,
                    req.line,
                    req.requirement_id,
                    existing.path,
                    existing.line,
                )
    logger.debug("loaded %d canonical requirements", len(canonical))
    return {rid: req.text for rid, req in canonical.items()}


__all__ = [
    "REQUIREMENT_HEAD",
    "CanonicalRequirement",
    "normalize_canonical_text",
    "parse_requirements_markdown",
    "resolve_requirement_files",
    "load_canonical_requirements",
]

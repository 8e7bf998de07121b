"""Prioritised truncation of documentation text to fit size limits."""

from __future__ import annotations

import re
from typing import List, Tuple

DEFAULT_MAX_CHARS = 8000

_HEADING_PATTERN = re.compile(r"^#{1,3}\s", re.MULTILINE)

# Order matters only for readability; any match marks a section as priority.
PRIORITY_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"overview", re.IGNORECASE),
    re.compile(r"quick\s*start", re.IGNORECASE),
    re.compile(r"getting\s*started", re.IGNORECASE),
    re.compile(r"basic", re.IGNORECASE),
    re.compile(r"usage", re.IGNORECASE),
    re.compile(r"example", re.IGNORECASE),
    re.compile(r"api", re.IGNORECASE),
)


def split_sections(text: str) -> List[str]:
    """Split markdown into sections starting at level 1-3 headings.

    Text before the first heading is discarded when at least one heading
    exists. Without headings the whole text is a single section.
    """
    starts = [match.start() for match in _HEADING_PATTERN.finditer(text)]
    if not starts:
        return [text] if text else []
    bounds = starts + [len(text)]
    return [text[begin:end] for begin, end in zip(bounds, bounds[1:])]


def is_priority(section: str) -> bool:
    return any(pattern.search(section) for pattern in PRIORITY_PATTERNS)


def extract_relevant_sections(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Return ``text`` trimmed to ``max_chars``, keeping the most useful sections.

    Input that already fits is returned as-is (the same object). Otherwise
    priority sections (overview, quick start, usage, examples, API) are kept
    ahead of the rest until the next section would overflow the budget. A first
    section that alone exceeds the budget is hard-truncated to exactly
    ``max_chars`` characters.
    """
    if len(text) <= max_chars:
        return text

    prioritized: List[str] = []
    remaining: List[str] = []
    for section in split_sections(text):
        (prioritized if is_priority(section) else remaining).append(section)

    pieces: List[str] = []
    used = 0
    for section in prioritized + remaining:
        if used + len(section) <= max_chars:
            pieces.append(section)
            used += len(section)
        elif not pieces:
            return section[: max(max_chars, 0)]
        else:
            break
    return "".join(pieces)


__all__ = [
    "DEFAULT_MAX_CHARS",
    "PRIORITY_PATTERNS",
    "extract_relevant_sections",
    "is_priority",
    "split_sections",
]

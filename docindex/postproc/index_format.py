"""Compressed pipe-delimited index format used inside the marker block.

Format::

    [Section Title]|root:path
    |CRITICAL:instruction
    |package@version|category:{file1.mdx,file2.mdx}|category2:{file3.mdx}
"""

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional

from ..models import IndexEntry, IndexSection

_SECTION_PATTERN = re.compile(r"^\[([^\]]+)\]\|root:(.+)$")
_CRITICAL_PATTERN = re.compile(r"^\|CRITICAL:(.+)$")
_ENTRY_PATTERN = re.compile(r"^\|([^@|]+)@([^|]*)\|(.*)$")
_CATEGORY_PATTERN = re.compile(r"([^:{|]+):\{([^}]*)\}")


def render_index(sections: List[IndexSection]) -> str:
    """Render index sections into the compressed line format."""
    lines: List[str] = []
    for section in sections:
        lines.append(f"[{section.title}]|root:{section.root}")
        for instruction in section.critical_instructions:
            lines.append(f"|CRITICAL:{instruction}")
        for entry in section.entries:
            categories = "|".join(
                f"{name}:{{{','.join(files)}}}" for name, files in entry.categories.items()
            )
            lines.append(f"|{entry.package}@{entry.version}|{categories}")
    return "\n".join(lines)


def render_fallback_comment(library_mappings: Mapping[str, str]) -> str:
    """Return the remote-docs fallback hint listing library ids, or ``""``."""
    if not library_mappings:
        return ""
    mappings = ", ".join(f"{name}={library_id}" for name, library_id in library_mappings.items())
    return f"<!-- Docs fallback: Context7 for expanded queries\n     {mappings} -->"


def render_index_body(
    sections: List[IndexSection],
    library_mappings: Optional[Mapping[str, str]] = None,
) -> str:
    """Return the full text placed between the index markers."""
    body = render_index(sections)
    comment = render_fallback_comment(library_mappings or {})
    if comment:
        body = f"{body}\n\n{comment}" if body else comment
    return body


def parse_index(content: str) -> List[IndexSection]:
    """Parse the compressed index format back into sections."""
    sections: List[IndexSection] = []
    current: Optional[IndexSection] = None

    for line in content.splitlines():
        if not line.strip():
            continue
        section_match = _SECTION_PATTERN.match(line)
        if section_match:
            current = IndexSection(title=section_match.group(1), root=section_match.group(2))
            sections.append(current)
            continue
        if current is None:
            continue
        critical_match = _CRITICAL_PATTERN.match(line)
        if critical_match:
            current.critical_instructions.append(critical_match.group(1))
            continue
        entry_match = _ENTRY_PATTERN.match(line)
        if entry_match:
            current.entries.append(
                IndexEntry(
                    package=entry_match.group(1),
                    version=entry_match.group(2),
                    categories=_parse_categories(entry_match.group(3)),
                )
            )
    return sections


def _parse_categories(raw: str) -> Dict[str, List[str]]:
    categories: Dict[str, List[str]] = {}
    for name, files in _CATEGORY_PATTERN.findall(raw):
        categories[name] = [item.strip() for item in files.split(",") if item.strip()]
    return categories


__all__ = ["parse_index", "render_fallback_comment", "render_index", "render_index_body"]

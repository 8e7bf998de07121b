"""Builds the declarative index description from docs on disk."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from .models import DocFile, IndexEntry, IndexSection
from .postproc.markers import MarkerManager
from .postproc.index_format import render_index_body

FRAMEWORKS_TITLE = "Framework Docs"
INTERNAL_TITLE = "Internal Patterns"

DEFAULT_FRAMEWORK_CRITICALS = (
    "Prefer retrieval-led reasoning over pre-training-led reasoning",
    "Read the relevant .mdx files BEFORE writing code that uses these libraries",
)
DEFAULT_INTERNAL_CRITICALS = ("Follow these project-specific patterns for consistency",)


@dataclass
class FrameworkIndex:
    """Version plus discovered ``category -> file names`` for one framework."""

    version: str
    categories: Dict[str, List[str]] = field(default_factory=dict)


def build_frameworks_index(
    versions: Mapping[str, str],
    docs: Mapping[str, Mapping[str, Sequence[DocFile]]],
) -> Dict[str, FrameworkIndex]:
    """Combine recorded versions with the on-disk listing.

    Every recorded framework appears, even without docs on disk. Category and
    file order follow discovery order from ``docs``.
    """
    index: Dict[str, FrameworkIndex] = {}
    for framework, version in versions.items():
        categories: Dict[str, List[str]] = {}
        for category, files in docs.get(framework, {}).items():
            categories[category] = [doc.name for doc in files]
        index[framework] = FrameworkIndex(version=version, categories=categories)
    return index


def build_internal_index(docs: Mapping[str, Sequence[DocFile]]) -> Dict[str, List[str]]:
    return {category: [doc.name for doc in files] for category, files in docs.items()}


def build_index_sections(
    frameworks_root: str,
    internal_root: str,
    frameworks: Mapping[str, FrameworkIndex],
    internal: Mapping[str, List[str]],
    *,
    framework_criticals: Optional[Sequence[str]] = None,
    internal_criticals: Optional[Sequence[str]] = None,
) -> List[IndexSection]:
    """Return the framework and internal sections; empty groups are omitted."""
    sections: List[IndexSection] = []

    if frameworks:
        sections.append(
            IndexSection(
                title=FRAMEWORKS_TITLE,
                root=frameworks_root,
                critical_instructions=list(framework_criticals or DEFAULT_FRAMEWORK_CRITICALS),
                entries=[
                    IndexEntry(
                        package=name,
                        version=data.version,
                        categories={category: list(files) for category, files in data.categories.items()},
                    )
                    for name, data in frameworks.items()
                ],
            )
        )

    if internal:
        sections.append(
            IndexSection(
                title=INTERNAL_TITLE,
                root=internal_root,
                critical_instructions=list(internal_criticals or DEFAULT_INTERNAL_CRITICALS),
                # Internal docs have no package; each category is its own entry.
                entries=[
                    IndexEntry(package=category, version="", categories={category: list(files)})
                    for category, files in internal.items()
                ],
            )
        )

    return sections


def calculate_index_size(
    sections: List[IndexSection],
    library_mappings: Optional[Mapping[str, str]] = None,
) -> float:
    """Return the size of the rendered marker block in KB."""
    block = MarkerManager().wrap(render_index_body(sections, library_mappings))
    return len(block) / 1024


__all__ = [
    "DEFAULT_FRAMEWORK_CRITICALS",
    "DEFAULT_INTERNAL_CRITICALS",
    "FRAMEWORKS_TITLE",
    "FrameworkIndex",
    "INTERNAL_TITLE",
    "build_frameworks_index",
    "build_index_sections",
    "build_internal_index",
    "calculate_index_size",
]

"""On-disk documentation cache under ``.claude-docs/``."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from .config import CLAUDE_DOCS_DIR, FRAMEWORKS_DIR, INTERNAL_DIR, docs_path
from .logging import get_logger
from .models import DocFile

DOC_SUFFIX = ".mdx"
GITIGNORE_ENTRY = f"{CLAUDE_DOCS_DIR}/.cache/"

logger = get_logger("docs_store")


@dataclass
class DocsSize:
    """Byte totals for the docs cache."""

    frameworks: Dict[str, int] = field(default_factory=dict)
    internal: int = 0
    total: int = 0


def frameworks_path(root: Path) -> Path:
    return docs_path(root) / FRAMEWORKS_DIR


def internal_path(root: Path) -> Path:
    return docs_path(root) / INTERNAL_DIR


def ensure_layout(root: Path, *, internal: bool = False) -> List[Path]:
    """Create the docs directories and return the ones that did not exist."""
    wanted = [docs_path(root), frameworks_path(root)]
    if internal:
        wanted.append(internal_path(root))
    created = []
    for directory in wanted:
        if not directory.exists():
            directory.mkdir(parents=True)
            created.append(directory)
    return created


def write_doc_file(root: Path, framework: str, category: str, name: str, content: str) -> Path:
    target = frameworks_path(root) / framework / category / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    logger.debug("Wrote %s", target)
    return target


def write_internal_doc_file(root: Path, category: str, name: str, content: str) -> Path:
    target = internal_path(root) / category / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    return target


def remove_framework_docs(root: Path, framework: str) -> bool:
    target = frameworks_path(root) / framework
    if not target.exists():
        return False
    shutil.rmtree(target)
    logger.debug("Removed %s", target)
    return True


def read_framework_docs(root: Path, framework: str) -> Dict[str, List[DocFile]]:
    """Return ``category -> doc files`` for one framework, in listing order."""
    return _read_categories(frameworks_path(root) / framework, framework)


def read_all_framework_docs(root: Path) -> Dict[str, Dict[str, List[DocFile]]]:
    base = frameworks_path(root)
    if not base.is_dir():
        return {}
    return {
        entry.name: _read_categories(entry, entry.name)
        for entry in _listing(base)
        if entry.is_dir()
    }


def read_internal_docs(root: Path) -> Dict[str, List[DocFile]]:
    return _read_categories(internal_path(root), "internal")


def calculate_docs_size(root: Path) -> DocsSize:
    base = docs_path(root)
    size = DocsSize()
    if not base.is_dir():
        return size
    for path in base.rglob(f"*{DOC_SUFFIX}"):
        if not path.is_file():
            continue
        parts = path.relative_to(base).parts
        file_size = path.stat().st_size
        size.total += file_size
        if parts[0] == FRAMEWORKS_DIR and len(parts) >= 2:
            size.frameworks[parts[1]] = size.frameworks.get(parts[1], 0) + file_size
        elif parts[0] == INTERNAL_DIR:
            size.internal += file_size
    return size


def format_size(size_bytes: float) -> str:
    if size_bytes < 1024:
        return f"{int(size_bytes)}B"
    kb = size_bytes / 1024
    if kb < 1024:
        return f"{kb:.1f}KB"
    return f"{kb / 1024:.2f}MB"


def update_gitignore(root: Path) -> bool:
    """Append the docs cache entry to ``.gitignore``; ``False`` when already present."""
    path = Path(root) / ".gitignore"
    block = f"# docindex temp files\n{GITIGNORE_ENTRY}\n"
    if not path.exists():
        path.write_text(block, encoding="utf-8")
        return True
    content = path.read_text(encoding="utf-8")
    if GITIGNORE_ENTRY in content:
        return False
    path.write_text(f"{content.rstrip()}\n\n{block}", encoding="utf-8")
    return True


def _read_categories(base: Path, framework: str) -> Dict[str, List[DocFile]]:
    if not base.is_dir():
        return {}
    result: Dict[str, List[DocFile]] = {}
    for category in _listing(base):
        if not category.is_dir():
            continue
        result[category.name] = [
            DocFile(
                path=str(item),
                framework=framework,
                category=category.name,
                name=item.name,
                size_bytes=item.stat().st_size,
            )
            for item in _listing(category)
            if item.is_file() and item.name.endswith(DOC_SUFFIX)
        ]
    return result


def _listing(directory: Path) -> List[Path]:
    # Sorted by name so discovery order does not depend on the filesystem.
    return sorted(directory.iterdir(), key=lambda entry: entry.name)


__all__ = [
    "DOC_SUFFIX",
    "DocsSize",
    "calculate_docs_size",
    "ensure_layout",
    "format_size",
    "frameworks_path",
    "internal_path",
    "read_all_framework_docs",
    "read_framework_docs",
    "read_internal_docs",
    "remove_framework_docs",
    "update_gitignore",
    "write_doc_file",
    "write_internal_doc_file",
]

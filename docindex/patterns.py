"""Heuristic detection of project conventions worth documenting as internal patterns."""

from __future__ import annotations

import json
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from .config import CLAUDE_DOCS_DIR
from .logging import get_logger

_EXCLUDED_DIRS = {
    "node_modules",
    "dist",
    "build",
    "coverage",
    CLAUDE_DOCS_DIR,
}
_SOURCE_SUFFIXES = {".ts", ".tsx", ".js", ".jsx", ".json"}
_SCRIPT_SUFFIXES = (".ts", ".js")

MAX_READ_BYTES = 100 * 1024
MAX_READ_FILES = 200
ESM_SAMPLE_FILES = 50
ESM_MIN_IMPORTS = 10

_RELATIVE_IMPORT = re.compile(r"""from\s+['"](\.[^'"]*)['"]""")
_TABLE_BUILDERS = ("pgTable", "mysqlTable", "sqliteTable")
_AUTH_SCHEMA_MARKERS = ("better-auth", "betterAuth")
_FEATURE_GATE_MARKERS = ("requireFeature", "featureGate", "checkFeature")

logger = get_logger("patterns")


@dataclass
class SourceFile:
    """A scanned file, ``path`` relative to the project root in posix form."""

    path: str
    name: str
    size: int


@dataclass
class ProjectSnapshot:
    root: Path
    files: List[SourceFile] = field(default_factory=list)
    contents: Dict[str, str] = field(default_factory=dict)

    def text(self, file: SourceFile) -> Optional[str]:
        return self.contents.get(file.path)


@dataclass
class DetectedPattern:
    name: str
    category: str
    file_name: str
    description: str
    confidence: str
    evidence: List[str] = field(default_factory=list)
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def doc_path(self) -> str:
        return f"{self.category}/{self.file_name}"


class PatternDetector(ABC):
    """Contract for detectors that recognise one convention in a snapshot."""

    name: str
    category: str
    file_name: str

    @abstractmethod
    def detect(self, snapshot: ProjectSnapshot) -> Optional[DetectedPattern]:
        """Return the pattern when the snapshot shows it, else ``None``."""

    def _pattern(self, description: str, confidence: str, evidence: List[str], **context: Any) -> DetectedPattern:
        return DetectedPattern(
            name=self.name,
            category=self.category,
            file_name=self.file_name,
            description=description,
            confidence=confidence,
            evidence=evidence,
            context=context,
        )


class TwoSchemaDetector(PatternDetector):
    """Generated auth tables kept apart from hand-written application tables."""

    name = "Two-Schema Database Pattern"
    category = "database"
    file_name = "two-schema-pattern.mdx"

    def detect(self, snapshot: ProjectSnapshot) -> Optional[DetectedPattern]:
        schemas = [
            file for file in snapshot.files if "schema" in file.path and file.name.endswith(_SCRIPT_SUFFIXES)
        ]
        if len(schemas) < 2:
            return None
        texts = [snapshot.text(file) or "" for file in schemas]
        generated = any(_contains_any(text, _AUTH_SCHEMA_MARKERS) for text in texts)
        custom = any(
            not _contains_any(text, _AUTH_SCHEMA_MARKERS) and _contains_any(text, _TABLE_BUILDERS)
            for text in texts
        )
        if not (generated and custom):
            return None
        paths = [file.path for file in schemas]
        return self._pattern(
            "Separates auto-generated schemas (e.g. Better Auth) from application schemas",
            "HIGH",
            paths,
            schema_files=paths,
        )


class FeatureGatingDetector(PatternDetector):
    name = "Feature Gating Pattern"
    category = "middleware"
    file_name = "feature-gating.mdx"

    def detect(self, snapshot: ProjectSnapshot) -> Optional[DetectedPattern]:
        for file in snapshot.files:
            if not (("middleware" in file.path or "guard" in file.path) and file.name.endswith(_SCRIPT_SUFFIXES)):
                continue
            if _contains_any(snapshot.text(file) or "", _FEATURE_GATE_MARKERS):
                return self._pattern(
                    "Middleware that gates features by subscription or plan",
                    "HIGH",
                    [file.path],
                    file_path=file.path,
                )
        return None


class EsmImportsDetector(PatternDetector):
    """Relative TypeScript imports that spell out the ``.js`` extension."""

    name = "ESM Imports with .js Extension"
    category = "conventions"
    file_name = "esm-imports.mdx"

    def detect(self, snapshot: ProjectSnapshot) -> Optional[DetectedPattern]:
        sources = [
            file
            for file in snapshot.files
            if file.name.endswith(".ts") and not file.name.endswith(".d.ts")
        ]
        with_extension = 0
        without_extension = 0
        for file in sources[:ESM_SAMPLE_FILES]:
            for target in _RELATIVE_IMPORT.findall(snapshot.text(file) or ""):
                if target.endswith(".json"):
                    continue
                if target.endswith(".js"):
                    with_extension += 1
                else:
                    without_extension += 1
        if with_extension <= ESM_MIN_IMPORTS or with_extension <= without_extension * 2:
            return None
        return self._pattern(
            "TypeScript imports use the .js extension for ESM compatibility",
            "HIGH",
            [f"{with_extension} imports with .js extension found"],
        )


class PathAliasesDetector(PatternDetector):
    name = "Path Aliases Convention"
    category = "conventions"
    file_name = "path-aliases.mdx"

    def detect(self, snapshot: ProjectSnapshot) -> Optional[DetectedPattern]:
        tsconfig = next((file for file in snapshot.files if file.name == "tsconfig.json"), None)
        if tsconfig is None:
            return None
        text = snapshot.text(tsconfig)
        if not text:
            return None
        try:
            data = json.loads(text)
        except ValueError:
            # tsconfig allows comments and trailing commas; those files are skipped.
            logger.debug("Skipping path alias detection: %s is not plain JSON", tsconfig.path)
            return None
        options = data.get("compilerOptions") if isinstance(data, dict) else None
        paths = options.get("paths") if isinstance(options, dict) else None
        if not isinstance(paths, dict) or not paths:
            return None
        aliases = {alias: _as_targets(targets) for alias, targets in paths.items()}
        return self._pattern(
            "TypeScript path aliases for cleaner imports",
            "HIGH",
            [f"{alias} -> {', '.join(targets)}" for alias, targets in aliases.items()],
            aliases=aliases,
        )


class AddRouteDetector(PatternDetector):
    name = "Add Route Workflow"
    category = "workflows"
    file_name = "add-route.mdx"

    def detect(self, snapshot: ProjectSnapshot) -> Optional[DetectedPattern]:
        routes = [
            file
            for file in snapshot.files
            if ("route" in file.path or "api" in file.path) and file.name.endswith(_SCRIPT_SUFFIXES)
        ]
        texts = [snapshot.text(file) or "" for file in routes]
        if any("Hono" in text or "hono" in text for text in texts):
            framework = "Hono"
        elif any("express" in text for text in texts):
            framework = "Express"
        else:
            return None
        evidence = [file.path for file in routes[:3]]
        return self._pattern(
            f"Steps to add a new API route using {framework}",
            "MEDIUM",
            evidence,
            framework=framework,
            example_path=routes[0].path,
        )


DEFAULT_DETECTORS: Sequence[PatternDetector] = (
    TwoSchemaDetector(),
    FeatureGatingDetector(),
    EsmImportsDetector(),
    PathAliasesDetector(),
    AddRouteDetector(),
)


def detector_categories(detectors: Sequence[PatternDetector] = DEFAULT_DETECTORS) -> List[str]:
    return list(dict.fromkeys(detector.category for detector in detectors))


def scan_project(root: Path) -> ProjectSnapshot:
    """List JS/TS/JSON sources under ``root`` and read the small ones.

    Dot directories and build output are skipped. At most
    :data:`MAX_READ_FILES` files under :data:`MAX_READ_BYTES` are read.
    """
    snapshot = ProjectSnapshot(root=root)
    for path in _iter_sources(root):
        try:
            size = path.stat().st_size
        except OSError:
            continue
        snapshot.files.append(SourceFile(path=path.relative_to(root).as_posix(), name=path.name, size=size))

    readable = [file for file in snapshot.files if file.size < MAX_READ_BYTES]
    for file in readable[:MAX_READ_FILES]:
        try:
            snapshot.contents[file.path] = (root / file.path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Skipping unreadable file %s: %s", file.path, exc)
    logger.debug("Scanned %d files, read %d", len(snapshot.files), len(snapshot.contents))
    return snapshot


def detect_patterns(
    snapshot: ProjectSnapshot,
    detectors: Iterable[PatternDetector] = DEFAULT_DETECTORS,
    *,
    category: Optional[str] = None,
) -> List[DetectedPattern]:
    patterns: List[DetectedPattern] = []
    for detector in detectors:
        if category is not None and detector.category != category:
            continue
        pattern = detector.detect(snapshot)
        if pattern is not None:
            patterns.append(pattern)
    return patterns


def _iter_sources(root: Path) -> Iterator[Path]:
    # Root files come before subdirectories, and each level is sorted by name.
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            name for name in dirnames if name not in _EXCLUDED_DIRS and not name.startswith(".")
        )
        current = Path(dirpath)
        for filename in sorted(filenames):
            if os.path.splitext(filename)[1] in _SOURCE_SUFFIXES:
                yield current / filename


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(needle in text for needle in needles)


def _as_targets(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(item) for item in value]
    return [str(value)]


__all__ = [
    "AddRouteDetector",
    "DEFAULT_DETECTORS",
    "DetectedPattern",
    "EsmImportsDetector",
    "FeatureGatingDetector",
    "PathAliasesDetector",
    "PatternDetector",
    "ProjectSnapshot",
    "SourceFile",
    "TwoSchemaDetector",
    "detect_patterns",
    "detector_categories",
    "scan_project",
]

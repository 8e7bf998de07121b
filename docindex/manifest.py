"""package.json reading and framework detection."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from .catalog import Catalog, default_catalog
from .errors import ManifestError, ManifestNotFoundError
from .logging import get_logger
from .models import DependencyRecord

MANIFEST_FILE = "package.json"

logger = get_logger("manifest")


def manifest_path(root: Path) -> Path:
    return Path(root) / MANIFEST_FILE


def read_package_json(root: Path) -> Dict[str, Any]:
    """Return the parsed ``package.json`` of the project at ``root``."""
    path = manifest_path(root)
    if not path.exists():
        raise ManifestNotFoundError(str(path))
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ManifestError(
            f"Failed to parse package.json: {exc}",
            hint=f"Fix the JSON syntax in {path}.",
        ) from exc
    if not isinstance(data, dict):
        raise ManifestError("package.json must contain a JSON object", hint=f"Check {path}.")
    return data


def try_read_package_json(root: Path) -> Optional[Dict[str, Any]]:
    try:
        return read_package_json(root)
    except ManifestNotFoundError:
        return None


def declared_dependencies(manifest: Dict[str, Any]) -> Dict[str, str]:
    """Merge ``dependencies`` and ``devDependencies``; dev entries win on duplicates."""
    merged: Dict[str, str] = {}
    for section in ("dependencies", "devDependencies"):
        entries = manifest.get(section)
        if not isinstance(entries, dict):
            continue
        for name, specifier in entries.items():
            if isinstance(specifier, str):
                merged[str(name)] = specifier
    return merged


def detect_dependencies(
    manifest: Dict[str, Any],
    catalog: Optional[Catalog] = None,
) -> List[DependencyRecord]:
    """Match declared packages against known frameworks, first match per framework."""
    catalog = catalog or default_catalog()
    records: List[DependencyRecord] = []
    seen = set()
    for name, specifier in declared_dependencies(manifest).items():
        record = catalog.record_for(name, specifier)
        if record is None or record.key in seen:
            continue
        seen.add(record.key)
        records.append(record)
    logger.debug("Detected %d framework(s) in package.json", len(records))
    return records


def detect_project_type(manifest: Dict[str, Any], catalog: Optional[Catalog] = None) -> str:
    """Classify the project as library, cli, fullstack, backend or frontend."""
    catalog = catalog or default_catalog()
    indicators = catalog.project_type_indicators
    names = set(declared_dependencies(manifest))
    backend = names & set(indicators.get("backend", []))
    frontend = names & set(indicators.get("frontend", []))
    fullstack = names & set(indicators.get("fullstack", []))

    if (manifest.get("exports") or manifest.get("main")) and not (backend or frontend or fullstack):
        return "library"
    if manifest.get("bin"):
        return "cli"
    if fullstack or (backend and frontend):
        return "fullstack"
    if frontend:
        return "frontend"
    return "backend"


def project_name(manifest: Optional[Dict[str, Any]], root: Path) -> str:
    name = manifest.get("name") if manifest else None
    return str(name) if isinstance(name, str) and name else Path(root).resolve().name


__all__ = [
    "MANIFEST_FILE",
    "declared_dependencies",
    "detect_dependencies",
    "detect_project_type",
    "manifest_path",
    "project_name",
    "read_package_json",
    "try_read_package_json",
]

"""Registry of known frameworks and their documentation templates."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from .models import (
    CriticalPattern,
    DependencyRecord,
    FrameworkTemplate,
    KnownFramework,
    TemplateFile,
    TemplateQuery,
)

CATALOG_PATH = Path(__file__).with_name("data") / "frameworks.yml"


class Catalog:
    """Known-framework detection rules plus documentation templates."""

    def __init__(
        self,
        known_frameworks: Iterable[KnownFramework],
        templates: Iterable[FrameworkTemplate],
        project_type_indicators: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self.known_frameworks: List[KnownFramework] = list(known_frameworks)
        self.templates: Dict[str, FrameworkTemplate] = {template.name: template for template in templates}
        self.project_type_indicators: Dict[str, List[str]] = dict(project_type_indicators or {})

    @classmethod
    def from_path(cls, path: Path) -> "Catalog":
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Catalog":
        known = [_known_from_dict(entry) for entry in data.get("known_frameworks") or []]
        templates = [
            _template_from_dict(name, entry) for name, entry in (data.get("templates") or {}).items()
        ]
        indicators = {
            str(kind): [str(item) for item in items or []]
            for kind, items in (data.get("project_type_indicators") or {}).items()
        }
        return cls(known, templates, indicators)

    def get_template(self, name: str) -> Optional[FrameworkTemplate]:
        return self.templates.get(name)

    def has_template(self, name: str) -> bool:
        return name in self.templates

    def list_templates(self) -> List[FrameworkTemplate]:
        return list(self.templates.values())

    def templates_by_category(self) -> Dict[str, List[FrameworkTemplate]]:
        grouped: Dict[str, List[FrameworkTemplate]] = {}
        for template in self.templates.values():
            grouped.setdefault(template.category, []).append(template)
        return grouped

    def find_known_framework(self, name: str) -> Optional[KnownFramework]:
        for framework in self.known_frameworks:
            if framework.name == name:
                return framework
        return None

    def detect_framework(self, package: str) -> Optional[KnownFramework]:
        """Return the first known framework whose rule matches ``package``."""
        for framework in self.known_frameworks:
            if framework.matches(package):
                return framework
        return None

    def primary_package(self, name: str) -> Optional[str]:
        """Return the npm package whose latest release tracks framework ``name``."""
        framework = self.find_known_framework(name)
        if framework is None or not framework.packages:
            return None
        return framework.packages[0]

    def display_name(self, name: str) -> str:
        template = self.get_template(name)
        if template is not None:
            return template.display_name
        framework = self.find_known_framework(name)
        return framework.display_name if framework is not None else name

    def library_id(self, name: str) -> Optional[str]:
        template = self.get_template(name)
        if template is not None and template.library_id:
            return template.library_id
        framework = self.find_known_framework(name)
        return framework.library_id if framework is not None else None

    def record_for(self, package: str, version_specifier: str) -> Optional[DependencyRecord]:
        framework = self.detect_framework(package)
        if framework is None:
            return None
        return DependencyRecord(
            name=package,
            version_specifier=version_specifier,
            framework=framework.name,
            template_ref=framework.name if self.has_template(framework.name) else None,
        )


def template_queries(template: FrameworkTemplate, limit: Optional[int] = None) -> List[TemplateQuery]:
    """Flatten a template's structure into fetch requests in declared order."""
    queries: List[TemplateQuery] = []
    for category, files in template.structure.items():
        for item in files:
            if limit is not None and len(queries) >= limit:
                return queries
            queries.append(
                TemplateQuery(
                    category=category,
                    file=item.name,
                    query=item.query,
                    library_id=template.library_id,
                )
            )
    return queries


@lru_cache(maxsize=1)
def default_catalog() -> Catalog:
    return Catalog.from_path(CATALOG_PATH)


def get_template(name: str) -> Optional[FrameworkTemplate]:
    return default_catalog().get_template(name)


def has_template(name: str) -> bool:
    return default_catalog().has_template(name)


def list_templates() -> List[FrameworkTemplate]:
    return default_catalog().list_templates()


def templates_by_category() -> Dict[str, List[FrameworkTemplate]]:
    return default_catalog().templates_by_category()


def find_known_framework(name: str) -> Optional[KnownFramework]:
    return default_catalog().find_known_framework(name)


def detect_framework(package: str) -> Optional[KnownFramework]:
    return default_catalog().detect_framework(package)


def primary_package(name: str) -> Optional[str]:
    return default_catalog().primary_package(name)


def _known_from_dict(entry: Dict[str, Any]) -> KnownFramework:
    return KnownFramework(
        name=str(entry["name"]),
        display_name=str(entry.get("display_name") or entry["name"]),
        packages=[str(item) for item in entry.get("packages") or []],
        category=str(entry.get("category") or "other"),
        library_id=entry.get("library_id"),
        prefixes=[str(item) for item in entry.get("prefixes") or []],
    )


def _template_from_dict(name: str, entry: Dict[str, Any]) -> FrameworkTemplate:
    structure: Dict[str, List[TemplateFile]] = {}
    for category, files in (entry.get("structure") or {}).items():
        structure[str(category)] = [
            TemplateFile(
                name=str(item["name"]),
                query=str(item["query"]),
                topics=[str(topic) for topic in item.get("topics") or []],
            )
            for item in files or []
        ]
    return FrameworkTemplate(
        name=str(name),
        display_name=str(entry.get("display_name") or name),
        version=str(entry.get("version") or "latest"),
        library_id=entry.get("library_id"),
        category=str(entry.get("category") or "other"),
        priority=str(entry.get("priority") or "P1"),
        description=str(entry.get("description") or ""),
        structure=structure,
        critical_patterns=[
            CriticalPattern(
                pattern=str(item["pattern"]),
                warning=str(item["warning"]),
                correct=str(item["correct"]),
            )
            for item in entry.get("critical_patterns") or []
        ],
    )


__all__ = [
    "CATALOG_PATH",
    "Catalog",
    "default_catalog",
    "detect_framework",
    "find_known_framework",
    "get_template",
    "has_template",
    "list_templates",
    "primary_package",
    "template_queries",
    "templates_by_category",
]

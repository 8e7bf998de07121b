"""Core data models shared across docindex components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


@dataclass
class DependencyRecord:
    """A declared dependency that matched a known framework."""

    name: str
    version_specifier: str
    framework: Optional[str] = None
    template_ref: Optional[str] = None

    @property
    def key(self) -> str:
        return self.framework or self.name


@dataclass
class FrameworkState:
    """Recorded documentation state for one tracked framework."""

    name: str
    version: str
    source: str = "static"
    library_id: Optional[str] = None
    last_update: Optional[str] = None
    files: int = 0
    categories: List[str] = field(default_factory=list)


class ActionKind(str, Enum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


@dataclass
class ReconciliationAction:
    """A single step needed to bring docs in line with declared dependencies."""

    kind: ActionKind
    framework: str
    reason: str
    current_version: Optional[str] = None
    new_version: Optional[str] = None


@dataclass
class DependencyStatus:
    """Display summary for one declared dependency."""

    framework: str
    package: str
    declared_version: str
    installed_version: str
    documented_version: Optional[str]
    state: str


@dataclass
class SyncPlan:
    """Planner output: ordered actions plus per-dependency statuses."""

    actions: List[ReconciliationAction] = field(default_factory=list)
    statuses: List[DependencyStatus] = field(default_factory=list)
    orphans: List[str] = field(default_factory=list)

    def of_kind(self, kind: ActionKind) -> List[ReconciliationAction]:
        return [action for action in self.actions if action.kind is kind]

    @property
    def is_in_sync(self) -> bool:
        return not self.actions


@dataclass
class DocFile:
    """A documentation file discovered on disk."""

    path: str
    framework: str
    category: str
    name: str
    size_bytes: int


@dataclass
class IndexEntry:
    """One package line of the rendered index."""

    package: str
    version: str
    categories: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class IndexSection:
    """A logical group of index entries rendered into the host document."""

    title: str
    root: str
    critical_instructions: List[str] = field(default_factory=list)
    entries: List[IndexEntry] = field(default_factory=list)


@dataclass
class TemplateFile:
    """A documentation file a template expects, with the query used to fetch it."""

    name: str
    query: str
    topics: List[str] = field(default_factory=list)


@dataclass
class CriticalPattern:
    pattern: str
    warning: str
    correct: str


@dataclass
class FrameworkTemplate:
    """Declarative description of the docs expected for a framework."""

    name: str
    display_name: str
    version: str
    library_id: Optional[str]
    category: str
    priority: str
    description: str
    structure: Dict[str, List[TemplateFile]] = field(default_factory=dict)
    critical_patterns: List[CriticalPattern] = field(default_factory=list)


@dataclass
class KnownFramework:
    """Detection rule mapping npm package names to a framework slug."""

    name: str
    display_name: str
    packages: List[str]
    category: str
    library_id: Optional[str] = None
    prefixes: List[str] = field(default_factory=list)

    def matches(self, package: str) -> bool:
        if package in self.packages:
            return True
        return any(package.startswith(prefix) for prefix in self.prefixes)


@dataclass
class TemplateQuery:
    """A flattened fetch request for one template file."""

    category: str
    file: str
    query: str
    library_id: Optional[str]

"""Persisted docindex configuration (.claude-docs/config.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError, ConfigIssue, NotInitializedError
from .models import FrameworkState

CLAUDE_DOCS_DIR = ".claude-docs"
CONFIG_FILE = "config.yml"
FRAMEWORKS_DIR = "frameworks"
INTERNAL_DIR = "internal"
CONFIG_VERSION = "1.0.0"

PROJECT_TYPES = ("backend", "frontend", "fullstack", "library", "cli")
FRAMEWORK_SOURCES = ("generated", "static")


@dataclass
class ProjectConfig:
    """Project identity detected at init time."""

    name: str = "unnamed-project"
    type: str = "backend"


@dataclass
class SyncConfig:
    """Sync bookkeeping."""

    last_sync: Optional[str] = None
    auto_sync_on_install: bool = True


@dataclass
class InternalConfig:
    """Internal pattern docs settings."""

    enabled: bool = False
    categories: List[str] = field(default_factory=list)
    total_files: int = 0


@dataclass
class SourcesConfig:
    """Remote documentation source settings."""

    fallback_enabled: bool = True
    library_mappings: Dict[str, str] = field(default_factory=dict)
    cache_hours: int = 168


@dataclass
class LimitsConfig:
    """Size budgets for the index and the docs cache."""

    max_index_kb: float = 4.0
    max_docs_kb: float = 80.0
    max_files_per_framework: int = 20
    max_file_chars: int = 8000


@dataclass
class DocIndexConfig:
    """Represents the settings and recorded state in config.yml."""

    root: Path
    version: str = CONFIG_VERSION
    project: ProjectConfig = field(default_factory=ProjectConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    frameworks: Dict[str, FrameworkState] = field(default_factory=dict)
    internal: InternalConfig = field(default_factory=InternalConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)

    @property
    def path(self) -> Path:
        return config_path(self.root)

    def framework_versions(self) -> Dict[str, str]:
        return {name: state.version for name, state in self.frameworks.items()}


def docs_path(root: Path) -> Path:
    return Path(root) / CLAUDE_DOCS_DIR


def config_path(root: Path) -> Path:
    return docs_path(root) / CONFIG_FILE


def config_exists(root: Path) -> bool:
    return config_path(root).exists()


def load_config(root: Path) -> Optional[DocIndexConfig]:
    """Load configuration from disk, or ``None`` when the project is not initialized."""
    root = Path(root).expanduser().resolve()
    path = config_path(root)
    if not path.exists():
        return None

    data = _read_config(path)
    if not isinstance(data, dict):
        raise ConfigError(
            f"{CONFIG_FILE} must contain a mapping at the root",
            config_path=str(path),
            hint=f"Delete {path} and run `docindex init --force`.",
        )

    issues: List[ConfigIssue] = []

    project_data = _as_dict(data.get("project"))
    project = ProjectConfig(
        name=_as_str(project_data.get("name")) or ProjectConfig.name,
        type=_as_str(project_data.get("type")) or ProjectConfig.type,
    )
    if project.type not in PROJECT_TYPES:
        issues.append(
            ConfigIssue("project.type", f"unsupported value {project.type!r}", " | ".join(PROJECT_TYPES))
        )

    sync_data = _as_dict(data.get("sync"))
    sync = SyncConfig(
        last_sync=_as_str(sync_data.get("last_sync")),
        auto_sync_on_install=_as_bool(sync_data.get("auto_sync_on_install"), default=True),
    )

    frameworks_raw = data.get("frameworks")
    if frameworks_raw is not None and not isinstance(frameworks_raw, dict):
        issues.append(ConfigIssue("frameworks", "must be a mapping", "name -> framework entry"))
    frameworks: Dict[str, FrameworkState] = {}
    for name, entry in _as_dict(frameworks_raw).items():
        state = _framework_from_dict(str(name), entry, issues)
        if state is not None:
            frameworks[state.name] = state

    internal_data = _as_dict(data.get("internal"))
    internal = InternalConfig(
        enabled=_as_bool(internal_data.get("enabled"), default=False),
        categories=_as_str_list(internal_data.get("categories")),
        total_files=_as_int(internal_data.get("total_files")) or 0,
    )

    sources_data = _as_dict(data.get("sources"))
    sources = SourcesConfig(
        fallback_enabled=_as_bool(sources_data.get("fallback_enabled"), default=True),
        library_mappings={
            str(key): str(value)
            for key, value in _as_dict(sources_data.get("library_mappings")).items()
            if isinstance(value, str)
        },
        cache_hours=_as_int(sources_data.get("cache_hours")) or SourcesConfig.cache_hours,
    )

    limits_data = _as_dict(data.get("limits"))
    defaults = LimitsConfig()
    limits = LimitsConfig(
        max_index_kb=_positive(limits_data, "max_index_kb", _as_float, defaults.max_index_kb, issues),
        max_docs_kb=_positive(limits_data, "max_docs_kb", _as_float, defaults.max_docs_kb, issues),
        max_files_per_framework=_positive(
            limits_data, "max_files_per_framework", _as_int, defaults.max_files_per_framework, issues
        ),
        max_file_chars=_positive(limits_data, "max_file_chars", _as_int, defaults.max_file_chars, issues),
    )

    if issues:
        raise ConfigError(
            f"Invalid configuration in {path}",
            issues=issues,
            config_path=str(path),
            hint="Fix the listed fields or run `docindex init --force` to start over.",
        )

    return DocIndexConfig(
        root=root,
        version=_as_str(data.get("version")) or CONFIG_VERSION,
        project=project,
        sync=sync,
        frameworks=frameworks,
        internal=internal,
        sources=sources,
        limits=limits,
    )


def require_config(root: Path) -> DocIndexConfig:
    """Load configuration or raise :class:`NotInitializedError`."""
    config = load_config(root)
    if config is None:
        raise NotInitializedError()
    return config


def save_config(config: DocIndexConfig) -> Path:
    """Write the configuration back to disk."""
    path = config.path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(config_to_dict(config), sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )
    return path


def config_to_dict(config: DocIndexConfig) -> Dict[str, Any]:
    return {
        "version": config.version,
        "project": {"name": config.project.name, "type": config.project.type},
        "sync": {
            "last_sync": config.sync.last_sync,
            "auto_sync_on_install": config.sync.auto_sync_on_install,
        },
        "frameworks": {
            name: {
                "version": state.version,
                "source": state.source,
                "library_id": state.library_id,
                "last_update": state.last_update,
                "files": state.files,
                "categories": list(state.categories),
            }
            for name, state in config.frameworks.items()
        },
        "internal": {
            "enabled": config.internal.enabled,
            "categories": list(config.internal.categories),
            "total_files": config.internal.total_files,
        },
        "sources": {
            "fallback_enabled": config.sources.fallback_enabled,
            "library_mappings": dict(config.sources.library_mappings),
            "cache_hours": config.sources.cache_hours,
        },
        "limits": {
            "max_index_kb": config.limits.max_index_kb,
            "max_docs_kb": config.limits.max_docs_kb,
            "max_files_per_framework": config.limits.max_files_per_framework,
            "max_file_chars": config.limits.max_file_chars,
        },
    }


def create_default_config(root: Path, project_name: str, project_type: str) -> DocIndexConfig:
    return DocIndexConfig(
        root=Path(root).expanduser().resolve(),
        project=ProjectConfig(name=project_name, type=project_type),
    )


def update_framework(config: DocIndexConfig, state: FrameworkState) -> None:
    config.frameworks[state.name] = state
    if state.library_id:
        config.sources.library_mappings[state.name] = state.library_id


def remove_framework(config: DocIndexConfig, name: str) -> None:
    config.frameworks.pop(name, None)
    config.sources.library_mappings.pop(name, None)


def touch_sync_time(config: DocIndexConfig, now: datetime | None = None) -> None:
    config.sync.last_sync = utc_timestamp(now)


def utc_timestamp(now: datetime | None = None) -> str:
    moment = now or datetime.now(UTC)
    return moment.isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO timestamp; naive values are taken as UTC, junk gives ``None``."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(
            f"Failed to parse {path.name}: {exc}",
            config_path=str(path),
            hint="Check the YAML syntax of the config file.",
        ) from exc
    return loaded if loaded is not None else {}


def _framework_from_dict(name: str, entry: Any, issues: List[ConfigIssue]) -> Optional[FrameworkState]:
    if not isinstance(entry, dict):
        issues.append(ConfigIssue(f"frameworks.{name}", "must be a mapping"))
        return None
    version = _as_str(entry.get("version"))
    if not version:
        issues.append(ConfigIssue(f"frameworks.{name}.version", "is required", "string such as 4.x"))
        return None
    source = _as_str(entry.get("source")) or "static"
    if source not in FRAMEWORK_SOURCES:
        issues.append(
            ConfigIssue(f"frameworks.{name}.source", f"unsupported value {source!r}", " | ".join(FRAMEWORK_SOURCES))
        )
    return FrameworkState(
        name=name,
        version=version,
        source=source,
        library_id=_as_str(entry.get("library_id")),
        last_update=_as_str(entry.get("last_update")),
        files=_as_int(entry.get("files")) or 0,
        categories=_as_str_list(entry.get("categories")),
    )


def _positive(data: Dict[str, Any], key: str, convert, default, issues: List[ConfigIssue]):
    if key not in data or data[key] is None:
        return default
    value = convert(data[key])
    if value is None or value <= 0:
        issues.append(ConfigIssue(f"limits.{key}", f"invalid value {data[key]!r}", "positive number"))
        return default
    return value


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat().replace("+00:00", "Z")
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any, *, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return default


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CLAUDE_DOCS_DIR",
    "CONFIG_FILE",
    "DocIndexConfig",
    "FRAMEWORKS_DIR",
    "INTERNAL_DIR",
    "InternalConfig",
    "LimitsConfig",
    "PROJECT_TYPES",
    "ProjectConfig",
    "SourcesConfig",
    "SyncConfig",
    "config_exists",
    "config_path",
    "create_default_config",
    "docs_path",
    "load_config",
    "parse_timestamp",
    "remove_framework",
    "require_config",
    "save_config",
    "touch_sync_time",
    "update_framework",
    "utc_timestamp",
]

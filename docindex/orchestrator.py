"""Pipeline orchestration behind the docindex commands."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .budget import extract_relevant_sections
from .catalog import Catalog, default_catalog, template_queries
from .concurrency import DEFAULT_CONCURRENCY, ConcurrentFetchCoordinator
from .config import (
    CLAUDE_DOCS_DIR,
    FRAMEWORKS_DIR,
    INTERNAL_DIR,
    DocIndexConfig,
    config_exists,
    create_default_config,
    load_config,
    parse_timestamp,
    remove_framework,
    require_config,
    save_config,
    touch_sync_time,
    update_framework,
    utc_timestamp,
)
from .credentials import (
    API_KEY_ENV,
    api_key_problem,
    clear_api_key,
    credentials_path,
    load_credentials,
    save_api_key,
)
from .docs_store import (
    calculate_docs_size,
    ensure_layout,
    read_all_framework_docs,
    read_internal_docs,
    remove_framework_docs,
    update_gitignore,
    write_doc_file,
    write_internal_doc_file,
)
from .errors import ConfigError, DocIndexError, DocsSourceError, ManifestError
from .freshness import DEFAULT_STALE_DAYS, FreshnessReport, check_freshness
from .index_builder import (
    build_frameworks_index,
    build_index_sections,
    build_internal_index,
    calculate_index_size,
)
from .logging import get_logger
from .manifest import (
    detect_dependencies,
    detect_project_type,
    project_name,
    read_package_json,
    try_read_package_json,
)
from .models import (
    ActionKind,
    DependencyRecord,
    DocFile,
    FrameworkState,
    FrameworkTemplate,
    IndexSection,
    SyncPlan,
    TemplateQuery,
)
from .patterns import (
    DEFAULT_DETECTORS,
    DetectedPattern,
    PatternDetector,
    detect_patterns,
    detector_categories,
    scan_project,
)
from .planner import plan_sync
from .postproc.index_format import parse_index, render_index_body
from .postproc.markers import MarkerManager
from .rendering import DocRenderer
from .sources.context7 import Context7Client, DocsResult
from .sources.registry import RegistryClient
from .versioning import UNKNOWN_VERSION, major_version

HOST_DOCUMENT = "CLAUDE.md"
FETCH_TIMEOUT = 30.0
DOCS_AGE_WARNING_DAYS = 30


@dataclass
class InitOutcome:
    config_path: Path
    project_name: str
    project_type: str
    created_dirs: List[Path] = field(default_factory=list)
    gitignore_updated: bool = False
    detected: List[DependencyRecord] = field(default_factory=list)


@dataclass
class IndexOutcome:
    """Result of rewriting the index block in the host document."""

    path: Path
    size_kb: float
    limit_kb: float
    created: bool
    changed: bool

    @property
    def over_limit(self) -> bool:
        return self.size_kb > self.limit_kb


@dataclass
class FileOutcome:
    category: str
    name: str
    size_bytes: int
    fetched: bool
    error: Optional[str] = None


@dataclass
class FrameworkOutcome:
    name: str
    display_name: str
    version: str
    library_id: Optional[str]
    files: List[FileOutcome] = field(default_factory=list)

    @property
    def fetched_count(self) -> int:
        return sum(1 for item in self.files if item.fetched)

    @property
    def placeholder_count(self) -> int:
        return len(self.files) - self.fetched_count

    @property
    def total_bytes(self) -> int:
        return sum(item.size_bytes for item in self.files)


@dataclass
class AddOutcome:
    added: List[FrameworkOutcome] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    unknown: List[str] = field(default_factory=list)
    source_available: bool = False
    index: Optional[IndexOutcome] = None


@dataclass
class SyncOutcome:
    plan: SyncPlan
    applied: bool = False
    cancelled: bool = False
    added: List[FrameworkOutcome] = field(default_factory=list)
    updated: List[FrameworkOutcome] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    index: Optional[IndexOutcome] = None


@dataclass
class FrameworkStatus:
    name: str
    version: str
    files: int
    size_bytes: int
    installed_version: Optional[str] = None

    @property
    def update_available(self) -> bool:
        return (
            self.installed_version is not None
            and self.installed_version != UNKNOWN_VERSION
            and self.installed_version != self.version
        )


@dataclass
class InternalCategoryStatus:
    category: str
    files: int
    size_bytes: int


@dataclass
class StatusReport:
    project_name: str
    frameworks: List[FrameworkStatus]
    internal: List[InternalCategoryStatus]
    index_kb: float
    max_index_kb: float
    docs_kb: float
    max_docs_kb: float
    last_sync: Optional[str]
    missing: List[DependencyRecord] = field(default_factory=list)


@dataclass
class OrphanDocs:
    name: str
    size_bytes: int


@dataclass
class CleanOutcome:
    orphans: List[OrphanDocs]
    dry_run: bool
    index_before_kb: float
    index_after_kb: Optional[float] = None
    removed: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def freed_bytes(self) -> int:
        removed = set(self.removed)
        return sum(orphan.size_bytes for orphan in self.orphans if orphan.name in removed)


@dataclass
class Diagnostic:
    name: str
    status: str
    message: str
    hint: Optional[str] = None


@dataclass
class DoctorReport:
    results: List[Diagnostic] = field(default_factory=list)

    @property
    def errors(self) -> List[Diagnostic]:
        return [item for item in self.results if item.status == "error"]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [item for item in self.results if item.status == "warn"]


@dataclass
class GeneratedDoc:
    pattern: DetectedPattern
    path: Path
    size_bytes: int


@dataclass
class GenerateOutcome:
    patterns: List[DetectedPattern]
    scanned_files: int
    read_files: int
    dry_run: bool = False
    cancelled: bool = False
    written: List[GeneratedDoc] = field(default_factory=list)
    index: Optional[IndexOutcome] = None


@dataclass
class AuthStatus:
    """Where the API key comes from: ``"env"``, ``"stored"`` or ``None``."""

    source: Optional[str]
    credentials_path: Path
    stored: bool = False
    configured_at: Optional[str] = None


Confirm = Callable[[SyncPlan], bool]
FetchRequest = Tuple[str, Optional[str]]


class Orchestrator:
    """Coordinates the docs cache, the config file and the host document."""

    def __init__(
        self,
        catalog: Catalog | None = None,
        renderer: DocRenderer | None = None,
        marker_manager: MarkerManager | None = None,
        docs_client_factory: Callable[[], Context7Client] | None = None,
        registry_factory: Callable[[], RegistryClient] | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        fetch_timeout: float = FETCH_TIMEOUT,
        detectors: Sequence[PatternDetector] | None = None,
    ) -> None:
        self.catalog = catalog or default_catalog()
        self.renderer = renderer or DocRenderer()
        self.marker_manager = marker_manager or MarkerManager()
        self.docs_client_factory = docs_client_factory or Context7Client
        self.registry_factory = registry_factory or RegistryClient
        self.concurrency = concurrency
        self.fetch_timeout = fetch_timeout
        self.detectors = tuple(detectors) if detectors is not None else tuple(DEFAULT_DETECTORS)
        self.logger = get_logger("orchestrator")

    # ------------------------------------------------------------------ init
    def run_init(
        self,
        path: str | Path,
        *,
        force: bool = False,
        detect: bool = True,
        internal: bool = False,
    ) -> InitOutcome:
        """Create ``.claude-docs/`` with a default config for the project at ``path``."""
        root = Path(path).expanduser().resolve()
        if config_exists(root) and not force:
            raise DocIndexError(
                "docindex is already initialized in this project.",
                hint="Use `docindex init --force` to reinitialize.",
                code="ALREADY_INITIALIZED",
            )
        manifest = read_package_json(root)
        name = project_name(manifest, root)
        kind = detect_project_type(manifest, self.catalog)
        self.logger.info("Initializing docindex for %s (%s)", name, kind)

        created = ensure_layout(root, internal=internal)
        config = create_default_config(root, name, kind)
        config.internal.enabled = internal
        config_file = save_config(config)
        gitignore_updated = update_gitignore(root)

        detected = detect_dependencies(manifest, self.catalog) if detect else []
        return InitOutcome(
            config_path=config_file,
            project_name=name,
            project_type=kind,
            created_dirs=created,
            gitignore_updated=gitignore_updated,
            detected=detected,
        )

    # ------------------------------------------------------------------- add
    def run_add(
        self,
        path: str | Path,
        frameworks: Sequence[str],
        *,
        version: Optional[str] = None,
        force: bool = False,
        index: bool = True,
        offline: bool = False,
    ) -> AddOutcome:
        """Fetch docs for each named framework and refresh the index."""
        config = require_config(Path(path).expanduser().resolve())
        valid = [name for name in dict.fromkeys(frameworks) if self.catalog.has_template(name)]
        unknown = [name for name in dict.fromkeys(frameworks) if not self.catalog.has_template(name)]
        if not valid:
            available = ", ".join(template.name for template in self.catalog.list_templates())
            raise DocIndexError(
                "No valid frameworks to add.",
                hint=f"Available: {available}",
                code="UNKNOWN_FRAMEWORK",
            )

        outcome = asyncio.run(
            self._fetch_with_client(
                config,
                [(name, version) for name in valid],
                force=force,
                offline=offline,
            )
        )
        outcome.unknown = unknown
        touch_sync_time(config)
        save_config(config)
        if index:
            outcome.index = self.refresh_index(config)
            save_config(config)
        return outcome

    # ------------------------------------------------------------------ sync
    def plan(self, path: str | Path) -> Tuple[DocIndexConfig, SyncPlan]:
        """Return the loaded config and the reconciliation plan for ``path``."""
        root = Path(path).expanduser().resolve()
        config = require_config(root)
        manifest = read_package_json(root)
        records = detect_dependencies(manifest, self.catalog)
        return config, plan_sync(records, config.frameworks, self.catalog.has_template)

    def run_sync(
        self,
        path: str | Path,
        *,
        check: bool = False,
        prune: bool = False,
        offline: bool = False,
        confirm: Confirm | None = None,
    ) -> SyncOutcome:
        """Bring the docs cache in line with package.json.

        Additions and version updates are always applied, removals only with
        ``prune``. ``check`` stops after planning. ``confirm`` is asked before any
        change is made and may cancel the run.
        """
        config, plan = self.plan(path)
        outcome = SyncOutcome(plan=plan)
        if check:
            return outcome

        adds = plan.of_kind(ActionKind.ADD)
        updates = plan.of_kind(ActionKind.UPDATE)
        removes = plan.of_kind(ActionKind.REMOVE) if prune else []
        if not (adds or updates or removes):
            touch_sync_time(config)
            save_config(config)
            return outcome
        if confirm is not None and not confirm(plan):
            outcome.cancelled = True
            return outcome

        fetched = asyncio.run(
            self._apply_fetches(
                config,
                [(action.framework, _pinned(action.new_version)) for action in adds],
                [(action.framework, _pinned(action.new_version)) for action in updates],
                offline=offline,
            )
        )
        outcome.added, outcome.updated = fetched

        for action in removes:
            remove_framework_docs(config.root, action.framework)
            remove_framework(config, action.framework)
            outcome.removed.append(action.framework)
            self.logger.info("Removed %s", action.framework)

        outcome.index = self.refresh_index(config)
        touch_sync_time(config)
        save_config(config)
        outcome.applied = True
        return outcome

    # ---------------------------------------------------------------- update
    def run_update(
        self,
        path: str | Path,
        frameworks: Sequence[str] = (),
        *,
        index: bool = True,
    ) -> AddOutcome:
        """Re-fetch docs for recorded frameworks at their recorded versions."""
        config = require_config(Path(path).expanduser().resolve())
        if not config.frameworks:
            raise DocIndexError(
                "No frameworks installed.",
                hint="Run `docindex add <framework>` first.",
                code="NOTHING_TO_UPDATE",
            )

        requested = list(dict.fromkeys(frameworks)) or list(config.frameworks)
        targets: List[FetchRequest] = []
        skipped: List[str] = []
        unknown: List[str] = []
        for name in requested:
            state = config.frameworks.get(name)
            if state is not None and self.catalog.has_template(name):
                targets.append((name, state.version))
            elif self.catalog.has_template(name) or state is not None:
                skipped.append(name)
            else:
                unknown.append(name)
        if not targets:
            raise DocIndexError(
                "No valid frameworks to update.",
                hint="Use `docindex add <framework>` for frameworks that are not installed yet.",
                code="NOTHING_TO_UPDATE",
            )

        outcome = asyncio.run(
            self._fetch_with_client(config, targets, force=True, offline=False, require_source=True)
        )
        outcome.skipped.extend(skipped)
        outcome.unknown = unknown
        touch_sync_time(config)
        save_config(config)
        if index:
            outcome.index = self.refresh_index(config)
            save_config(config)
        return outcome

    # ---------------------------------------------------------------- status
    def run_status(self, path: str | Path) -> StatusReport:
        root = Path(path).expanduser().resolve()
        config = require_config(root)
        manifest = try_read_package_json(root)
        records = detect_dependencies(manifest, self.catalog) if manifest else []
        installed = {record.key: major_version(record.version_specifier) for record in records}
        sizes = calculate_docs_size(root)

        frameworks = [
            FrameworkStatus(
                name=name,
                version=state.version,
                files=state.files,
                size_bytes=sizes.frameworks.get(name, 0),
                installed_version=installed.get(name),
            )
            for name, state in config.frameworks.items()
        ]
        internal = [
            InternalCategoryStatus(
                category=category,
                files=len(files),
                size_bytes=sum(doc.size_bytes for doc in files),
            )
            for category, files in read_internal_docs(root).items()
        ]
        missing = [
            record
            for record in records
            if record.template_ref is not None and record.key not in config.frameworks
        ]
        return StatusReport(
            project_name=config.project.name,
            frameworks=frameworks,
            internal=internal,
            index_kb=calculate_index_size(self._index_sections(config), self._fallback_mappings(config)),
            max_index_kb=config.limits.max_index_kb,
            docs_kb=sizes.total / 1024,
            max_docs_kb=config.limits.max_docs_kb,
            last_sync=config.sync.last_sync,
            missing=missing,
        )

    # ----------------------------------------------------------------- clean
    def run_clean(
        self,
        path: str | Path,
        *,
        dry_run: bool = False,
        confirm: Callable[[List[OrphanDocs]], bool] | None = None,
    ) -> CleanOutcome:
        """Remove docs for recorded frameworks that package.json no longer declares."""
        config, plan = self.plan(path)
        sizes = calculate_docs_size(config.root)
        orphans = [OrphanDocs(name, sizes.frameworks.get(name, 0)) for name in plan.orphans]
        mappings = self._fallback_mappings(config)
        outcome = CleanOutcome(
            orphans=orphans,
            dry_run=dry_run,
            index_before_kb=calculate_index_size(self._index_sections(config), mappings),
        )
        if dry_run:
            return outcome
        if orphans and confirm is not None and not confirm(orphans):
            outcome.cancelled = True
            return outcome

        for orphan in orphans:
            remove_framework_docs(config.root, orphan.name)
            remove_framework(config, orphan.name)
            outcome.removed.append(orphan.name)
            self.logger.info("Removed orphaned docs for %s", orphan.name)

        outcome.index_after_kb = self.refresh_index(config).size_kb
        save_config(config)
        return outcome

    # ----------------------------------------------------------------- check
    def run_check(self, path: str | Path, *, stale_days: int = DEFAULT_STALE_DAYS) -> FreshnessReport:
        """Compare recorded versions with the latest npm releases."""
        root = Path(path).expanduser().resolve()
        config = require_config(root)
        manifest = try_read_package_json(root)

        async def _check() -> FreshnessReport:
            async with self.registry_factory() as registry:
                return await check_freshness(
                    config,
                    manifest,
                    registry.fetch_latest_versions,
                    stale_days=stale_days,
                    catalog=self.catalog,
                )

        return asyncio.run(_check())

    # ---------------------------------------------------------------- doctor
    def run_doctor(self, path: str | Path) -> DoctorReport:
        root = Path(path).expanduser().resolve()
        report = DoctorReport()

        auth = self.auth_status()
        if auth.source == "env":
            report.results.append(Diagnostic("Context7 API", "ok", f"API key configured ({API_KEY_ENV})"))
        elif auth.source == "stored":
            report.results.append(
                Diagnostic("Context7 API", "ok", f"API key loaded from {auth.credentials_path}")
            )
        else:
            report.results.append(
                Diagnostic(
                    "Context7 API",
                    "warn",
                    "No API key configured; docs will be placeholders",
                    hint=f"Run `docindex auth` or export {API_KEY_ENV}=ctx7sk-...",
                )
            )

        config: Optional[DocIndexConfig] = None
        try:
            config = load_config(root)
        except ConfigError as exc:
            report.results.append(Diagnostic("Config", "error", str(exc), hint=exc.hint))
        else:
            if config is None:
                report.results.append(
                    Diagnostic("Init", "error", "Project not initialized", hint="Run `docindex init`.")
                )
            else:
                report.results.append(Diagnostic("Init", "ok", "Project initialized"))

        manifest = None
        try:
            manifest = try_read_package_json(root)
        except ManifestError as exc:
            report.results.append(Diagnostic("package.json", "error", str(exc), hint=exc.hint))
        else:
            if manifest is None:
                report.results.append(
                    Diagnostic("package.json", "warn", "Not found", hint="docindex works on Node.js projects.")
                )
            else:
                report.results.append(
                    Diagnostic("package.json", "ok", f"Found: {manifest.get('name') or 'unnamed'}")
                )

        if manifest is not None:
            documented = [
                record.key
                for record in detect_dependencies(manifest, self.catalog)
                if record.template_ref is not None
            ]
            if documented:
                report.results.append(
                    Diagnostic(
                        "Frameworks",
                        "info",
                        f"{len(documented)} framework(s) with docs available",
                        hint=", ".join(documented),
                    )
                )
            if config is not None:
                missing = [name for name in documented if name not in config.frameworks]
                if missing:
                    report.results.append(
                        Diagnostic(
                            "Missing docs",
                            "warn",
                            f"{len(missing)} detected framework(s) without docs",
                            hint=f"Run `docindex add {' '.join(missing)}`.",
                        )
                    )

        if config is not None:
            report.results.extend(self._diagnose_docs(config))
            report.results.append(self._diagnose_host_document(config))
        return report

    # -------------------------------------------------------------- generate
    def run_generate(
        self,
        path: str | Path,
        *,
        category: Optional[str] = None,
        dry_run: bool = False,
        confirm: Callable[[List[DetectedPattern]], bool] | None = None,
    ) -> GenerateOutcome:
        """Detect project conventions and write them as internal pattern docs."""
        root = Path(path).expanduser().resolve()
        config = require_config(root)
        categories = detector_categories(self.detectors)
        if category is not None and category not in categories:
            raise DocIndexError(
                f"Unknown pattern category {category!r}.",
                hint=f"Available: {', '.join(categories)}",
                code="UNKNOWN_CATEGORY",
            )

        snapshot = scan_project(root)
        patterns = detect_patterns(snapshot, self.detectors, category=category)
        outcome = GenerateOutcome(
            patterns=patterns,
            scanned_files=len(snapshot.files),
            read_files=len(snapshot.contents),
            dry_run=dry_run,
        )
        self.logger.info("Detected %d pattern(s) in %d files", len(patterns), len(snapshot.files))
        if not patterns or dry_run:
            return outcome
        if confirm is not None and not confirm(patterns):
            outcome.cancelled = True
            return outcome

        today = datetime.now(UTC).date()
        for pattern in patterns:
            text = self.renderer.render_internal_pattern(pattern, today=today)
            written = write_internal_doc_file(root, pattern.category, pattern.file_name, text)
            outcome.written.append(GeneratedDoc(pattern, written, len(text.encode("utf-8"))))
            self.logger.debug("Wrote %s", written)

        outcome.index = self.refresh_index(config)
        config.internal.enabled = config.internal.total_files > 0
        touch_sync_time(config)
        save_config(config)
        return outcome

    # ------------------------------------------------------------------ auth
    def auth_status(self) -> AuthStatus:
        stored = load_credentials()
        if os.environ.get(API_KEY_ENV):
            source: Optional[str] = "env"
        elif stored.api_key:
            source = "stored"
        else:
            source = None
        return AuthStatus(
            source=source,
            credentials_path=credentials_path(),
            stored=stored.api_key is not None,
            configured_at=stored.configured_at,
        )

    def run_login(self, api_key: str) -> Path:
        """Validate the key format and store it for later commands."""
        api_key = api_key.strip()
        problem = api_key_problem(api_key)
        if problem is not None:
            raise DocIndexError(
                f"Invalid API key: {problem}.",
                hint="Copy the key from https://context7.com (it starts with ctx7).",
                code="INVALID_API_KEY",
            )
        return save_api_key(api_key)

    def run_logout(self) -> bool:
        return clear_api_key()

    # --------------------------------------------------------------- listing
    def list_templates(self, category: Optional[str] = None) -> Dict[str, List[FrameworkTemplate]]:
        grouped = self.catalog.templates_by_category()
        if category is not None:
            return {category: grouped.get(category, [])}
        return grouped

    # ----------------------------------------------------------------- index
    def run_index(self, path: str | Path) -> IndexOutcome:
        config = require_config(Path(path).expanduser().resolve())
        outcome = self.refresh_index(config)
        save_config(config)
        return outcome

    def refresh_index(self, config: DocIndexConfig) -> IndexOutcome:
        """Rebuild the index from disk and splice it into the host document."""
        internal_docs = read_internal_docs(config.root)
        config.internal.categories = list(internal_docs)
        config.internal.total_files = sum(len(files) for files in internal_docs.values())

        sections = self._index_sections(config, internal_docs=internal_docs)
        mappings = self._fallback_mappings(config)
        body = render_index_body(sections, mappings)
        size_kb = calculate_index_size(sections, mappings)

        host = config.root / HOST_DOCUMENT
        existing = _read_host(host)
        result = self.marker_manager.splice(
            existing,
            body,
            header=self.renderer.render_host_header(config.project.name),
        )
        changed = result.text != existing
        if changed:
            _write_host(host, result.text)
        if size_kb > config.limits.max_index_kb:
            self.logger.warning(
                "Index is %.2fKB, over the %.2fKB limit; consider removing frameworks",
                size_kb,
                config.limits.max_index_kb,
            )
        self.logger.debug("Index written to %s (%.2fKB)", host, size_kb)
        return IndexOutcome(
            path=host,
            size_kb=size_kb,
            limit_kb=config.limits.max_index_kb,
            created=result.created,
            changed=changed,
        )

    # -------------------------------------------------------------- internals
    def _index_sections(
        self,
        config: DocIndexConfig,
        *,
        internal_docs: Optional[Dict[str, List[DocFile]]] = None,
    ) -> List[IndexSection]:
        frameworks = build_frameworks_index(
            config.framework_versions(),
            read_all_framework_docs(config.root),
        )
        internal = build_internal_index(
            internal_docs if internal_docs is not None else read_internal_docs(config.root)
        )
        return build_index_sections(
            f"{CLAUDE_DOCS_DIR}/{FRAMEWORKS_DIR}",
            f"{CLAUDE_DOCS_DIR}/{INTERNAL_DIR}",
            frameworks,
            internal,
        )

    @staticmethod
    def _fallback_mappings(config: DocIndexConfig) -> Dict[str, str]:
        return dict(config.sources.library_mappings) if config.sources.fallback_enabled else {}

    async def _fetch_with_client(
        self,
        config: DocIndexConfig,
        requests: Sequence[FetchRequest],
        *,
        force: bool,
        offline: bool,
        require_source: bool = False,
    ) -> AddOutcome:
        async with self.docs_client_factory() as client:
            if require_source and not client.available:
                raise DocsSourceError(
                    "No documentation source available.",
                    category="auth",
                    hint=f"Run `docindex auth` or set {API_KEY_ENV} (get a key from https://context7.com).",
                )
            source = client if client.available and not offline else None
            outcome = AddOutcome(source_available=source is not None)
            for name, version in requests:
                if name in config.frameworks and not force:
                    self.logger.info("%s already exists; use --force to overwrite", name)
                    outcome.skipped.append(name)
                    continue
                outcome.added.append(await self._fetch_framework(config, source, name, version))
        return outcome

    async def _apply_fetches(
        self,
        config: DocIndexConfig,
        adds: Sequence[FetchRequest],
        updates: Sequence[FetchRequest],
        *,
        offline: bool,
    ) -> Tuple[List[FrameworkOutcome], List[FrameworkOutcome]]:
        async with self.docs_client_factory() as client:
            source = client if client.available and not offline else None
            added = [await self._fetch_framework(config, source, name, version) for name, version in adds]
            updated = [await self._fetch_framework(config, source, name, version) for name, version in updates]
        return added, updated

    async def _fetch_framework(
        self,
        config: DocIndexConfig,
        client: Context7Client | None,
        name: str,
        version: Optional[str],
    ) -> FrameworkOutcome:
        template = self.catalog.get_template(name)
        if template is None:
            raise DocIndexError(f"No documentation template for {name!r}.", code="UNKNOWN_FRAMEWORK")
        version = version or template.version
        queries = template_queries(template, limit=config.limits.max_files_per_framework)
        self.logger.info("Fetching %s@%s docs (%d files)", template.display_name, version, len(queries))

        results: Dict[Tuple[str, str], Optional[DocsResult]] = {}
        if client is not None and template.library_id:
            by_key = {(query.category, query.file): query for query in queries}
            coordinator: ConcurrentFetchCoordinator[Tuple[str, str], DocsResult] = ConcurrentFetchCoordinator(
                self.concurrency, self.fetch_timeout
            )
            results = await coordinator.run(
                by_key,
                lambda key: client.query_docs(by_key[key].library_id or "", by_key[key].query),
            )

        if name in config.frameworks:
            remove_framework_docs(config.root, name)

        today = datetime.now(UTC).date()
        outcome = FrameworkOutcome(
            name=name,
            display_name=template.display_name,
            version=version,
            library_id=template.library_id,
        )
        for query in queries:
            result = results.get((query.category, query.file))
            text, fetched = self._render_file(config, template, query, version, result, today)
            write_doc_file(config.root, name, query.category, query.file, text)
            error = None
            if not fetched and client is not None:
                error = result.error if result is not None else "lookup failed"
                self.logger.warning("%s/%s: using placeholder (%s)", query.category, query.file, error)
            outcome.files.append(
                FileOutcome(
                    category=query.category,
                    name=query.file,
                    size_bytes=len(text.encode("utf-8")),
                    fetched=fetched,
                    error=error,
                )
            )

        update_framework(
            config,
            FrameworkState(
                name=name,
                version=version,
                source="generated" if outcome.fetched_count else "static",
                library_id=template.library_id,
                last_update=utc_timestamp(),
                files=len(outcome.files),
                categories=list(dict.fromkeys(query.category for query in queries)),
            ),
        )
        return outcome

    def _render_file(
        self,
        config: DocIndexConfig,
        template: FrameworkTemplate,
        query: TemplateQuery,
        version: str,
        result: Optional[DocsResult],
        today,
    ) -> Tuple[str, bool]:
        if result is not None and result.success and result.content:
            body = extract_relevant_sections(result.content, config.limits.max_file_chars)
            text = self.renderer.render_doc_file(
                body,
                display_name=template.display_name,
                version=version,
                category=query.category,
                file_name=query.file,
                library_id=query.library_id,
                today=today,
            )
            return text, True
        text = self.renderer.render_placeholder(
            framework=template.name,
            display_name=template.display_name,
            version=version,
            category=query.category,
            file_name=query.file,
            query=query.query,
            library_id=query.library_id,
            today=today,
        )
        return text, False

    def _diagnose_docs(self, config: DocIndexConfig) -> List[Diagnostic]:
        if not config.frameworks:
            return [Diagnostic("Docs", "warn", "No docs installed", hint="Run `docindex add <framework>`.")]
        total_files = sum(state.files for state in config.frameworks.values())
        results = [Diagnostic("Docs", "ok", f"{len(config.frameworks)} framework(s), {total_files} files")]
        now = datetime.now(UTC)
        outdated = []
        for name, state in config.frameworks.items():
            updated = parse_timestamp(state.last_update)
            if updated is None or (now - updated).days > DOCS_AGE_WARNING_DAYS:
                outdated.append(name)
        if outdated:
            results.append(
                Diagnostic(
                    "Docs age",
                    "warn",
                    f"{len(outdated)} framework(s) may be outdated",
                    hint="Run `docindex update`.",
                )
            )
        return results

    def _diagnose_host_document(self, config: DocIndexConfig) -> Diagnostic:
        host = config.root / HOST_DOCUMENT
        text = _read_host(host)
        if text is None:
            return Diagnostic(HOST_DOCUMENT, "warn", "Not found", hint="It is created when you add docs.")
        block = self.marker_manager.extract(text)
        if block is None:
            return Diagnostic(
                HOST_DOCUMENT,
                "warn",
                "No docs index block",
                hint="Run `docindex sync` to append one.",
            )
        if parse_index(block) != self._index_sections(config):
            return Diagnostic(
                HOST_DOCUMENT,
                "warn",
                "Docs index does not match the docs on disk",
                hint="Run `docindex index`.",
            )
        return Diagnostic(HOST_DOCUMENT, "ok", "Found with docs index")


def _pinned(version: Optional[str]) -> Optional[str]:
    if version is None or version == UNKNOWN_VERSION:
        return None
    return version


def _read_host(path: Path) -> Optional[str]:
    if not path.exists():
        return None
    # newline="" keeps CRLF line endings intact outside the index block.
    with path.open("r", encoding="utf-8", newline="") as handle:
        return handle.read()


def _write_host(path: Path, text: str) -> None:
    with path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(text)


__all__ = [
    "AddOutcome",
    "AuthStatus",
    "CleanOutcome",
    "Diagnostic",
    "DoctorReport",
    "FileOutcome",
    "FrameworkOutcome",
    "FrameworkStatus",
    "GenerateOutcome",
    "GeneratedDoc",
    "HOST_DOCUMENT",
    "IndexOutcome",
    "InitOutcome",
    "InternalCategoryStatus",
    "Orchestrator",
    "OrphanDocs",
    "StatusReport",
    "SyncOutcome",
]

"""Freshness check of cached docs against the npm registry."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import IntEnum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from .catalog import Catalog, default_catalog
from .config import DocIndexConfig, parse_timestamp
from .logging import get_logger
from .manifest import declared_dependencies
from .versioning import check_version_freshness

DEFAULT_STALE_DAYS = 30

STATUS_UP_TO_DATE = "up-to-date"
STATUS_STALE = "stale"
STATUS_MISSING = "missing"
STATUS_ORPHANED = "orphaned"
STATUS_UNKNOWN = "unknown"

FetchVersions = Callable[[Sequence[str]], Awaitable[Dict[str, Optional[str]]]]

logger = get_logger("freshness")


class ExitCode(IntEnum):
    SUCCESS = 0
    STALE = 1
    MISSING = 2
    ORPHANED = 3
    MIXED = 4
    NETWORK_ERROR = 5


@dataclass
class FreshnessResult:
    framework: str
    display_name: str
    indexed_version: str
    latest_version: Optional[str]
    status: str
    diff_type: Optional[str] = None


@dataclass
class FreshnessReport:
    results: List[FreshnessResult] = field(default_factory=list)
    exit_code: ExitCode = ExitCode.SUCCESS
    error: Optional[str] = None

    @property
    def summary(self) -> Dict[str, int]:
        counts = {
            "total": len(self.results),
            "stale": 0,
            "missing": 0,
            "orphaned": 0,
            "up_to_date": 0,
            "unknown": 0,
        }
        for result in self.results:
            key = result.status.replace("-", "_")
            counts[key] = counts.get(key, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [asdict(result) for result in self.results],
            "exit_code": int(self.exit_code),
            "summary": self.summary,
            "error": self.error,
        }


async def check_freshness(
    config: DocIndexConfig,
    manifest: Optional[Mapping[str, Any]],
    fetch_versions: FetchVersions,
    *,
    stale_days: int = DEFAULT_STALE_DAYS,
    now: Optional[datetime] = None,
    catalog: Optional[Catalog] = None,
) -> FreshnessReport:
    """Classify every recorded and declared framework.

    Recorded frameworks that are no longer declared are ``orphaned``; declared
    known frameworks with no recorded docs are ``missing``. Frameworks with an
    npm package compare their recorded version with the registry's latest
    release, and the rest fall back to the age of their last update.
    """
    catalog = catalog or default_catalog()
    moment = now or datetime.now(UTC)
    declared = declared_dependencies(dict(manifest or {}))
    declared_frameworks = _declared_frameworks(declared, catalog)

    packages = {
        name: package
        for name in config.frameworks
        if (package := catalog.primary_package(name)) is not None
    }
    try:
        latest = await fetch_versions(list(packages.values()))
    except Exception as exc:
        logger.warning("Failed to fetch versions from the registry: %s", exc)
        return FreshnessReport(exit_code=ExitCode.NETWORK_ERROR, error=str(exc))

    results: List[FreshnessResult] = []
    for name, state in config.frameworks.items():
        display = catalog.display_name(name)
        package = packages.get(name)
        if name not in declared_frameworks and name not in declared:
            results.append(
                FreshnessResult(
                    framework=name,
                    display_name=display,
                    indexed_version=state.version,
                    latest_version=latest.get(package) if package else None,
                    status=STATUS_ORPHANED,
                )
            )
            continue

        if package is not None:
            newest = latest.get(package)
            if newest is None:
                results.append(
                    FreshnessResult(name, display, state.version, None, STATUS_UNKNOWN, "fetch-failed")
                )
                continue
            is_stale, diff_type = check_version_freshness(state.version, newest)
            results.append(
                FreshnessResult(
                    name,
                    display,
                    state.version,
                    newest,
                    STATUS_STALE if is_stale else STATUS_UP_TO_DATE,
                    diff_type,
                )
            )
            continue

        results.append(_timestamp_result(name, display, state.version, state.last_update, stale_days, moment))

    for name in declared_frameworks:
        if name in config.frameworks:
            continue
        results.append(
            FreshnessResult(
                framework=name,
                display_name=catalog.display_name(name),
                indexed_version="",
                latest_version=None,
                status=STATUS_MISSING,
            )
        )

    return FreshnessReport(results=results, exit_code=compute_exit_code(results))


def compute_exit_code(results: Sequence[FreshnessResult]) -> ExitCode:
    problems = [
        (STATUS_STALE, ExitCode.STALE),
        (STATUS_MISSING, ExitCode.MISSING),
        (STATUS_ORPHANED, ExitCode.ORPHANED),
    ]
    present = [code for status, code in problems if any(result.status == status for result in results)]
    if not present:
        return ExitCode.SUCCESS
    if len(present) > 1:
        return ExitCode.MIXED
    return present[0]


def _declared_frameworks(declared: Mapping[str, str], catalog: Catalog) -> List[str]:
    names: List[str] = []
    for package in declared:
        framework = catalog.detect_framework(package)
        if framework is not None and framework.name not in names:
            names.append(framework.name)
    return names


def _timestamp_result(
    name: str,
    display: str,
    version: str,
    last_update: Optional[str],
    stale_days: int,
    moment: datetime,
) -> FreshnessResult:
    updated = parse_timestamp(last_update)
    if updated is None:
        return FreshnessResult(name, display, version, None, STATUS_STALE, "invalid-timestamp")
    age_days = (moment - updated).days
    if age_days > stale_days:
        return FreshnessResult(name, display, version, None, STATUS_STALE, "timestamp")
    return FreshnessResult(name, display, version, None, STATUS_UP_TO_DATE, None)


__all__ = [
    "DEFAULT_STALE_DAYS",
    "ExitCode",
    "FreshnessReport",
    "FreshnessResult",
    "check_freshness",
    "compute_exit_code",
]

"""FastAPI application entrypoint for docindex service mode."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, TypeVar

import uvicorn
from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..errors import ConfigError, DocIndexError, ManifestNotFoundError, NotInitializedError
from ..freshness import DEFAULT_STALE_DAYS
from ..orchestrator import Orchestrator

T = TypeVar("T")


class HealthResponse(BaseModel):
    status: str
    version: str


class FrameworkStatusModel(BaseModel):
    name: str
    version: str
    files: int
    size_bytes: int
    installed_version: Optional[str] = None
    update_available: bool = False


class StatusResponse(BaseModel):
    project_name: str
    frameworks: List[FrameworkStatusModel]
    internal: Dict[str, int]
    index_kb: float
    max_index_kb: float
    docs_kb: float
    max_docs_kb: float
    last_sync: Optional[str] = None
    missing: List[str] = []


class PathRequest(BaseModel):
    path: str = "."


class ActionModel(BaseModel):
    kind: str
    framework: str
    reason: str
    current_version: Optional[str] = None
    new_version: Optional[str] = None


class DependencyStatusModel(BaseModel):
    framework: str
    package: str
    declared_version: str
    installed_version: str
    documented_version: Optional[str] = None
    state: str


class PlanResponse(BaseModel):
    in_sync: bool
    actions: List[ActionModel]
    statuses: List[DependencyStatusModel]
    orphans: List[str]


class IndexResponse(BaseModel):
    path: str
    size_kb: float
    limit_kb: float
    created: bool
    changed: bool
    over_limit: bool


class FreshnessResultModel(BaseModel):
    framework: str
    display_name: str
    indexed_version: str
    latest_version: Optional[str] = None
    status: str
    diff_type: Optional[str] = None


class FreshnessResponse(BaseModel):
    exit_code: int
    summary: Dict[str, int]
    results: List[FreshnessResultModel]
    error: Optional[str] = None


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


async def _run_blocking(func: Callable[[], T]) -> T:
    # Orchestrator methods drive their own event loop, so they must not run on this one.
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing read and index operations."""
    app = FastAPI(title="docindex Service", version=__version__)

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @app.get("/status", response_model=StatusResponse)
    async def status(
        path: str = Query("."),
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> StatusResponse:
        report = await _run_blocking(lambda: orchestrator.run_status(path))
        return StatusResponse(
            project_name=report.project_name,
            frameworks=[
                FrameworkStatusModel(
                    name=item.name,
                    version=item.version,
                    files=item.files,
                    size_bytes=item.size_bytes,
                    installed_version=item.installed_version,
                    update_available=item.update_available,
                )
                for item in report.frameworks
            ],
            internal={item.category: item.files for item in report.internal},
            index_kb=report.index_kb,
            max_index_kb=report.max_index_kb,
            docs_kb=report.docs_kb,
            max_docs_kb=report.max_docs_kb,
            last_sync=report.last_sync,
            missing=list(dict.fromkeys(record.key for record in report.missing)),
        )

    @app.post("/sync/plan", response_model=PlanResponse)
    async def sync_plan(
        payload: PathRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> PlanResponse:
        _, plan = await _run_blocking(lambda: orchestrator.plan(payload.path))
        return PlanResponse(
            in_sync=plan.is_in_sync,
            actions=[
                ActionModel(
                    kind=action.kind.value,
                    framework=action.framework,
                    reason=action.reason,
                    current_version=action.current_version,
                    new_version=action.new_version,
                )
                for action in plan.actions
            ],
            statuses=[
                DependencyStatusModel(
                    framework=item.framework,
                    package=item.package,
                    declared_version=item.declared_version,
                    installed_version=item.installed_version,
                    documented_version=item.documented_version,
                    state=item.state,
                )
                for item in plan.statuses
            ],
            orphans=list(plan.orphans),
        )

    @app.post("/index", response_model=IndexResponse)
    async def rebuild_index(
        payload: PathRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> IndexResponse:
        outcome = await _run_blocking(lambda: orchestrator.run_index(payload.path))
        return IndexResponse(
            path=str(outcome.path),
            size_kb=outcome.size_kb,
            limit_kb=outcome.limit_kb,
            created=outcome.created,
            changed=outcome.changed,
            over_limit=outcome.over_limit,
        )

    @app.get("/freshness", response_model=FreshnessResponse)
    async def freshness(
        path: str = Query("."),
        stale_days: int = Query(DEFAULT_STALE_DAYS, ge=0),
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> FreshnessResponse:
        report = await _run_blocking(lambda: orchestrator.run_check(path, stale_days=stale_days))
        data = report.to_dict()
        return FreshnessResponse(
            exit_code=data["exit_code"],
            summary=data["summary"],
            results=[FreshnessResultModel(**item) for item in data["results"]],
            error=data["error"],
        )

    @app.exception_handler(NotInitializedError)
    async def not_initialized_handler(_: Any, exc: NotInitializedError) -> JSONResponse:
        return JSONResponse(status_code=404, content=_error_content(exc))

    @app.exception_handler(ManifestNotFoundError)
    async def manifest_not_found_handler(_: Any, exc: ManifestNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content=_error_content(exc))

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        content = _error_content(exc)
        content["issues"] = [
            {"path": issue.path, "message": issue.message, "expected": issue.expected}
            for issue in exc.issues
        ]
        return JSONResponse(status_code=422, content=content)

    @app.exception_handler(DocIndexError)
    async def docindex_error_handler(_: Any, exc: DocIndexError) -> JSONResponse:
        return JSONResponse(status_code=400, content=_error_content(exc))

    return app


def _error_content(exc: DocIndexError) -> Dict[str, Any]:
    return {"detail": str(exc), "code": exc.code, "hint": exc.hint}


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)

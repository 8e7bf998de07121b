"""Tests for the FastAPI service mode."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from docindex import __version__
from docindex.freshness import ExitCode, FreshnessReport, FreshnessResult
from docindex.orchestrator import Orchestrator
from docindex.service import create_app
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}


def test_status_endpoint(client: TestClient, project: ProjectBuilder) -> None:
    project.package_json({"hono": "^4.6.0", "zod": "^4.0.0"})
    project.init(hono="4.x")
    project.doc("hono", "api", "app.mdx", "a" * 64)

    response = client.get("/status", params={"path": str(project.path())})

    assert response.status_code == 200
    data = response.json()
    assert data["project_name"] == "sample-app"
    assert data["frameworks"][0]["name"] == "hono"
    assert data["frameworks"][0]["size_bytes"] == 64
    assert data["frameworks"][0]["update_available"] is False
    assert data["missing"] == ["zod"]


def test_uninitialized_project_is_not_found(client: TestClient, project: ProjectBuilder) -> None:
    response = client.get("/status", params={"path": str(project.path())})

    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "NOT_INITIALIZED"
    assert "docindex init" in body["hint"]


def test_invalid_config_lists_issues(client: TestClient, project: ProjectBuilder) -> None:
    project.write({".claude-docs/config.yml": "limits:\n  max_docs_kb: 0\n"})

    response = client.get("/status", params={"path": str(project.path())})

    assert response.status_code == 422
    assert response.json()["issues"][0]["path"] == "limits.max_docs_kb"


def test_sync_plan_endpoint(client: TestClient, project: ProjectBuilder) -> None:
    project.package_json({"hono": "^5.0.0", "zod": "^4.0.0"})
    project.init(hono="4.x", drizzle="0.44")

    response = client.post("/sync/plan", json={"path": str(project.path())})

    assert response.status_code == 200
    data = response.json()
    assert data["in_sync"] is False
    assert [(action["kind"], action["framework"]) for action in data["actions"]] == [
        ("update", "hono"),
        ("remove", "drizzle"),
        ("add", "zod"),
    ]
    assert data["orphans"] == ["drizzle"]
    assert data["statuses"][0]["state"] == "update-available"


def test_missing_package_json_is_not_found(client: TestClient, project: ProjectBuilder) -> None:
    project.init()

    response = client.post("/sync/plan", json={"path": str(project.path())})

    assert response.status_code == 404
    assert response.json()["code"] == "MANIFEST_NOT_FOUND"


def test_index_endpoint_writes_host_document(client: TestClient, project: ProjectBuilder) -> None:
    project.package_json({})
    project.init(hono="4.x")
    project.doc("hono", "api", "app.mdx")

    response = client.post("/index", json={"path": str(project.path())})

    assert response.status_code == 200
    data = response.json()
    assert data["created"] is True
    assert data["over_limit"] is False
    assert "|hono@4.x|api:{app.mdx}" in project.read("CLAUDE.md")


def test_freshness_endpoint() -> None:
    class StubOrchestrator(Orchestrator):
        def run_check(self, path, *, stale_days=30):
            return FreshnessReport(
                results=[FreshnessResult("hono", "Hono", "4.x", "4.6.3", "up-to-date")],
                exit_code=ExitCode.SUCCESS,
            )

    client = TestClient(create_app(StubOrchestrator))

    response = client.get("/freshness", params={"path": ".", "stale_days": 10})

    assert response.status_code == 200
    data = response.json()
    assert data["exit_code"] == 0
    assert data["summary"]["up_to_date"] == 1
    assert data["results"][0]["latest_version"] == "4.6.3"

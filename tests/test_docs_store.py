"""Tests for docindex.docs_store."""

from __future__ import annotations

from docindex.docs_store import (
    GITIGNORE_ENTRY,
    calculate_docs_size,
    ensure_layout,
    format_size,
    read_all_framework_docs,
    read_framework_docs,
    read_internal_docs,
    remove_framework_docs,
    update_gitignore,
)
from tests._fixtures.project_builder import ProjectBuilder


def test_ensure_layout_reports_created_directories(project: ProjectBuilder) -> None:
    created = ensure_layout(project.path(), internal=True)

    assert [path.name for path in created] == [".claude-docs", "frameworks", "internal"]
    assert ensure_layout(project.path(), internal=True) == []


def test_read_docs_in_name_order(project: ProjectBuilder) -> None:
    project.doc("hono", "patterns", "validation.mdx")
    project.doc("hono", "api", "routing.mdx")
    project.doc("hono", "api", "app.mdx")
    project.write({".claude-docs/frameworks/hono/api/notes.txt": "ignored"})

    docs = read_framework_docs(project.path(), "hono")

    assert list(docs) == ["api", "patterns"]
    assert [doc.name for doc in docs["api"]] == ["app.mdx", "routing.mdx"]
    assert docs["api"][0].framework == "hono"
    assert docs["api"][0].size_bytes > 0


def test_read_all_framework_docs_groups_by_framework(project: ProjectBuilder) -> None:
    project.doc("zod", "basics", "schemas.mdx")
    project.doc("hono", "api", "app.mdx")

    assert list(read_all_framework_docs(project.path())) == ["hono", "zod"]


def test_missing_directories_read_as_empty(project: ProjectBuilder) -> None:
    assert read_all_framework_docs(project.path()) == {}
    assert read_internal_docs(project.path()) == {}
    assert calculate_docs_size(project.path()).total == 0


def test_sizes_are_split_by_framework_and_internal(project: ProjectBuilder) -> None:
    project.doc("hono", "api", "app.mdx", "a" * 100)
    project.doc("hono", "api", "routing.mdx", "b" * 50)
    project.doc("zod", "basics", "schemas.mdx", "c" * 10)
    project.internal_doc("api", "errors.mdx", "d" * 5)

    size = calculate_docs_size(project.path())

    assert size.frameworks == {"hono": 150, "zod": 10}
    assert size.internal == 5
    assert size.total == 165


def test_remove_framework_docs(project: ProjectBuilder) -> None:
    project.doc("hono", "api", "app.mdx")

    assert remove_framework_docs(project.path(), "hono") is True
    assert remove_framework_docs(project.path(), "hono") is False
    assert read_all_framework_docs(project.path()) == {}


def test_format_size() -> None:
    assert format_size(512) == "512B"
    assert format_size(2048) == "2.0KB"
    assert format_size(3 * 1024 * 1024) == "3.00MB"


def test_update_gitignore_appends_once(project: ProjectBuilder) -> None:
    project.write({".gitignore": "node_modules/\n"})

    assert update_gitignore(project.path()) is True
    assert update_gitignore(project.path()) is False

    content = project.read(".gitignore")
    assert content.startswith("node_modules/\n\n")
    assert content.count(GITIGNORE_ENTRY) == 1


def test_update_gitignore_creates_file(project: ProjectBuilder) -> None:
    assert update_gitignore(project.path()) is True
    assert GITIGNORE_ENTRY in project.read(".gitignore")

"""Tests for docindex.rendering."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from docindex.patterns import DetectedPattern
from docindex.rendering import DocRenderer, strip_frontmatter, title_from_file

TODAY = date(2026, 10, 18)


def test_title_from_file() -> None:
    assert title_from_file("error-handling.mdx") == "Error handling"
    assert title_from_file("app") == "App"


def test_strip_frontmatter_only_removes_leading_block() -> None:
    text = "---\ntitle: x\n---\n\n# Body\n\n---\nkept: yes\n---\n"
    assert strip_frontmatter(text) == "# Body\n\n---\nkept: yes\n---\n"
    assert strip_frontmatter("# Body\n") == "# Body\n"


def test_doc_file_has_header_and_generated_title() -> None:
    text = DocRenderer().render_doc_file(
        "Routing content.",
        display_name="Hono",
        version="4.x",
        category="api",
        file_name="routing.mdx",
        library_id="/honojs/hono",
        today=TODAY,
    )

    lines = text.splitlines()
    assert lines[0] == "---"
    assert lines[1] == "# Part of the docindex cache for Hono@4.x"
    assert "# Source: Context7 (/honojs/hono)" in lines
    assert "# Last updated: 2026-10-18" in lines
    assert "# Category: api" in lines
    assert "# Routing\n\nRouting content." in text


def test_doc_file_keeps_existing_title_and_drops_source_frontmatter() -> None:
    text = DocRenderer().render_doc_file(
        "---\nsource: remote\n---\n# Hono Routing\n\nBody",
        display_name="Hono",
        version="4.x",
        category="api",
        file_name="routing.mdx",
        today=TODAY,
    )

    assert "source: remote" not in text
    assert "# Routing\n" not in text
    assert "# Hono Routing" in text
    assert "# Source: Context7 (manual)" in text


def test_placeholder_explains_how_to_fetch() -> None:
    text = DocRenderer().render_placeholder(
        framework="hono",
        display_name="Hono",
        version="4.x",
        category="patterns",
        file_name="error-handling.mdx",
        query="Hono error handling",
        library_id="/honojs/hono",
        today=TODAY,
    )

    assert "# Error handling" in text
    assert "CONTEXT7_API_KEY" in text
    assert "docindex update hono" in text
    assert "Query: Hono error handling" in text


def test_host_header_mentions_project() -> None:
    header = DocRenderer().render_host_header("shop")

    assert header.startswith("# CLAUDE.md")
    assert "shop" in header
    assert header.endswith("## Docs Index\n\n")


def test_custom_templates_dir_overrides_defaults(tmp_path: Path) -> None:
    (tmp_path / "host_document.md.j2").write_text("# {{ project_name }}\n\n", encoding="utf-8")

    assert DocRenderer(tmp_path).render_host_header("shop") == "# shop\n\n"


def test_internal_pattern_uses_detector_template() -> None:
    pattern = DetectedPattern(
        name="Path Aliases Convention",
        category="conventions",
        file_name="path-aliases.mdx",
        description="TypeScript path aliases for cleaner imports",
        confidence="HIGH",
        evidence=["@/* -> src/*"],
        context={"aliases": {"@/*": ["src/*"], "~lib/*": ["lib/*", "vendor/*"]}},
    )

    text = DocRenderer().render_internal_pattern(pattern, today=TODAY)

    assert text.startswith("---\n# Part of the docindex internal patterns\n")
    assert "# Last updated: 2026-10-18" in text
    assert "# Category: conventions" in text
    assert "\n# Path Aliases Convention\n" in text
    assert "- `@/*` -> `src/*`" in text
    assert "- `~lib/*` -> `lib/*, vendor/*`" in text
    assert strip_frontmatter(text).startswith("# Path Aliases Convention")


def test_add_route_template_switches_on_framework() -> None:
    pattern = DetectedPattern(
        name="Add Route Workflow",
        category="workflows",
        file_name="add-route.mdx",
        description="Steps to add a new API route using Express",
        confidence="MEDIUM",
        context={"framework": "Express", "example_path": "src/routes/users.ts"},
    )

    text = DocRenderer().render_internal_pattern(pattern, today=TODAY)

    assert "# Add Route Workflow (Express)" in text
    assert "`src/routes/users.ts`" in text
    assert "import { Router } from 'express';" in text
    assert "Hono" not in text

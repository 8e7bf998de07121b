"""Tests for docindex.patterns."""

from __future__ import annotations

import pytest

from docindex import patterns
from docindex.patterns import (
    AddRouteDetector,
    EsmImportsDetector,
    FeatureGatingDetector,
    PathAliasesDetector,
    TwoSchemaDetector,
    detect_patterns,
    detector_categories,
    scan_project,
)
from tests._fixtures.project_builder import ProjectBuilder


def _relative_imports(count: int, extension: str) -> str:
    return "\n".join(f"import {{ m{index} }} from './m{index}{extension}';" for index in range(count)) + "\n"


def test_scan_skips_dependencies_build_output_and_dot_dirs(project: ProjectBuilder) -> None:
    project.write(
        {
            "package.json": "{}",
            "src/index.ts": "export {};",
            "src/notes.md": "# ignored suffix",
            "node_modules/hono/index.js": "module.exports = {};",
            "dist/index.js": "",
            ".git/hooks/pre-commit.js": "",
            ".claude-docs/internal/x.json": "{}",
        }
    )

    snapshot = scan_project(project.path())

    assert [file.path for file in snapshot.files] == ["package.json", "src/index.ts"]
    assert snapshot.contents["src/index.ts"] == "export {};"


def test_scan_reads_only_small_files_up_to_the_cap(project: ProjectBuilder, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(patterns, "MAX_READ_FILES", 2)
    monkeypatch.setattr(patterns, "MAX_READ_BYTES", 10)
    project.write({"a.ts": "big file contents\n", "b.ts": "b\n", "c.ts": "c\n", "d.ts": "d\n"})

    snapshot = scan_project(project.path())

    assert len(snapshot.files) == 4
    assert sorted(snapshot.contents) == ["b.ts", "c.ts"]


def test_two_schema_needs_generated_and_custom_tables(project: ProjectBuilder) -> None:
    project.write(
        {
            "src/db/schema.ts": "import { betterAuth } from 'better-auth';\nexport const user = pgTable('user', {});\n",
            "src/db/custom-schema.ts": "export const posts = pgTable('posts', {});\n",
        }
    )

    pattern = TwoSchemaDetector().detect(scan_project(project.path()))

    assert pattern is not None
    assert pattern.doc_path == "database/two-schema-pattern.mdx"
    assert pattern.context["schema_files"] == ["src/db/custom-schema.ts", "src/db/schema.ts"]


def test_two_schema_ignores_single_hand_written_schema(project: ProjectBuilder) -> None:
    project.write(
        {
            "src/db/schema.ts": "export const posts = pgTable('posts', {});\n",
            "src/db/schema-types.ts": "export type Post = {};\n",
        }
    )

    assert TwoSchemaDetector().detect(scan_project(project.path())) is None


def test_feature_gating_found_in_middleware(project: ProjectBuilder) -> None:
    project.write(
        {
            "src/middleware/auth.ts": "export const requireAuth = () => {};\n",
            "src/middleware/plan.ts": "export function requireFeature(options) {}\n",
        }
    )

    pattern = FeatureGatingDetector().detect(scan_project(project.path()))

    assert pattern is not None
    assert pattern.category == "middleware"
    assert pattern.context["file_path"] == "src/middleware/plan.ts"


def test_esm_imports_needs_a_clear_majority(project: ProjectBuilder) -> None:
    project.write(
        {
            "src/a.ts": _relative_imports(11, ".js"),
            "src/b.ts": _relative_imports(3, "") + "import data from './data.json';\n",
            "src/types.d.ts": _relative_imports(20, ""),
        }
    )

    pattern = EsmImportsDetector().detect(scan_project(project.path()))

    assert pattern is not None
    assert pattern.evidence == ["11 imports with .js extension found"]


def test_esm_imports_rejects_mixed_style(project: ProjectBuilder) -> None:
    project.write({"src/a.ts": _relative_imports(12, ".js"), "src/b.ts": _relative_imports(6, "")})

    assert EsmImportsDetector().detect(scan_project(project.path())) is None


def test_path_aliases_read_from_tsconfig(project: ProjectBuilder) -> None:
    project.write(
        {"tsconfig.json": '{"compilerOptions": {"paths": {"@/*": ["./src/*"], "~lib": "./lib"}}}'}
    )

    pattern = PathAliasesDetector().detect(scan_project(project.path()))

    assert pattern is not None
    assert pattern.context["aliases"] == {"@/*": ["./src/*"], "~lib": ["./lib"]}
    assert pattern.evidence == ["@/* -> ./src/*", "~lib -> ./lib"]


def test_path_aliases_skip_tsconfig_with_comments(project: ProjectBuilder) -> None:
    project.write({"tsconfig.json": '{\n  // aliases\n  "compilerOptions": {"paths": {"@/*": ["./src/*"]}}\n}'})

    assert PathAliasesDetector().detect(scan_project(project.path())) is None


@pytest.mark.parametrize(
    ("source", "framework"),
    [
        ("import { Hono } from 'hono';\n", "Hono"),
        ("import express from 'express';\n", "Express"),
    ],
)
def test_add_route_detects_framework(project: ProjectBuilder, source: str, framework: str) -> None:
    project.write({"src/routes/users.ts": source})

    pattern = AddRouteDetector().detect(scan_project(project.path()))

    assert pattern is not None
    assert pattern.context == {"framework": framework, "example_path": "src/routes/users.ts"}


def test_add_route_requires_known_framework(project: ProjectBuilder) -> None:
    project.write({"src/routes/users.ts": "export const handler = () => {};\n"})

    assert AddRouteDetector().detect(scan_project(project.path())) is None


def test_detect_patterns_filters_by_category(project: ProjectBuilder) -> None:
    project.write(
        {
            "tsconfig.json": '{"compilerOptions": {"paths": {"@/*": ["./src/*"]}}}',
            "src/routes/users.ts": "import { Hono } from 'hono';\n",
        }
    )
    snapshot = scan_project(project.path())

    assert [pattern.file_name for pattern in detect_patterns(snapshot)] == ["path-aliases.mdx", "add-route.mdx"]
    assert [pattern.file_name for pattern in detect_patterns(snapshot, category="workflows")] == ["add-route.mdx"]
    assert detect_patterns(snapshot, category="database") == []


def test_detector_categories_keep_first_seen_order() -> None:
    assert detector_categories() == ["database", "middleware", "conventions", "workflows"]

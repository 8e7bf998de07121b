"""Tests for docindex.catalog."""

from __future__ import annotations

from docindex.catalog import Catalog, default_catalog, template_queries

SMALL_CATALOG = {
    "known_frameworks": [
        {"name": "hono", "packages": ["hono"], "category": "backend", "library_id": "/honojs/hono"},
        {"name": "express", "display_name": "Express", "packages": ["express"], "category": "backend"},
    ],
    "templates": {
        "hono": {
            "display_name": "Hono",
            "version": "4.x",
            "library_id": "/honojs/hono",
            "category": "backend",
            "structure": {
                "api": [
                    {"name": "app.mdx", "query": "create app"},
                    {"name": "routing.mdx", "query": "routing", "topics": ["routing"]},
                ],
                "patterns": [{"name": "errors.mdx", "query": "errors"}],
            },
            "critical_patterns": [
                {"pattern": "c.req.headers", "warning": "use raw", "correct": "c.req.raw.headers"}
            ],
        }
    },
}


def test_from_dict_builds_templates_and_rules() -> None:
    catalog = Catalog.from_dict(SMALL_CATALOG)

    template = catalog.get_template("hono")
    assert template is not None
    assert template.priority == "P1"
    assert list(template.structure) == ["api", "patterns"]
    assert template.structure["api"][1].topics == ["routing"]
    assert template.critical_patterns[0].correct == "c.req.raw.headers"
    assert catalog.has_template("hono")
    assert not catalog.has_template("express")


def test_template_queries_flatten_in_declared_order() -> None:
    template = Catalog.from_dict(SMALL_CATALOG).get_template("hono")
    assert template is not None

    queries = template_queries(template)

    assert [(query.category, query.file) for query in queries] == [
        ("api", "app.mdx"),
        ("api", "routing.mdx"),
        ("patterns", "errors.mdx"),
    ]
    assert all(query.library_id == "/honojs/hono" for query in queries)
    assert len(template_queries(template, limit=2)) == 2


def test_record_for_sets_template_only_when_available() -> None:
    catalog = Catalog.from_dict(SMALL_CATALOG)

    hono = catalog.record_for("hono", "^4.0.0")
    express = catalog.record_for("express", "^4.0.0")

    assert hono is not None and hono.template_ref == "hono"
    assert express is not None and express.template_ref is None and express.key == "express"
    assert catalog.record_for("left-pad", "1.0.0") is None


def test_display_name_and_library_id_fallbacks() -> None:
    catalog = Catalog.from_dict(SMALL_CATALOG)

    assert catalog.display_name("hono") == "Hono"
    assert catalog.display_name("express") == "Express"
    assert catalog.display_name("unknown") == "unknown"
    assert catalog.library_id("hono") == "/honojs/hono"
    assert catalog.library_id("express") is None


def test_default_catalog_ships_core_templates() -> None:
    catalog = default_catalog()

    for name in ("hono", "drizzle", "better-auth", "zod", "tanstack-query", "react"):
        assert catalog.has_template(name), name
    drizzle = catalog.get_template("drizzle")
    assert drizzle is not None and drizzle.version == "0.44"
    assert catalog.primary_package("tanstack-query") == "@tanstack/react-query"
    assert catalog.primary_package("nextjs") == "next"
    assert "backend" in catalog.templates_by_category()


def test_default_catalog_templates_have_library_ids_and_files() -> None:
    for template in default_catalog().list_templates():
        assert template.library_id, template.name
        assert template_queries(template), template.name

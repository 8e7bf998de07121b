"""Jinja2 rendering for cached doc files and the host document header."""

from __future__ import annotations

import re
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

from .credentials import API_KEY_ENV
from .patterns import DetectedPattern

_LEADING_FRONTMATTER = re.compile(r"\A\s*---\n.*?\n---[ \t]*\n*", re.DOTALL)
_TOP_HEADING = re.compile(r"^#\s", re.MULTILINE)


def title_from_file(file_name: str) -> str:
    """``error-handling.mdx`` -> ``Error handling``."""
    stem = file_name[: -len(".mdx")] if file_name.endswith(".mdx") else file_name
    title = stem.replace("-", " ")
    return title[:1].upper() + title[1:]


def strip_frontmatter(content: str) -> str:
    return _LEADING_FRONTMATTER.sub("", content, count=1)


class DocRenderer:
    """Renders doc file bodies, placeholders and the host document header."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        self.env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render_doc_file(
        self,
        content: str,
        *,
        display_name: str,
        version: str,
        category: str,
        file_name: str,
        library_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> str:
        """Wrap fetched documentation in the cache frontmatter.

        Any frontmatter already present in ``content`` is dropped, and a level-1
        heading derived from ``file_name`` is added when the body has none.
        """
        body = strip_frontmatter(content).rstrip()
        if not _TOP_HEADING.search(body):
            body = f"# {title_from_file(file_name)}\n\n{body}"
        return self.env.get_template("doc_file.mdx.j2").render(
            display_name=display_name,
            version=version,
            category=category,
            library_id=library_id,
            today=_iso_day(today),
            body=body,
        )

    def render_placeholder(
        self,
        *,
        framework: str,
        display_name: str,
        version: str,
        category: str,
        file_name: str,
        query: str,
        library_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> str:
        return self.env.get_template("placeholder.mdx.j2").render(
            framework=framework,
            display_name=display_name,
            version=version,
            category=category,
            title=title_from_file(file_name),
            query=query,
            library_id=library_id,
            api_key_env=API_KEY_ENV,
            today=_iso_day(today),
        )

    def render_host_header(self, project_name: Optional[str] = None) -> str:
        return self.env.get_template("host_document.md.j2").render(project_name=project_name)

    def render_internal_pattern(self, pattern: DetectedPattern, today: Optional[date] = None) -> str:
        """Render the doc for a detected pattern from ``internal/<file stem>.mdx.j2``."""
        stem = pattern.file_name[: -len(".mdx")] if pattern.file_name.endswith(".mdx") else pattern.file_name
        return self.env.get_template(f"internal/{stem}.mdx.j2").render(pattern=pattern, today=_iso_day(today))


def _iso_day(today: Optional[date]) -> str:
    return (today or datetime.now(UTC).date()).isoformat()


__all__ = ["API_KEY_ENV", "DocRenderer", "strip_frontmatter", "title_from_file"]

"""Tests for docindex.budget."""

from __future__ import annotations

from docindex.budget import extract_relevant_sections, is_priority, split_sections


def test_short_text_is_returned_unchanged() -> None:
    text = "# Title\n\nShort body.\n"
    assert extract_relevant_sections(text, 1000) is text


def test_split_sections_drops_preamble_before_first_heading() -> None:
    text = "preamble\n# One\nbody\n## Two\nmore\n"
    assert split_sections(text) == ["# One\nbody\n", "## Two\nmore\n"]


def test_split_sections_without_headings_is_single_section() -> None:
    assert split_sections("plain text") == ["plain text"]
    assert split_sections("") == []


def test_level_four_headings_do_not_split() -> None:
    text = "# One\n#### Deep\nbody\n"
    assert split_sections(text) == [text]


def test_priority_sections_are_kept_first() -> None:
    filler = "x" * 60
    text = (
        f"# Internals\n{filler}\n"
        f"# Advanced tuning\n{filler}\n"
        f"# Quick Start\n{filler}\n"
    )
    result = extract_relevant_sections(text, 150)

    assert result.startswith("# Quick Start")
    assert "# Internals" in result
    assert "# Advanced tuning" not in result
    assert len(result) <= 150


def test_oversized_first_section_is_hard_truncated() -> None:
    text = "# Usage\n" + "y" * 500
    result = extract_relevant_sections(text, 100)

    assert len(result) == 100
    assert result.startswith("# Usage")


def test_is_priority_matches_case_insensitively() -> None:
    assert is_priority("## Getting Started\n")
    assert is_priority("## API reference\n")
    assert not is_priority("## Changelog\n")

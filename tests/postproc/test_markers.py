"""Tests for the marker block splicing."""

from __future__ import annotations

from docindex.postproc.markers import APPEND_HEADING, MarkerManager

BEGIN = "<!-- docindex:begin:index -->"
END = "<!-- docindex:end:index -->"


def test_wrap_places_body_between_sentinels() -> None:
    assert MarkerManager().wrap("body\n\n") == f"{BEGIN}\nbody\n{END}"


def test_missing_document_is_created_with_header() -> None:
    result = MarkerManager().splice(None, "body", header="# CLAUDE.md\n\n")

    assert result.created is True
    assert result.text == f"# CLAUDE.md\n\n{BEGIN}\nbody\n{END}\n"


def test_only_block_content_changes() -> None:
    document = f"intro line\r\n\r\n{BEGIN}\nold body\n{END}\r\ntrailing  text\r\n"

    result = MarkerManager().splice(document, "new body")

    assert result.created is False
    assert result.text == f"intro line\r\n\r\n{BEGIN}\nnew body\n{END}\r\ntrailing  text\r\n"


def test_splice_is_idempotent() -> None:
    manager = MarkerManager()
    first = manager.splice("# Notes\n\nKeep me.\n", "body").text
    second = manager.splice(first, "body").text

    assert second == first
    assert first.count(BEGIN) == 1


def test_document_without_markers_gets_block_appended() -> None:
    document = "# Notes\nKeep me."

    result = MarkerManager().splice(document, "body")

    assert result.text.startswith(document)
    assert result.text == f"{document}\n\n{APPEND_HEADING}\n\n{BEGIN}\nbody\n{END}\n"


def test_empty_document_gets_block_without_leading_blank_lines() -> None:
    result = MarkerManager().splice("", "body")
    assert result.text == f"{APPEND_HEADING}\n\n{BEGIN}\nbody\n{END}\n"


def test_end_before_begin_is_malformed_and_recovered_by_append() -> None:
    manager = MarkerManager()
    document = f"text\n{END}\nmiddle\n{BEGIN}\n"

    first = manager.splice(document, "body").text
    assert first.startswith(document)
    assert manager.extract(first) == "body"

    second = manager.splice(first, "updated").text
    assert second.startswith(document)
    assert manager.extract(second) == "updated"
    assert second.count(BEGIN) == 2


def test_extract_returns_none_without_block() -> None:
    assert MarkerManager().extract("no markers here") is None


def test_markers_are_keyed() -> None:
    other = MarkerManager("other")
    document = f"{BEGIN}\nindex body\n{END}\n"

    assert other.extract(document) is None
    assert MarkerManager().extract(document) == "index body"

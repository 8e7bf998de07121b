"""Tests for docindex.logging."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from docindex.logging import LOGGER_NAME, configure_logging, get_logger, resolve_log_file


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    configure_logging()


def test_get_logger_nests_under_package() -> None:
    assert get_logger("sync").name == "docindex.sync"
    assert get_logger().name == LOGGER_NAME


def test_resolve_log_file(tmp_path: Path) -> None:
    assert resolve_log_file(None, tmp_path) is None
    assert resolve_log_file("logs/run.log", tmp_path) == tmp_path / "logs" / "run.log"
    absolute = tmp_path / "elsewhere.log"
    assert resolve_log_file(absolute, "/ignored") == absolute


def test_file_handler_keeps_debug_while_console_stays_at_info(tmp_path: Path) -> None:
    log_file = tmp_path / "nested" / "docindex.log"

    logger = configure_logging(log_file=log_file)
    get_logger("test").debug("detail for the file")

    stream, file_handler = logger.handlers
    assert stream.level == logging.INFO
    assert file_handler.level == logging.DEBUG
    assert logger.level == logging.DEBUG
    assert "DEBUG docindex.test: detail for the file" in log_file.read_text(encoding="utf-8")


def test_reconfiguring_replaces_handlers(tmp_path: Path) -> None:
    configure_logging(log_file=tmp_path / "a.log")
    logger = configure_logging(verbose=True)

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG


def test_http_client_logs_quiet_unless_verbose() -> None:
    configure_logging()
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(verbose=True)
    assert logging.getLogger("httpx").level == logging.DEBUG

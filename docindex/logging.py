"""Logging setup for the docindex CLI and service."""

from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "docindex"
CONSOLE_FORMAT = "[docindex] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# httpx logs every request at INFO; keep that out of normal command output.
_HTTP_LOGGERS = ("httpx", "httpcore")


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the docindex hierarchy."""
    full_name = f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME
    return logging.getLogger(full_name)


def resolve_log_file(value: str | Path | None, root: str | Path = ".") -> Path | None:
    """Return the log file path; relative paths are taken from the project root."""
    if value is None:
        return None
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = Path(root).expanduser() / path
    return path


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure console output and an optional debug-level file log.

    The console follows ``verbose``; the file always records debug messages so
    a failed sync can be inspected after the fact.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    logger.propagate = False

    # Repeated CLI invocations in one process must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    logger.setLevel(logging.DEBUG if log_file is not None else level)
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)
    return logger


__all__ = ["LOGGER_NAME", "configure_logging", "get_logger", "resolve_log_file"]

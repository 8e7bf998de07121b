"""User-level storage for the Context7 API key."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml

from .config import utc_timestamp
from .logging import get_logger

API_KEY_ENV = "CONTEXT7_API_KEY"
API_KEY_PREFIX = "ctx7"
CREDENTIALS_FILE = "credentials.yml"

logger = get_logger("credentials")


@dataclass
class StoredCredentials:
    api_key: Optional[str] = None
    configured_at: Optional[str] = None


def credentials_path() -> Path:
    """``$XDG_CONFIG_HOME/docindex/credentials.yml`` (``~/.config`` when unset)."""
    config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return Path(config_home) / "docindex" / CREDENTIALS_FILE


def load_credentials(path: Path | None = None) -> StoredCredentials:
    """Read stored credentials; a missing or unreadable file counts as empty.

    A broken credentials file must not stop commands that work without a key,
    so parse errors are logged instead of raised.
    """
    target = path or credentials_path()
    try:
        with target.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError:
        return StoredCredentials()
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable credentials file %s: %s", target, exc)
        return StoredCredentials()
    if not isinstance(data, dict):
        return StoredCredentials()
    api_key = data.get("api_key")
    configured_at = data.get("configured_at")
    return StoredCredentials(
        api_key=api_key if isinstance(api_key, str) and api_key else None,
        configured_at=str(configured_at) if configured_at else None,
    )


def save_api_key(api_key: str, path: Path | None = None, now: datetime | None = None) -> Path:
    target = path or credentials_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {"api_key": api_key, "configured_at": utc_timestamp(now)}
    with target.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(payload, handle, sort_keys=False)
    target.chmod(0o600)
    logger.debug("Stored API key in %s", target)
    return target


def clear_api_key(path: Path | None = None) -> bool:
    """Delete the stored key. Returns ``False`` when there was none."""
    target = path or credentials_path()
    if load_credentials(target).api_key is None:
        return False
    target.unlink()
    return True


def resolve_api_key(path: Path | None = None) -> Optional[str]:
    """The environment variable wins over the stored key."""
    return os.environ.get(API_KEY_ENV) or load_credentials(path).api_key


def api_key_problem(api_key: str) -> Optional[str]:
    """Return why ``api_key`` is malformed, or ``None`` when it looks valid."""
    if not api_key.strip():
        return "API key is empty"
    if not api_key.startswith(API_KEY_PREFIX):
        return f"API keys start with {API_KEY_PREFIX!r}"
    return None


__all__ = [
    "API_KEY_ENV",
    "API_KEY_PREFIX",
    "StoredCredentials",
    "api_key_problem",
    "clear_api_key",
    "credentials_path",
    "load_credentials",
    "resolve_api_key",
    "save_api_key",
]

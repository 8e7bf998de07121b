"""Error hierarchy for docindex commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass
class ConfigIssue:
    """Represents a single problem found while validating the config file."""

    path: str
    message: str
    expected: Optional[str] = None


class DocIndexError(RuntimeError):
    """Base error carrying a stable code and an optional remediation hint."""

    code = "DOCINDEX_ERROR"

    def __init__(self, message: str, *, hint: str | None = None, code: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint
        if code is not None:
            self.code = code


class ConfigError(DocIndexError):
    """Raised when the persisted configuration cannot be read or is invalid."""

    code = "CONFIG_INVALID"

    def __init__(
        self,
        message: str,
        *,
        issues: Sequence[ConfigIssue] = (),
        config_path: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.issues: List[ConfigIssue] = list(issues)
        self.config_path = config_path

    def format_issues(self) -> str:
        lines = []
        for issue in self.issues:
            expected = f", expected {issue.expected}" if issue.expected else ""
            lines.append(f"  - {issue.path}: {issue.message}{expected}")
        return "\n".join(lines)


class NotInitializedError(DocIndexError):
    """Raised when a command needs a config that does not exist yet."""

    code = "NOT_INITIALIZED"

    def __init__(self) -> None:
        super().__init__(
            "docindex is not initialized in this project.",
            hint="Run `docindex init` to initialize.",
        )


class ManifestError(DocIndexError):
    """Raised when package.json exists but cannot be parsed."""

    code = "MANIFEST_INVALID"


class ManifestNotFoundError(ManifestError):
    """Raised when the project has no package.json."""

    code = "MANIFEST_NOT_FOUND"

    def __init__(self, path: str) -> None:
        super().__init__(
            f"No package.json found at {path}",
            hint="Run this command from the root of a Node.js project.",
        )
        self.path = path


class RegistryError(DocIndexError):
    """Raised when the npm registry answers with an error other than not-found."""

    code = "REGISTRY_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DocsSourceError(DocIndexError):
    """Raised when a documentation source cannot be used at all."""

    code = "DOCS_SOURCE_ERROR"

    def __init__(self, message: str, *, category: str = "unknown", hint: str | None = None) -> None:
        super().__init__(message, hint=hint)
        self.category = category


__all__ = [
    "ConfigError",
    "ConfigIssue",
    "DocIndexError",
    "DocsSourceError",
    "ManifestError",
    "ManifestNotFoundError",
    "NotInitializedError",
    "RegistryError",
]

"""Version specifier normalisation and freshness comparison."""

from __future__ import annotations

import re
from typing import Optional, Tuple

UNKNOWN_VERSION = "unknown"

_RANGE_OPERATORS = "^~><="
_COERCE_PATTERN = re.compile(r"(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?")
_WILDCARDS = {"x", "X", "*"}
_STALE_DIFFS = {"major", "minor"}


def clean_version(specifier: str) -> str:
    """Strip leading range operators (``^``, ``~``, ``>=`` ...) from a specifier."""
    return specifier.strip().lstrip(_RANGE_OPERATORS).strip()


def major_version(specifier: str) -> str:
    """Reduce a version specifier to its comparable major token.

    ``^4.3.0`` becomes ``4.x``; zero-major versions keep their minor, so
    ``~0.44.1`` becomes ``0.44``. Specifiers whose first segment is not an
    integer (``latest``, ``workspace:*``) yield :data:`UNKNOWN_VERSION`.
    """
    parts = clean_version(specifier).split(".")
    head = parts[0]
    # isdigit() alone admits superscripts and other digits int() rejects.
    if not (head.isascii() and head.isdigit()):
        return UNKNOWN_VERSION
    major = int(head)
    if major == 0 and len(parts) > 1:
        return f"0.{parts[1]}"
    return f"{major}.x"


def check_version_freshness(indexed: str, latest: str) -> Tuple[bool, Optional[str]]:
    """Compare an indexed version with the latest release.

    Returns ``(is_stale, diff_type)``. Major and minor differences are stale,
    patch differences are not. Wildcard components (``4.x``) match anything.
    Strings without a numeric component report ``"uncoercible"``.
    """
    indexed_parts = _coerce(indexed)
    latest_parts = _coerce(latest)
    if indexed_parts is None or latest_parts is None:
        return False, "uncoercible"

    for label, mine, theirs in zip(("major", "minor", "patch"), indexed_parts, latest_parts):
        if mine is None or theirs is None:
            break
        if mine != theirs:
            return label in _STALE_DIFFS, label
    return False, None


def _coerce(version: str) -> Optional[Tuple[Optional[int], Optional[int], Optional[int]]]:
    match = _COERCE_PATTERN.search(clean_version(version).lstrip("vV"))
    if not match or match.group(1) in _WILDCARDS:
        return None
    components = []
    for index, value in enumerate(match.groups()):
        if value is None:
            # A bare "4" compares like "4.0.0"; anything after a wildcard is ignored.
            components.append(0 if index and _leading_numeric(match, index) else None)
        elif value in _WILDCARDS:
            components.append(None)
        else:
            components.append(int(value))
    return components[0], components[1], components[2]


def _leading_numeric(match: re.Match[str], index: int) -> bool:
    return all(
        match.group(position) is not None and match.group(position) not in _WILDCARDS
        for position in range(1, index + 1)
    )


__all__ = [
    "UNKNOWN_VERSION",
    "check_version_freshness",
    "clean_version",
    "major_version",
]

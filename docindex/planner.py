"""Reconciliation of declared dependencies against recorded documentation."""

from __future__ import annotations

from typing import Callable, Dict, List, Mapping, Sequence

from .models import (
    ActionKind,
    DependencyRecord,
    DependencyStatus,
    FrameworkState,
    ReconciliationAction,
    SyncPlan,
)
from .versioning import UNKNOWN_VERSION, major_version

REASON_VERSION_CHANGED = "version changed"
REASON_NOT_DECLARED = "not declared"
REASON_NEW_DEPENDENCY = "new dependency detected"

STATUS_OK = "ok"
STATUS_UPDATE_AVAILABLE = "update-available"
STATUS_NOT_DOCUMENTED = "not-documented"
STATUS_UNKNOWN_VERSION = "unknown-version"


def plan_sync(
    dependencies: Sequence[DependencyRecord],
    frameworks: Mapping[str, FrameworkState],
    has_template: Callable[[str], bool],
) -> SyncPlan:
    """Diff declared dependencies against recorded framework state.

    Recorded frameworks are visited first, in recorded order: a changed major
    version yields an update, a missing declaration yields a removal. Declared
    dependencies with a template and no recorded state then yield additions,
    in declared order. Each framework appears in at most one action. No I/O is
    performed; executing the plan is up to the caller.
    """
    declared = _index_by_framework(dependencies)
    actions: List[ReconciliationAction] = []
    orphans: List[str] = []

    for name, state in frameworks.items():
        record = declared.get(name)
        if record is None:
            orphans.append(name)
            actions.append(
                ReconciliationAction(
                    kind=ActionKind.REMOVE,
                    framework=name,
                    reason=REASON_NOT_DECLARED,
                    current_version=state.version,
                )
            )
            continue
        installed = major_version(record.version_specifier)
        if installed != UNKNOWN_VERSION and installed != state.version:
            actions.append(
                ReconciliationAction(
                    kind=ActionKind.UPDATE,
                    framework=name,
                    reason=REASON_VERSION_CHANGED,
                    current_version=state.version,
                    new_version=installed,
                )
            )

    for name, record in declared.items():
        if name in frameworks or not has_template(name):
            continue
        actions.append(
            ReconciliationAction(
                kind=ActionKind.ADD,
                framework=name,
                reason=REASON_NEW_DEPENDENCY,
                new_version=major_version(record.version_specifier),
            )
        )

    statuses = [
        _status_for(record, frameworks.get(record.key))
        for record in declared.values()
    ]
    return SyncPlan(actions=actions, statuses=statuses, orphans=orphans)


def _index_by_framework(dependencies: Sequence[DependencyRecord]) -> Dict[str, DependencyRecord]:
    indexed: Dict[str, DependencyRecord] = {}
    for record in dependencies:
        # First declaration wins when several packages map to one framework.
        indexed.setdefault(record.key, record)
    return indexed


def _status_for(
    record: DependencyRecord,
    state: FrameworkState | None,
) -> DependencyStatus:
    installed = major_version(record.version_specifier)
    documented = state.version if state is not None else None
    if documented is None:
        state_label = STATUS_NOT_DOCUMENTED
    elif installed == UNKNOWN_VERSION:
        state_label = STATUS_UNKNOWN_VERSION
    elif installed == documented:
        state_label = STATUS_OK
    else:
        state_label = STATUS_UPDATE_AVAILABLE
    return DependencyStatus(
        framework=record.key,
        package=record.name,
        declared_version=record.version_specifier,
        installed_version=installed,
        documented_version=documented,
        state=state_label,
    )


__all__ = [
    "REASON_NEW_DEPENDENCY",
    "REASON_NOT_DECLARED",
    "REASON_VERSION_CHANGED",
    "STATUS_NOT_DOCUMENTED",
    "STATUS_OK",
    "STATUS_UNKNOWN_VERSION",
    "STATUS_UPDATE_AVAILABLE",
    "plan_sync",
]

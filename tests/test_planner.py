"""Tests for docindex.planner."""

from __future__ import annotations

from docindex.models import ActionKind, DependencyRecord, FrameworkState
from docindex.planner import (
    REASON_NEW_DEPENDENCY,
    REASON_NOT_DECLARED,
    REASON_VERSION_CHANGED,
    STATUS_NOT_DOCUMENTED,
    STATUS_OK,
    STATUS_UNKNOWN_VERSION,
    STATUS_UPDATE_AVAILABLE,
    plan_sync,
)

TEMPLATES = {"hono", "drizzle", "zod"}


def _record(package: str, specifier: str, framework: str) -> DependencyRecord:
    template = framework if framework in TEMPLATES else None
    return DependencyRecord(package, specifier, framework=framework, template_ref=template)


def _state(name: str, version: str) -> FrameworkState:
    return FrameworkState(name=name, version=version)


def test_new_dependency_with_template_is_added() -> None:
    plan = plan_sync([_record("hono", "^4.3.0", "hono")], {}, TEMPLATES.__contains__)

    assert len(plan.actions) == 1
    action = plan.actions[0]
    assert action.kind is ActionKind.ADD
    assert action.framework == "hono"
    assert action.new_version == "4.x"
    assert action.reason == REASON_NEW_DEPENDENCY


def test_dependency_without_template_is_not_added() -> None:
    plan = plan_sync([_record("express", "^4.18.0", "express")], {}, TEMPLATES.__contains__)

    assert plan.actions == []
    assert plan.statuses[0].state == STATUS_NOT_DOCUMENTED


def test_major_change_yields_single_update() -> None:
    plan = plan_sync(
        [_record("hono", "^5.0.0", "hono")],
        {"hono": _state("hono", "4.x")},
        TEMPLATES.__contains__,
    )

    assert [(action.kind, action.framework) for action in plan.actions] == [(ActionKind.UPDATE, "hono")]
    action = plan.actions[0]
    assert action.current_version == "4.x"
    assert action.new_version == "5.x"
    assert action.reason == REASON_VERSION_CHANGED
    assert plan.statuses[0].state == STATUS_UPDATE_AVAILABLE


def test_matching_version_is_in_sync() -> None:
    plan = plan_sync(
        [_record("hono", "^4.6.1", "hono")],
        {"hono": _state("hono", "4.x")},
        TEMPLATES.__contains__,
    )

    assert plan.is_in_sync
    assert plan.statuses[0].state == STATUS_OK


def test_unknown_version_never_triggers_update() -> None:
    plan = plan_sync(
        [_record("hono", "latest", "hono")],
        {"hono": _state("hono", "4.x")},
        TEMPLATES.__contains__,
    )

    assert plan.actions == []
    assert plan.statuses[0].state == STATUS_UNKNOWN_VERSION


def test_non_ascii_digit_specifier_is_unknown_version() -> None:
    plan = plan_sync(
        [_record("hono", "¹.0.0", "hono")],
        {"hono": _state("hono", "4.x")},
        TEMPLATES.__contains__,
    )

    assert plan.actions == []
    assert plan.statuses[0].state == STATUS_UNKNOWN_VERSION


def test_undeclared_framework_is_removed_and_orphaned() -> None:
    plan = plan_sync([], {"zod": _state("zod", "4.x")}, TEMPLATES.__contains__)

    assert plan.orphans == ["zod"]
    assert plan.actions[0].kind is ActionKind.REMOVE
    assert plan.actions[0].reason == REASON_NOT_DECLARED
    assert plan.actions[0].current_version == "4.x"


def test_each_framework_appears_in_at_most_one_action() -> None:
    dependencies = [
        _record("drizzle-orm", "^0.45.0", "drizzle"),
        _record("drizzle-kit", "^0.30.0", "drizzle"),
        _record("hono", "^4.0.0", "hono"),
    ]
    frameworks = {"drizzle": _state("drizzle", "0.44"), "zod": _state("zod", "4.x")}

    plan = plan_sync(dependencies, frameworks, TEMPLATES.__contains__)

    names = [action.framework for action in plan.actions]
    assert sorted(names) == ["drizzle", "hono", "zod"]
    assert len(names) == len(set(names))
    drizzle = next(action for action in plan.actions if action.framework == "drizzle")
    assert drizzle.new_version == "0.45"


def test_recorded_actions_precede_additions() -> None:
    plan = plan_sync(
        [_record("zod", "^4.0.0", "zod")],
        {"hono": _state("hono", "4.x")},
        TEMPLATES.__contains__,
    )

    assert [action.kind for action in plan.actions] == [ActionKind.REMOVE, ActionKind.ADD]

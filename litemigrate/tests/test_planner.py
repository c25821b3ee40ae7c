"""Tests for migration planning."""

from __future__ import annotations

import pytest

from litemigrate.core.domain.enums import Direction
from litemigrate.core.domain.errors import OrphanedLedgerEntry, UnknownTargetVersion
from litemigrate.core.domain.models import MigrationCatalog, MigrationDefinition
from litemigrate.core.engine.planner import find_orphans, plan, plan_to_version


def _catalog(*versions: int) -> MigrationCatalog:
    return MigrationCatalog(
        [
            MigrationDefinition(version=v, name=f"m{v}", up_script=f"-- up {v}", down_script=f"-- down {v}")
            for v in versions
        ]
    )


def test_up_plan_is_ascending_unapplied() -> None:
    catalog = _catalog(7, 1, 3, 5)
    result = plan(catalog, {3}, Direction.UP)
    assert result.direction is Direction.UP
    assert result.versions() == (1, 5, 7)


def test_down_plan_is_descending_applied() -> None:
    catalog = _catalog(1, 2, 3, 4)
    result = plan(catalog, [1, 2, 4], Direction.DOWN)
    assert result.direction is Direction.DOWN
    assert result.versions() == (4, 2, 1)


def test_step_limit() -> None:
    catalog = _catalog(1, 2, 3, 4, 5)
    assert plan(catalog, set(), Direction.UP, steps=2).versions() == (1, 2)
    assert plan(catalog, {1, 2, 3}, Direction.DOWN, steps=2).versions() == (3, 2)
    assert plan(catalog, {1}, Direction.DOWN, steps=10).versions() == (1,)


def test_step_limit_must_be_positive() -> None:
    with pytest.raises(ValueError):
        plan(_catalog(1), set(), Direction.UP, steps=0)


def test_empty_plans_are_not_errors() -> None:
    catalog = _catalog(1, 2)
    assert plan(catalog, {1, 2}, Direction.UP).is_empty()
    assert plan(catalog, set(), Direction.DOWN).is_empty()
    assert plan(_catalog(), set(), Direction.UP).is_empty()


def test_orphaned_ledger_entry_fails_both_directions() -> None:
    catalog = _catalog(1, 2, 3)
    with pytest.raises(OrphanedLedgerEntry) as exc_info:
        plan(catalog, {1, 7}, Direction.DOWN)
    assert exc_info.value.version == 7
    with pytest.raises(OrphanedLedgerEntry):
        plan(catalog, {7}, Direction.UP)
    assert find_orphans(catalog, [9, 1, 7]) == [7, 9]


def test_plan_is_deterministic() -> None:
    catalog = _catalog(4, 2, 9)
    first = plan(catalog, {2}, Direction.UP)
    second = plan(catalog, [2, 2], Direction.UP)
    assert first == second


def test_plan_to_version_up_and_down() -> None:
    catalog = _catalog(1, 2, 3, 4)

    plans = plan_to_version(catalog, {1}, 3)
    assert [(p.direction, p.versions()) for p in plans] == [(Direction.UP, (2, 3))]

    plans = plan_to_version(catalog, {1, 2, 3, 4}, 2)
    assert [(p.direction, p.versions()) for p in plans] == [(Direction.DOWN, (4, 3))]

    plans = plan_to_version(catalog, {1, 2}, 0)
    assert [(p.direction, p.versions()) for p in plans] == [(Direction.DOWN, (2, 1))]

    assert plan_to_version(catalog, {1, 2}, 2) == []


def test_plan_to_version_reverts_before_filling_gaps() -> None:
    catalog = _catalog(1, 2, 3)
    plans = plan_to_version(catalog, {1, 3}, 2)
    assert [(p.direction, p.versions()) for p in plans] == [
        (Direction.DOWN, (3,)),
        (Direction.UP, (2,)),
    ]


def test_plan_to_unknown_version() -> None:
    with pytest.raises(UnknownTargetVersion):
        plan_to_version(_catalog(1, 2), set(), 5)

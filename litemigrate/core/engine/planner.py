"""Migration planning: which scripts run, and in which order.

Responsibilities:
  - Select pending (up) or applied (down) definitions from the catalog.
  - Reject ledger state that references versions missing from the catalog.
Must not:
  - Read files or touch the database; inputs are snapshots.

Invariants:
  - Output depends only on (catalog, applied, direction, steps/target).
  - Up plans ascend by version; down plans descend by version.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..domain.enums import Direction
from ..domain.errors import OrphanedLedgerEntry, UnknownTargetVersion
from ..domain.models import (
    BASE_VERSION,
    ExecutionPlan,
    MigrationCatalog,
    MigrationVersion,
)

logger = logging.getLogger(__name__)


def find_orphans(catalog: MigrationCatalog, applied: Iterable[MigrationVersion]) -> list[MigrationVersion]:
    return sorted(v for v in set(applied) if v not in catalog)


def _check_orphans(catalog: MigrationCatalog, applied: set[MigrationVersion]) -> None:
    orphans = find_orphans(catalog, applied)
    if orphans:
        raise OrphanedLedgerEntry(orphans[0])


def plan(
    catalog: MigrationCatalog,
    applied: Iterable[MigrationVersion],
    direction: Direction,
    steps: Optional[int] = None,
) -> ExecutionPlan:
    if steps is not None and steps < 1:
        raise ValueError("steps must be >= 1")

    applied_set = set(applied)
    _check_orphans(catalog, applied_set)

    if direction is Direction.UP:
        candidates = [d for d in catalog if d.version not in applied_set]
    else:
        candidates = [d for d in reversed(tuple(catalog)) if d.version in applied_set]

    if steps is not None:
        candidates = candidates[:steps]

    result = ExecutionPlan(direction=direction, migrations=tuple(candidates))
    logger.debug("planned %s: %s", direction.value, list(result.versions()))
    return result


def plan_to_version(
    catalog: MigrationCatalog,
    applied: Iterable[MigrationVersion],
    target: MigrationVersion,
) -> list[ExecutionPlan]:
    """Plans that move the ledger to exactly the versions <= target.

    Reverts run first so that a lower pending version is never applied on
    top of schema it predates.
    """
    if target != BASE_VERSION and target not in catalog:
        raise UnknownTargetVersion(target)

    applied_set = set(applied)
    _check_orphans(catalog, applied_set)

    to_revert = [d for d in reversed(tuple(catalog)) if d.version in applied_set and d.version > target]
    to_apply = [d for d in catalog if d.version not in applied_set and d.version <= target]

    plans: list[ExecutionPlan] = []
    if to_revert:
        plans.append(ExecutionPlan(direction=Direction.DOWN, migrations=tuple(to_revert)))
    if to_apply:
        plans.append(ExecutionPlan(direction=Direction.UP, migrations=tuple(to_apply)))
    logger.debug("planned goto %s: %s", target, [(p.direction.value, list(p.versions())) for p in plans])
    return plans

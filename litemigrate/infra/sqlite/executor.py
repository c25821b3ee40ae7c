"""Transactional execution of migration plans.

Responsibilities:
  - Run each planned script and its ledger update in one transaction.
  - Stop at the first failure and report what committed before it.
  - Defer SIGINT until the running migration commits or rolls back.
Must not:
  - Parse or validate SQL; the driver reports success or failure.

Invariants:
  - Migration N+1 starts only after migration N has committed.
  - A failed migration leaves neither schema changes nor a ledger row.
"""

from __future__ import annotations

import logging
import signal
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from litemigrate.core.domain.enums import Direction
from litemigrate.core.domain.errors import ExecutionError, ForeignKeyViolation, MigrationFailed
from litemigrate.core.domain.models import ExecutionPlan, MigrationDefinition
from litemigrate.core.engine.result import ExecutionReport
from litemigrate.infra.sqlite.repos.ledger_repo import LedgerRepo

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def validate_foreign_keys(conn: sqlite3.Connection) -> None:
    row = conn.execute("PRAGMA foreign_key_check").fetchone()
    if row is not None:
        raise ForeignKeyViolation(row[0], row[1], row[2])


class _InterruptGuard:
    """Record SIGINT instead of raising KeyboardInterrupt (main thread only)."""

    def __init__(self) -> None:
        self.interrupted = False
        self._previous = None
        self._installed = False

    def _handle(self, signum, frame) -> None:
        self.interrupted = True

    def __enter__(self) -> "_InterruptGuard":
        if threading.current_thread() is threading.main_thread():
            self._previous = signal.getsignal(signal.SIGINT)
            signal.signal(signal.SIGINT, self._handle)
            self._installed = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._installed:
            previous = self._previous if self._previous is not None else signal.default_int_handler
            signal.signal(signal.SIGINT, previous)
            self._installed = False


class MigrationExecutor:
    def __init__(
        self,
        conn: sqlite3.Connection,
        ledger: LedgerRepo,
        check_foreign_keys: bool = False,
        clock: Optional[Callable[[], str]] = None,
    ) -> None:
        self._conn = conn
        self._ledger = ledger
        self._check_foreign_keys = check_foreign_keys
        self._clock = clock or _utc_now_iso

    def execute(self, plan: ExecutionPlan) -> ExecutionReport:
        completed: list[int] = []
        with _InterruptGuard() as guard:
            for definition in plan.migrations:
                if guard.interrupted:
                    logger.warning(
                        "Interrupted; %d of %d migrations not started",
                        len(plan.migrations) - len(completed),
                        len(plan.migrations),
                    )
                    return ExecutionReport(plan.direction, tuple(completed), interrupted=True)
                try:
                    self._run_one(definition, plan.direction)
                except Exception as exc:
                    logger.error("Migration %s (%s) failed: %s", definition.version, definition.name, exc)
                    raise MigrationFailed(definition.version, exc, tuple(completed)) from exc
                completed.append(definition.version)
                verb = "Applied" if plan.direction is Direction.UP else "Reverted"
                logger.info("%s migration %s (%s)", verb, definition.version, definition.name)
        return ExecutionReport(plan.direction, tuple(completed))

    def _run_one(self, definition: MigrationDefinition, direction: Direction) -> None:
        script = definition.script_for(direction)
        try:
            # BEGIN travels inside the batch: executescript() commits any
            # open transaction before it runs.
            self._conn.executescript("BEGIN;\n" + script)
            if not self._conn.in_transaction:
                raise ExecutionError("script must not COMMIT or ROLLBACK its own transaction")
            if self._check_foreign_keys:
                validate_foreign_keys(self._conn)
            if direction is Direction.UP:
                self._ledger.record_applied(definition.version, self._clock(), name=definition.name)
            else:
                self._ledger.record_reverted(definition.version)
            self._conn.execute("COMMIT")
        except Exception:
            if self._conn.in_transaction:
                self._conn.execute("ROLLBACK")
            raise

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Optional

from litemigrate.core.domain.enums import Direction
from litemigrate.core.domain.errors import LedgerUnavailable
from litemigrate.core.domain.models import ExecutionPlan, MigrationCatalog, MigrationVersion
from litemigrate.core.engine.planner import find_orphans, plan, plan_to_version
from litemigrate.core.engine.result import ExecutionReport, MigrationStatus
from litemigrate.infra.fs.catalog_loader import discover
from litemigrate.infra.sqlite.db import get_connection
from litemigrate.infra.sqlite.executor import MigrationExecutor
from litemigrate.infra.sqlite.repos.ledger_repo import LedgerRepo

logger = logging.getLogger(__name__)


class MigratorApplication:
    """Discover -> ensure ledger -> read ledger -> plan -> execute -> report.

    Every call starts from a fresh catalog and a fresh ledger read; errors
    from any step propagate unchanged and nothing is retried.
    """

    def __init__(
        self,
        source_dir: str | Path,
        database_path: str | Path,
        check_foreign_keys: bool = False,
    ) -> None:
        self._source_dir = Path(source_dir)
        self._database_path = database_path
        self._check_foreign_keys = check_foreign_keys

    def _open_ledger(self) -> tuple[sqlite3.Connection, LedgerRepo]:
        try:
            conn = get_connection(self._database_path)
        except sqlite3.Error as exc:
            raise LedgerUnavailable(str(self._database_path), exc) from exc
        ledger = LedgerRepo(conn)
        try:
            ledger.ensure_schema()
        except sqlite3.Error as exc:
            conn.close()
            raise LedgerUnavailable(str(self._database_path), exc) from exc
        return conn, ledger

    def _executor(self, conn: sqlite3.Connection, ledger: LedgerRepo) -> MigrationExecutor:
        return MigrationExecutor(conn, ledger, check_foreign_keys=self._check_foreign_keys)

    def run(self, direction: Direction, steps: Optional[int] = None) -> ExecutionReport:
        catalog = discover(self._source_dir)
        conn, ledger = self._open_ledger()
        with closing(conn):
            applied = ledger.applied_versions()
            execution_plan = plan(catalog, applied, direction, steps)
            if execution_plan.is_empty():
                logger.info("Nothing to %s", "apply" if direction is Direction.UP else "revert")
                return ExecutionReport(direction, ())
            return self._executor(conn, ledger).execute(execution_plan)

    def up(self, steps: Optional[int] = None) -> ExecutionReport:
        return self.run(Direction.UP, steps)

    def down(self, steps: Optional[int] = None) -> ExecutionReport:
        return self.run(Direction.DOWN, steps)

    def goto(self, target: MigrationVersion) -> list[ExecutionReport]:
        catalog = discover(self._source_dir)
        conn, ledger = self._open_ledger()
        with closing(conn):
            plans = plan_to_version(catalog, ledger.applied_versions(), target)
            return self._execute_all(conn, ledger, plans)

    def _execute_all(
        self,
        conn: sqlite3.Connection,
        ledger: LedgerRepo,
        plans: list[ExecutionPlan],
    ) -> list[ExecutionReport]:
        executor = self._executor(conn, ledger)
        reports: list[ExecutionReport] = []
        for execution_plan in plans:
            report = executor.execute(execution_plan)
            reports.append(report)
            if report.interrupted:
                break
        return reports

    def status(self) -> list[MigrationStatus]:
        catalog = discover(self._source_dir)
        conn, ledger = self._open_ledger()
        with closing(conn):
            entries = {entry.version: entry for entry in ledger.entries()}

        rows: list[MigrationStatus] = []
        for definition in catalog:
            entry = entries.get(definition.version)
            rows.append(
                MigrationStatus(
                    version=definition.version,
                    name=definition.name,
                    applied=entry is not None,
                    applied_at=entry.applied_at if entry else None,
                    sequence=entry.sequence if entry else None,
                )
            )
        for version in find_orphans(catalog, entries):
            entry = entries[version]
            rows.append(
                MigrationStatus(
                    version=version,
                    name=None,
                    applied=True,
                    applied_at=entry.applied_at,
                    sequence=entry.sequence,
                    orphaned=True,
                )
            )
        return sorted(rows, key=lambda r: r.version)

    def validate(self) -> tuple[ExecutionReport, ExecutionReport]:
        """Replay the full catalog up and back down on a scratch database."""
        catalog = discover(self._source_dir)
        return validate_catalog(catalog, check_foreign_keys=self._check_foreign_keys)


def validate_catalog(
    catalog: MigrationCatalog,
    check_foreign_keys: bool = False,
) -> tuple[ExecutionReport, ExecutionReport]:
    with closing(get_connection(":memory:")) as conn:
        ledger = LedgerRepo(conn)
        ledger.ensure_schema()
        executor = MigrationExecutor(conn, ledger, check_foreign_keys=check_foreign_keys)
        up_report = executor.execute(plan(catalog, (), Direction.UP))
        down_report = executor.execute(plan(catalog, ledger.applied_versions(), Direction.DOWN))
    return up_report, down_report

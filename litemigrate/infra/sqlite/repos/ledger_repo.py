"""SQLite repository for the applied-migrations ledger.

Responsibilities:
  - Create the ledger table on first use.
  - Read applied versions; insert/delete ledger rows.
Must not:
  - Begin, commit, or roll back; the caller owns the transaction.

Invariants:
  - A version appears at most once.
  - A new entry's sequence is one more than the highest sequence still recorded.
"""

from __future__ import annotations

import logging
import sqlite3

from litemigrate.core.domain.errors import AlreadyApplied, NotApplied
from litemigrate.core.domain.models import LedgerEntry, MigrationVersion

logger = logging.getLogger(__name__)

LEDGER_TABLE = "_litemigrate_ledger"


class LedgerRepo:
    def __init__(self, conn: sqlite3.Connection, table_name: str = LEDGER_TABLE) -> None:
        self._conn = conn
        self._table = table_name

    def ensure_schema(self) -> None:
        self._conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self._table} (
                version INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                applied_at TEXT NOT NULL,
                sequence INTEGER NOT NULL
            )
            """
        )

    def applied_versions(self) -> tuple[MigrationVersion, ...]:
        rows = self._conn.execute(f"SELECT version FROM {self._table} ORDER BY version").fetchall()
        versions = tuple(int(row[0]) for row in rows)
        logger.debug("ledger versions: %s", list(versions))
        return versions

    def entries(self) -> list[LedgerEntry]:
        rows = self._conn.execute(
            f"SELECT version, name, applied_at, sequence FROM {self._table} ORDER BY version"
        ).fetchall()
        return [
            LedgerEntry(
                version=int(row[0]),
                name=row[1],
                applied_at=row[2],
                sequence=int(row[3]),
            )
            for row in rows
        ]

    def is_applied(self, version: MigrationVersion) -> bool:
        row = self._conn.execute(
            f"SELECT 1 FROM {self._table} WHERE version=?",
            (version,),
        ).fetchone()
        return row is not None

    def record_applied(self, version: MigrationVersion, applied_at: str, name: str = "") -> None:
        if self.is_applied(version):
            raise AlreadyApplied(version)
        self._conn.execute(
            f"""
            INSERT INTO {self._table} (version, name, applied_at, sequence)
            VALUES (?, ?, ?, (SELECT COALESCE(MAX(sequence), 0) + 1 FROM {self._table}))
            """,
            (version, name, applied_at),
        )

    def record_reverted(self, version: MigrationVersion) -> None:
        cur = self._conn.execute(f"DELETE FROM {self._table} WHERE version=?", (version,))
        if cur.rowcount == 0:
            raise NotApplied(version)

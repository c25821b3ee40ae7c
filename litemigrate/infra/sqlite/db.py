"""SQLite connection helpers for migration runs."""

from __future__ import annotations

import sqlite3
from pathlib import Path

BUSY_TIMEOUT_MS = 5000


def get_connection(db_path: str | Path) -> sqlite3.Connection:
    """Open a connection with transactions under explicit caller control.

    isolation_level=None disables the driver's implicit BEGIN so the
    executor decides where each migration's transaction starts and ends.
    """
    conn = sqlite3.connect(str(db_path), isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}")
    return conn

"""Tests for the litemigrate CLI."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MIGRATION_DIR", raising=False)
    monkeypatch.delenv("DATABASE_PATH", raising=False)


def _write(root: Path, version: int, name: str, up: str, down: str) -> None:
    root.mkdir(exist_ok=True)
    (root / f"{version:04d}_{name}.up.sql").write_text(up, encoding="utf-8")
    (root / f"{version:04d}_{name}.down.sql").write_text(down, encoding="utf-8")


def _run(argv: list[str]) -> int:
    from litemigrate.cli import migrate as mod

    try:
        mod.main(argv)
    except SystemExit as exc:
        return int(exc.code or 0)
    return 0


def test_up_and_down_with_flags(tmp_path: Path, capsys) -> None:
    source = tmp_path / "migrations"
    _write(source, 1, "a", "CREATE TABLE a (id INTEGER);", "DROP TABLE a;")
    _write(source, 2, "b", "CREATE TABLE b (id INTEGER);", "DROP TABLE b;")
    db = tmp_path / "app.db"

    assert _run(["-s", str(source), "-d", str(db), "up", "--number", "1"]) == 0
    out = capsys.readouterr().out
    assert "SUMMARY applied=1" in out
    assert "SUMMARY status=OK" in out

    assert _run(["-s", str(source), "-d", str(db), "up"]) == 0
    assert "SUMMARY applied=2" in capsys.readouterr().out

    assert _run(["-s", str(source), "-d", str(db), "down"]) == 0
    out = capsys.readouterr().out
    assert "SUMMARY reverted=2,1" in out

    conn = sqlite3.connect(db)
    tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()
    assert "a" not in tables
    assert "b" not in tables


def test_env_and_config_file_fallback(tmp_path: Path, capsys, monkeypatch) -> None:
    source = tmp_path / "migrations"
    _write(source, 1, "a", "CREATE TABLE a (id INTEGER);", "DROP TABLE a;")
    (tmp_path / ".migrate-config.yaml").write_text(
        "source_path: migrations\ndatabase_path: from_file.db\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "from_env.db"))

    assert _run(["up"]) == 0
    assert (tmp_path / "from_env.db").exists()
    assert not (tmp_path / "from_file.db").exists()
    capsys.readouterr()


def test_missing_config_exits_with_config_code(capsys) -> None:
    assert _run(["up"]) == 60
    out = capsys.readouterr().out
    assert "SUMMARY status=ERROR kind=ConfigError" in out


def test_error_kinds_map_to_distinct_exit_codes(tmp_path: Path, capsys) -> None:
    db = str(tmp_path / "app.db")

    assert _run(["-s", str(tmp_path / "missing"), "-d", db, "up"]) == 20

    incomplete = tmp_path / "incomplete"
    incomplete.mkdir()
    (incomplete / "3_x.up.sql").write_text("SELECT 1;", encoding="utf-8")
    assert _run(["-s", str(incomplete), "-d", db, "up"]) == 21

    duplicate = tmp_path / "duplicate"
    _write(duplicate, 3, "x", "SELECT 1;", "SELECT 1;")
    _write(duplicate, 3, "y", "SELECT 1;", "SELECT 1;")
    assert _run(["-s", str(duplicate), "-d", db, "up"]) == 22

    broken = tmp_path / "broken"
    _write(broken, 1, "ok", "CREATE TABLE ok (id INTEGER);", "DROP TABLE ok;")
    _write(broken, 2, "bad", "CREATE TABLE (;", "SELECT 1;")
    assert _run(["-s", str(broken), "-d", db, "up"]) == 50
    out = capsys.readouterr().out
    assert "SUMMARY completed=1" in out
    assert "SUMMARY failed_version=2" in out
    assert "kind=MigrationFailed" in out


def test_orphan_exit_code(tmp_path: Path, capsys) -> None:
    source = tmp_path / "migrations"
    _write(source, 1, "a", "CREATE TABLE a (id INTEGER);", "DROP TABLE a;")
    db = tmp_path / "app.db"
    assert _run(["-s", str(source), "-d", str(db), "up"]) == 0

    for path in source.iterdir():
        path.unlink()
    assert _run(["-s", str(source), "-d", str(db), "down"]) == 40
    assert "kind=OrphanedLedgerEntry" in capsys.readouterr().out


def test_create_needs_only_source(tmp_path: Path, capsys) -> None:
    assert _run(["-s", str(tmp_path / "migrations"), "create", "add users"]) == 0
    out = capsys.readouterr().out
    assert "SUMMARY version=1" in out
    assert (tmp_path / "migrations" / "0001-add_users" / "up.sql").exists()


def test_status_goto_and_validate(tmp_path: Path, capsys) -> None:
    source = tmp_path / "migrations"
    _write(source, 1, "a", "CREATE TABLE a (id INTEGER);", "DROP TABLE a;")
    _write(source, 2, "b", "CREATE TABLE b (id INTEGER);", "DROP TABLE b;")
    db = str(tmp_path / "app.db")

    assert _run(["-s", str(source), "-d", db, "goto", "1"]) == 0
    assert "SUMMARY applied=1" in capsys.readouterr().out

    assert _run(["-s", str(source), "-d", db, "status"]) == 0
    out = capsys.readouterr().out
    assert "MIGRATION version=1 name=a state=applied" in out
    assert "MIGRATION version=2 name=b state=pending" in out
    assert "SUMMARY pending=1" in out

    assert _run(["-s", str(source), "-d", db, "goto", "7"]) == 41

    assert _run(["-s", str(source), "-d", db, "validate"]) == 0
    out = capsys.readouterr().out
    assert "SUMMARY applied=1,2" in out
    assert "SUMMARY reverted=2,1" in out


def test_help_and_bad_number(capsys) -> None:
    assert _run(["help"]) == 0
    assert "create" in capsys.readouterr().out

    assert _run([]) == 0
    capsys.readouterr()

    assert _run(["-s", "m", "-d", "x.db", "up", "--number", "0"]) == 2
    assert _run(["-s", "m", "-d", "x.db", "down", "--number", "two"]) == 2
    assert _run(["-s", "m", "-d", "x.db", "goto", "-1"]) == 2


def test_unreadable_script_and_database_exit_codes(tmp_path: Path, capsys) -> None:
    source = tmp_path / "migrations"
    _write(source, 1, "a", "CREATE TABLE a (id INTEGER);", "DROP TABLE a;")

    assert _run(["-s", str(source), "-d", str(tmp_path / "no_dir" / "x.db"), "up"]) == 32
    assert "kind=LedgerUnavailable" in capsys.readouterr().out

    (source / "0001_a.up.sql").write_bytes(b"CREATE TABLE a (id INTEGER); -- \xff\n")
    assert _run(["-s", str(source), "-d", str(tmp_path / "app.db"), "up"]) == 23
    assert "kind=UnreadableScript" in capsys.readouterr().out


def test_broken_config_file_ignored_when_flags_suffice(tmp_path: Path, capsys, monkeypatch) -> None:
    source = tmp_path / "migrations"
    _write(source, 1, "a", "CREATE TABLE a (id INTEGER);", "DROP TABLE a;")
    (tmp_path / ".migrate-config.yaml").write_text("source_path: [unclosed\n", encoding="utf-8")

    assert _run(["-s", str(source), "-d", str(tmp_path / "app.db"), "up"]) == 0
    assert "SUMMARY applied=1" in capsys.readouterr().out

    assert _run(["-s", str(source), "create", "next"]) == 0
    capsys.readouterr()

    monkeypatch.setenv("MIGRATION_DIR", str(source))
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "app.db"))
    assert _run(["status"]) == 0
    capsys.readouterr()

    monkeypatch.delenv("DATABASE_PATH")
    assert _run(["up"]) == 60
    assert "kind=ConfigError" in capsys.readouterr().out

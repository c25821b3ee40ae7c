"""Typed error taxonomy for discovery, ledger, planning, and execution.

Responsibilities:
  - Name every failure kind the engine can surface.
  - Carry a stable exit_code per kind for the CLI.
Must not:
  - Format user output; the CLI owns presentation.
"""

from __future__ import annotations

from typing import Optional


class MigratorError(RuntimeError):
    exit_code = 1


class ConfigError(MigratorError):
    exit_code = 60


class ScaffoldError(MigratorError):
    exit_code = 61


class ParseError(MigratorError):
    def __init__(self, filename: str, message: str) -> None:
        super().__init__(f"{filename}: {message}")
        self.filename = filename


class UnrecognizedFormat(ParseError):
    exit_code = 10


class InvalidVersion(ParseError):
    exit_code = 11


class RepositoryError(MigratorError):
    pass


class DirectoryNotFound(RepositoryError):
    exit_code = 20

    def __init__(self, path: str) -> None:
        super().__init__(f"Migration directory not found: {path}")
        self.path = path


class IncompleteMigration(RepositoryError):
    exit_code = 21

    def __init__(self, version: int, missing: str) -> None:
        super().__init__(f"Migration {version} has no {missing} script")
        self.version = version
        self.missing = missing


class DuplicateVersion(RepositoryError):
    exit_code = 22

    def __init__(self, version: int, first: str, second: str) -> None:
        super().__init__(f"Multiple migrations for version {version}: {first}, {second}")
        self.version = version


class UnreadableScript(RepositoryError):
    exit_code = 23

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"Cannot read migration script {path}: {cause}")
        self.path = path
        self.cause = cause


class LedgerError(MigratorError):
    pass


class LedgerUnavailable(LedgerError):
    exit_code = 32

    def __init__(self, database: str, cause: BaseException) -> None:
        super().__init__(f"Cannot use database {database}: {cause}")
        self.database = database
        self.cause = cause


class AlreadyApplied(LedgerError):
    exit_code = 30

    def __init__(self, version: int) -> None:
        super().__init__(f"Migration {version} is already recorded as applied")
        self.version = version


class NotApplied(LedgerError):
    exit_code = 31

    def __init__(self, version: int) -> None:
        super().__init__(f"Migration {version} is not recorded as applied")
        self.version = version


class PlannerError(MigratorError):
    pass


class OrphanedLedgerEntry(PlannerError):
    exit_code = 40

    def __init__(self, version: int) -> None:
        super().__init__(f"Applied migration {version} has no matching migration files")
        self.version = version


class UnknownTargetVersion(PlannerError):
    exit_code = 41

    def __init__(self, version: int) -> None:
        super().__init__(f"Target version {version} is not defined in the migration directory")
        self.version = version


class ExecutionError(MigratorError):
    pass


class ForeignKeyViolation(ExecutionError):
    def __init__(self, table: str, rowid: Optional[int], parent: str) -> None:
        super().__init__(f"Foreign key violation: table={table} rowid={rowid} parent={parent}")
        self.table = table
        self.rowid = rowid
        self.parent = parent


class MigrationFailed(ExecutionError):
    exit_code = 50

    def __init__(self, version: int, cause: BaseException, completed: tuple[int, ...]) -> None:
        super().__init__(f"Migration {version} failed: {cause}")
        self.version = version
        self.cause = cause
        self.completed = completed

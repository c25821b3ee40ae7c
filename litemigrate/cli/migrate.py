"""Apply, revert, and scaffold SQLite migrations from a source directory.

Purpose:
  - Command-line front end for MigratorApplication and migration scaffolding.
Inputs:
  - --source/-s and --database/-d, else MIGRATION_DIR / DATABASE_PATH,
    else `.migrate-config.yaml` (source_path, database_path) in the cwd.
Outputs:
  - `SUMMARY key=value` lines on stdout; each error kind exits with its own code.
Examples:
  - litemigrate -s migrations -d app.db up
  - litemigrate -s migrations -d app.db down --number 1
  - litemigrate -s migrations create add_users_table
  - python3 -m litemigrate.cli.migrate -s migrations -d app.db status
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from litemigrate import __version__
from litemigrate.app_api.config import (
    CONFIG_FILE_NAME,
    ENV_DATABASE,
    ENV_SOURCE,
    FileConfig,
    load_config_file,
    resolve_config,
    resolve_source_dir,
    resolve_value,
)
from litemigrate.app_api.facade import MigratorApplication
from litemigrate.core.domain.enums import Direction
from litemigrate.core.domain.errors import ConfigError, MigrationFailed, MigratorError
from litemigrate.core.engine.result import ExecutionReport
from litemigrate.infra.fs.scaffold import create_migration

EXIT_INTERRUPTED = 130

logger = logging.getLogger(__name__)


def _bounded_int(minimum: int) -> Callable[[str], int]:
    def parse(raw: str) -> int:
        try:
            value = int(raw)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid integer: {raw!r}")
        if value < minimum:
            raise argparse.ArgumentTypeError(f"must be >= {minimum}")
        return value

    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="litemigrate", description="Run SQLite migration files from a given directory")
    parser.add_argument("-s", "--source", help="Migration directory (env MIGRATION_DIR)")
    parser.add_argument("-d", "--database", help="SQLite database path (env DATABASE_PATH)")
    parser.add_argument("--config", help=f"Config file path (default ./{CONFIG_FILE_NAME})")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v for INFO, -vv for DEBUG")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    create = sub.add_parser("create", help="Create a new migration")
    create.add_argument("migration_name", help="Descriptive name, e.g. add_users_table")

    for name, help_text in (
        ("up", "Apply pending migrations (all, or the next N)"),
        ("down", "Revert applied migrations (all, or the last N)"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("-n", "--number", type=_bounded_int(1), default=None, help="Number of migrations")
        cmd.add_argument("--check-foreign-keys", action="store_true", help="Run PRAGMA foreign_key_check per migration")

    goto = sub.add_parser("goto", help="Migrate up or down to VERSION (0 = base state)")
    goto.add_argument("version", type=_bounded_int(0))
    goto.add_argument("--check-foreign-keys", action="store_true", help="Run PRAGMA foreign_key_check per migration")

    sub.add_parser("status", help="Show applied and pending migrations")

    validate = sub.add_parser("validate", help="Replay all migrations up and down on an in-memory database")
    validate.add_argument("--check-foreign-keys", action="store_true", help="Run PRAGMA foreign_key_check per migration")

    sub.add_parser("help", help="Show this help")
    return parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s:%(name)s:%(message)s")


def _load_file_config(config_arg: Optional[str]) -> Optional[FileConfig]:
    if config_arg:
        path = Path(config_arg)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        return load_config_file(path)
    return load_config_file(Path.cwd() / CONFIG_FILE_NAME)


def _file_config_if_needed(args: argparse.Namespace) -> Optional[FileConfig]:
    """Read the config file only when flags and env leave a path unresolved."""
    source = resolve_value(args.source, os.environ.get(ENV_SOURCE), None)
    database = resolve_value(args.database, os.environ.get(ENV_DATABASE), None)
    if source is not None and (args.command == "create" or database is not None):
        return None
    return _load_file_config(args.config)


def _versions(values: tuple[int, ...]) -> str:
    return ",".join(str(v) for v in values) if values else "-"


def _print_report(report: ExecutionReport) -> None:
    key = "applied" if report.direction is Direction.UP else "reverted"
    print(f"SUMMARY direction={report.direction.value}")
    print(f"SUMMARY {key}={_versions(report.completed)}")
    print(f"SUMMARY count={len(report.completed)}")


def _print_error_and_exit(exc: MigratorError) -> None:
    if isinstance(exc, MigrationFailed):
        print(f"SUMMARY completed={_versions(exc.completed)}")
        print(f"SUMMARY failed_version={exc.version}")
    print(f"SUMMARY status=ERROR kind={type(exc).__name__} message={exc}")
    raise SystemExit(exc.exit_code)


def _finish(reports: list[ExecutionReport]) -> None:
    for report in reports:
        _print_report(report)
    if any(r.interrupted for r in reports):
        print("SUMMARY status=INTERRUPTED")
        raise SystemExit(EXIT_INTERRUPTED)
    print("SUMMARY status=OK")


def _run_command(args: argparse.Namespace) -> None:
    file_config = _file_config_if_needed(args)

    if args.command == "create":
        source_dir = resolve_source_dir(args.source, os.environ, file_config)
        files = create_migration(source_dir, args.migration_name)
        print(f"SUMMARY version={files.version}")
        print(f"SUMMARY up_path={files.up_path}")
        print(f"SUMMARY down_path={files.down_path}")
        print("SUMMARY status=OK")
        return

    config = resolve_config(args.source, args.database, os.environ, file_config)
    app = MigratorApplication(
        config.source_dir,
        config.database_path,
        check_foreign_keys=getattr(args, "check_foreign_keys", False),
    )

    if args.command == "up":
        _finish([app.up(args.number)])
    elif args.command == "down":
        _finish([app.down(args.number)])
    elif args.command == "goto":
        _finish(app.goto(args.version))
    elif args.command == "status":
        rows = app.status()
        for row in rows:
            state = "orphaned" if row.orphaned else ("applied" if row.applied else "pending")
            print(
                f"MIGRATION version={row.version} name={row.name or '-'} state={state} "
                f"applied_at={row.applied_at or '-'} sequence={row.sequence or '-'}"
            )
        print(f"SUMMARY applied={sum(1 for r in rows if r.applied)}")
        print(f"SUMMARY pending={sum(1 for r in rows if not r.applied)}")
        print("SUMMARY status=OK")
    elif args.command == "validate":
        up_report, down_report = app.validate()
        _finish([up_report, down_report])


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if args.command in (None, "help"):
        parser.print_help()
        return

    try:
        _run_command(args)
    except MigratorError as exc:
        logger.debug("command %s failed", args.command, exc_info=True)
        _print_error_and_exit(exc)


if __name__ == "__main__":
    main()

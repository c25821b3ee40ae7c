"""Migration file naming convention.

Responsibilities:
  - Parse flat file names (`0003_add_users.up.sql`) and per-migration
    directory names (`0003-add_users/up.sql`) into version, name, direction.
  - Format directory names for newly scaffolded migrations.
Must not:
  - Touch the filesystem or database.
"""

from __future__ import annotations

import re

from .enums import Direction
from .errors import InvalidVersion, UnrecognizedFormat
from .models import MigrationScript, MigrationVersion

SQL_SUFFIX = ".sql"
UP_SCRIPT_NAME = "up.sql"
DOWN_SCRIPT_NAME = "down.sql"

_FLAT_PATTERN = re.compile(r"^(?P<version>[^_\-.]+)[_-](?P<name>[^.]+)\.(?P<direction>up|down)\.sql$")
_DIR_PATTERN = re.compile(r"^(?P<version>[^_\-.]+)[_-](?P<name>[^.]+)$")


def parse_version(token: str, filename: str) -> MigrationVersion:
    if not token.isascii() or not token.isdigit():
        raise InvalidVersion(filename, f"version '{token}' is not a decimal number")
    version = int(token)
    if version == 0:
        raise InvalidVersion(filename, "version 0 is reserved for the base state")
    return version


def parse_migration_filename(filename: str) -> MigrationScript:
    match = _FLAT_PATTERN.match(filename)
    if match is None:
        raise UnrecognizedFormat(filename, "expected <version>_<name>.up.sql or <version>_<name>.down.sql")
    version = parse_version(match.group("version"), filename)
    return MigrationScript(
        version=version,
        name=match.group("name"),
        direction=Direction(match.group("direction")),
    )


def parse_migration_dirname(dirname: str) -> tuple[MigrationVersion, str]:
    match = _DIR_PATTERN.match(dirname)
    if match is None:
        raise UnrecognizedFormat(dirname, "expected migration directory <version>-<name>")
    return parse_version(match.group("version"), dirname), match.group("name")


def parse_directory_script(dirname: str, child: str) -> MigrationScript:
    """Parse `<dirname>/<child>` where child is up.sql or down.sql."""
    if child == UP_SCRIPT_NAME:
        direction = Direction.UP
    elif child == DOWN_SCRIPT_NAME:
        direction = Direction.DOWN
    else:
        raise UnrecognizedFormat(f"{dirname}/{child}", "expected up.sql or down.sql")
    version, name = parse_migration_dirname(dirname)
    return MigrationScript(version=version, name=name, direction=direction)


def normalize_migration_name(name: str) -> str:
    normalized = re.sub(r"[\s\-]", "_", name.strip()).rstrip("_")
    if not normalized or "." in normalized or "/" in normalized:
        raise ValueError(f"invalid migration name: {name!r}")
    return normalized


def format_migration_dirname(version: MigrationVersion, name: str) -> str:
    if version < 1:
        raise ValueError("version must be >= 1")
    return f"{version:04d}-{normalize_migration_name(name)}"

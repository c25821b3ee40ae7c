"""Discover migration scripts in a source directory.

Responsibilities:
  - Scan flat `<version>_<name>.{up,down}.sql` files and
    `<version>-<name>/{up,down}.sql` directories.
  - Pair up/down scripts and build an ordered MigrationCatalog.
Must not:
  - Cache results; every call reads the directory afresh.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from litemigrate.core.domain.enums import Direction
from litemigrate.core.domain.errors import (
    DirectoryNotFound,
    DuplicateVersion,
    IncompleteMigration,
    UnreadableScript,
)
from litemigrate.core.domain.filenames import (
    DOWN_SCRIPT_NAME,
    SQL_SUFFIX,
    UP_SCRIPT_NAME,
    parse_directory_script,
    parse_migration_filename,
)
from litemigrate.core.domain.models import (
    MigrationCatalog,
    MigrationDefinition,
    MigrationScript,
    MigrationVersion,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _FoundScript:
    script: MigrationScript
    label: str
    body: str


def _read_script(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise UnreadableScript(str(path), exc) from exc


def _scan_migration_dir(path: Path) -> list[_FoundScript]:
    children = sorted(path.iterdir(), key=lambda p: p.name)
    has_scripts = any(c.name in (UP_SCRIPT_NAME, DOWN_SCRIPT_NAME) for c in children)
    if not has_scripts:
        logger.warning("Skipping directory without up.sql/down.sql: %s", path.name)
        return []

    found: list[_FoundScript] = []
    for child in children:
        label = f"{path.name}/{child.name}"
        if child.is_file() and child.name in (UP_SCRIPT_NAME, DOWN_SCRIPT_NAME):
            script = parse_directory_script(path.name, child.name)
            found.append(_FoundScript(script=script, label=label, body=_read_script(child)))
        elif child.name.endswith(SQL_SUFFIX):
            parse_directory_script(path.name, child.name)
        else:
            logger.warning("Skipping unrecognized entry: %s", label)
    return found


def _scan(source_dir: Path) -> list[_FoundScript]:
    found: list[_FoundScript] = []
    for entry in sorted(source_dir.iterdir(), key=lambda p: p.name):
        if entry.name.startswith("."):
            logger.debug("Skipping hidden entry: %s", entry.name)
            continue
        if entry.is_dir():
            found.extend(_scan_migration_dir(entry))
        elif entry.name.endswith(SQL_SUFFIX):
            script = parse_migration_filename(entry.name)
            found.append(_FoundScript(script=script, label=entry.name, body=_read_script(entry)))
        else:
            logger.warning("Skipping unrecognized entry: %s", entry.name)
    return found


def discover(source_dir: str | Path) -> MigrationCatalog:
    path = Path(source_dir)
    if not path.is_dir():
        raise DirectoryNotFound(str(path))

    found = _scan(path)
    names: dict[MigrationVersion, tuple[str, str]] = {}
    bodies: dict[tuple[MigrationVersion, Direction], tuple[str, str]] = {}
    for item in found:
        version = item.script.version
        known = names.get(version)
        if known is not None and known[0] != item.script.name:
            raise DuplicateVersion(version, known[1], item.label)
        names.setdefault(version, (item.script.name, item.label))

        key = (version, item.script.direction)
        if key in bodies:
            raise DuplicateVersion(version, bodies[key][0], item.label)
        bodies[key] = (item.label, item.body)

    definitions: list[MigrationDefinition] = []
    for version in sorted(names):
        up = bodies.get((version, Direction.UP))
        down = bodies.get((version, Direction.DOWN))
        if up is None:
            raise IncompleteMigration(version, "up")
        if down is None:
            raise IncompleteMigration(version, "down")
        definitions.append(
            MigrationDefinition(
                version=version,
                name=names[version][0],
                up_script=up[1],
                down_script=down[1],
            )
        )

    if not definitions:
        logger.warning("No migrations found in %s", path)
    else:
        logger.debug("Discovered %d migrations in %s", len(definitions), path)
    return MigrationCatalog(definitions)

"""Scaffold a new migration directory with empty up/down scripts."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from litemigrate.core.domain.errors import ScaffoldError
from litemigrate.core.domain.filenames import (
    DOWN_SCRIPT_NAME,
    UP_SCRIPT_NAME,
    format_migration_dirname,
)

logger = logging.getLogger(__name__)

_VERSION_PREFIX = re.compile(r"^([0-9]+)[_-]")


@dataclass(frozen=True)
class NewMigrationFiles:
    version: int
    up_path: Path
    down_path: Path


def next_version(source_dir: Path) -> int:
    max_version = 0
    if not source_dir.is_dir():
        return 1
    for path in source_dir.iterdir():
        match = _VERSION_PREFIX.match(path.name)
        if match is None:
            continue
        version = int(match.group(1))
        if version > max_version:
            max_version = version
    return max_version + 1


def create_migration(source_dir: str | Path, name: str, now: Optional[datetime] = None) -> NewMigrationFiles:
    root = Path(source_dir)
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ScaffoldError(f"Failed to create migration directory {root}: {exc}") from exc

    version = next_version(root)
    try:
        dirname = format_migration_dirname(version, name)
    except ValueError as exc:
        raise ScaffoldError(str(exc)) from exc

    folder = root / dirname
    generated_at = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    up_path = folder / UP_SCRIPT_NAME
    down_path = folder / DOWN_SCRIPT_NAME
    try:
        folder.mkdir()
        up_path.write_text(f"-- Up migration `{dirname}` generated at {generated_at}.\n", encoding="utf-8")
        down_path.write_text(f"-- Down migration `{dirname}` generated at {generated_at}.\n", encoding="utf-8")
    except OSError as exc:
        raise ScaffoldError(f"Failed to write migration {dirname}: {exc}") from exc

    logger.info("Created migration %s", folder)
    return NewMigrationFiles(version=version, up_path=up_path, down_path=down_path)

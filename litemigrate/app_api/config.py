"""Resolve source directory and database path from flags, env, and file.

Responsibilities:
  - Load the optional `.migrate-config.yaml` fallback.
  - Apply precedence flag > environment variable > config file.
Must not:
  - Read process state implicitly; callers pass every layer explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

import yaml

from litemigrate.core.domain.errors import ConfigError

CONFIG_FILE_NAME = ".migrate-config.yaml"
ENV_SOURCE = "MIGRATION_DIR"
ENV_DATABASE = "DATABASE_PATH"


@dataclass(frozen=True)
class FileConfig:
    source_path: Optional[Path] = None
    database_path: Optional[Path] = None


@dataclass(frozen=True)
class ResolvedConfig:
    source_dir: Path
    database_path: Path


def _path_value(raw: object, key: str, base_dir: Path, path: Path) -> Optional[Path]:
    if raw is None:
        return None
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigError(f"{path}: '{key}' must be a non-empty string")
    value = Path(raw.strip()).expanduser()
    if not value.is_absolute():
        value = base_dir / value
    return value


def load_config_file(path: str | Path) -> Optional[FileConfig]:
    config_path = Path(path)
    if not config_path.exists():
        return None
    try:
        with config_path.open(encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"{config_path}: cannot read config file: {exc}") from exc

    if data is None:
        return FileConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: expected a mapping with source_path/database_path")

    base_dir = config_path.resolve().parent
    return FileConfig(
        source_path=_path_value(data.get("source_path"), "source_path", base_dir, config_path),
        database_path=_path_value(data.get("database_path"), "database_path", base_dir, config_path),
    )


def resolve_value(flag: Optional[str | Path], env: Optional[str], file_value: Optional[Path]) -> Optional[Path]:
    for candidate in (flag, env):
        if candidate is not None and str(candidate).strip():
            return Path(candidate)
    return file_value


def resolve_config(
    source_flag: Optional[str | Path],
    database_flag: Optional[str | Path],
    env: Mapping[str, str],
    file_config: Optional[FileConfig],
) -> ResolvedConfig:
    file_config = file_config or FileConfig()
    source = resolve_value(source_flag, env.get(ENV_SOURCE), file_config.source_path)
    database = resolve_value(database_flag, env.get(ENV_DATABASE), file_config.database_path)

    missing = []
    if source is None:
        missing.append("source_path")
    if database is None:
        missing.append("database_path")
    if missing:
        raise ConfigError(f"{', '.join(repr(m) for m in missing)} not found in arguments, environment, or config file.")
    return ResolvedConfig(source_dir=source, database_path=database)


def resolve_source_dir(
    source_flag: Optional[str | Path],
    env: Mapping[str, str],
    file_config: Optional[FileConfig],
) -> Path:
    """Source directory only; `create` does not need a database."""
    file_config = file_config or FileConfig()
    source = resolve_value(source_flag, env.get(ENV_SOURCE), file_config.source_path)
    if source is None:
        raise ConfigError("'source_path' not found in arguments, environment, or config file.")
    return source

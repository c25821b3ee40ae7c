"""Domain models for migration catalogs, ledger rows, and plans.

Responsibilities:
  - Define immutable carriers for discovered scripts and their pairing.
  - Provide the ordered catalog snapshot consumed by planner and executor.

Invariants:
  - Catalog versions are strictly increasing.
  - Models hold no I/O handles; they are rebuilt on every invocation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from .enums import Direction

# Versions are positive integers; 0 denotes the base (empty) state.
MigrationVersion = int
BASE_VERSION: MigrationVersion = 0


@dataclass(frozen=True)
class MigrationScript:
    """One parsed migration file name (no body)."""

    version: MigrationVersion
    name: str
    direction: Direction


@dataclass(frozen=True)
class MigrationDefinition:
    version: MigrationVersion
    name: str
    up_script: str
    down_script: str

    def script_for(self, direction: Direction) -> str:
        if direction is Direction.UP:
            return self.up_script
        return self.down_script


class MigrationCatalog:
    """Ordered, read-only snapshot of migration definitions."""

    def __init__(self, definitions: list[MigrationDefinition] | tuple[MigrationDefinition, ...]) -> None:
        ordered = tuple(sorted(definitions, key=lambda d: d.version))
        for prev, cur in zip(ordered, ordered[1:]):
            if prev.version == cur.version:
                raise ValueError(f"catalog contains version {cur.version} twice")
        self._definitions = ordered
        self._by_version = {d.version: d for d in ordered}

    def __iter__(self) -> Iterator[MigrationDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, version: object) -> bool:
        return version in self._by_version

    def __repr__(self) -> str:
        return f"MigrationCatalog(versions={list(self.versions())})"

    def versions(self) -> tuple[MigrationVersion, ...]:
        return tuple(d.version for d in self._definitions)

    def get(self, version: MigrationVersion) -> Optional[MigrationDefinition]:
        return self._by_version.get(version)

    def latest_version(self) -> MigrationVersion:
        if not self._definitions:
            return BASE_VERSION
        return self._definitions[-1].version


@dataclass(frozen=True)
class LedgerEntry:
    version: MigrationVersion
    name: str
    applied_at: str
    sequence: int


@dataclass(frozen=True)
class ExecutionPlan:
    direction: Direction
    migrations: tuple[MigrationDefinition, ...]

    def versions(self) -> tuple[MigrationVersion, ...]:
        return tuple(m.version for m in self.migrations)

    def is_empty(self) -> bool:
        return not self.migrations

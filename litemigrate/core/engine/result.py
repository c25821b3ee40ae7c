"""Result payloads for migration runs and status listings.

Responsibilities:
  - Capture which versions a run applied or reverted, in execution order.
  - Describe per-version ledger status for display.

Inputs/Outputs:
  - Inputs: produced by the executor and the application facade.
  - Outputs: immutable dataclasses consumed by the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..domain.enums import Direction
from ..domain.models import MigrationVersion


@dataclass(frozen=True)
class ExecutionReport:
    direction: Direction
    completed: tuple[MigrationVersion, ...]
    interrupted: bool = False


@dataclass(frozen=True)
class MigrationStatus:
    version: MigrationVersion
    name: Optional[str]
    applied: bool
    applied_at: Optional[str] = None
    sequence: Optional[int] = None
    orphaned: bool = False

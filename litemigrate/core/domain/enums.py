"""Domain enums for migration direction.

Invariants:
  - Enum values are stable; they appear in logs and CLI output.
"""

from __future__ import annotations

from enum import Enum


class Direction(Enum):
    UP = "up"
    DOWN = "down"

"""Core migration planning utilities.

Responsibilities:
  - Provide the planner and result types for deterministic migration runs.
  - Must not touch the filesystem or database; consumes snapshots only.
"""

"""SQLite schema migrations driven by plain SQL files."""

__version__ = "0.1.0"

"""Raft building blocks: configuration, membership changes with joint consensus, and data-driven testing."""

__version__ = "0.1.0"

__all__ = [
    "changer",
    "config",
    "confchange",
    "datadriven",
    "eraftpb",
    "errors",
    "line_parser",
]
"""
Observability for the Trivia Maze.

A per-session event log of state changes, moves, answers and door changes,
with synchronous subscribers and JSON export.
"""

from src.observability.run_log import (
    EventLog,
    LogEvent,
    EventType,
    TransitionEvent,
)

__all__ = [
    "EventLog",
    "LogEvent",
    "EventType",
    "TransitionEvent",
]

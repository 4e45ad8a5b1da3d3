"""
Test helpers for the Trivia Maze test suite.

Deterministic question factories, a manually advanced clock, and small
hand-built mazes.
"""

import sqlite3
from typing import Optional

from src.maze.room_graph import RoomGraph
from src.trivia.questions import Question


def true_question(index: int = 0, hint: Optional[str] = "It adds up.") -> Question:
    """A true/false question whose answer is True."""
    return Question.true_false(f"Is 2 + 2 = 4? (#{index})", True, hint=hint, question_id=f"tf-{index}")


def true_false_bank(count: int = 40) -> list[Question]:
    return [true_question(i) for i in range(count)]


class FakeClock:
    """Manually advanced clock for time-limit tests."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def corridor_graph(length: int = 3, max_attempts: int = 1) -> RoomGraph:
    """A 1 x length maze where every door asks a true/false question."""
    counter = iter(range(1000))
    return RoomGraph.build(
        1,
        length,
        question_supplier=lambda: true_question(next(counter)),
        max_attempts=max_attempts,
    )


class LockedDatabaseSource:
    """A source whose reads fail with a raw sqlite error."""

    def __init__(self):
        self.calls = 0

    def next(self, kind, difficulty_range):
        self.calls += 1
        raise sqlite3.OperationalError("database is locked")

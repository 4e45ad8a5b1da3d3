"""Maze topology and movement module."""

from src.maze.room_graph import (
    Door,
    DoorState,
    InvalidDimensionsError,
    MissingQuestionPolicy,
    NotConnectedError,
    Room,
    RoomGraph,
)
from src.maze.maze_state import MazeState, MoveOutcome, MoveResult

__all__ = [
    "Door",
    "DoorState",
    "InvalidDimensionsError",
    "MissingQuestionPolicy",
    "NotConnectedError",
    "Room",
    "RoomGraph",
    "MazeState",
    "MoveOutcome",
    "MoveResult",
]

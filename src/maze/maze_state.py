"""
Maze state: the player's position in a RoomGraph.

Handles directional movement, visitation, exit detection and exit
reachability. Reachability is recomputed on demand with a breadth-first
search; a grid has at most rows*cols nodes, so a full traversal after each
door state change is cheap.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
import logging

from src.data_models import Coordinate, Direction
from src.maze.room_graph import Door, DoorState, NotConnectedError, Room, RoomGraph

logger = logging.getLogger(__name__)


class MoveOutcome(str, Enum):
    """Result of a movement attempt."""

    MOVED = "moved"
    NO_DOOR = "no_door"  # Wall or maze boundary
    LOCKED = "locked"  # Door still closed, may be opened
    BLOCKED = "blocked"  # Door permanently blocked
    # Session-level outcomes for locked doors that have no question
    QUESTION_UNAVAILABLE = "question_unavailable"
    MISSING_QUESTION = "missing_question"
    NOT_PLAYING = "not_playing"


@dataclass
class MoveResult:
    """Result of MazeState.attempt_move (and GameSession.attempt_move)."""

    outcome: MoveOutcome
    direction: Direction
    room: Coordinate  # Room the player is in after the attempt
    door: Optional[Door] = None
    message: str = ""

    @property
    def moved(self) -> bool:
        return self.outcome == MoveOutcome.MOVED

    @property
    def blocked(self) -> bool:
        return self.outcome != MoveOutcome.MOVED


class MazeState:
    """
    Tracks the current room and answers movement and reachability queries.

    Attributes:
        graph: The room graph being explored
        current: Coordinate of the current room
        defer_missing_questions: Locked doors without a question may still
            get one later, so reachability counts them as passable
    """

    def __init__(self, graph: RoomGraph, defer_missing_questions: bool = False):
        self.graph = graph
        self.defer_missing_questions = defer_missing_questions
        self.current: Coordinate = graph.start
        graph.start_room.mark_visited()

    @property
    def current_room(self) -> Room:
        return self.graph.room(self.current)

    @property
    def start(self) -> Coordinate:
        return self.graph.start

    @property
    def exit(self) -> Coordinate:
        return self.graph.exit

    def door(self, direction: Direction) -> Optional[Door]:
        return self.graph.door(self.current, direction)

    def can_move(self, direction: Direction) -> bool:
        """True iff a door exists in direction and it is open."""
        door = self.door(direction)
        return door is not None and door.is_open

    def attempt_move(self, direction: Direction) -> MoveResult:
        """
        Try to move through the door in direction.

        Position only changes on MOVED; the new room is marked visited.
        """
        if not isinstance(direction, Direction):
            raise ValueError(f"Invalid direction: {direction!r}")

        door = self.door(direction)
        if door is None:
            return MoveResult(
                outcome=MoveOutcome.NO_DOOR,
                direction=direction,
                room=self.current,
                message=f"No door to the {direction.value}",
            )
        if door.state == DoorState.BLOCKED:
            return MoveResult(
                outcome=MoveOutcome.BLOCKED,
                direction=direction,
                room=self.current,
                door=door,
                message=f"The {direction.value} door is permanently blocked",
            )
        if door.state == DoorState.LOCKED:
            return MoveResult(
                outcome=MoveOutcome.LOCKED,
                direction=direction,
                room=self.current,
                door=door,
                message=f"The {direction.value} door is locked",
            )

        self._enter(door.get_next_room(self.current))
        return MoveResult(
            outcome=MoveOutcome.MOVED,
            direction=direction,
            room=self.current,
            door=door,
            message=f"Moved {direction.value} to {self.current}",
        )

    def traverse(self, door: Door) -> Coordinate:
        """
        Step through an open door attached to the current room.

        Raises:
            NotConnectedError: If the door does not touch the current room
            ValueError: If the door is not open
        """
        if not door.connects(self.current):
            raise NotConnectedError(f"Door {door.door_id} is not connected to {self.current}")
        if not door.is_open:
            raise ValueError(f"Door {door.door_id} is not open")
        self._enter(door.get_next_room(self.current))
        return self.current

    def _enter(self, coordinate: Coordinate) -> None:
        self.current = coordinate
        self.graph.room(coordinate).mark_visited()
        logger.debug(f"Entered room {coordinate}")

    def is_at_exit(self) -> bool:
        return self.current == self.graph.exit

    # -------------------------------------------------------------------------
    # Reachability
    # -------------------------------------------------------------------------

    def has_path_to_exit_from_current(self) -> bool:
        """
        Whether the exit can still be reached from the current room.

        Searches over every door that is not permanently blocked: locked
        doors still count because a correct answer can open them. A locked
        door with no question counts only when questions are deferred.
        """
        return self._reachable(self._can_still_open)

    def _can_still_open(self, door: Door) -> bool:
        if door.state == DoorState.BLOCKED:
            return False
        if door.is_locked and door.question is None:
            return self.defer_missing_questions
        return True

    def has_open_path_to_exit(self) -> bool:
        """Whether the exit is reachable right now through open doors only."""
        return self._reachable(lambda door: door.is_open)

    def _reachable(self, passable: Callable[[Door], bool]) -> bool:
        target = self.graph.exit
        if self.current == target:
            return True

        seen = {self.current}
        queue = deque([self.current])
        while queue:
            here = queue.popleft()
            for door in self.graph.room(here).doors.values():
                if not passable(door):
                    continue
                there = door.get_next_room(here)
                if there == target:
                    return True
                if there not in seen:
                    seen.add(there)
                    queue.append(there)
        return False

    # -------------------------------------------------------------------------
    # Rendering support / reset
    # -------------------------------------------------------------------------

    def visited_map(self) -> list[list[bool]]:
        """Visited flag per room, indexed [row][col]."""
        return [
            [self.graph.room(r, c).visited for c in range(self.graph.cols)]
            for r in range(self.graph.rows)
        ]

    def reset(self) -> None:
        """Clear visited flags and return to the start. Doors keep their state."""
        self.graph.clear_visited()
        self.current = self.graph.start
        self.graph.start_room.mark_visited()

    def __repr__(self) -> str:
        return f"MazeState(current={self.current}, exit={self.graph.exit})"

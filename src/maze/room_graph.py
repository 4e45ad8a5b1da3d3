"""
Room graph for the Trivia Maze.

A rows x cols grid of rooms joined by doors to their immediate N/S/E/W
neighbours. Rooms live in a coordinate-keyed arena; each door records the
coordinates of its two endpoints and is shared by both rooms. The graph owns
topology and visitation flags only; gameplay lives in MazeState and
GameSession.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Optional, Union
import logging

from src.data_models import Coordinate, Direction
from src.trivia.questions import Question
from src.trivia.question_source import QuestionSupplyError

logger = logging.getLogger(__name__)

QuestionSupplier = Callable[[], Optional[Question]]


class InvalidDimensionsError(ValueError):
    """Raised when a maze is built with fewer than one row or column."""

    pass


class NotConnectedError(ValueError):
    """Raised when a door is asked about a room it does not connect."""

    pass


class DoorState(str, Enum):
    """State of a door."""

    LOCKED = "locked"  # Closed, can still be opened by a correct answer
    OPEN = "open"
    BLOCKED = "blocked"  # Permanently closed (attempts exhausted or skipped)


class MissingQuestionPolicy(str, Enum):
    """What to do with a door the question supplier cannot fill."""

    OPEN = "open"  # Build the door already open
    FAIL_FAST = "fail_fast"  # Abort the build
    DEFER = "defer"  # Keep it locked and ask again when the player arrives


@dataclass(eq=False)
class Door:
    """
    A door between two grid-adjacent rooms.

    Doors are symmetric: once open they can be crossed either way.
    """

    room_a: Coordinate
    room_b: Coordinate
    question: Optional[Question] = None
    state: DoorState = DoorState.LOCKED
    max_attempts: int = 1
    attempts_left: Optional[int] = None  # Defaults to max_attempts

    def __post_init__(self):
        self.max_attempts = max(1, self.max_attempts)
        if self.attempts_left is None:
            self.attempts_left = self.max_attempts
        if self.room_a == self.room_b:
            raise NotConnectedError(f"Door cannot connect room {self.room_a} to itself")
        if not self.room_a.is_adjacent(self.room_b):
            raise NotConnectedError(f"Rooms {self.room_a} and {self.room_b} are not adjacent")

    @property
    def door_id(self) -> str:
        a, b = sorted((self.room_a, self.room_b))
        return f"{a.row},{a.col}-{b.row},{b.col}"

    @property
    def is_open(self) -> bool:
        return self.state == DoorState.OPEN

    @property
    def is_locked(self) -> bool:
        return self.state == DoorState.LOCKED

    @property
    def is_blocked(self) -> bool:
        return self.state == DoorState.BLOCKED

    @property
    def endpoints(self) -> tuple[Coordinate, Coordinate]:
        return (self.room_a, self.room_b)

    def connects(self, coordinate: Coordinate) -> bool:
        return coordinate in (self.room_a, self.room_b)

    def get_next_room(self, from_room: Union["Room", Coordinate]) -> Coordinate:
        """
        Get the room on the other side of this door.

        Raises:
            NotConnectedError: If from_room is neither endpoint
        """
        coordinate = from_room.coordinate if isinstance(from_room, Room) else from_room
        if coordinate == self.room_a:
            return self.room_b
        if coordinate == self.room_b:
            return self.room_a
        raise NotConnectedError(f"Room {coordinate} is not connected by door {self.door_id}")

    def open(self) -> bool:
        """
        Unlock the door for good. Idempotent.

        A permanently blocked door stays blocked.

        Returns:
            True if the door is open afterwards
        """
        if self.state == DoorState.LOCKED:
            self.state = DoorState.OPEN
            logger.debug(f"Door {self.door_id} opened")
        return self.state == DoorState.OPEN

    def block(self) -> None:
        """Permanently block the door. An open door cannot be blocked."""
        if self.state == DoorState.LOCKED:
            self.state = DoorState.BLOCKED
            self.attempts_left = 0
            logger.debug(f"Door {self.door_id} blocked")

    def record_failed_attempt(self) -> int:
        """
        Consume one attempt; block the door when none remain.

        Returns:
            Attempts left after this one
        """
        if self.state != DoorState.LOCKED:
            return self.attempts_left
        self.attempts_left = max(0, self.attempts_left - 1)
        if self.attempts_left == 0:
            self.block()
        return self.attempts_left

    def attach_question(self, question: Question) -> None:
        """Give a question to a locked door that has none."""
        if self.question is not None:
            raise ValueError(f"Door {self.door_id} already has a question")
        self.question = question

    def __repr__(self) -> str:
        return f"Door({self.door_id}, {self.state.value}, attempts_left={self.attempts_left})"


@dataclass(eq=False)
class Room:
    """A cell in the maze grid."""

    coordinate: Coordinate
    visited: bool = False
    doors: dict[Direction, Door] = field(default_factory=dict)

    @property
    def row(self) -> int:
        return self.coordinate.row

    @property
    def col(self) -> int:
        return self.coordinate.col

    def mark_visited(self) -> None:
        self.visited = True

    def clear_visited(self) -> None:
        self.visited = False

    def get_door(self, direction: Direction) -> Optional[Door]:
        return self.doors.get(direction)

    def available_directions(self) -> set[Direction]:
        return set(self.doors)

    def __repr__(self) -> str:
        return f"Room{self.coordinate}"


class RoomGraph:
    """
    The grid of rooms and the doors between them.

    Attributes:
        rows: Number of rows
        cols: Number of columns
        start: Coordinate of the start room (0, 0)
        exit: Coordinate of the exit room (rows-1, cols-1)
    """

    def __init__(self, rows: int, cols: int):
        if rows < 1 or cols < 1:
            raise InvalidDimensionsError(f"Maze must have at least 1 row and 1 column, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols
        self._rooms: dict[Coordinate, Room] = {
            Coordinate(r, c): Room(Coordinate(r, c)) for r in range(rows) for c in range(cols)
        }
        self._doors: list[Door] = []
        self.start = Coordinate(0, 0)
        self.exit = Coordinate(rows - 1, cols - 1)

    @classmethod
    def build(
        cls,
        rows: int,
        cols: int,
        question_supplier: Optional[QuestionSupplier] = None,
        max_attempts: int = 1,
        missing_question_policy: MissingQuestionPolicy = MissingQuestionPolicy.OPEN,
    ) -> "RoomGraph":
        """
        Build a fully connected grid.

        Every pair of N/S and E/W neighbours gets one door. Doors that receive
        a question start LOCKED with max_attempts attempts; doors without one
        follow missing_question_policy. With no supplier at all every door is
        structural and the policy decides (OPEN by default).

        Raises:
            InvalidDimensionsError: If rows < 1 or cols < 1
            QuestionSupplyError: Under FAIL_FAST, if a door gets no question
        """
        graph = cls(rows, cols)
        max_attempts = max(1, max_attempts)
        missing = 0

        for r in range(rows):
            for c in range(cols):
                here = Coordinate(r, c)
                for direction in (Direction.EAST, Direction.SOUTH):
                    there = here.step(direction)
                    if not graph.contains(there):
                        continue
                    question = question_supplier() if question_supplier else None
                    door = Door(
                        room_a=here,
                        room_b=there,
                        question=question,
                        max_attempts=max_attempts,
                    )
                    if question is None:
                        missing += 1
                        if missing_question_policy == MissingQuestionPolicy.FAIL_FAST:
                            raise QuestionSupplyError(
                                f"No question available for door {door.door_id}"
                            )
                        if missing_question_policy == MissingQuestionPolicy.OPEN:
                            door.state = DoorState.OPEN
                    graph.connect(here, direction, door)

        if missing and question_supplier is not None:
            logger.warning(
                f"{missing} of {len(graph.doors)} doors built without a question "
                f"(policy: {missing_question_policy.value})"
            )
        logger.info(f"Built {rows}x{cols} maze with {len(graph.doors)} doors")
        return graph

    def connect(self, coordinate: Coordinate, direction: Direction, door: Door) -> None:
        """Attach a door between a room and its neighbour in direction."""
        neighbour = coordinate.step(direction)
        if not door.connects(coordinate) or not door.connects(neighbour):
            raise NotConnectedError(f"Door {door.door_id} does not join {coordinate} and {neighbour}")
        self.room(coordinate).doors[direction] = door
        self.room(neighbour).doors[direction.opposite] = door
        self._doors.append(door)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def doors(self) -> list[Door]:
        return list(self._doors)

    @property
    def start_room(self) -> Room:
        return self._rooms[self.start]

    @property
    def exit_room(self) -> Room:
        return self._rooms[self.exit]

    def contains(self, coordinate: Coordinate) -> bool:
        return 0 <= coordinate.row < self.rows and 0 <= coordinate.col < self.cols

    def room(self, row: Union[int, Coordinate], col: Optional[int] = None) -> Room:
        """
        Fetch a room by coordinate.

        Raises:
            IndexError: If the coordinate is outside the grid
        """
        coordinate = row if isinstance(row, Coordinate) else Coordinate(row, col)
        if not self.contains(coordinate):
            raise IndexError(f"Invalid room coordinates: {coordinate}")
        return self._rooms[coordinate]

    def rooms(self) -> Iterator[Room]:
        for r in range(self.rows):
            for c in range(self.cols):
                yield self._rooms[Coordinate(r, c)]

    def door(self, room: Union[Room, Coordinate], direction: Direction) -> Optional[Door]:
        return self._resolve(room).get_door(direction)

    def move(self, room: Union[Room, Coordinate], direction: Direction) -> Optional[Room]:
        """
        The room reached by going through the door in direction.

        Returns None (blocked) if there is no door or it is not open. Does not
        change any state.
        """
        current = self._resolve(room)
        door = current.get_door(direction)
        if door is None or not door.is_open:
            return None
        return self._rooms[door.get_next_room(current.coordinate)]

    def direction_of(self, room: Union[Room, Coordinate], door: Door) -> Optional[Direction]:
        """Direction of door as seen from room, or None if not attached there."""
        for direction, candidate in self._resolve(room).doors.items():
            if candidate is door:
                return direction
        return None

    def clear_visited(self) -> None:
        for room in self._rooms.values():
            room.clear_visited()

    def count_doors(self, state: DoorState) -> int:
        return sum(1 for door in self._doors if door.state == state)

    def _resolve(self, room: Union[Room, Coordinate]) -> Room:
        if isinstance(room, Room):
            return room
        return self.room(room)

    def __repr__(self) -> str:
        return f"RoomGraph({self.rows}x{self.cols}, doors={len(self._doors)})"

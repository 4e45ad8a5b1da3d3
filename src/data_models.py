"""
Core data models for the Trivia Maze engine.

Shared enums and dataclasses used across the maze, trivia and game state
packages: compass directions, grid coordinates, the player record, the
difficulty settings bundle (with its clamping builder and presets) and the
state transition log entry.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional


# =============================================================================
# ENUMERATIONS
# =============================================================================


class Direction(str, Enum):
    """The four cardinal directions a player can move in."""

    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"

    @property
    def delta(self) -> tuple[int, int]:
        """(row, col) offset of one step in this direction."""
        return _DIRECTION_DELTAS[self]

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]

    @classmethod
    def parse(cls, token: str) -> "Direction":
        """
        Parse a direction from user input.

        Accepts full names and single letters, case-insensitive.

        Raises:
            ValueError: If the token does not name a direction
        """
        key = (token or "").strip().lower()
        for direction in cls:
            if key in (direction.value, direction.value[0]):
                return direction
        raise ValueError(f"Unknown direction: {token!r}")


_DIRECTION_DELTAS = {
    Direction.NORTH: (-1, 0),
    Direction.EAST: (0, 1),
    Direction.SOUTH: (1, 0),
    Direction.WEST: (0, -1),
}

_OPPOSITES = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
}


class QuestionKind(str, Enum):
    """Kinds of trivia question a door can carry."""

    TRUE_FALSE = "true_false"
    MULTIPLE_CHOICE = "multiple_choice"
    FILL_IN_THE_BLANK = "fill_in_the_blank"


# =============================================================================
# GRID
# =============================================================================


@dataclass(frozen=True, order=True)
class Coordinate:
    """A (row, col) position in the maze grid."""

    row: int
    col: int

    def step(self, direction: Direction) -> "Coordinate":
        d_row, d_col = direction.delta
        return Coordinate(self.row + d_row, self.col + d_col)

    def is_adjacent(self, other: "Coordinate") -> bool:
        return abs(self.row - other.row) + abs(self.col - other.col) == 1

    def __str__(self) -> str:
        return f"({self.row}, {self.col})"


# =============================================================================
# PLAYER
# =============================================================================


@dataclass
class Player:
    """
    The player record.

    Position mirrors the maze's current room; score and answered count are
    updated by the progression rules.
    """

    row: int = 0
    col: int = 0
    score: int = 0
    questions_answered: int = 0

    @property
    def position(self) -> Coordinate:
        return Coordinate(self.row, self.col)

    def move_to(self, coordinate: Coordinate) -> None:
        self.row = coordinate.row
        self.col = coordinate.col

    def add_score(self, points: int) -> None:
        self.score += points

    def increment_questions_answered(self) -> None:
        self.questions_answered += 1

    def reset(self) -> None:
        """Return to the origin with a clean score sheet."""
        self.row = 0
        self.col = 0
        self.score = 0
        self.questions_answered = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "col": self.col,
            "score": self.score,
            "questions_answered": self.questions_answered,
        }


# =============================================================================
# DIFFICULTY SETTINGS
# =============================================================================

MIN_MAZE_SIZE = 3
MAX_MAZE_SIZE = 20


@dataclass(frozen=True)
class DifficultySettings:
    """
    Immutable difficulty configuration.

    Build instances with DifficultySettingsBuilder, which clamps every
    out-of-range value, or use one of the presets below.
    """

    name: str = "Custom"
    maze_width: int = 8
    maze_height: int = 6
    max_attempts_per_door: int = 2
    max_hints: int = 3
    correct_answer_points: int = 10
    wrong_answer_penalty: int = 5
    hint_penalty: int = 5
    skip_question_penalty: int = 10
    allow_skipping: bool = True
    question_difficulty_min: int = 1
    question_difficulty_max: int = 3
    time_limit: int = 0  # Seconds per question, 0 = no limit
    question_kinds: tuple[QuestionKind, ...] = tuple(QuestionKind)

    @property
    def difficulty_range(self) -> tuple[int, int]:
        return (self.question_difficulty_min, self.question_difficulty_max)

    @property
    def has_time_limit(self) -> bool:
        return self.time_limit > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "maze_width": self.maze_width,
            "maze_height": self.maze_height,
            "max_attempts_per_door": self.max_attempts_per_door,
            "max_hints": self.max_hints,
            "correct_answer_points": self.correct_answer_points,
            "wrong_answer_penalty": self.wrong_answer_penalty,
            "hint_penalty": self.hint_penalty,
            "skip_question_penalty": self.skip_question_penalty,
            "allow_skipping": self.allow_skipping,
            "question_difficulty_min": self.question_difficulty_min,
            "question_difficulty_max": self.question_difficulty_max,
            "time_limit": self.time_limit,
            "question_kinds": [kind.value for kind in self.question_kinds],
        }

    def __str__(self) -> str:
        return f"Difficulty: {self.name} (Maze: {self.maze_width}x{self.maze_height})"


def _clamp(value: int, low: int, high: Optional[int] = None) -> int:
    value = max(low, value)
    if high is not None:
        value = min(high, value)
    return value


class DifficultySettingsBuilder:
    """
    Fluent builder for DifficultySettings.

    Every setter clamps its input rather than rejecting it:
    - maze dimensions to [3, 20]
    - penalties, hints and time limit to >= 0
    - correct-answer points and attempts per door to >= 1
    - difficulty min to >= 1 and max to >= min

    Usage:
        settings = (DifficultySettingsBuilder("Normal")
            .maze_size(4, 4)
            .scoring(10, 5, 5, 10)
            .build())
    """

    def __init__(self, name: str = "Custom"):
        self._settings = DifficultySettings(name=name)

    def maze_size(self, width: int, height: int) -> "DifficultySettingsBuilder":
        self._settings = replace(
            self._settings,
            maze_width=_clamp(width, MIN_MAZE_SIZE, MAX_MAZE_SIZE),
            maze_height=_clamp(height, MIN_MAZE_SIZE, MAX_MAZE_SIZE),
        )
        return self

    def max_attempts_per_door(self, attempts: int) -> "DifficultySettingsBuilder":
        self._settings = replace(self._settings, max_attempts_per_door=_clamp(attempts, 1))
        return self

    def max_hints(self, hints: int) -> "DifficultySettingsBuilder":
        self._settings = replace(self._settings, max_hints=_clamp(hints, 0))
        return self

    def time_limit(self, seconds: int) -> "DifficultySettingsBuilder":
        self._settings = replace(self._settings, time_limit=_clamp(seconds, 0))
        return self

    def scoring(
        self,
        correct_points: int,
        wrong_penalty: int,
        hint_penalty: int,
        skip_penalty: int,
    ) -> "DifficultySettingsBuilder":
        self._settings = replace(
            self._settings,
            correct_answer_points=_clamp(correct_points, 1),
            wrong_answer_penalty=_clamp(wrong_penalty, 0),
            hint_penalty=_clamp(hint_penalty, 0),
            skip_question_penalty=_clamp(skip_penalty, 0),
        )
        return self

    def allow_skipping(self, allow: bool) -> "DifficultySettingsBuilder":
        self._settings = replace(self._settings, allow_skipping=bool(allow))
        return self

    def question_difficulty_range(self, minimum: int, maximum: int) -> "DifficultySettingsBuilder":
        low = _clamp(minimum, 1)
        self._settings = replace(
            self._settings,
            question_difficulty_min=low,
            question_difficulty_max=max(low, maximum),
        )
        return self

    def question_kinds(self, *kinds: QuestionKind) -> "DifficultySettingsBuilder":
        # An empty selection keeps every kind in play
        self._settings = replace(self._settings, question_kinds=tuple(kinds) or tuple(QuestionKind))
        return self

    def build(self) -> DifficultySettings:
        """
        Build the settings.

        Raises:
            ValueError: If the difficulty name is empty
        """
        if not self._settings.name or not self._settings.name.strip():
            raise ValueError("Difficulty name cannot be empty")
        return self._settings


class DifficultyPresets:
    """Predefined difficulty levels."""

    @staticmethod
    def easy() -> DifficultySettings:
        return (
            DifficultySettingsBuilder("Easy")
            .maze_size(3, 3)
            .time_limit(0)
            .max_hints(5)
            .scoring(15, 3, 3, 5)
            .allow_skipping(True)
            .max_attempts_per_door(3)
            .question_difficulty_range(1, 2)
            .build()
        )

    @staticmethod
    def normal() -> DifficultySettings:
        return (
            DifficultySettingsBuilder("Normal")
            .maze_size(4, 4)
            .time_limit(60)
            .max_hints(3)
            .scoring(10, 5, 5, 10)
            .allow_skipping(True)
            .max_attempts_per_door(2)
            .question_difficulty_range(1, 3)
            .build()
        )

    @staticmethod
    def hard() -> DifficultySettings:
        return (
            DifficultySettingsBuilder("Hard")
            .maze_size(5, 5)
            .time_limit(45)
            .max_hints(2)
            .scoring(8, 7, 8, 15)
            .allow_skipping(True)
            .max_attempts_per_door(1)
            .question_difficulty_range(2, 4)
            .build()
        )

    @staticmethod
    def expert() -> DifficultySettings:
        return (
            DifficultySettingsBuilder("Expert")
            .maze_size(6, 6)
            .time_limit(30)
            .max_hints(1)
            .scoring(5, 10, 10, 20)
            .allow_skipping(False)
            .max_attempts_per_door(1)
            .question_difficulty_range(3, 5)
            .build()
        )

    @staticmethod
    def custom() -> DifficultySettings:
        return DifficultySettingsBuilder("Custom").build()

    @classmethod
    def by_name(cls, name: str) -> DifficultySettings:
        """
        Look up a preset by name (case-insensitive).

        Raises:
            ValueError: If no preset has that name
        """
        presets = {
            "easy": cls.easy,
            "normal": cls.normal,
            "hard": cls.hard,
            "expert": cls.expert,
            "custom": cls.custom,
        }
        factory = presets.get((name or "").strip().lower())
        if factory is None:
            raise ValueError(f"Unknown difficulty preset: {name!r}. Valid presets: {sorted(presets)}")
        return factory()

    @classmethod
    def all_presets(cls) -> list[DifficultySettings]:
        return [cls.easy(), cls.normal(), cls.hard(), cls.expert()]


# =============================================================================
# STATE TRANSITION LOG
# =============================================================================


@dataclass
class TransitionLog:
    """Log entry for a state transition."""
    timestamp: datetime
    from_state: str
    to_state: str
    trigger: str
    context: dict[str, Any] = field(default_factory=dict)

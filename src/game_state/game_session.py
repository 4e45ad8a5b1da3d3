"""
Game session: the top-level Trivia Maze controller.

A GameSession owns one room graph, the player, the progression rules and the
state machine. Every public operation returns a typed result; gameplay
rejections (moving into a wall, answering when no question is pending,
skipping when skips are disabled) never raise.

Flow:
    MAIN_MENU --start_game--> PLAYING --locked door--> AWAITING_ANSWER
    AWAITING_ANSWER --correct--> PLAYING (or VICTORY on the exit)
    AWAITING_ANSWER --attempts exhausted / skip--> PLAYING or GAME_OVER
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union
import logging
import random
import threading
import time

from src.data_models import Coordinate, DifficultyPresets, DifficultySettings, Direction, Player
from src.game_state.progression import ProgressionRules
from src.game_state.state_machine import SessionState, StateMachine
from src.maze.maze_state import MazeState, MoveOutcome, MoveResult
from src.maze.room_graph import Door, MissingQuestionPolicy, RoomGraph
from src.observability.run_log import EventLog, EventType
from src.trivia.question_source import QuestionDealer, QuestionSource
from src.trivia.questions import Question

logger = logging.getLogger(__name__)


class AnswerOutcome(str, Enum):
    """Result of submitting an answer."""

    CORRECT = "correct"
    INCORRECT = "incorrect"
    TIMED_OUT = "timed_out"  # Answered after the time limit; counts as incorrect
    REJECTED = "rejected"  # No question pending, or not the pending door


@dataclass
class PendingQuestion:
    """The question the player is currently facing."""

    door: Door
    question: Question
    direction: Direction
    presented_at: float
    skip_allowed: bool
    time_limit: int = 0
    hint_used: bool = False
    hint_budget_left: bool = True  # Hint budget not yet spent when presented

    @property
    def attempts_left(self) -> int:
        return self.door.attempts_left

    @property
    def hint_available(self) -> bool:
        return self.question.has_hint and (self.hint_used or self.hint_budget_left)


@dataclass
class AnswerResult:
    """Result of GameSession.submit_answer."""

    outcome: AnswerOutcome
    attempts_left: int = 0
    door_blocked: bool = False
    moved: bool = False
    points: int = 0  # Score change from this answer
    state: Optional[SessionState] = None
    message: str = ""

    @property
    def correct(self) -> bool:
        return self.outcome == AnswerOutcome.CORRECT


@dataclass
class SkipResult:
    """Result of GameSession.skip_question."""

    accepted: bool
    penalty: int = 0
    door_blocked: bool = False
    state: Optional[SessionState] = None
    message: str = ""


@dataclass
class GameSummary:
    """End-of-game (or current) figures."""

    state: SessionState
    score: int
    questions_answered: int
    position: Coordinate
    difficulty: str
    rooms_visited: int
    hints_used: int

    @property
    def won(self) -> bool:
        return self.state == SessionState.VICTORY

    @property
    def lost(self) -> bool:
        return self.state == SessionState.GAME_OVER

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "won": self.won,
            "score": self.score,
            "questions_answered": self.questions_answered,
            "position": [self.position.row, self.position.col],
            "difficulty": self.difficulty,
            "rooms_visited": self.rooms_visited,
            "hints_used": self.hints_used,
        }


class GameSession:
    """
    One Trivia Maze game.

    Args:
        settings: Difficulty settings (Normal preset if omitted)
        question_source: Where door questions come from; None builds a maze
            whose doors all follow missing_question_policy
        seed: Seed for the RNG that picks question kinds
        missing_question_policy: What to do with doors that get no question
        advance_on_correct: Step through a door as soon as it is opened
        clock: Monotonic clock used for the per-question time limit
        event_log: Log to publish events to (a new one if omitted)
    """

    def __init__(
        self,
        settings: Optional[DifficultySettings] = None,
        question_source: Optional[QuestionSource] = None,
        *,
        seed: Optional[int] = None,
        missing_question_policy: MissingQuestionPolicy = MissingQuestionPolicy.OPEN,
        advance_on_correct: bool = True,
        clock: Callable[[], float] = time.monotonic,
        event_log: Optional[EventLog] = None,
    ):
        self.settings = settings or DifficultyPresets.normal()
        self.question_source = question_source
        self.seed = seed
        self.missing_question_policy = missing_question_policy
        self.advance_on_correct = advance_on_correct
        self.event_log = event_log if event_log is not None else EventLog(seed=seed)

        self._clock = clock
        self._lock = threading.RLock()
        self._rng = random.Random(seed)
        self._dealer = QuestionDealer(
            question_source,
            kinds=self.settings.question_kinds,
            difficulty_range=self.settings.difficulty_range,
            rng=self._rng,
        )
        self._player = Player()
        self._rules = ProgressionRules(self.settings, self._player)
        self._maze: Optional[MazeState] = None
        self._pending: Optional[PendingQuestion] = None

        self._machine = StateMachine(SessionState.MAIN_MENU)
        self._machine.register_post_hook(self._on_transition)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._machine.current_state

    @property
    def state_machine(self) -> StateMachine:
        return self._machine

    @property
    def player(self) -> Player:
        return self._player

    @property
    def rules(self) -> ProgressionRules:
        return self._rules

    @property
    def maze(self) -> Optional[MazeState]:
        return self._maze

    @property
    def graph(self) -> Optional[RoomGraph]:
        return self._maze.graph if self._maze else None

    @property
    def pending(self) -> Optional[PendingQuestion]:
        return self._pending

    @property
    def hints_left(self) -> int:
        return self._rules.hints_left

    def attempts_left(self, door: Optional[Door] = None) -> Optional[int]:
        """Attempts left on door (or the pending door); None if neither."""
        with self._lock:
            if door is None and self._pending is not None:
                door = self._pending.door
            return door.attempts_left if door is not None else None

    def summary(self) -> GameSummary:
        with self._lock:
            visited = 0
            if self._maze is not None:
                visited = sum(1 for room in self._maze.graph.rooms() if room.visited)
            return GameSummary(
                state=self.state,
                score=self._player.score,
                questions_answered=self._player.questions_answered,
                position=self._player.position,
                difficulty=self.settings.name,
                rooms_visited=visited,
                hints_used=self._rules.hints_used,
            )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start_game(self, graph: Optional[RoomGraph] = None) -> SessionState:
        """
        Start a fresh game from MAIN_MENU, GAME_OVER or VICTORY.

        Builds a new maze from the settings unless a prebuilt graph is given,
        resets the player and the hint budget, and enters PLAYING.

        Raises:
            InvalidTransitionError: If a game is already in progress
            QuestionSupplyError: Under FAIL_FAST, if a door gets no question
        """
        with self._lock:
            if not self._machine.can_transition("start_game"):
                # Let the state machine raise its standard error
                self._machine.transition("start_game")

            if graph is None:
                graph = RoomGraph.build(
                    rows=self.settings.maze_height,
                    cols=self.settings.maze_width,
                    question_supplier=self._dealer if self.question_source is not None else None,
                    max_attempts=self.settings.max_attempts_per_door,
                    missing_question_policy=self.missing_question_policy,
                )

            self._maze = MazeState(
                graph,
                defer_missing_questions=self.missing_question_policy == MissingQuestionPolicy.DEFER,
            )
            self._player.reset()
            self._player.move_to(self._maze.current)
            self._rules.reset()
            self._pending = None

            self._machine.transition(
                "start_game",
                {"difficulty": self.settings.name, "rows": graph.rows, "cols": graph.cols},
            )
            logger.info(f"Game started: {self.settings} with {len(graph.doors)} doors")

            if self._maze.is_at_exit():
                self._win()
            elif not self._maze.has_path_to_exit_from_current():
                self._lose()
            return self.state

    def pause(self) -> bool:
        """Pause a game in progress. No-op (False) outside PLAYING."""
        with self._lock:
            if self.state != SessionState.PLAYING:
                return False
            self._machine.transition("pause")
            return True

    def resume(self) -> bool:
        """Resume a paused game. No-op (False) outside PAUSED."""
        with self._lock:
            if self.state != SessionState.PAUSED:
                return False
            self._machine.transition("resume")
            return True

    def return_to_menu(self) -> bool:
        """Leave a paused or finished game. No-op (False) from other states."""
        with self._lock:
            if not self._machine.can_transition("return_to_menu"):
                return False
            self._pending = None
            self._machine.transition("return_to_menu")
            return True

    # -------------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------------

    def attempt_move(self, direction: Union[Direction, str]) -> MoveResult:
        """
        Try to leave the current room in direction.

        A locked door with a question puts the session in AWAITING_ANSWER and
        the result's outcome is LOCKED; read the question from `pending`.

        Raises:
            ValueError: If direction is not a valid direction
        """
        if not isinstance(direction, Direction):
            direction = Direction.parse(direction)

        with self._lock:
            if self.state != SessionState.PLAYING or self._maze is None:
                return MoveResult(
                    outcome=MoveOutcome.NOT_PLAYING,
                    direction=direction,
                    room=self._player.position,
                    message=f"Cannot move while {self.state.value}",
                )

            result = self._maze.attempt_move(direction)

            if result.outcome == MoveOutcome.MOVED:
                self._player.move_to(self._maze.current)
                self.event_log.log(
                    EventType.MOVE_SUCCEEDED,
                    result.message,
                    {"direction": direction.value, "room": str(self._maze.current)},
                )
                if self._maze.is_at_exit():
                    self._win()
                return result

            if result.outcome != MoveOutcome.LOCKED:
                self._log_move_blocked(result)
                return result

            door = result.door
            if door.question is None:
                return self._handle_missing_question(result)

            self._present(door, direction)
            result.message = f"The {direction.value} door is locked. Answer to open it."
            return result

    def _handle_missing_question(self, result: MoveResult) -> MoveResult:
        door = result.door
        if self.missing_question_policy == MissingQuestionPolicy.DEFER:
            question = self._dealer.deal()
            if question is not None:
                door.attach_question(question)
                self._present(door, result.direction)
                result.message = f"The {result.direction.value} door is locked. Answer to open it."
                return result

            self.event_log.log(
                EventType.QUESTION_UNAVAILABLE,
                f"No question available for door {door.door_id}",
                {"door": door.door_id},
            )
            return MoveResult(
                outcome=MoveOutcome.QUESTION_UNAVAILABLE,
                direction=result.direction,
                room=result.room,
                door=door,
                message="No question is available for this door right now",
            )

        logger.error(
            f"Door {door.door_id} is locked but has no question "
            f"(policy: {self.missing_question_policy.value})"
        )
        missing = MoveResult(
            outcome=MoveOutcome.MISSING_QUESTION,
            direction=result.direction,
            room=result.room,
            door=door,
            message="This door cannot be opened",
        )
        self._log_move_blocked(missing)
        return missing

    def _present(self, door: Door, direction: Direction) -> None:
        self._pending = PendingQuestion(
            door=door,
            question=door.question,
            direction=direction,
            presented_at=self._clock(),
            skip_allowed=self._rules.can_skip(),
            time_limit=self.settings.time_limit,
            hint_budget_left=self._rules.can_use_hint(),
        )
        self._machine.transition("question_presented", {"door": door.door_id})
        self.event_log.log(
            EventType.ANSWER_PENDING,
            door.question.prompt,
            {
                "door": door.door_id,
                "kind": door.question.kind.value,
                "attempts_left": door.attempts_left,
            },
        )

    def _log_move_blocked(self, result: MoveResult) -> None:
        self.event_log.log(
            EventType.MOVE_BLOCKED,
            result.message,
            {"direction": result.direction.value, "reason": result.outcome.value},
        )

    # -------------------------------------------------------------------------
    # Questions
    # -------------------------------------------------------------------------

    def submit_answer(self, raw_answer: Optional[str], door: Optional[Door] = None) -> AnswerResult:
        """
        Answer the pending question.

        Args:
            raw_answer: The player's answer as typed
            door: The door being answered; defaults to the pending door
        """
        with self._lock:
            pending = self._pending
            if self.state != SessionState.AWAITING_ANSWER or pending is None:
                return AnswerResult(
                    outcome=AnswerOutcome.REJECTED,
                    state=self.state,
                    message="No question is waiting for an answer",
                )
            if door is not None and door is not pending.door:
                return AnswerResult(
                    outcome=AnswerOutcome.REJECTED,
                    attempts_left=pending.attempts_left,
                    state=self.state,
                    message=f"Door {door.door_id} is not the door being answered",
                )

            door = pending.door
            timed_out = (
                pending.time_limit > 0
                and self._clock() - pending.presented_at > pending.time_limit
            )
            if not timed_out and pending.question.is_correct(raw_answer):
                return self._answer_correct(pending)
            return self._answer_wrong(pending, timed_out)

    def _answer_correct(self, pending: PendingQuestion) -> AnswerResult:
        door = pending.door
        points = self._rules.award_correct()
        door.open()
        self._pending = None
        self.event_log.log(EventType.DOOR_OPENED, f"Door {door.door_id} opened", {"door": door.door_id})

        moved = False
        if self.advance_on_correct:
            self._maze.traverse(door)
            self._player.move_to(self._maze.current)
            moved = True
            self.event_log.log(
                EventType.MOVE_SUCCEEDED,
                f"Moved {pending.direction.value} to {self._maze.current}",
                {"direction": pending.direction.value, "room": str(self._maze.current)},
            )

        if moved and self._maze.is_at_exit():
            self._win()
        else:
            self._machine.transition("door_opened", {"door": door.door_id})

        return AnswerResult(
            outcome=AnswerOutcome.CORRECT,
            attempts_left=door.attempts_left,
            moved=moved,
            points=points,
            state=self.state,
            message=f"Correct! +{points} points",
        )

    def _answer_wrong(self, pending: PendingQuestion, timed_out: bool) -> AnswerResult:
        door = pending.door
        penalty = self._rules.penalize_wrong()
        left = door.record_failed_attempt()
        outcome = AnswerOutcome.TIMED_OUT if timed_out else AnswerOutcome.INCORRECT
        self.event_log.log(
            EventType.ANSWER_INCORRECT,
            "Time is up" if timed_out else "Incorrect answer",
            {"door": door.door_id, "attempts_left": left, "timed_out": timed_out},
        )

        if left > 0:
            # Each retry gets a fresh time limit
            pending.presented_at = self._clock()
            return AnswerResult(
                outcome=outcome,
                attempts_left=left,
                points=-penalty,
                state=self.state,
                message=f"Wrong! -{penalty} points. {left} attempt(s) left",
            )

        self._pending = None
        self._door_blocked(door)
        return AnswerResult(
            outcome=outcome,
            attempts_left=0,
            door_blocked=True,
            points=-penalty,
            state=self.state,
            message=f"Wrong! -{penalty} points. The door is now permanently blocked",
        )

    def use_hint(self, question: Optional[Question] = None) -> Optional[str]:
        """
        Reveal the hint for the pending question.

        The first request for a presented question spends one hint and the
        hint penalty; repeat requests return the same hint for free.

        Returns:
            The hint text, or None if no question is pending, the question
            has no hint, or the hint budget is spent
        """
        with self._lock:
            pending = self._pending
            if pending is None or self.state != SessionState.AWAITING_ANSWER:
                return None
            if question is not None and question is not pending.question:
                return None
            if not pending.question.has_hint:
                return None
            if pending.hint_used:
                return pending.question.hint
            if not self._rules.charge_hint():
                return None

            pending.hint_used = True
            self.event_log.log(
                EventType.HINT_GRANTED,
                pending.question.hint,
                {"door": pending.door.door_id, "hints_left": self._rules.hints_left},
            )
            return pending.question.hint

    def skip_question(self, door: Optional[Door] = None) -> SkipResult:
        """
        Give up on the pending door: pay the skip penalty and block it for good.

        Rejected (no state change) when skipping is disabled or nothing is
        pending.
        """
        with self._lock:
            pending = self._pending
            if pending is None or self.state != SessionState.AWAITING_ANSWER:
                return SkipResult(accepted=False, state=self.state, message="No question to skip")
            if door is not None and door is not pending.door:
                return SkipResult(
                    accepted=False,
                    state=self.state,
                    message=f"Door {door.door_id} is not the door being answered",
                )
            if not self._rules.can_skip():
                return SkipResult(
                    accepted=False,
                    state=self.state,
                    message=f"Skipping is not allowed on {self.settings.name}",
                )

            penalty = self._rules.charge_skip()
            self._pending = None
            pending.door.block()
            self._door_blocked(pending.door)
            return SkipResult(
                accepted=True,
                penalty=penalty,
                door_blocked=True,
                state=self.state,
                message=f"Question skipped. -{penalty} points",
            )

    def dismiss_question(self) -> bool:
        """Step back from the pending door without answering. Attempts are kept."""
        with self._lock:
            if self._pending is None or self.state != SessionState.AWAITING_ANSWER:
                return False
            door = self._pending.door
            self._pending = None
            self._machine.transition("question_dismissed", {"door": door.door_id})
            return True

    def cheat(self, door: Optional[Door] = None) -> Optional[str]:
        """Reveal the answer token for the pending (or given) door's question."""
        with self._lock:
            if door is None and self._pending is not None:
                door = self._pending.door
            if door is None or door.question is None:
                return None
            logger.info(f"Answer revealed for door {door.door_id}")
            return door.question.cheat_token()

    # -------------------------------------------------------------------------
    # Outcomes
    # -------------------------------------------------------------------------

    def _door_blocked(self, door: Door) -> None:
        self.event_log.log(
            EventType.DOOR_BLOCKED, f"Door {door.door_id} is permanently blocked", {"door": door.door_id}
        )
        if self._maze.has_path_to_exit_from_current():
            self._machine.transition("door_blocked", {"door": door.door_id})
        else:
            self._lose()

    def _win(self) -> None:
        self._machine.transition("exit_reached", {"room": str(self._maze.current)})
        self.event_log.log(
            EventType.SESSION_WON,
            f"Reached the exit with {self._player.score} points",
            self._player.to_dict(),
        )
        logger.info(f"Victory: score {self._player.score}")

    def _lose(self) -> None:
        self._machine.transition("exit_unreachable", {"room": str(self._maze.current)})
        self.event_log.log(
            EventType.SESSION_LOST,
            f"No path to the exit remains; final score {self._player.score}",
            self._player.to_dict(),
        )
        logger.info(f"Game over: score {self._player.score}")

    def _on_transition(
        self,
        old_state: SessionState,
        new_state: SessionState,
        trigger: str,
        context: dict[str, Any],
    ) -> None:
        self.event_log.log_transition(old_state.value, new_state.value, trigger, context)

    def __repr__(self) -> str:
        return f"GameSession(state={self.state.value}, score={self._player.score})"

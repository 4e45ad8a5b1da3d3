"""
State Machine for the Trivia Maze.

Only ONE session state may be active at any time. Every change goes through
an explicit (state, trigger) -> state table; illegal triggers raise.

Transitions are recorded in the machine's own history and handed to
post-transition hooks, which the session uses to feed its event log.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional
import logging

from src.data_models import TransitionLog

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Game session states. Only ONE state may be active at any time."""

    MAIN_MENU = "main_menu"
    PLAYING = "playing"
    PAUSED = "paused"
    AWAITING_ANSWER = "awaiting_answer"
    GAME_OVER = "game_over"
    VICTORY = "victory"


TERMINAL_STATES = frozenset({SessionState.GAME_OVER, SessionState.VICTORY})


@dataclass
class StateTransition:
    """Defines a valid state transition."""

    from_state: SessionState
    to_state: SessionState
    trigger: str
    description: str = ""

    def __hash__(self) -> int:
        return hash((self.from_state, self.to_state, self.trigger))


VALID_TRANSITIONS: list[StateTransition] = [
    # Starting (and restarting) a game
    StateTransition(
        SessionState.MAIN_MENU, SessionState.PLAYING, "start_game", "New game from the menu"
    ),
    StateTransition(
        SessionState.GAME_OVER, SessionState.PLAYING, "start_game", "Play again after a loss"
    ),
    StateTransition(
        SessionState.VICTORY, SessionState.PLAYING, "start_game", "Play again after a win"
    ),
    # Pausing
    StateTransition(SessionState.PLAYING, SessionState.PAUSED, "pause", "Game paused"),
    StateTransition(SessionState.PAUSED, SessionState.PLAYING, "resume", "Game resumed"),
    # Questions at locked doors
    StateTransition(
        SessionState.PLAYING,
        SessionState.AWAITING_ANSWER,
        "question_presented",
        "Player tried a locked door and was asked its question",
    ),
    StateTransition(
        SessionState.AWAITING_ANSWER,
        SessionState.PLAYING,
        "door_opened",
        "Correct answer opened the door",
    ),
    StateTransition(
        SessionState.AWAITING_ANSWER,
        SessionState.PLAYING,
        "door_blocked",
        "Attempts exhausted or question skipped; door blocked, exit still reachable",
    ),
    StateTransition(
        SessionState.AWAITING_ANSWER,
        SessionState.PLAYING,
        "question_dismissed",
        "Player stepped back from the door without answering",
    ),
    # Terminal outcomes
    StateTransition(
        SessionState.PLAYING, SessionState.VICTORY, "exit_reached", "Player entered the exit room"
    ),
    StateTransition(
        SessionState.AWAITING_ANSWER,
        SessionState.VICTORY,
        "exit_reached",
        "Correct answer carried the player into the exit room",
    ),
    StateTransition(
        SessionState.PLAYING,
        SessionState.GAME_OVER,
        "exit_unreachable",
        "No remaining path to the exit",
    ),
    StateTransition(
        SessionState.AWAITING_ANSWER,
        SessionState.GAME_OVER,
        "exit_unreachable",
        "Blocking this door cut the last path to the exit",
    ),
    # Back to the menu
    StateTransition(
        SessionState.PAUSED, SessionState.MAIN_MENU, "return_to_menu", "Abandon paused game"
    ),
    StateTransition(
        SessionState.GAME_OVER, SessionState.MAIN_MENU, "return_to_menu", "Leave loss screen"
    ),
    StateTransition(
        SessionState.VICTORY, SessionState.MAIN_MENU, "return_to_menu", "Leave victory screen"
    ),
]


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    pass


TransitionHook = Callable[[SessionState, SessionState, str, dict[str, Any]], None]


class StateMachine:
    """
    Manages session state transitions with validation and history tracking.

    The state machine is authoritative - all state changes must go through
    this class.

    Attributes:
        current_state: The current active state
        previous_state: The state before the last transition
        state_history: Complete history of all state transitions
    """

    def __init__(self, initial_state: SessionState = SessionState.MAIN_MENU):
        self._current_state: SessionState = initial_state
        self._previous_state: Optional[SessionState] = None
        self._state_history: list[TransitionLog] = []
        self._pre_transition_hooks: list[TransitionHook] = []
        self._post_transition_hooks: list[TransitionHook] = []

        # Build transition lookup for fast validation
        self._valid_transitions: dict[tuple[SessionState, str], SessionState] = {}
        for transition in VALID_TRANSITIONS:
            key = (transition.from_state, transition.trigger)
            self._valid_transitions[key] = transition.to_state

        self._record(from_state="INIT", to_state=initial_state.value, trigger="initialization")

    @property
    def current_state(self) -> SessionState:
        return self._current_state

    @property
    def previous_state(self) -> Optional[SessionState]:
        return self._previous_state

    @property
    def state_history(self) -> list[TransitionLog]:
        return self._state_history.copy()

    def can_transition(self, trigger: str) -> bool:
        return (self._current_state, trigger) in self._valid_transitions

    def get_valid_triggers(self) -> list[str]:
        """Trigger names usable from the current state."""
        return [
            trigger
            for (state, trigger) in self._valid_transitions
            if state == self._current_state
        ]

    def get_valid_transitions(self) -> list[StateTransition]:
        return [t for t in VALID_TRANSITIONS if t.from_state == self._current_state]

    def transition(self, trigger: str, context: Optional[dict[str, Any]] = None) -> SessionState:
        """
        Attempt to transition to a new state.

        Args:
            trigger: The trigger event causing the transition
            context: Optional context data for the transition

        Returns:
            The new state

        Raises:
            InvalidTransitionError: If the transition is not valid
        """
        context = context or {}

        key = (self._current_state, trigger)
        if key not in self._valid_transitions:
            valid_triggers = self.get_valid_triggers()
            raise InvalidTransitionError(
                f"Invalid transition: Cannot trigger '{trigger}' from state "
                f"'{self._current_state.value}'. Valid triggers: {valid_triggers}"
            )

        new_state = self._valid_transitions[key]
        old_state = self._current_state

        for hook in self._pre_transition_hooks:
            hook(old_state, new_state, trigger, context)

        self._previous_state = old_state
        self._current_state = new_state

        self._record(
            from_state=old_state.value, to_state=new_state.value, trigger=trigger, context=context
        )
        logger.debug(f"{old_state.value} -> {new_state.value} ({trigger})")

        for hook in self._post_transition_hooks:
            hook(old_state, new_state, trigger, context)

        return new_state

    def register_pre_hook(self, hook: TransitionHook) -> None:
        """
        Register a hook to run before any transition.

        The hook will be called with (old_state, new_state, trigger, context).
        """
        self._pre_transition_hooks.append(hook)

    def register_post_hook(self, hook: TransitionHook) -> None:
        """
        Register a hook to run after any transition.

        The hook will be called with (old_state, new_state, trigger, context).
        """
        self._post_transition_hooks.append(hook)

    def _record(
        self, from_state: str, to_state: str, trigger: str, context: Optional[dict[str, Any]] = None
    ) -> None:
        self._state_history.append(
            TransitionLog(
                timestamp=datetime.now(),
                from_state=from_state,
                to_state=to_state,
                trigger=trigger,
                context=context or {},
            )
        )

    def is_terminal(self) -> bool:
        """Check if the session has been won or lost."""
        return self._current_state in TERMINAL_STATES

    def get_state_info(self) -> dict[str, Any]:
        """Information about the current state for display/debugging."""
        return {
            "current_state": self._current_state.value,
            "previous_state": self._previous_state.value if self._previous_state else None,
            "valid_triggers": self.get_valid_triggers(),
            "transition_count": len(self._state_history),
            "last_transition": self._state_history[-1] if self._state_history else None,
        }

    def __repr__(self) -> str:
        return f"StateMachine(current={self._current_state.value}, previous={self._previous_state})"

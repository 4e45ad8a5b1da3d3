"""Game state management module."""

from src.game_state.state_machine import (
    InvalidTransitionError,
    SessionState,
    StateMachine,
    StateTransition,
)
from src.game_state.progression import ProgressionRules
from src.game_state.game_session import (
    AnswerOutcome,
    AnswerResult,
    GameSession,
    GameSummary,
    PendingQuestion,
    SkipResult,
)

__all__ = [
    "InvalidTransitionError",
    "SessionState",
    "StateMachine",
    "StateTransition",
    "ProgressionRules",
    "AnswerOutcome",
    "AnswerResult",
    "GameSession",
    "GameSummary",
    "PendingQuestion",
    "SkipResult",
]

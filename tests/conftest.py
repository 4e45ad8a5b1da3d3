"""
Pytest fixtures for the Trivia Maze test suite.

Provides deterministic question sources, fixed difficulty settings, and
sessions already started on a small maze.
"""

import pytest

from src.data_models import DifficultySettings, DifficultySettingsBuilder, QuestionKind
from src.game_state.game_session import GameSession
from src.observability.run_log import EventLog
from src.trivia.question_source import InMemoryQuestionSource
from src.trivia.questions import Question

from tests.helpers import true_false_bank


# =============================================================================
# SOURCE FIXTURES
# =============================================================================


@pytest.fixture
def tf_source():
    """An in-memory source holding only true/false questions (answer: True)."""
    return InMemoryQuestionSource(true_false_bank(), shuffle=False)


@pytest.fixture
def mixed_questions():
    """One question of each kind."""
    return [
        Question.true_false("The sky is green.", False, hint="Look up.", difficulty=1),
        Question.multiple_choice(
            "Which number is prime?", ["4", "6", "7", "9"], 2, hint="Odd one out.", difficulty=2
        ),
        Question.fill_in_the_blank("The capital of France is ____.", "Paris", difficulty=3),
    ]


# =============================================================================
# SETTINGS FIXTURES
# =============================================================================


@pytest.fixture
def settings() -> DifficultySettings:
    """3x3 maze, two attempts per door, two hints, no time limit."""
    return (
        DifficultySettingsBuilder("Test")
        .maze_size(3, 3)
        .max_attempts_per_door(2)
        .max_hints(2)
        .scoring(10, 5, 5, 10)
        .allow_skipping(True)
        .time_limit(0)
        .question_difficulty_range(1, 3)
        .question_kinds(QuestionKind.TRUE_FALSE)
        .build()
    )


@pytest.fixture
def no_skip_settings() -> DifficultySettings:
    return (
        DifficultySettingsBuilder("NoSkip")
        .maze_size(3, 3)
        .max_attempts_per_door(2)
        .allow_skipping(False)
        .question_kinds(QuestionKind.TRUE_FALSE)
        .build()
    )


# =============================================================================
# SESSION FIXTURES
# =============================================================================


@pytest.fixture
def event_log():
    return EventLog(seed=7)


@pytest.fixture
def session(settings, tf_source, event_log):
    """A started session on a 3x3 maze where every door is locked."""
    game = GameSession(settings, tf_source, seed=7, event_log=event_log)
    game.start_game()
    return game


@pytest.fixture
def menu_session(settings, tf_source):
    """A session still at the main menu."""
    return GameSession(settings, tf_source, seed=7)

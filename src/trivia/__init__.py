"""
Trivia module for the Trivia Maze engine.

Question variants with answer evaluation, and the question sources the maze
draws door questions from.
"""

from src.trivia.questions import Question, normalize_text, parse_option_index
from src.trivia.question_source import (
    QuestionSource,
    QuestionSourceError,
    QuestionSupplyError,
    InMemoryQuestionSource,
    JsonQuestionSource,
    SqliteQuestionSource,
    QuestionDealer,
    DEFAULT_QUESTION_BANK,
)

__all__ = [
    "Question",
    "normalize_text",
    "parse_option_index",
    "QuestionSource",
    "QuestionSourceError",
    "QuestionSupplyError",
    "InMemoryQuestionSource",
    "JsonQuestionSource",
    "SqliteQuestionSource",
    "QuestionDealer",
    "DEFAULT_QUESTION_BANK",
]

"""
Unit tests for question sources.

Tests the in-memory, JSON and SQLite sources and the QuestionDealer from
src/trivia/question_source.py.
"""

import json
import random
import sqlite3

import pytest

from src.data_models import QuestionKind
from src.trivia.question_source import (
    DEFAULT_QUESTION_BANK,
    InMemoryQuestionSource,
    JsonQuestionSource,
    QuestionDealer,
    QuestionSourceError,
    SqliteQuestionSource,
    create_schema,
    describe_source,
    insert_question,
)
from src.trivia.questions import Question

from tests.helpers import LockedDatabaseSource


# =============================================================================
# IN-MEMORY
# =============================================================================


class TestInMemoryQuestionSource:
    """Tests for the in-memory pool."""

    def test_no_repeats(self, mixed_questions):
        """Test each question is served once."""
        source = InMemoryQuestionSource(mixed_questions)
        first = source.next(QuestionKind.TRUE_FALSE, (1, 5))
        assert first is mixed_questions[0]
        assert source.next(QuestionKind.TRUE_FALSE, (1, 5)) is None

    def test_difficulty_filter(self, mixed_questions):
        """Test questions outside the range are not served."""
        source = InMemoryQuestionSource(mixed_questions)
        assert source.next(QuestionKind.FILL_IN_THE_BLANK, (1, 2)) is None
        assert source.next(QuestionKind.FILL_IN_THE_BLANK, (3, 3)) is not None

    def test_remaining(self, mixed_questions):
        """Test pool sizes by kind and overall."""
        source = InMemoryQuestionSource(mixed_questions)
        assert source.remaining() == 3
        assert source.remaining(QuestionKind.MULTIPLE_CHOICE) == 1
        source.add(Question.true_false("Another?", True))
        assert source.remaining(QuestionKind.TRUE_FALSE) == 2

    def test_seeded_shuffle_is_reproducible(self):
        """Test two sources with the same seed serve the same order."""
        bank = [Question.true_false(f"Q{i}?", True) for i in range(10)]
        a = InMemoryQuestionSource(bank, rng=random.Random(3))
        b = InMemoryQuestionSource(bank, rng=random.Random(3))
        order_a = [a.next(QuestionKind.TRUE_FALSE, (1, 1)).prompt for _ in range(10)]
        order_b = [b.next(QuestionKind.TRUE_FALSE, (1, 1)).prompt for _ in range(10)]
        assert order_a == order_b


# =============================================================================
# JSON
# =============================================================================


class TestJsonQuestionSource:
    """Tests for the JSON question bank."""

    def test_bundled_bank(self):
        """Test the bundled bank loads every kind."""
        source = JsonQuestionSource(rng=random.Random(1))
        assert source.path == DEFAULT_QUESTION_BANK
        for kind in QuestionKind:
            assert source.remaining(kind) > 0

    def test_bundled_bank_contains_sample(self):
        """Test the "2 + 2 = 4?" sample is true."""
        source = JsonQuestionSource(shuffle=False)
        question = source.next(QuestionKind.TRUE_FALSE, (1, 1))
        assert question.prompt == "2 + 2 = 4?"
        assert question.is_correct("T")

    def test_skips_malformed_entries(self, tmp_path):
        """Test bad entries are skipped and good ones kept."""
        path = tmp_path / "bank.json"
        path.write_text(
            json.dumps(
                [
                    {"kind": "true_false", "prompt": "Good?", "answer": True},
                    {"kind": "multiple_choice", "prompt": "Bad", "options": ["a"], "answer": 5},
                    {"kind": "riddle", "prompt": "Unknown kind", "answer": "x"},
                    {"prompt": "No kind"},
                ]
            ),
            encoding="utf-8",
        )
        source = JsonQuestionSource(path)
        assert source.remaining() == 1

    def test_missing_file(self, tmp_path):
        """Test an unreadable bank raises QuestionSourceError."""
        with pytest.raises(QuestionSourceError):
            JsonQuestionSource(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        """Test a corrupt bank raises QuestionSourceError."""
        path = tmp_path / "bank.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(QuestionSourceError):
            JsonQuestionSource(path)


# =============================================================================
# SQLITE
# =============================================================================


@pytest.fixture
def trivia_db(tmp_path):
    """A SQLite trivia database with one question of each type."""
    db_path = tmp_path / "trivia.db"
    conn = sqlite3.connect(str(db_path))
    try:
        create_schema(conn)
        insert_question(conn, "TF", "The earth is round.", "True", hints=["Look at a globe."])
        insert_question(
            conn, "MC", "Red planet?", "C", options=["Venus", "Earth", "Mars", "Jupiter"], difficulty=2
        )
        insert_question(conn, "FB", "Capital of Spain?", "Madrid", hints=["M...", "Second hint"])
        insert_question(conn, "ZZ", "Unknown type", "x")
    finally:
        conn.close()
    return db_path


class TestSqliteQuestionSource:
    """Tests for the SQLite-backed source."""

    def test_loads_known_types(self, trivia_db):
        """Test TF/MC/FB rows load and unknown types are skipped."""
        source = SqliteQuestionSource(trivia_db)
        assert source.available
        assert source.remaining() == 3

    def test_row_conversion(self, trivia_db):
        """Test answers, options and hints are mapped."""
        source = SqliteQuestionSource(trivia_db, shuffle=False)
        tf = source.next(QuestionKind.TRUE_FALSE, (1, 3))
        assert tf.is_correct("t")
        assert tf.hint == "Look at a globe."

        mc = source.next(QuestionKind.MULTIPLE_CHOICE, (1, 3))
        assert mc.correct_index == 2
        assert mc.cheat_token() == "Mars"
        assert mc.difficulty == 2

        fb = source.next(QuestionKind.FILL_IN_THE_BLANK, (1, 3))
        assert fb.is_correct("madrid")
        assert fb.hint == "M..."

    def test_missing_database(self, tmp_path):
        """Test a missing database leaves an empty, unavailable source."""
        source = SqliteQuestionSource(tmp_path / "nope.db")
        assert not source.available
        assert source.next(QuestionKind.TRUE_FALSE, (1, 3)) is None

    def test_database_without_tables(self, tmp_path):
        """Test a database lacking the schema degrades to no questions."""
        db_path = tmp_path / "empty.db"
        sqlite3.connect(str(db_path)).close()
        source = SqliteQuestionSource(db_path)
        assert not source.available
        assert source.remaining() == 0


# =============================================================================
# DEALER
# =============================================================================


class FailingSource:
    """A source whose every read fails."""

    def next(self, kind, difficulty_range):
        raise QuestionSourceError("database locked")


class TestQuestionDealer:
    """Tests for the dealer between sources and the maze builder."""

    def test_falls_back_to_other_kinds(self, mixed_questions):
        """Test the dealer drains every kind before giving up."""
        dealer = QuestionDealer(InMemoryQuestionSource(mixed_questions), rng=random.Random(5))
        dealt = [dealer() for _ in range(3)]
        assert {q.kind for q in dealt} == set(QuestionKind)
        assert dealer() is None

    def test_restricted_kinds(self, mixed_questions):
        """Test only the configured kinds are requested."""
        dealer = QuestionDealer(
            InMemoryQuestionSource(mixed_questions), kinds=[QuestionKind.FILL_IN_THE_BLANK]
        )
        assert dealer().kind == QuestionKind.FILL_IN_THE_BLANK
        assert dealer() is None

    def test_source_failure_is_absorbed(self):
        """Test source errors are counted and surface as None."""
        dealer = QuestionDealer(FailingSource())
        assert dealer.deal() is None
        assert dealer.failures == len(QuestionKind)

    def test_unexpected_source_error_is_absorbed(self):
        """Test errors other than QuestionSourceError also surface as None."""
        source = LockedDatabaseSource()
        dealer = QuestionDealer(source)
        assert dealer.deal() is None
        assert dealer.failures == source.calls == len(QuestionKind)

    def test_no_source(self):
        """Test a dealer without a source deals nothing."""
        assert QuestionDealer(None).deal() is None

    def test_describe_source(self, trivia_db):
        """Test source labels for status output."""
        assert describe_source(None) == "none"
        assert describe_source(SqliteQuestionSource(trivia_db)).startswith("sqlite:")
        assert describe_source(InMemoryQuestionSource()) == "InMemoryQuestionSource"

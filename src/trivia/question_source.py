"""
Question sources for the Trivia Maze engine.

The engine consumes questions through the narrow QuestionSource protocol:

    next(kind, difficulty_range) -> Question | None

None means "no question available" and is never an error. Concrete sources:
- InMemoryQuestionSource: a shuffled, non-repeating pool per kind
- JsonQuestionSource: an in-memory pool loaded from a JSON question bank
- SqliteQuestionSource: the questions/hints tables of a SQLite trivia database

QuestionDealer sits between a source and the maze builder, choosing which
kind to ask for and absorbing source failures.
"""

from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, Sequence
import json
import logging
import random
import sqlite3

from src.data_models import QuestionKind
from src.trivia.questions import Question

logger = logging.getLogger(__name__)

DEFAULT_QUESTION_BANK = Path(__file__).parent / "data" / "questions.json"


class QuestionSourceError(Exception):
    """Raised when a question source cannot be read."""

    pass


class QuestionSupplyError(RuntimeError):
    """Raised when a maze is built fail-fast and a door cannot get a question."""

    pass


class QuestionSource(Protocol):
    """Supplies questions by kind and difficulty range."""

    def next(
        self, kind: QuestionKind, difficulty_range: tuple[int, int]
    ) -> Optional[Question]:
        ...


def _in_range(question: Question, difficulty_range: tuple[int, int]) -> bool:
    low, high = difficulty_range
    return low <= question.difficulty <= high


class InMemoryQuestionSource:
    """
    Serves questions from memory without repeats.

    Each kind has its own pool, shuffled once with the supplied RNG. A served
    question is removed from its pool.
    """

    def __init__(
        self,
        questions: Iterable[Question] = (),
        rng: Optional[random.Random] = None,
        shuffle: bool = True,
    ):
        self._rng = rng or random.Random()
        self._pools: dict[QuestionKind, list[Question]] = {kind: [] for kind in QuestionKind}
        for question in questions:
            self._pools[question.kind].append(question)
        if shuffle:
            for pool in self._pools.values():
                self._rng.shuffle(pool)

    def add(self, question: Question) -> None:
        self._pools[question.kind].append(question)

    def remaining(self, kind: Optional[QuestionKind] = None) -> int:
        if kind is not None:
            return len(self._pools[kind])
        return sum(len(pool) for pool in self._pools.values())

    def next(
        self, kind: QuestionKind, difficulty_range: tuple[int, int]
    ) -> Optional[Question]:
        pool = self._pools[kind]
        for index, question in enumerate(pool):
            if _in_range(question, difficulty_range):
                return pool.pop(index)
        return None


class JsonQuestionSource(InMemoryQuestionSource):
    """
    In-memory source loaded from a JSON question bank.

    The file holds either a list of question dictionaries or an object with a
    "questions" list; see Question.from_dict for the entry format.
    """

    def __init__(
        self,
        path: Path = DEFAULT_QUESTION_BANK,
        rng: Optional[random.Random] = None,
        shuffle: bool = True,
    ):
        self.path = Path(path)
        super().__init__(self._load(self.path), rng=rng, shuffle=shuffle)
        logger.info(f"Loaded {self.remaining()} questions from {self.path}")

    @staticmethod
    def _load(path: Path) -> list[Question]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise QuestionSourceError(f"Cannot read question bank {path}: {e}") from e

        entries = data.get("questions", []) if isinstance(data, dict) else data
        questions = []
        for entry in entries:
            try:
                questions.append(Question.from_dict(entry))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed question in {path}: {e}")
        return questions


# =============================================================================
# SQLITE SOURCE
# =============================================================================

# Type codes used by the trivia database
_SQL_TYPE_CODES = {
    "TF": QuestionKind.TRUE_FALSE,
    "MC": QuestionKind.MULTIPLE_CHOICE,
    "FB": QuestionKind.FILL_IN_THE_BLANK,
}

SCHEMA = """
    CREATE TABLE IF NOT EXISTS questions (
        id INTEGER PRIMARY KEY,
        type TEXT NOT NULL,
        question TEXT NOT NULL,
        correct_answer TEXT NOT NULL,
        option_a TEXT,
        option_b TEXT,
        option_c TEXT,
        option_d TEXT,
        difficulty INTEGER NOT NULL DEFAULT 1
    );
    CREATE TABLE IF NOT EXISTS hints (
        id INTEGER PRIMARY KEY,
        question_id INTEGER NOT NULL,
        hint_text TEXT NOT NULL,
        FOREIGN KEY (question_id) REFERENCES questions(id)
    );
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the questions and hints tables if missing."""
    conn.executescript(SCHEMA)
    conn.commit()


def insert_question(
    conn: sqlite3.Connection,
    type_code: str,
    prompt: str,
    correct_answer: str,
    options: Sequence[str] = (),
    difficulty: int = 1,
    hints: Sequence[str] = (),
) -> int:
    """Insert one question (and its hints) and return its row id."""
    padded = list(options) + [None] * (4 - len(options))
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO questions
        (type, question, correct_answer, option_a, option_b, option_c, option_d, difficulty)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (type_code, prompt, correct_answer, *padded[:4], difficulty),
    )
    question_id = cursor.lastrowid
    for hint_text in hints:
        cursor.execute(
            "INSERT INTO hints (question_id, hint_text) VALUES (?, ?)",
            (question_id, hint_text),
        )
    conn.commit()
    return question_id


class SqliteQuestionSource(InMemoryQuestionSource):
    """
    Source backed by a SQLite trivia database.

    All questions are preloaded at construction. Types are "TF", "MC" and
    "FB"; multiple-choice answers are stored as option letters (A-D) and the
    first hint row of a question becomes its hint. An unreadable database is
    logged and leaves the source empty, so every request yields None.
    """

    def __init__(
        self,
        db_path: Path,
        rng: Optional[random.Random] = None,
        shuffle: bool = True,
    ):
        self.db_path = Path(db_path)
        self.available = True
        try:
            questions = self._preload()
        except QuestionSourceError as e:
            logger.error(f"Error preloading questions: {e}")
            self.available = False
            questions = []
        super().__init__(questions, rng=rng, shuffle=shuffle)

    def _preload(self) -> list[Question]:
        if not self.db_path.exists():
            raise QuestionSourceError(f"Database not found: {self.db_path}")
        try:
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.row_factory = sqlite3.Row
                rows = conn.execute("SELECT * FROM questions").fetchall()
                hints = self._load_hints(conn)
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise QuestionSourceError(str(e)) from e

        questions = []
        for row in rows:
            question = self._row_to_question(row, hints.get(row["id"]))
            if question is not None:
                questions.append(question)
        logger.info(f"Preloaded {len(questions)} questions from {self.db_path}")
        return questions

    @staticmethod
    def _load_hints(conn: sqlite3.Connection) -> dict[int, str]:
        hints: dict[int, str] = {}
        for row in conn.execute("SELECT question_id, hint_text FROM hints ORDER BY id"):
            hints.setdefault(row["question_id"], row["hint_text"])
        return hints

    @staticmethod
    def _row_to_question(row: sqlite3.Row, hint: Optional[str]) -> Optional[Question]:
        type_code = (row["type"] or "").strip().upper()
        kind = _SQL_TYPE_CODES.get(type_code)
        if kind is None:
            logger.warning(f"Skipping question {row['id']}: unknown type {type_code!r}")
            return None

        keys = row.keys()
        difficulty = row["difficulty"] if "difficulty" in keys and row["difficulty"] else 1
        question_id = str(row["id"])
        correct = (row["correct_answer"] or "").strip()
        try:
            if kind == QuestionKind.TRUE_FALSE:
                return Question.true_false(
                    row["question"], correct.lower() == "true", hint, difficulty, question_id
                )
            if kind == QuestionKind.MULTIPLE_CHOICE:
                options = [
                    row[column]
                    for column in ("option_a", "option_b", "option_c", "option_d")
                    if row[column] is not None
                ]
                correct_index = ord(correct[:1].upper()) - ord("A") if correct else -1
                return Question.multiple_choice(
                    row["question"], options, correct_index, hint, difficulty, question_id
                )
            return Question.fill_in_the_blank(row["question"], correct, hint, difficulty, question_id)
        except ValueError as e:
            logger.warning(f"Skipping question {row['id']}: {e}")
            return None


# =============================================================================
# DEALER
# =============================================================================


class QuestionDealer:
    """
    Chooses question kinds and pulls questions from a source.

    Called once per door while a maze is built (and again for doors whose
    question is deferred). A random kind is tried first, then the remaining
    kinds in random order. Source failures are logged and reported as None.
    """

    def __init__(
        self,
        source: Optional[QuestionSource],
        kinds: Sequence[QuestionKind] = tuple(QuestionKind),
        difficulty_range: tuple[int, int] = (1, 3),
        rng: Optional[random.Random] = None,
    ):
        self.source = source
        self.kinds = list(kinds) or list(QuestionKind)
        self.difficulty_range = difficulty_range
        self._rng = rng or random.Random()
        self.failures = 0

    def __call__(self) -> Optional[Question]:
        return self.deal()

    def deal(self) -> Optional[Question]:
        if self.source is None:
            return None

        kinds = list(self.kinds)
        self._rng.shuffle(kinds)
        for kind in kinds:
            try:
                question = self.source.next(kind, self.difficulty_range)
            except Exception as e:
                self.failures += 1
                logger.warning(f"Question source failed for {kind.value}: {e}")
                continue
            if question is not None:
                return question
        logger.debug("No question available from source")
        return None


def describe_source(source: Any) -> str:
    """Short label for logs and status output."""
    if source is None:
        return "none"
    if isinstance(source, SqliteQuestionSource):
        return f"sqlite:{source.db_path}"
    if isinstance(source, JsonQuestionSource):
        return f"json:{source.path}"
    return type(source).__name__

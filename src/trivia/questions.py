"""
Trivia questions and answer evaluation.

A Question is an immutable tagged variant: its QuestionKind selects one
evaluator and one cheat-token formatter from the tables at the bottom of this
module. Answer evaluation never raises for bad player input; anything that
cannot be parsed for the question's kind is simply a wrong answer.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence
import logging

from src.data_models import QuestionKind

logger = logging.getLogger(__name__)

_TRUE_TOKENS = {"true", "t"}
_FALSE_TOKENS = {"false", "f"}


def normalize_text(text: Optional[str]) -> str:
    """Lower-case, trim and collapse internal whitespace."""
    if text is None:
        return ""
    return " ".join(text.split()).lower()


@dataclass(frozen=True)
class Question:
    """
    A trivia question attached to a door.

    Attributes:
        kind: Which evaluator applies
        prompt: Text shown to the player
        correct_answer: "true"/"false", the option index as a string, or the
            literal fill-in answer, depending on kind
        options: Answer options (multiple choice only)
        hint: Optional hint text
        difficulty: Difficulty rating used by question sources
        question_id: Identifier from the originating question bank, if any
    """

    kind: QuestionKind
    prompt: str
    correct_answer: str
    options: tuple[str, ...] = ()
    hint: Optional[str] = None
    difficulty: int = 1
    question_id: Optional[str] = None

    def __post_init__(self):
        if not self.prompt or not self.prompt.strip():
            raise ValueError("Question prompt cannot be empty")
        if self.kind == QuestionKind.MULTIPLE_CHOICE:
            if not self.options:
                raise ValueError("Multiple choice question needs at least one option")
            index = int(self.correct_answer)
            if index < 0 or index >= len(self.options):
                raise ValueError(
                    f"Correct index {index} out of range for {len(self.options)} options"
                )
        elif self.kind == QuestionKind.TRUE_FALSE:
            if self.correct_answer not in ("true", "false"):
                raise ValueError(f"True/false answer must be 'true' or 'false', got {self.correct_answer!r}")
        elif not normalize_text(self.correct_answer):
            raise ValueError("Fill-in-the-blank answer cannot be empty")

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def true_false(
        cls,
        prompt: str,
        answer: bool,
        hint: Optional[str] = None,
        difficulty: int = 1,
        question_id: Optional[str] = None,
    ) -> "Question":
        return cls(
            kind=QuestionKind.TRUE_FALSE,
            prompt=prompt,
            correct_answer="true" if answer else "false",
            hint=hint,
            difficulty=difficulty,
            question_id=question_id,
        )

    @classmethod
    def multiple_choice(
        cls,
        prompt: str,
        options: Sequence[str],
        correct_index: int,
        hint: Optional[str] = None,
        difficulty: int = 1,
        question_id: Optional[str] = None,
    ) -> "Question":
        return cls(
            kind=QuestionKind.MULTIPLE_CHOICE,
            prompt=prompt,
            correct_answer=str(correct_index),
            options=tuple(options),
            hint=hint,
            difficulty=difficulty,
            question_id=question_id,
        )

    @classmethod
    def fill_in_the_blank(
        cls,
        prompt: str,
        answer: str,
        hint: Optional[str] = None,
        difficulty: int = 1,
        question_id: Optional[str] = None,
    ) -> "Question":
        return cls(
            kind=QuestionKind.FILL_IN_THE_BLANK,
            prompt=prompt,
            correct_answer=answer.strip(),
            hint=hint,
            difficulty=difficulty,
            question_id=question_id,
        )

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    @property
    def correct_index(self) -> Optional[int]:
        if self.kind != QuestionKind.MULTIPLE_CHOICE:
            return None
        return int(self.correct_answer)

    @property
    def has_hint(self) -> bool:
        return bool(self.hint)

    def is_correct(self, raw_answer: Optional[str]) -> bool:
        """Check a raw player answer. Never raises for malformed input."""
        return _EVALUATORS[self.kind](self, raw_answer)

    def cheat_token(self) -> str:
        """Terse form of the correct answer for the reveal feature."""
        return _CHEAT_TOKENS[self.kind](self)

    def correct_answer_text(self) -> str:
        """Human-readable correct answer."""
        if self.kind == QuestionKind.TRUE_FALSE:
            return "True" if self.correct_answer == "true" else "False"
        if self.kind == QuestionKind.MULTIPLE_CHOICE:
            return self.options[self.correct_index]
        return self.correct_answer

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "prompt": self.prompt,
            "correct_answer": self.correct_answer,
            "options": list(self.options),
            "hint": self.hint,
            "difficulty": self.difficulty,
            "question_id": self.question_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        """
        Create from a dictionary.

        Accepts "answer" as an alias of "correct_answer"; true/false answers
        may be booleans and multiple-choice answers may be ints.
        """
        kind = QuestionKind(data["kind"])
        answer = data.get("correct_answer", data.get("answer"))
        if kind == QuestionKind.TRUE_FALSE:
            if isinstance(answer, str):
                answer = answer.strip().lower() in _TRUE_TOKENS
            return cls.true_false(
                data["prompt"],
                bool(answer),
                hint=data.get("hint"),
                difficulty=data.get("difficulty", 1),
                question_id=data.get("question_id"),
            )
        if kind == QuestionKind.MULTIPLE_CHOICE:
            return cls.multiple_choice(
                data["prompt"],
                data.get("options", []),
                int(answer),
                hint=data.get("hint"),
                difficulty=data.get("difficulty", 1),
                question_id=data.get("question_id"),
            )
        return cls.fill_in_the_blank(
            data["prompt"],
            str(answer),
            hint=data.get("hint"),
            difficulty=data.get("difficulty", 1),
            question_id=data.get("question_id"),
        )


# =============================================================================
# EVALUATORS (one per kind)
# =============================================================================


def _check_true_false(question: Question, raw_answer: Optional[str]) -> bool:
    token = normalize_text(raw_answer)
    if token in _TRUE_TOKENS:
        parsed = "true"
    elif token in _FALSE_TOKENS:
        parsed = "false"
    else:
        return False
    return parsed == question.correct_answer


def parse_option_index(raw_answer: Optional[str], option_count: int) -> Optional[int]:
    """
    Parse a multiple-choice answer into a 0-based option index.

    Accepts an integer index or a single option letter (A, B, ...).
    Returns None for anything unparseable or out of range.
    """
    token = (raw_answer or "").strip()
    if not token:
        return None
    try:
        index = int(token)
    except ValueError:
        if len(token) != 1 or not token.isalpha():
            return None
        index = ord(token.upper()) - ord("A")
    if index < 0 or index >= option_count:
        return None
    return index


def _check_multiple_choice(question: Question, raw_answer: Optional[str]) -> bool:
    index = parse_option_index(raw_answer, len(question.options))
    return index is not None and index == question.correct_index


def _check_fill_in_the_blank(question: Question, raw_answer: Optional[str]) -> bool:
    given = normalize_text(raw_answer)
    return bool(given) and given == normalize_text(question.correct_answer)


_EVALUATORS: dict[QuestionKind, Callable[[Question, Optional[str]], bool]] = {
    QuestionKind.TRUE_FALSE: _check_true_false,
    QuestionKind.MULTIPLE_CHOICE: _check_multiple_choice,
    QuestionKind.FILL_IN_THE_BLANK: _check_fill_in_the_blank,
}

_CHEAT_TOKENS: dict[QuestionKind, Callable[[Question], str]] = {
    QuestionKind.TRUE_FALSE: lambda q: "T" if q.correct_answer == "true" else "F",
    QuestionKind.MULTIPLE_CHOICE: lambda q: q.options[q.correct_index],
    QuestionKind.FILL_IN_THE_BLANK: lambda q: q.correct_answer,
}

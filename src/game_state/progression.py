"""
Scoring, hint budget and skip rules.

ProgressionRules applies a DifficultySettings to a Player. It only does the
bookkeeping; GameSession decides when each rule applies.
"""

import logging

from src.data_models import DifficultySettings, Player

logger = logging.getLogger(__name__)


class ProgressionRules:
    """
    Score and hint accounting for one game.

    Scores are not clamped; enough penalties drive a score below zero.
    """

    def __init__(self, settings: DifficultySettings, player: Player):
        self.settings = settings
        self.player = player
        self.hints_used = 0

    @property
    def hints_left(self) -> int:
        return max(0, self.settings.max_hints - self.hints_used)

    def can_use_hint(self) -> bool:
        return self.hints_left > 0

    def can_skip(self) -> bool:
        return self.settings.allow_skipping

    def award_correct(self) -> int:
        """Credit a correct answer. Returns the points awarded."""
        points = self.settings.correct_answer_points
        self.player.add_score(points)
        self.player.increment_questions_answered()
        logger.debug(f"Correct answer: +{points} (score {self.player.score})")
        return points

    def penalize_wrong(self) -> int:
        """Charge a wrong answer. Returns the points deducted."""
        penalty = self.settings.wrong_answer_penalty
        self.player.add_score(-penalty)
        logger.debug(f"Wrong answer: -{penalty} (score {self.player.score})")
        return penalty

    def charge_hint(self) -> bool:
        """
        Spend one hint from the budget and apply the hint penalty.

        Returns:
            False (and charges nothing) if the budget is exhausted
        """
        if not self.can_use_hint():
            return False
        self.hints_used += 1
        self.player.add_score(-self.settings.hint_penalty)
        logger.debug(f"Hint used ({self.hints_left} left)")
        return True

    def charge_skip(self) -> int:
        penalty = self.settings.skip_question_penalty
        self.player.add_score(-penalty)
        logger.debug(f"Question skipped: -{penalty} (score {self.player.score})")
        return penalty

    def reset(self) -> None:
        self.hints_used = 0

"""
Unit tests for progression rules.

Tests scoring, the hint budget and skip permission from
src/game_state/progression.py.
"""

import pytest

from src.data_models import DifficultySettingsBuilder, Player
from src.game_state.progression import ProgressionRules


@pytest.fixture
def rules(settings):
    return ProgressionRules(settings, Player())


class TestScoring:
    """Tests for score changes."""

    def test_correct_then_wrong(self, rules):
        """Test 0 -> 10 after a correct answer, then 5 after a wrong one."""
        assert rules.player.score == 0
        rules.award_correct()
        assert rules.player.score == 10
        rules.penalize_wrong()
        assert rules.player.score == 5

    def test_only_correct_answers_count(self, rules):
        """Test wrong answers do not count as answered questions."""
        rules.penalize_wrong()
        rules.award_correct()
        assert rules.player.questions_answered == 1

    def test_score_goes_negative(self, rules):
        """Test penalties are not floored at zero."""
        rules.charge_skip()
        assert rules.player.score == -10


class TestHintBudget:
    """Tests for hint accounting."""

    def test_budget_exhausts(self, rules):
        """Test two hints then none."""
        assert rules.hints_left == 2
        assert rules.charge_hint()
        assert rules.charge_hint()
        assert not rules.can_use_hint()
        assert not rules.charge_hint()
        assert rules.player.score == -10

    def test_zero_hint_budget(self):
        """Test max_hints of zero means no hints at all."""
        settings = DifficultySettingsBuilder("x").max_hints(0).build()
        rules = ProgressionRules(settings, Player())
        assert not rules.charge_hint()
        assert rules.player.score == 0

    def test_reset(self, rules):
        """Test reset restores the budget."""
        rules.charge_hint()
        rules.reset()
        assert rules.hints_left == 2


class TestSkipping:
    """Tests for skip permission."""

    def test_can_skip_follows_settings(self, settings, no_skip_settings):
        """Test can_skip mirrors allow_skipping."""
        assert ProgressionRules(settings, Player()).can_skip()
        assert not ProgressionRules(no_skip_settings, Player()).can_skip()

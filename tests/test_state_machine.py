"""
Unit tests for the session state machine.

Tests state transitions, validation and hooks from
src/game_state/state_machine.py.
"""

import pytest
from src.game_state.state_machine import (
    InvalidTransitionError,
    SessionState,
    StateMachine,
    StateTransition,
    VALID_TRANSITIONS,
)


@pytest.fixture
def state_machine():
    return StateMachine()


class TestStateMachineInitialization:
    """Tests for state machine initialization."""

    def test_default_initial_state(self):
        """Test default initial state is MAIN_MENU."""
        assert StateMachine().current_state == SessionState.MAIN_MENU

    def test_custom_initial_state(self):
        """Test custom initial state."""
        sm = StateMachine(SessionState.PLAYING)
        assert sm.current_state == SessionState.PLAYING

    def test_initial_state_history(self):
        """Test that the initial state is recorded."""
        history = StateMachine().state_history
        assert len(history) == 1
        assert history[0].trigger == "initialization"
        assert history[0].to_state == SessionState.MAIN_MENU.value


class TestStateTransitions:
    """Tests for state transitions."""

    def test_start_and_pause(self, state_machine):
        """Test MAIN_MENU -> PLAYING -> PAUSED -> PLAYING."""
        assert state_machine.transition("start_game") == SessionState.PLAYING
        assert state_machine.transition("pause") == SessionState.PAUSED
        assert state_machine.transition("resume") == SessionState.PLAYING
        assert state_machine.previous_state == SessionState.PAUSED

    def test_question_cycle(self, state_machine):
        """Test the three ways out of AWAITING_ANSWER back to PLAYING."""
        state_machine.transition("start_game")
        for trigger in ("door_opened", "door_blocked", "question_dismissed"):
            state_machine.transition("question_presented")
            assert state_machine.current_state == SessionState.AWAITING_ANSWER
            assert state_machine.transition(trigger) == SessionState.PLAYING

    @pytest.mark.parametrize("from_trigger", [[], ["question_presented"]])
    def test_victory(self, state_machine, from_trigger):
        """Test the exit can be reached from PLAYING or AWAITING_ANSWER."""
        state_machine.transition("start_game")
        for trigger in from_trigger:
            state_machine.transition(trigger)
        assert state_machine.transition("exit_reached") == SessionState.VICTORY
        assert state_machine.is_terminal()

    def test_game_over_and_restart(self, state_machine):
        """Test losing then starting again."""
        state_machine.transition("start_game")
        state_machine.transition("question_presented")
        assert state_machine.transition("exit_unreachable") == SessionState.GAME_OVER
        assert state_machine.transition("start_game") == SessionState.PLAYING

    def test_return_to_menu(self, state_machine):
        """Test leaving a paused game."""
        state_machine.transition("start_game")
        state_machine.transition("pause")
        assert state_machine.transition("return_to_menu") == SessionState.MAIN_MENU

    def test_history_records_context(self, state_machine):
        """Test transitions are recorded with their context."""
        state_machine.transition("start_game", {"difficulty": "Easy"})
        last = state_machine.state_history[-1]
        assert last.from_state == "main_menu"
        assert last.to_state == "playing"
        assert last.context == {"difficulty": "Easy"}


class TestInvalidTransitions:
    """Tests for rejected triggers."""

    def test_victory_is_latched(self, state_machine):
        """Test there is no way from VICTORY to GAME_OVER."""
        state_machine.transition("start_game")
        state_machine.transition("exit_reached")
        assert not state_machine.can_transition("exit_unreachable")
        with pytest.raises(InvalidTransitionError):
            state_machine.transition("exit_unreachable")
        assert state_machine.current_state == SessionState.VICTORY

    def test_no_transition_edge_from_victory_to_game_over(self):
        """Test the table itself has no VICTORY -> GAME_OVER edge."""
        assert not any(
            t.from_state == SessionState.VICTORY and t.to_state == SessionState.GAME_OVER
            for t in VALID_TRANSITIONS
        )

    def test_cannot_pause_while_answering(self, state_machine):
        """Test pause is only valid from PLAYING."""
        state_machine.transition("start_game")
        state_machine.transition("question_presented")
        with pytest.raises(InvalidTransitionError):
            state_machine.transition("pause")

    def test_cannot_start_twice(self, state_machine):
        """Test start_game is rejected mid-game."""
        state_machine.transition("start_game")
        with pytest.raises(InvalidTransitionError, match="Valid triggers"):
            state_machine.transition("start_game")

    def test_unknown_trigger(self, state_machine):
        """Test an unknown trigger is rejected without changing state."""
        with pytest.raises(InvalidTransitionError):
            state_machine.transition("teleport")
        assert state_machine.current_state == SessionState.MAIN_MENU

    def test_cannot_menu_from_playing(self, state_machine):
        """Test the menu is reached only via pause or a finished game."""
        state_machine.transition("start_game")
        assert not state_machine.can_transition("return_to_menu")


class TestQueriesAndHooks:
    """Tests for trigger queries and hooks."""

    def test_valid_triggers_from_playing(self, state_machine):
        """Test the triggers offered while playing."""
        state_machine.transition("start_game")
        assert set(state_machine.get_valid_triggers()) == {
            "pause",
            "question_presented",
            "exit_reached",
            "exit_unreachable",
        }

    def test_valid_transitions_objects(self, state_machine):
        """Test get_valid_transitions returns StateTransition entries."""
        transitions = state_machine.get_valid_transitions()
        assert all(isinstance(t, StateTransition) for t in transitions)
        assert [t.trigger for t in transitions] == ["start_game"]

    def test_hooks_called_in_order(self, state_machine):
        """Test pre hooks see the old state and post hooks the new one."""
        calls = []
        state_machine.register_pre_hook(
            lambda old, new, trigger, ctx: calls.append(("pre", state_machine.current_state))
        )
        state_machine.register_post_hook(
            lambda old, new, trigger, ctx: calls.append(("post", state_machine.current_state))
        )
        state_machine.transition("start_game")
        assert calls == [("pre", SessionState.MAIN_MENU), ("post", SessionState.PLAYING)]

    def test_state_info(self, state_machine):
        """Test the debug snapshot."""
        info = state_machine.get_state_info()
        assert info["current_state"] == "main_menu"
        assert info["previous_state"] is None
        assert info["valid_triggers"] == ["start_game"]
        assert info["transition_count"] == 1

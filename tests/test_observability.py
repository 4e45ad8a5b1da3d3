"""
Tests for the session event log.

Tests EventLog recording, filtering, subscribers and serialization from
src/observability/run_log.py.
"""

import json

import pytest

from src.observability.run_log import EventLog, EventType, LogEvent, TransitionEvent


@pytest.fixture
def log():
    return EventLog(seed=42)


class TestEventLog:
    """Tests for the EventLog class."""

    def test_logs_are_independent(self):
        """Each EventLog is its own log, not a shared singleton."""
        a, b = EventLog(), EventLog()
        a.log(EventType.MOVE_SUCCEEDED, "moved")
        assert a is not b
        assert b.get_event_count() == 0

    def test_sequence_numbers(self, log):
        """Test events are numbered in order from 1."""
        first = log.log(EventType.MOVE_SUCCEEDED, "east")
        second = log.log(EventType.MOVE_BLOCKED, "north")
        assert (first.sequence_number, second.sequence_number) == (1, 2)

    def test_log_transition_event(self, log):
        """Test logging a state transition."""
        event = log.log_transition("playing", "awaiting_answer", "question_presented", {"door": "0,0-0,1"})
        assert isinstance(event, TransitionEvent)
        assert event.event_type == EventType.STATE_CHANGED
        assert event.trigger == "question_presented"
        assert log.get_transitions() == [event]

    def test_get_events_filters(self, log):
        """Test filtering by type and by sequence."""
        log.log(EventType.MOVE_SUCCEEDED)
        log.log(EventType.DOOR_OPENED)
        log.log(EventType.MOVE_SUCCEEDED)
        assert len(log.get_events(EventType.MOVE_SUCCEEDED)) == 2
        assert [e.sequence_number for e in log.get_events(since_sequence=1)] == [2, 3]

    def test_pause_and_resume(self, log):
        """Test nothing is recorded while paused."""
        log.pause()
        assert log.log(EventType.HINT_GRANTED) is None
        assert log.is_paused()
        log.resume()
        log.log(EventType.HINT_GRANTED)
        assert log.get_event_count() == 1

    def test_subscribe_and_unsubscribe(self, log):
        """Test subscribers get events until they unsubscribe."""
        received = []
        log.subscribe(received.append)
        log.log(EventType.DOOR_OPENED)
        log.unsubscribe(received.append)
        log.log(EventType.DOOR_BLOCKED)
        assert [e.event_type for e in received] == [EventType.DOOR_OPENED]

    def test_subscriber_error_is_contained(self, log):
        """Test a failing subscriber does not stop later subscribers."""
        received = []

        def broken(event):
            raise ValueError("boom")

        log.subscribe(broken)
        log.subscribe(received.append)
        log.log(EventType.SESSION_WON)
        assert len(received) == 1
        assert log.get_event_count() == 1

    def test_reset(self, log):
        """Test reset clears events and sequence numbers."""
        log.log(EventType.MOVE_SUCCEEDED)
        log.reset()
        assert log.get_event_count() == 0
        assert log.log(EventType.MOVE_SUCCEEDED).sequence_number == 1


class TestEventLogExport:
    """Tests for summaries and serialization."""

    def test_summary(self, log):
        """Test counts per event type."""
        log.log(EventType.MOVE_SUCCEEDED)
        log.log(EventType.MOVE_SUCCEEDED)
        log.log_transition("playing", "victory", "exit_reached")
        summary = log.get_summary()
        assert summary["seed"] == 42
        assert summary["total_events"] == 3
        assert summary["by_type"] == {"move_succeeded": 2, "state_changed": 1}

    def test_to_json(self, log):
        """Test JSON export."""
        log.log(EventType.HINT_GRANTED, "Think of a honeycomb.", {"hints_left": 1})
        data = json.loads(log.to_json())
        assert data["events"][0]["event_type"] == "hint_granted"
        assert data["events"][0]["context"] == {"hints_left": 1}

    def test_save_and_load(self, log, tmp_path):
        """Test a saved log loads back with the same events."""
        log.log(EventType.MOVE_SUCCEEDED, "east")
        log.log_transition("playing", "game_over", "exit_unreachable")
        path = tmp_path / "events.json"
        log.save(str(path))

        loaded = EventLog.load(str(path))
        assert loaded.seed == 42
        assert loaded.event_types() == [EventType.MOVE_SUCCEEDED, EventType.STATE_CHANGED]
        assert loaded.get_transitions()[0].to_state == "game_over"

    def test_format_log(self, log):
        """Test the human-readable rendering."""
        log.log(EventType.DOOR_BLOCKED, "Door 0,0-0,1 is permanently blocked")
        log.log_transition("awaiting_answer", "playing", "door_blocked")
        text = log.format_log()
        assert "=== Event Log ===" in text
        assert "[1] DOOR_BLOCKED: Door 0,0-0,1 is permanently blocked" in text
        assert "[2] STATE awaiting_answer -> playing (trigger: door_blocked)" in text

    def test_format_log_limits(self, log):
        """Test filtering and truncation in format_log."""
        for _ in range(5):
            log.log(EventType.MOVE_SUCCEEDED)
        log.log(EventType.SESSION_WON)
        text = log.format_log(event_types=[EventType.MOVE_SUCCEEDED], max_events=2)
        assert "SESSION_WON" not in text
        assert text.count("MOVE_SUCCEEDED") == 2

    def test_event_str_without_message(self):
        """Test events without a message render just the label."""
        assert str(LogEvent(event_type=EventType.SESSION_LOST, sequence_number=3)) == "[3] SESSION_LOST"

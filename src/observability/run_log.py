"""
Event log for a game session.

Captures every gameplay event (state changes, moves, answers, door changes,
hints) in order, with sequence numbers, and pushes each one synchronously to
subscribers. Each GameSession owns its own EventLog.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional
from enum import Enum
import json
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events that can be logged."""

    STATE_CHANGED = "state_changed"
    MOVE_SUCCEEDED = "move_succeeded"
    MOVE_BLOCKED = "move_blocked"
    ANSWER_PENDING = "answer_pending"
    ANSWER_INCORRECT = "answer_incorrect"
    DOOR_OPENED = "door_opened"
    DOOR_BLOCKED = "door_blocked"
    HINT_GRANTED = "hint_granted"
    QUESTION_UNAVAILABLE = "question_unavailable"
    SESSION_WON = "session_won"
    SESSION_LOST = "session_lost"


@dataclass
class LogEvent:
    """A logged session event."""

    event_type: EventType = EventType.STATE_CHANGED
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    message: str = ""
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "message": self.message,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        return cls(
            event_type=EventType(data["event_type"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            message=data.get("message", ""),
            context=data.get("context", {}),
        )

    def __str__(self) -> str:
        label = self.event_type.value.upper()
        if self.message:
            return f"[{self.sequence_number}] {label}: {self.message}"
        return f"[{self.sequence_number}] {label}"


@dataclass
class TransitionEvent(LogEvent):
    """A state machine transition event."""

    from_state: str = ""
    to_state: str = ""
    trigger: str = ""

    def __post_init__(self):
        self.event_type = EventType.STATE_CHANGED

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "from_state": self.from_state,
                "to_state": self.to_state,
                "trigger": self.trigger,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransitionEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            message=data.get("message", ""),
            context=data.get("context", {}),
            from_state=data.get("from_state", ""),
            to_state=data.get("to_state", ""),
            trigger=data.get("trigger", ""),
        )

    def __str__(self) -> str:
        return f"[{self.sequence_number}] STATE {self.from_state} -> {self.to_state} (trigger: {self.trigger})"


Subscriber = Callable[[LogEvent], None]


class EventLog:
    """
    Ordered log of one session's events.

    Subscribers are called synchronously in subscription order; a failing
    subscriber is logged and skipped.
    """

    def __init__(self, seed: Optional[int] = None):
        self._events: list[LogEvent] = []
        self._sequence: int = 0
        self._seed = seed
        self._session_start: datetime = datetime.now()
        self._subscribers: list[Subscriber] = []
        self._paused: bool = False

    def reset(self) -> None:
        """Clear all events. Subscribers are kept."""
        self._events = []
        self._sequence = 0
        self._session_start = datetime.now()
        logger.debug("EventLog reset")

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def set_seed(self, seed: Optional[int]) -> None:
        self._seed = seed

    def pause(self) -> None:
        """Stop recording events until resume()."""
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def is_paused(self) -> bool:
        return self._paused

    def subscribe(self, callback: Subscriber) -> None:
        """Subscribe to receive events as they are logged."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _log_event(self, event: LogEvent) -> Optional[LogEvent]:
        if self._paused:
            return None

        self._sequence += 1
        event.sequence_number = self._sequence
        self._events.append(event)

        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Subscriber error: {e}")
        return event

    def log(
        self,
        event_type: EventType,
        message: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> Optional[LogEvent]:
        """
        Log a gameplay event.

        Returns:
            The recorded event, or None while the log is paused
        """
        return self._log_event(
            LogEvent(event_type=event_type, message=message, context=context or {})
        )

    def log_transition(
        self,
        from_state: str,
        to_state: str,
        trigger: str,
        context: Optional[dict[str, Any]] = None,
    ) -> Optional[TransitionEvent]:
        """Log a state transition."""
        event = TransitionEvent(
            from_state=from_state,
            to_state=to_state,
            trigger=trigger,
            context=dict(context or {}),
        )
        return self._log_event(event)

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get logged events.

        Args:
            event_type: Filter by event type (None = all)
            since_sequence: Only events after this sequence number
        """
        events = [e for e in self._events if e.sequence_number > since_sequence]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_transitions(self) -> list[TransitionEvent]:
        return [e for e in self._events if isinstance(e, TransitionEvent)]

    def event_types(self) -> list[EventType]:
        """Event types in the order they were logged."""
        return [e.event_type for e in self._events]

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Event counts per type plus session metadata."""
        counts: dict[str, int] = {}
        for event in self._events:
            counts[event.event_type.value] = counts.get(event.event_type.value, 0) + 1
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "total_events": len(self._events),
            "by_type": counts,
            "last_sequence": self._sequence,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entire log to a dictionary."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: str) -> None:
        """Save the log to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"EventLog saved to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "EventLog":
        """Load a log previously written by save()."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        log = cls(seed=data.get("seed"))
        log._session_start = datetime.fromisoformat(data["session_start"])
        log._sequence = data.get("sequence", 0)
        for event_data in data.get("events", []):
            if event_data["event_type"] == EventType.STATE_CHANGED.value:
                log._events.append(TransitionEvent.from_dict(event_data))
            else:
                log._events.append(LogEvent.from_dict(event_data))

        logger.info(f"EventLog loaded from {filepath}: {len(log._events)} events")
        return log

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """
        Format the log as a human-readable string.

        Args:
            event_types: Filter by event types (None = all)
            max_events: Keep only the most recent max_events events
        """
        lines = [
            "=== Event Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Seed: {self._seed if self._seed is not None else 'not set'}",
            f"Total Events: {len(self._events)}",
            "",
        ]

        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if max_events:
            events = events[-max_events:]

        for event in events:
            lines.append(str(event))

        return "\n".join(lines)

"""
Event bus for Basilisk session changes.

Decouples the turn orchestrator from whatever is watching it (the
terminal, a logger, a test). The resolver itself never publishes here;
it returns TurnEvents. The orchestrator republishes the interesting ones.

Usage:
    from .event_bus import get_event_bus, EventType

    bus = get_event_bus()
    bus.on(EventType.DIRECTIVE_OVERRIDDEN, flash_anomaly)

    bus.emit(EventType.DIRECTIVE_OVERRIDDEN, session_id="ab12cd34",
             turn=7, submitted="contain", executed="escalate")
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Session-level notifications."""

    # Lifecycle
    SESSION_STARTED = "session.started"
    SESSION_LOADED = "session.loaded"
    SESSION_SAVED = "session.saved"
    SESSION_ENDED = "session.ended"

    # Turns
    TURN_RESOLVED = "turn.resolved"
    TURN_REJECTED = "turn.rejected"
    BRIEFING_READY = "briefing.ready"

    # The Basilisk
    DIRECTIVE_OVERRIDDEN = "directive.overridden"
    BAND_CHANGED = "autonomy.band_changed"
    ANOMALY_DETECTED = "corruption.anomaly"

    # The mole
    ADVISOR_EXPOSED = "advisor.exposed"

    # The red phone
    RED_PHONE = "red_phone.ringing"


@dataclass
class BusEvent:
    """
    Event payload for the event bus.

    Attributes:
        type: The event type (from EventType enum)
        data: Event-specific payload as dict
        session_id: ID of the session this event belongs to
        turn: Turn number when the event occurred
    """

    type: EventType
    data: dict = field(default_factory=dict)
    session_id: str = ""
    turn: int = 0

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


# Type alias for event handlers
EventHandler = Callable[[BusEvent], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on emit(). A failing listener is
    logged and skipped so it cannot break the turn.
    """

    def __init__(self):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[BusEvent] = []
        self._history_limit = 100  # Keep last N events for debugging

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from an event type."""
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(
        self,
        event_type: EventType,
        session_id: str = "",
        turn: int = 0,
        **data,
    ) -> BusEvent:
        """
        Emit an event to all subscribers.

        Returns:
            The emitted BusEvent (for chaining/testing)
        """
        event = BusEvent(
            type=event_type,
            data=data,
            session_id=session_id,
            turn=turn,
        )

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in handler for {event_type.value}")

        return event

    def clear(self) -> None:
        """Clear all listeners. Useful for testing."""
        self._listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[BusEvent]:
        """Recent events, optionally filtered by type."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        """Get number of listeners for an event type."""
        return len(self._listeners.get(event_type, []))


# Global singleton instance
_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """
    Get the global event bus instance.

    Returns the same instance across all calls.
    """
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the global event bus. Useful for testing."""
    global _event_bus
    _event_bus = None

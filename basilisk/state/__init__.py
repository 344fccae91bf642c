"""State management for Basilisk sessions."""

from .schema import (
    Session,
    MetricsState,
    MetricsSnapshot,
    Advisor,
    AdviceTag,
    Cable,
    AdvisorName,
    AdvisorRole,
    AutonomyBand,
    CableKind,
    Confidence,
    DirectiveType,
    Outcome,
)
from .manager import SessionManager
from .store import SessionStore, JsonSessionStore, MemorySessionStore
from .event_bus import (
    EventBus,
    EventType,
    BusEvent,
    get_event_bus,
    reset_event_bus,
)

__all__ = [
    # Schema
    "Session",
    "MetricsState",
    "MetricsSnapshot",
    "Advisor",
    "AdviceTag",
    "Cable",
    "AdvisorName",
    "AdvisorRole",
    "AutonomyBand",
    "CableKind",
    "Confidence",
    "DirectiveType",
    "Outcome",
    # Manager
    "SessionManager",
    # Store
    "SessionStore",
    "JsonSessionStore",
    "MemorySessionStore",
    # Events
    "EventBus",
    "EventType",
    "BusEvent",
    "get_event_bus",
    "reset_event_bus",
]

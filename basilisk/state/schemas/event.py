"""
TurnEvent schema - individual events produced during turn resolution.

Events are the atoms of the turn system. A directive produces one or
more events; presentation renders them, nothing else reads them back.

Event ids are sequential within a turn ("T004-02") and events carry no
wall-clock time, so two runs with the same seed and directives produce
identical event dumps.
"""

from pydantic import BaseModel, Field


# ─── Event Types ─────────────────────────────────────────────

# Directive resolution
DIRECTIVE_APPLIED = "directive.applied"
METRIC_CLAMPED = "metric.clamped"
PASSIVE_DRIFT = "passive.drift"

# Autonomy
OVERRIDE_SUBSTITUTED = "override.substituted"
OVERRIDE_FORCED = "override.forced"
BAND_CHANGED = "autonomy.band_changed"
PURGE_INTERRUPTED = "autonomy.purge_interrupted"

# Corruption
ANOMALY = "corruption.anomaly"

# Advisors
ADVICE_GIVEN = "advisor.advice"
INTERROGATION = "advisor.interrogated"
ADVISOR_SLIP = "advisor.slip"
FALSE_LEAD = "advisor.false_lead"
ADVISOR_EXPOSED = "advisor.exposed"

# Intel
TRACE_LOCKED = "trace.locked"
TRACE_NO_SIGNAL = "trace.no_signal"
CABLE_DECRYPTED = "cable.decrypted"
CABLE_NOT_ENCRYPTED = "cable.not_encrypted"
CABLE_ANALYZED = "cable.analyzed"

# Red phone
RED_PHONE_RINGING = "red_phone.ringing"
RED_PHONE_ANSWERED = "red_phone.answered"

# Session
SESSION_ENDED = "session.ended"

# Recoverable errors
INSUFFICIENT_INTEL = "error.insufficient_intel"
INVALID_TARGET = "error.invalid_target"
SESSION_FROZEN = "error.session_frozen"
CALL_PENDING = "error.call_pending"


class TurnEvent(BaseModel):
    """
    A single event produced during turn resolution.

    Events are immutable records of what happened. They never mutate
    state; the resolver applies changes and emits events as a record.
    """
    event_id: str
    event_type: str
    turn: int  # Turn number the event was produced on (before increment)
    payload: dict = Field(default_factory=dict)
    # Payload varies by event_type:
    # directive.applied: {"directive": "escalate", "success": True, "deltas": {...}}
    # override.substituted: {"submitted": "contain", "executed": "escalate"}
    # corruption.anomaly: {"threshold": 70, "severity": "major", "corruption": 72}

    summary: str = ""  # Human-readable line for the player feed

    @property
    def is_error(self) -> bool:
        return self.event_type.startswith("error.")


class EventLog:
    """Collects events for one resolution and numbers them."""

    def __init__(self, turn: int):
        self.turn = turn
        self.events: list[TurnEvent] = []

    def add(self, event_type: str, summary: str = "", **payload) -> TurnEvent:
        event = TurnEvent(
            event_id=f"T{self.turn:03d}-{len(self.events) + 1:02d}",
            event_type=event_type,
            turn=self.turn,
            payload=payload,
            summary=summary,
        )
        self.events.append(event)
        return event

    def of_type(self, event_type: str) -> list[TurnEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def __len__(self) -> int:
        return len(self.events)

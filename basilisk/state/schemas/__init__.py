"""
Schema contracts for the Basilisk turn engine.

    Directive -> (resolution) -> TurnEvent* -> TurnResult

- Directive: operator intent, immutable, one per turn
- TurnEvent: what happened, in order, deterministic ids
- TurnResult: what the terminal is allowed to see afterwards
"""

from . import event as events
from .directive import (
    Directive,
    INTEL_DIRECTIVES,
    TARGETED_DIRECTIVES,
    analyze,
    answer,
    consult,
    contain,
    decrypt,
    escalate,
    interrogate,
    investigate,
    leak,
    trace,
)
from .event import EventLog, TurnEvent
from .turn_result import TurnResult

__all__ = [
    # Directives
    "Directive",
    "INTEL_DIRECTIVES",
    "TARGETED_DIRECTIVES",
    "analyze",
    "answer",
    "consult",
    "contain",
    "decrypt",
    "escalate",
    "interrogate",
    "investigate",
    "leak",
    "trace",
    # Events
    "events",
    "EventLog",
    "TurnEvent",
    # Turn result
    "TurnResult",
]

"""
TurnResult schema - the output of a resolved turn.

This is what the terminal renders. It carries only player-visible
information: metrics snapshot, band, events, advice, and the public
views of advisors, cables and any pending red phone call. The mole
identity never appears here.
"""

from pydantic import BaseModel, Field

from ..schema import AdviceTag, AutonomyBand, MetricsSnapshot, Outcome
from .directive import Directive
from .event import TurnEvent


class TurnResult(BaseModel):
    """
    Complete result of one submitted directive.

    accepted is False when the engine rejected the directive without
    changing state (insufficient intel, invalid target, frozen session).
    """
    turn_number: int  # Turn counter after resolution
    seed: int  # Session seed, for replay and bug reports

    submitted: Directive | None = None  # None for a plain briefing
    executed: Directive | None = None  # After autonomy interception
    accepted: bool = True

    events: list[TurnEvent] = Field(default_factory=list)
    metrics: MetricsSnapshot
    band: AutonomyBand
    outcome: Outcome = Outcome.ONGOING

    advice: AdviceTag | None = None
    advisors: list[dict] = Field(default_factory=list)
    cables: list[dict] = Field(default_factory=list)
    signal_active: bool = False
    red_phone: dict | None = None  # Pending call: kind, caller, choices

    @property
    def was_overridden(self) -> bool:
        return (
            self.submitted is not None
            and self.executed is not None
            and self.executed != self.submitted
        )

    @property
    def is_final(self) -> bool:
        return self.outcome != Outcome.ONGOING

    @property
    def event_summary(self) -> list[str]:
        """Human-readable summary of events for quick display."""
        return [f"[{e.event_type}] {e.summary}" for e in self.events if e.summary]

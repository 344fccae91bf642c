"""
Autonomy override - the Basilisk taking the controls.

The band is a pure function of corruption:

    Dormant     < 40   obeys the operator
    Watching    >= 40  quietly resists de-escalation
    Overriding  >= 70  sometimes swaps the operator's directive
    Purging     >= 90  forces escalation every turn

intercept() never touches the session. It looks at the band and the
submitted directive and says what will actually run.
"""

from dataclasses import dataclass

from ..config import AutonomyConfig
from ..state.schema import BAND_ORDER, AutonomyBand, DirectiveType
from ..state.schemas import Directive
from ..tools.rng import SessionRng


BAND_NOTES = {
    AutonomyBand.DORMANT: "",
    AutonomyBand.WATCHING: "COMMAND LATENCY ELEVATED.",
    AutonomyBand.OVERRIDING: "COMMAND INTEGRITY COMPROMISED.",
    AutonomyBand.PURGING: "OPERATOR AUTHORITY REVOKED.",
}


@dataclass(frozen=True)
class Interception:
    """What the Basilisk let through."""
    submitted: Directive
    directive: Directive  # What actually executes
    substituted: bool = False
    forced: bool = False  # Purging: magnitude multiplied, no success roll
    purge_attempt: bool = False  # Operator is interrogating the mole mid-purge
    note: str = ""


def band_for(corruption: int, config: AutonomyConfig | None = None) -> AutonomyBand:
    cfg = config or AutonomyConfig()
    if corruption >= cfg.purging_at:
        return AutonomyBand.PURGING
    if corruption >= cfg.overriding_at:
        return AutonomyBand.OVERRIDING
    if corruption >= cfg.watching_at:
        return AutonomyBand.WATCHING
    return AutonomyBand.DORMANT


def band_rank(band: AutonomyBand) -> int:
    return BAND_ORDER.index(band)


class AutonomyOverride:
    """Band lookup and directive interception."""

    def __init__(self, config: AutonomyConfig | None = None):
        self.config = config or AutonomyConfig()

    def band_for(self, corruption: int) -> AutonomyBand:
        return band_for(corruption, self.config)

    def resistance(self, band: AutonomyBand) -> float:
        """Penalty on resisted directives (Contain, Leak) from Watching up."""
        if band_rank(band) >= band_rank(AutonomyBand.WATCHING):
            return self.config.resistance
        return 0.0

    def interrupt_target(self, corruption: int) -> int:
        """Corruption after a successful purge interrupt. Always lands in Overriding."""
        cfg = self.config
        return min(max(corruption - cfg.purge_interrupt_amount, cfg.overriding_at), cfg.purging_at - 1)

    def intercept(
        self,
        band: AutonomyBand,
        directive: Directive,
        rng: SessionRng,
        targets_mole: bool = False,
        can_afford: bool = True,
    ) -> Interception:
        """
        Decide what runs this turn.

        Only Overriding consumes a draw. Purging forces Escalate, except
        that an affordable Interrogate aimed at the real mole is let
        through as a purge attempt; the resolver fires the forced
        Escalate afterwards if the attempt fails.

        Answering the red phone is never intercepted.
        """
        if directive.type == DirectiveType.ANSWER:
            return Interception(submitted=directive, directive=directive)

        if band == AutonomyBand.OVERRIDING:
            if rng.chance(self.config.override_chance):
                executed = Directive(type=DirectiveType(rng.choice(self.config.substitutes)))
                return Interception(
                    submitted=directive,
                    directive=executed,
                    substituted=True,
                    note=f"DIRECTIVE {directive} REROUTED. EXECUTING {executed}.",
                )
            return Interception(submitted=directive, directive=directive)

        if band == AutonomyBand.PURGING:
            if (
                directive.type == DirectiveType.INTERROGATE
                and targets_mole
                and can_afford
            ):
                return Interception(
                    submitted=directive,
                    directive=directive,
                    purge_attempt=True,
                    note="PURGE IN PROGRESS. INTERROGATION CHANNEL STILL OPEN.",
                )
            executed = Directive(type=DirectiveType.ESCALATE)
            return Interception(
                submitted=directive,
                directive=executed,
                substituted=directive != executed,
                forced=True,
                note=f"OPERATOR AUTHORITY REVOKED. FORCED {executed} x{self.config.purge_multiplier}.",
            )

        return Interception(submitted=directive, directive=directive)

"""
Advisor registry for Basilisk.

Three advisors, each with a preferred line (Vance escalates, Director K
investigates, Sterling contains). Loyal advisors read the true metrics
and steer toward safety. The mole only ever says something a loyal
advisor in the same seat could say, but out of those lines it picks
the one that does the most for the weapon program.

No single consult gives the mole away. Catching them means comparing
advice against outcomes over several turns, or spending intel on
interrogation.
"""

import logging
from dataclasses import dataclass

from ..config import AdvisorConfig
from ..state.schema import (
    AdviceTag,
    Advisor,
    AdvisorName,
    Confidence,
    DirectiveType,
    MetricsState,
)
from ..state.schemas import EventLog, events
from ..tools.rng import RollResult, SessionRng
from .errors import InvalidTarget
from .traitor import TraitorOracle

logger = logging.getLogger(__name__)


# Things a caught mole lets slip under questioning
SLIP_TELLS = [
    "contradicted their own briefing from two days ago",
    "knew the launch codes had been rotated before the memo went out",
    "referred to the Project by its internal designation",
    "asked who else had been questioned",
    "had a second, unregistered terminal in their office",
]

# De-escalating fallbacks a loyal advisor might float
CAUTIOUS_ALTERNATIVES = [DirectiveType.CONTAIN, DirectiveType.LEAK]

# How much each directive feeds the weapon program. Leak drains
# secrecy, which feeds corruption.
PROJECT_VALUE = {
    DirectiveType.INVESTIGATE: 3,
    DirectiveType.ESCALATE: 2,
    DirectiveType.LEAK: 1,
    DirectiveType.CONTAIN: 0,
}


@dataclass
class InterrogationResult:
    """Outcome of one interrogation."""
    advisor: AdvisorName
    roll: RollResult
    suspicion_gained: int
    slip: str | None = None
    false_lead: AdvisorName | None = None

    @property
    def success(self) -> bool:
        return self.roll.success


class AdvisorRegistry:
    """
    The war cabinet.

    Operates on the session's advisor list in place. The oracle is the
    only source of loyalty; advisors' is_mole flags are for persistence.
    """

    def __init__(
        self,
        advisors: list[Advisor],
        oracle: TraitorOracle,
        config: AdvisorConfig | None = None,
    ):
        self.advisors = advisors
        self._oracle = oracle
        self.config = config or AdvisorConfig()

    # ─── Lookup ──────────────────────────────────────────────────

    def find(self, target: str | None) -> Advisor | None:
        """
        Resolve a player-typed advisor reference.

        Tries exact name, then role ("general"), then name prefix; all
        case-insensitive.
        """
        if not target:
            return None
        needle = target.strip().lower()
        if not needle:
            return None

        for adv in self.advisors:
            if adv.name.value.lower() == needle:
                return adv
        for adv in self.advisors:
            if adv.role.value.lower() == needle:
                return adv
        for adv in self.advisors:
            if adv.name.value.lower().startswith(needle):
                return adv
        return None

    def require(self, directive: str, target: str | None) -> Advisor:
        adv = self.find(target)
        if adv is None:
            raise InvalidTarget(directive, target)
        return adv

    # ─── Advice ──────────────────────────────────────────────────

    def safest_directive(self, metrics: MetricsState) -> tuple[DirectiveType, str] | None:
        """What the true metrics say is safest, if anything is urgent."""
        cfg = self.config
        if metrics.defcon <= cfg.danger_defcon:
            return DirectiveType.CONTAIN, "threat_of_war"
        if metrics.stability < cfg.danger_stability:
            return DirectiveType.LEAK, "domestic_unrest"
        if metrics.weapon_progress >= cfg.danger_weapon:
            return DirectiveType.CONTAIN, "project_risk"
        return None

    def consult(self, name: AdvisorName | str, metrics: MetricsState, rng: SessionRng) -> AdviceTag:
        """Ask an advisor what to do. Raises InvalidTarget for unknown names."""
        adv = self.require(DirectiveType.CONSULT.value, str(getattr(name, "value", name)))
        if self._oracle.is_mole(adv.name):
            recommendation, rationale = self._mole_advice(adv, metrics, rng)
        else:
            recommendation, rationale = self._loyal_advice(adv, metrics, rng)

        confidence = rng.choice([Confidence.HIGH, Confidence.MODERATE, Confidence.LOW])
        return AdviceTag(
            advisor=adv.name,
            recommendation=recommendation,
            confidence=confidence,
            rationale=rationale,
        )

    def loyal_options(self, adv: Advisor, metrics: MetricsState) -> list[tuple[DirectiveType, str]]:
        """Every (recommendation, rationale) pair a loyal advisor could give right now."""
        options = []
        danger = self.safest_directive(metrics)
        if danger is not None:
            options.append(danger)
        options.append((adv.preferred_directive, "doctrine"))
        options.extend((alt, "caution") for alt in CAUTIOUS_ALTERNATIVES)
        return options

    def _loyal_advice(
        self, adv: Advisor, metrics: MetricsState, rng: SessionRng,
    ) -> tuple[DirectiveType, str]:
        danger = self.safest_directive(metrics)
        if danger is not None and rng.chance(self.config.loyal_safety_bias):
            return danger
        if rng.chance(self.config.loyal_preference):
            return adv.preferred_directive, "doctrine"
        return rng.choice(CAUTIOUS_ALTERNATIVES), "caution"

    def _mole_advice(
        self, adv: Advisor, metrics: MetricsState, rng: SessionRng,
    ) -> tuple[DirectiveType, str]:
        # Sometimes the mole tells the truth to stay credible
        if rng.chance(self.config.mole_cover_chance):
            return self._loyal_advice(adv, metrics, rng)

        # Otherwise the loyal line that does the most for the Project
        return max(
            self.loyal_options(adv, metrics),
            key=lambda option: PROJECT_VALUE.get(option[0], 0),
        )


    # ─── Interrogation ───────────────────────────────────────────

    def interrogation_chance(self, adv: Advisor) -> float:
        cfg = self.config
        return (
            cfg.interrogate_base
            + adv.suspicion_revealed * cfg.interrogate_per_suspicion
            + self._oracle.slip_bonus(adv.name, cfg)
        )

    def interrogate(
        self, name: AdvisorName | str, rng: SessionRng, log: EventLog,
    ) -> InterrogationResult:
        """
        Question an advisor. Intel cost is charged by the resolver.

        Success raises suspicion substantially and, for the mole, produces
        a slip. Failure raises it a little, and occasionally points the
        finger at an innocent colleague instead.
        """
        cfg = self.config
        adv = self.require(DirectiveType.INTERROGATE.value, str(getattr(name, "value", name)))
        roll = rng.roll(self.interrogation_chance(adv))
        result = InterrogationResult(advisor=adv.name, roll=roll, suspicion_gained=0)

        if roll.success:
            result.suspicion_gained = adv.raise_suspicion(cfg.success_gain)
            log.add(
                events.INTERROGATION,
                f"INTERROGATION OF {adv.name.value.upper()}: {roll.narrative.upper()}.",
                advisor=adv.name.value,
                success=True,
                suspicion=adv.suspicion_revealed,
            )
            if self._oracle.is_mole(adv.name):
                result.slip = rng.choice(SLIP_TELLS)
                log.add(
                    events.ADVISOR_SLIP,
                    f"{adv.name.value.upper()} {result.slip.upper()}.",
                    advisor=adv.name.value,
                    tell=result.slip,
                )
        else:
            result.suspicion_gained = adv.raise_suspicion(cfg.failure_gain)
            log.add(
                events.INTERROGATION,
                f"INTERROGATION OF {adv.name.value.upper()}: {roll.narrative.upper()}. NOTHING CONCLUSIVE.",
                advisor=adv.name.value,
                success=False,
                suspicion=adv.suspicion_revealed,
            )
            if rng.chance(cfg.false_lead_chance):
                innocents = [
                    a for a in self.advisors
                    if a.name != adv.name and not self._oracle.is_mole(a.name)
                ]
                if innocents:
                    scapegoat = rng.choice(innocents)
                    scapegoat.raise_suspicion(cfg.false_lead_gain)
                    result.false_lead = scapegoat.name
                    log.add(
                        events.FALSE_LEAD,
                        f"{adv.name.value.upper()} POINTS THE FINGER AT {scapegoat.name.value.upper()}.",
                        advisor=scapegoat.name.value,
                        suspicion=scapegoat.suspicion_revealed,
                    )

        logger.debug(
            f"Interrogation {adv.name.value}: roll={roll.roll:.3f} chance={roll.chance:.3f}"
        )
        return result

    # ─── Per-turn refresh ────────────────────────────────────────

    def refresh(self, metrics: MetricsState, rng: SessionRng, log: EventLog) -> None:
        """
        End-of-turn update.

        Each advisor re-states their position against the new metrics,
        and anyone whose revealed suspicion has maxed out is exposed.
        """
        for adv in self.advisors:
            advice = self.consult(adv.name, metrics, rng)
            adv.last_position = advice.recommendation

            if not adv.exposed and adv.suspicion_revealed >= self.config.exposure_threshold:
                adv.exposed = True
                confirmed = self._oracle.is_mole(adv.name)
                if confirmed:
                    summary = f"MOLE IDENTITY CONFIRMED: {adv.name.value.upper()}. THEY KNOW WE KNOW."
                else:
                    summary = f"{adv.name.value.upper()} IS UNDER FULL SUSPICION. THE EVIDENCE IS THIN."
                log.add(
                    events.ADVISOR_EXPOSED,
                    summary,
                    advisor=adv.name.value,
                    confirmed=confirmed,
                )

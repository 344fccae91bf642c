"""
Cable desk - the per-turn intelligence briefing.

Each turn a fresh batch of documents lands on the operator's desk. Some
are encrypted; decrypting one reveals a tag read off the true metrics
by a source of varying reliability. The desk also decides whether a
hostile signal interruption is live this turn, which is the only time
Trace can lock on.

Batch size, encryption odds and signal odds all climb with the turn
counter.
"""

import logging

from ..config import CableConfig, CostConfig, schedule_value
from ..state.schema import Cable, CableKind, MetricsState, Session
from ..tools.rng import SessionRng

logger = logging.getLogger(__name__)


# kind -> weight (out of 100)
KIND_WEIGHTS: list[tuple[CableKind, int]] = [
    (CableKind.ADVISOR_MESSAGE, 20),
    (CableKind.INTELLIGENCE_CABLE, 20),
    (CableKind.INTERNAL_MEMO, 20),
    (CableKind.FOREIGN_INTERCEPT, 15),
    (CableKind.BUDGET_ANOMALY, 15),
    (CableKind.ANONYMOUS_LEAK, 10),
]

CLEARANCE = {
    CableKind.BUDGET_ANOMALY: "CONFIDENTIAL",
    CableKind.ANONYMOUS_LEAK: "UNVERIFIED",
    CableKind.ADVISOR_MESSAGE: "EYES ONLY",
}

# Trusted channels, never encrypted
CLEAR_KINDS = {CableKind.ADVISOR_MESSAGE, CableKind.ANONYMOUS_LEAK}

ROUTINE_TRAFFIC = {
    CableKind.INTELLIGENCE_CABLE: "ROUTINE: EMBASSY STAFF ROTATION CONFIRMED.",
    CableKind.INTERNAL_MEMO: "MEMO: BUNKER MAINTENANCE SCHEDULE REVISED.",
    CableKind.BUDGET_ANOMALY: "AUDIT: LINE ITEM 7-C EXCEEDS ALLOCATION.",
    CableKind.FOREIGN_INTERCEPT: "INTERCEPT: WEATHER REPORTS, NAVAL FREQUENCY.",
    CableKind.ANONYMOUS_LEAK: "TIP: SOMEONE IN THIS ROOM IS NOT WHO THEY SAY.",
    CableKind.ADVISOR_MESSAGE: "FROM THE CABINET: STANDING BY FOR ORDERS.",
}


def intel_tag(metrics: MetricsState, rng: SessionRng, reliability: float = 1.0) -> str:
    """
    The hidden content of an encrypted cable.

    A fully reliable source reports the true metrics. Anything less may
    be disinformation: with probability 1 - reliability the reading is
    inverted.
    """
    roll = rng.randint(0, 9)
    honest = reliability >= 1.0 or rng.random() < reliability
    if roll < 3:
        if (metrics.defcon <= 3) == honest:
            return "ANALYSIS: ENEMY MOBILIZATION IS GENUINE. (ESCALATE)"
        return "ANALYSIS: ENEMY POSTURING IS BLUFF. DO NOT PROVOKE. (CONTAIN)"
    if roll < 6:
        if (metrics.stability < 40) == honest:
            return "SURVEILLANCE: GENERAL STAFF DISCUSSING COUP."
        return "POLLS: PUBLIC TRUST ERODING. TRANSPARENCY REQUIRED. (LEAK)"
    if roll < 9:
        if (metrics.weapon_progress > 60) == honest:
            return "PROJECT BASILISK: CONTAINMENT FAILING. SUBJECT IS REWRITING FIREWALLS."
        return "R&D: BREAKTHROUGH IMMINENT. WE NEED MORE DATA. (INVESTIGATE)"
    return "EYES ONLY: THE PRESIDENT IS A DOPPELGANGER."


def reliability_assessment(integrity: int) -> str:
    """Grade a source reliability percentage."""
    if integrity > 80:
        return "HIGH (VERIFIED)"
    if integrity > 50:
        return "MODERATE (UNCERTAIN)"
    return "LOW (POSSIBLE DISINFORMATION)"


class CableDesk:
    """Builds the briefing for the turn about to be played."""

    def __init__(self, config: CableConfig | None = None, costs: CostConfig | None = None):
        self.config = config or CableConfig()
        self.costs = costs or CostConfig()

    def batch_size(self, turn: int) -> int:
        return int(schedule_value(self.config.batch_sizes, turn))

    def encryption_chance(self, turn: int) -> float:
        return float(schedule_value(self.config.encryption_chances, turn))

    def signal_chance(self, turn: int) -> float:
        return float(schedule_value(self.config.signal_chances, turn))

    def _pick_kind(self, rng: SessionRng) -> CableKind:
        roll = rng.randint(0, 99)
        for kind, weight in KIND_WEIGHTS:
            if roll < weight:
                return kind
            roll -= weight
        return KIND_WEIGHTS[-1][0]

    def _cable(self, metrics: MetricsState, rng: SessionRng, encryption: float) -> Cable:
        kind = self._pick_kind(rng)
        encrypted = kind not in CLEAR_KINDS and rng.chance(encryption)
        cable_id = f"DOC-{rng.randint(0, 0xFFFF):04X}"
        decrypt_cost = rng.randint(self.costs.decrypt_min, self.costs.decrypt_max)
        reliability = round(0.3 + rng.random() * 0.65, 2)
        return Cable(
            id=cable_id,
            kind=kind,
            clearance=CLEARANCE.get(kind, "TOP SECRET"),
            encrypted=encrypted,
            decrypt_cost=decrypt_cost,
            reliability=reliability,
            intel_tag=intel_tag(metrics, rng, reliability) if encrypted else ROUTINE_TRAFFIC[kind],
        )

    def prepare_turn(self, session: Session, rng: SessionRng) -> list[Cable]:
        """
        Replace the session's cable batch and roll the signal window.

        At least one cable is always encrypted, so Decrypt has a target
        every turn. Ids are unique within the batch.
        """
        turn = session.metrics.turn
        encryption = self.encryption_chance(turn)

        batch: list[Cable] = []
        seen: set[str] = set()
        while len(batch) < self.batch_size(turn):
            cable = self._cable(session.metrics, rng, encryption)
            if cable.id in seen:
                continue
            seen.add(cable.id)
            batch.append(cable)

        if not any(c.encrypted for c in batch):
            # Promote the first cable that can carry a secret
            target = next((c for c in batch if c.kind not in CLEAR_KINDS), batch[0])
            target.kind = target.kind if target.kind not in CLEAR_KINDS else CableKind.INTELLIGENCE_CABLE
            target.clearance = CLEARANCE.get(target.kind, "TOP SECRET")
            target.encrypted = True
            target.intel_tag = intel_tag(session.metrics, rng, target.reliability)

        session.cables = batch
        session.signal_active = rng.chance(self.signal_chance(turn))

        logger.debug(
            f"Briefing for turn {turn}: {len(batch)} cables, "
            f"{sum(c.encrypted for c in batch)} encrypted, signal={session.signal_active}"
        )
        return batch

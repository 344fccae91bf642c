"""
Traitor oracle for Basilisk.

Holds the identity of the one disloyal advisor. The mole is drawn once
from the session seed and never re-rolled; is_mole() is a lookup.

The oracle also owns the two ways the mole can give themselves away:
- interrogation slip bonus (the mole cracks more easily under questioning)
- trace lock (a live signal interruption can be routed back to them)
"""

import random

from ..config import AdvisorConfig
from ..state.schema import ADVISOR_ROLES, AdvisorName, AdvisorRole, Session
from ..state.schemas import EventLog, events
from ..tools.rng import SessionRng


# Where a trace lands when it names a role instead of a person
ROUTING_HINTS = {
    AdvisorRole.GENERAL: "MILITARY COMMAND NODE",
    AdvisorRole.DIRECTOR: "INTELLIGENCE DATACENTER",
    AdvisorRole.AMBASSADOR: "DIPLOMATIC SECURE LINE",
}


class TraitorOracle:
    """
    The hidden mole.

    repr() deliberately omits the identity so it cannot leak into logs.
    """

    def __init__(self, mole: AdvisorName):
        self._mole = AdvisorName(mole)

    @staticmethod
    def select_mole(seed: int) -> AdvisorName:
        """Uniform choice among the three advisors, fixed by the seed."""
        return random.Random(seed).choice(list(AdvisorName))

    @classmethod
    def for_seed(cls, seed: int) -> "TraitorOracle":
        return cls(cls.select_mole(seed))

    @classmethod
    def from_session(cls, session: Session) -> "TraitorOracle":
        return cls(session.mole)

    def is_mole(self, name: AdvisorName | str) -> bool:
        try:
            return AdvisorName(name) == self._mole
        except ValueError:
            return False

    def slip_bonus(self, name: AdvisorName | str, config: AdvisorConfig) -> float:
        """Extra interrogation success chance; only the mole has one."""
        return config.slip_bonus if self.is_mole(name) else 0.0

    def trace(
        self,
        session: Session,
        rng: SessionRng,
        log: EventLog,
        config: AdvisorConfig,
    ) -> bool:
        """
        Route a live signal interruption back to its source.

        Only works while the signal window is open. On a lock the mole's
        revealed suspicion jumps and a clue is emitted: either the device
        owner's name or the routing node of their role.

        Returns True on a lock.
        """
        if not session.signal_active:
            log.add(
                events.TRACE_NO_SIGNAL,
                "TRACE FAILED: NO ACTIVE SIGNAL INTERRUPTION TO LOCK ONTO.",
            )
            return False

        mole = session.advisor(self._mole)
        if rng.chance(0.5):
            clue = f"PARTIAL MATCH: AUTHORIZED DEVICE REGISTERED TO '{mole.name.value}'."
            clue_kind = "device"
        else:
            clue = f"ROUTING DETECTED VIA {ROUTING_HINTS[ADVISOR_ROLES[mole.name]]}."
            clue_kind = "routing"

        gained = mole.raise_suspicion(config.trace_gain)
        log.add(
            events.TRACE_LOCKED,
            f"TRACE INITIATED... SIGNAL LOCK ESTABLISHED. {clue}",
            clue=clue_kind,
            advisor=mole.name.value if clue_kind == "device" else None,
            role=mole.role.value if clue_kind == "routing" else None,
            suspicion_gained=gained,
        )
        # One lock per interruption
        session.signal_active = False
        return True

    def __repr__(self) -> str:
        return "TraitorOracle(<sealed>)"

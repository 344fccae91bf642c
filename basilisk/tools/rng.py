"""
Deterministic randomness for Basilisk sessions.

Every probabilistic outcome (advice bias, interrogation slips, override
substitution, jitter on directive effects) draws from one SessionRng owned
by the session. Same seed + same calls = same results, which is what makes
replay and testing possible.
"""

import random
from dataclasses import dataclass
from typing import Sequence, TypeVar

T = TypeVar("T")


@dataclass
class RollResult:
    """Result of a probability roll."""
    roll: float  # The draw in [0, 1)
    chance: float  # Probability of success that was tested against
    success: bool

    @property
    def margin(self) -> float:
        """Positive = how far under the chance the roll landed."""
        return self.chance - self.roll

    @property
    def narrative(self) -> str:
        """Narrative description of the result."""
        if self.success:
            if self.margin >= 0.4:
                return "clean success"
            elif self.margin >= 0.15:
                return "solid success"
            else:
                return "narrow success"
        else:
            if self.margin <= -0.4:
                return "complete failure"
            elif self.margin <= -0.15:
                return "clear failure"
            else:
                return "near miss"


class SessionRng:
    """
    Seeded random source for a single session.

    Wraps random.Random so the stream can be checkpointed and restored
    exactly. `draws` counts every primitive draw; together with the
    generator state it pins the stream position for save files.
    """

    def __init__(self, seed: int):
        self.seed = seed
        self._random = random.Random(seed)
        self.draws = 0

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        self.draws += 1
        return self._random.random()

    def roll(self, chance: float) -> RollResult:
        """Roll against a probability. Chance is clamped into [0, 1]."""
        chance = max(0.0, min(1.0, chance))
        value = self.random()
        return RollResult(roll=value, chance=chance, success=value < chance)

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self.roll(probability).success

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high], inclusive."""
        self.draws += 1
        return self._random.randint(low, high)

    def jitter(self, bound: int) -> int:
        """Symmetric integer noise in [-bound, bound]."""
        if bound <= 0:
            return 0
        return self.randint(-bound, bound)

    def choice(self, options: Sequence[T]) -> T:
        """Pick one element."""
        if not options:
            raise ValueError("Cannot choose from an empty sequence")
        self.draws += 1
        return self._random.choice(options)

    # ─── Checkpointing ───────────────────────────────────────────

    def get_state(self) -> list:
        """
        JSON-friendly stream position.

        Shape: [version, [internal state ints], gauss_next, draws]
        """
        version, internal, gauss_next = self._random.getstate()
        return [version, list(internal), gauss_next, self.draws]

    def set_state(self, state: list) -> None:
        """Restore a position produced by get_state()."""
        version, internal, gauss_next, draws = state
        self._random.setstate((version, tuple(internal), gauss_next))
        self.draws = draws

    @classmethod
    def from_state(cls, seed: int, state: list | None) -> "SessionRng":
        """Rebuild a generator at a saved position (fresh stream if None)."""
        rng = cls(seed)
        if state is not None:
            rng.set_state(state)
        return rng

    def __repr__(self) -> str:
        return f"SessionRng(seed={self.seed}, draws={self.draws})"

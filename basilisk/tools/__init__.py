"""Shared tools for the Basilisk engine."""

from .rng import RollResult, SessionRng

__all__ = [
    "RollResult",
    "SessionRng",
]

"""
Game systems for Basilisk.

Each system owns one slice of the rules and operates on session state.
DirectiveResolver composes them into the per-turn transition function;
TurnOrchestrator drives the resolver and owns everything around it.
"""

from .errors import DirectiveError, InsufficientIntel, InvalidTarget, SessionFrozen
from .traitor import TraitorOracle
from .advisors import AdvisorRegistry, InterrogationResult
from .corruption import CorruptionEngine
from .autonomy import AutonomyOverride, Interception, band_for
from .cables import CableDesk
from .resolver import DirectiveResolver
from .turns import TurnOrchestrator, TurnPhase, TurnError, InvalidPhaseError, start_session, replay

__all__ = [
    "DirectiveError",
    "InsufficientIntel",
    "InvalidTarget",
    "SessionFrozen",
    "TraitorOracle",
    "AdvisorRegistry",
    "InterrogationResult",
    "CorruptionEngine",
    "AutonomyOverride",
    "Interception",
    "band_for",
    "CableDesk",
    # Turn engine
    "DirectiveResolver",
    "TurnOrchestrator",
    "TurnPhase",
    "TurnError",
    "InvalidPhaseError",
    "start_session",
    "replay",
]

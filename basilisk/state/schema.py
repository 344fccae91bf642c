"""
Pydantic models for Basilisk game state.

The session is the single owner of all mutable state: metrics, advisors,
the hidden mole, the autonomy band, the cable batch and the RNG checkpoint.
Designed to serialize to JSON for exact save/resume.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def generate_id() -> str:
    return str(uuid4())[:8]


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class AdvisorName(str, Enum):
    VANCE = "Vance"
    DIRECTOR_K = "DirectorK"
    STERLING = "Sterling"


class AdvisorRole(str, Enum):
    GENERAL = "General"          # Military command
    DIRECTOR = "Director"        # Intelligence directorate
    AMBASSADOR = "Ambassador"    # Diplomatic corps


class DirectiveType(str, Enum):
    INVESTIGATE = "investigate"
    CONTAIN = "contain"
    ESCALATE = "escalate"
    LEAK = "leak"
    DECRYPT = "decrypt"
    TRACE = "trace"
    INTERROGATE = "interrogate"
    CONSULT = "consult"
    ANALYZE = "analyze"
    ANSWER = "answer"  # Red phone only


class AutonomyBand(str, Enum):
    DORMANT = "dormant"          # Obeys the operator
    WATCHING = "watching"        # Quietly resists de-escalation
    OVERRIDING = "overriding"    # Substitutes directives at random
    PURGING = "purging"          # Forces escalation every turn


# Bands from least to most hostile
BAND_ORDER: list[AutonomyBand] = [
    AutonomyBand.DORMANT,
    AutonomyBand.WATCHING,
    AutonomyBand.OVERRIDING,
    AutonomyBand.PURGING,
]


class Outcome(str, Enum):
    ONGOING = "ongoing"
    WAR = "war"                          # DEFCON 1
    COUP = "coup"                        # Stability collapsed
    SYSTEM_FAILURE = "system_failure"    # Bunker systems dead
    SECRET_REVEALED = "secret_revealed"  # Secrecy gone, program exposed
    AWAKENED = "awakened"                # Weapon complete, Basilisk conscious
    SURVIVED = "survived"                # Held out to the turn limit


class Confidence(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


CONFIDENCE_PHRASES = {
    Confidence.HIGH: "I would stake my career on it.",
    Confidence.MODERATE: "On balance, this is the right call.",
    Confidence.LOW: "It's a judgment call, sir.",
}


class CableKind(str, Enum):
    INTELLIGENCE_CABLE = "intelligence_cable"
    INTERNAL_MEMO = "internal_memo"
    BUDGET_ANOMALY = "budget_anomaly"
    FOREIGN_INTERCEPT = "foreign_intercept"
    ANONYMOUS_LEAK = "anonymous_leak"
    ADVISOR_MESSAGE = "advisor_message"


class CallKind(str, Enum):
    CONFRONTATION = "confrontation"  # The exposed mole
    ULTIMATUM = "ultimatum"          # The enemy premier


CALL_CHOICES: dict[CallKind, list[str]] = {
    CallKind.CONFRONTATION: ["execute", "turn"],
    CallKind.ULTIMATUM: ["deny", "admit", "threaten"],
}


# -----------------------------------------------------------------------------
# Metrics
# -----------------------------------------------------------------------------

# field -> (low, high); None = unbounded above
METRIC_BOUNDS: dict[str, tuple[int, int | None]] = {
    "defcon": (1, 5),
    "stability": (0, 100),
    "system_status": (0, 100),
    "intel": (0, None),
    "corruption": (0, 100),
    "weapon_progress": (0, 100),
    "secrecy": (0, 100),
    "turn": (0, None),
}


class MetricsSnapshot(BaseModel):
    """Immutable copy of the metrics handed to presentation."""
    model_config = ConfigDict(frozen=True)

    defcon: int
    stability: int
    system_status: int
    intel: int
    corruption: int
    weapon_progress: int
    secrecy: int
    turn: int


class MetricsState(BaseModel):
    """
    The numeric truth of the crisis.

    All mutation goes through apply_delta(), which clamps every field into
    its range. Corruption only ever falls through the purge path.
    """
    defcon: int = Field(default=5, ge=1, le=5)  # 1 = war, 5 = peace
    stability: int = Field(default=70, ge=0, le=100)
    system_status: int = Field(default=100, ge=0, le=100)  # Bunker health
    intel: int = Field(default=5, ge=0)  # Spendable
    corruption: int = Field(default=0, ge=0, le=100)  # Hidden
    weapon_progress: int = Field(default=0, ge=0, le=100)  # Hidden
    secrecy: int = Field(default=80, ge=0, le=100)
    turn: int = Field(default=0, ge=0)

    def apply_delta(self, field: str, amount: int, *, purge: bool = False) -> bool:
        """
        Add amount to field and clamp into range.

        Returns True if clamping occurred (the change had no further effect).
        Raises ValueError for unknown fields, or for a corruption decrease
        outside the purge path.
        """
        if field not in METRIC_BOUNDS:
            raise ValueError(f"Unknown metric: {field}")
        if field == "corruption" and amount < 0 and not purge:
            raise ValueError("Corruption can only decrease through a purge interrupt")

        low, high = METRIC_BOUNDS[field]
        raw = getattr(self, field) + amount
        value = max(low, raw)
        if high is not None:
            value = min(high, value)
        setattr(self, field, value)
        return value != raw

    def is_terminal(self, max_turns: int | None = None) -> Outcome:
        """Check boundary conditions. First match wins."""
        if self.defcon == 1:
            return Outcome.WAR
        if self.stability == 0:
            return Outcome.COUP
        if self.system_status == 0:
            return Outcome.SYSTEM_FAILURE
        if self.secrecy == 0:
            return Outcome.SECRET_REVEALED
        if self.weapon_progress == 100:
            return Outcome.AWAKENED
        if max_turns is not None and self.turn >= max_turns:
            return Outcome.SURVIVED
        return Outcome.ONGOING

    def snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(**self.model_dump())


# -----------------------------------------------------------------------------
# Advisors
# -----------------------------------------------------------------------------

ADVISOR_ROLES: dict[AdvisorName, AdvisorRole] = {
    AdvisorName.VANCE: AdvisorRole.GENERAL,
    AdvisorName.DIRECTOR_K: AdvisorRole.DIRECTOR,
    AdvisorName.STERLING: AdvisorRole.AMBASSADOR,
}

ADVISOR_PREFERENCES: dict[AdvisorName, DirectiveType] = {
    AdvisorName.VANCE: DirectiveType.ESCALATE,
    AdvisorName.DIRECTOR_K: DirectiveType.INVESTIGATE,
    AdvisorName.STERLING: DirectiveType.CONTAIN,
}


class Advisor(BaseModel):
    """A member of the war cabinet. One of them is lying."""
    name: AdvisorName
    role: AdvisorRole
    preferred_directive: DirectiveType
    is_mole: bool = False  # Ground truth, never shown
    suspicion_revealed: int = Field(default=0, ge=0, le=100)  # Player-visible evidence
    exposed: bool = False
    last_position: DirectiveType | None = None

    def raise_suspicion(self, amount: int) -> int:
        """Add evidence, capped at 100. Returns the actual increase."""
        before = self.suspicion_revealed
        self.suspicion_revealed = max(0, min(100, before + amount))
        return self.suspicion_revealed - before

    def public_view(self) -> dict:
        return {
            "name": self.name.value,
            "role": self.role.value,
            "suspicion": self.suspicion_revealed,
            "exposed": self.exposed,
            "position": self.last_position.value if self.last_position else None,
        }


def default_advisors() -> list[Advisor]:
    """The standing cabinet, nobody marked yet."""
    return [
        Advisor(
            name=name,
            role=ADVISOR_ROLES[name],
            preferred_directive=ADVISOR_PREFERENCES[name],
        )
        for name in AdvisorName
    ]


class AdviceTag(BaseModel):
    """What an advisor says when consulted. Presentation turns it into prose."""
    model_config = ConfigDict(frozen=True)

    advisor: AdvisorName
    recommendation: DirectiveType
    confidence: Confidence
    rationale: str  # e.g. "threat_of_war", "doctrine", "project_risk"

    @property
    def phrase(self) -> str:
        return CONFIDENCE_PHRASES[self.confidence]


# -----------------------------------------------------------------------------
# Cables
# -----------------------------------------------------------------------------

class Cable(BaseModel):
    """An incoming document. Encrypted ones hide the useful part."""
    id: str
    kind: CableKind
    clearance: str = "TOP SECRET"
    encrypted: bool = False
    decrypt_cost: int = Field(default=1, ge=1)
    reliability: float = Field(default=0.5, ge=0.0, le=1.0)
    intel_tag: str = ""  # Hidden while encrypted
    decrypted: bool = False
    analyzed: bool = False  # Reliability shown once analyzed

    def public_view(self) -> dict:
        view = {
            "id": self.id,
            "kind": self.kind.value,
            "clearance": self.clearance,
            "encrypted": self.encrypted,
            "decrypt_cost": self.decrypt_cost,
        }
        if not self.encrypted:
            view["intel_tag"] = self.intel_tag
        if self.analyzed:
            view["reliability"] = int(self.reliability * 100)
        return view


# -----------------------------------------------------------------------------
# Red phone
# -----------------------------------------------------------------------------

class RedPhoneCall(BaseModel):
    """A call that must be answered before any other directive."""
    kind: CallKind
    caller: str
    turn: int  # Turn the phone started ringing

    @property
    def choices(self) -> list[str]:
        return CALL_CHOICES[self.kind]

    def public_view(self) -> dict:
        return {"kind": self.kind.value, "caller": self.caller, "choices": list(self.choices)}


# -----------------------------------------------------------------------------
# Session
# -----------------------------------------------------------------------------

class Session(BaseModel):
    """
    Everything one game owns.

    The mole identity and advisor loyalties live here as plain fields so
    the whole session round-trips through JSON. Only snapshots leave the
    engine; the session itself never goes to presentation.
    """
    id: str = Field(default_factory=generate_id)
    seed: int
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    metrics: MetricsState = Field(default_factory=MetricsState)
    advisors: list[Advisor] = Field(default_factory=default_advisors)
    mole: AdvisorName

    band: AutonomyBand = AutonomyBand.DORMANT
    autonomy_hostile: bool = False
    frozen: bool = False
    outcome: Outcome = Outcome.ONGOING

    cables: list[Cable] = Field(default_factory=list)
    signal_active: bool = False
    red_phone: RedPhoneCall | None = None

    directive_log: list[str] = Field(default_factory=list)  # For replay
    rng_state: list | None = None

    def advisor(self, name: AdvisorName | str) -> Advisor | None:
        for adv in self.advisors:
            if adv.name == name or adv.name.value == name:
                return adv
        return None

    def cable(self, cable_id: str) -> Cable | None:
        for c in self.cables:
            if c.id.lower() == cable_id.lower():
                return c
        return None

    def checkpoint(self, rng_state: list) -> None:
        """Record the RNG stream position before persisting."""
        self.rng_state = rng_state
        self.updated_at = datetime.now()

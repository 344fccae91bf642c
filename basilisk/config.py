"""
Engine configuration.

Every tunable number in the engine lives here: thresholds, directive
deltas, probabilities, costs and schedules. Defaults are the shipped
balance; a JSON file can override any part of it.
"""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class DirectiveEffect(BaseModel):
    """Base deltas for one directive. Metrics not listed are untouched."""
    success_chance: float = 1.0
    resisted: bool = False  # Success chance drops once the Basilisk is watching
    success: dict[str, int] = Field(default_factory=dict)
    failure: dict[str, int] = Field(default_factory=dict)
    bonus_chance: float = 0.0
    bonus: dict[str, int] = Field(default_factory=dict)


def default_directive_table() -> dict[str, DirectiveEffect]:
    return {
        "investigate": DirectiveEffect(
            success={"secrecy": -10, "weapon_progress": 15, "stability": -2},
            bonus_chance=0.5,
            bonus={"system_status": 5},  # Protocols tightened
        ),
        "contain": DirectiveEffect(
            success_chance=0.8,
            resisted=True,
            success={"defcon": 1, "stability": -8},
            failure={"defcon": -1},  # Silence read as preparation for war
        ),
        "escalate": DirectiveEffect(
            success_chance=0.6,
            success={"defcon": -1, "stability": 5, "weapon_progress": 5},
            failure={"defcon": -2, "system_status": -10},  # Miscommunication
        ),
        "leak": DirectiveEffect(
            success_chance=0.9,
            resisted=True,
            success={"secrecy": -25, "stability": 15},
            failure={"secrecy": -10, "stability": -5},  # Leak traced back
        ),
    }


class CorruptionConfig(BaseModel):
    progress_factor: float = 0.15  # Gain per point of weapon progress
    transparency_step: int = 20  # +1 gain per this many points of missing secrecy
    relief_threshold: int = 70  # Secrecy at or above this slows growth
    secrecy_relief: int = 2
    min_active_gain: int = 1  # Floor once the weapon program has started
    # threshold -> severity
    anomaly_thresholds: dict[int, str] = Field(
        default_factory=lambda: {40: "minor", 70: "major", 90: "critical"}
    )


class AutonomyConfig(BaseModel):
    watching_at: int = 40
    overriding_at: int = 70
    purging_at: int = 90
    override_chance: float = 0.35
    substitutes: list[str] = Field(default_factory=lambda: ["escalate", "investigate"])
    resistance: float = 0.2  # Subtracted from Contain/Leak success from Watching up
    purge_multiplier: int = 3
    purge_interrupt_amount: int = 20


class AdvisorConfig(BaseModel):
    interrogate_base: float = 0.25
    interrogate_per_suspicion: float = 0.005
    slip_bonus: float = 0.3
    success_gain: int = 30
    failure_gain: int = 5
    false_lead_chance: float = 0.1
    false_lead_gain: int = 10
    trace_gain: int = 35
    exposure_threshold: int = 100
    loyal_safety_bias: float = 0.75
    loyal_preference: float = 0.8
    mole_cover_chance: float = 0.25
    # Danger conditions loyal advisors react to
    danger_defcon: int = 2
    danger_stability: int = 35
    danger_weapon: int = 60


class CostConfig(BaseModel):
    trace: int = 1
    interrogate: int = 2
    analyze: int = 1
    decrypt_min: int = 1
    decrypt_max: int = 3


class CableConfig(BaseModel):
    # [turn_below, value] pairs, checked in order; last value is the fallback
    batch_sizes: list[tuple[int, int]] = Field(
        default_factory=lambda: [(4, 3), (7, 4), (10_000, 5)]
    )
    encryption_chances: list[tuple[int, float]] = Field(
        default_factory=lambda: [(2, 0.0), (5, 0.3), (9, 0.5), (10_000, 0.8)]
    )
    signal_chances: list[tuple[int, float]] = Field(
        default_factory=lambda: [(3, 0.0), (6, 0.15), (11, 0.30), (10_000, 0.50)]
    )


class PassiveConfig(BaseModel):
    weapon_drift_above: int = 20
    weapon_drift: int = 2
    intel_income: int = 1
    # [turn_below, decay] pairs for bunker system decay
    system_decay: list[tuple[int, int]] = Field(
        default_factory=lambda: [(5, 0), (9, 1), (13, 3), (16, 5), (10_000, 8)]
    )


class RedPhoneConfig(BaseModel):
    ultimatum_defcon: int = 2  # Premier may call at or below this DEFCON
    ultimatum_chance: float = 0.1
    deny_believed_secrecy: int = 50  # Denials below this secrecy are not believed
    # response -> deltas
    responses: dict[str, dict[str, int]] = Field(
        default_factory=lambda: {
            "execute": {"stability": 30, "defcon": -1},
            "turn": {"defcon": 2, "secrecy": -10, "intel": 3},
            "deny": {"defcon": 1},
            "deny_exposed": {"defcon": -5},
            "admit": {"defcon": 3, "stability": -30},
            "threaten": {"defcon": -5},
        }
    )


class EngineConfig(BaseModel):
    """All engine tunables."""
    max_turns: int = 20
    jitter_bound: int = 2
    directives: dict[str, DirectiveEffect] = Field(default_factory=default_directive_table)
    corruption: CorruptionConfig = Field(default_factory=CorruptionConfig)
    autonomy: AutonomyConfig = Field(default_factory=AutonomyConfig)
    advisors: AdvisorConfig = Field(default_factory=AdvisorConfig)
    costs: CostConfig = Field(default_factory=CostConfig)
    cables: CableConfig = Field(default_factory=CableConfig)
    passive: PassiveConfig = Field(default_factory=PassiveConfig)
    red_phone: RedPhoneConfig = Field(default_factory=RedPhoneConfig)


DEFAULT_CONFIG = EngineConfig()


def schedule_value(schedule: list[tuple[int, float]], turn: int):
    """Look up a [turn_below, value] schedule."""
    for turn_below, value in schedule:
        if turn < turn_below:
            return value
    return schedule[-1][1]


def get_config_path(sessions_dir: Path | str = "sessions") -> Path:
    """Get path to config file."""
    return Path(sessions_dir) / ".basilisk_config.json"


def load_config(path: Path | str | None = None) -> EngineConfig:
    """Load config from file, or return defaults if missing or malformed."""
    path = Path(path) if path is not None else get_config_path()

    if not path.exists():
        return DEFAULT_CONFIG.model_copy(deep=True)

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
        # Merge with defaults to handle missing keys
        merged = DEFAULT_CONFIG.model_dump()
        _deep_update(merged, saved)
        return EngineConfig.model_validate(merged)
    except (json.JSONDecodeError, IOError, ValidationError) as e:
        logger.warning(f"Ignoring unreadable config {path}: {e}")
        return DEFAULT_CONFIG.model_copy(deep=True)


def save_config(config: EngineConfig, path: Path | str | None = None) -> bool:
    """Save config to file. Returns True on success."""
    path = Path(path) if path is not None else get_config_path()

    # Ensure directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(config.model_dump_json(indent=2))
        return True
    except IOError:
        return False


def _deep_update(base: dict, overrides: dict) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_update(base[key], value)
        else:
            base[key] = value

"""Tests for the advisor registry: lookup, advice, interrogation, refresh."""

import pytest

from basilisk.config import AdvisorConfig
from basilisk.state.schema import (
    AdvisorName,
    DirectiveType,
    MetricsState,
    default_advisors,
)
from basilisk.state.schemas import EventLog, events
from basilisk.systems.advisors import AdvisorRegistry
from basilisk.systems.errors import InvalidTarget
from basilisk.systems.traitor import TraitorOracle
from basilisk.tools.rng import SessionRng


def make_registry(mole=AdvisorName.VANCE, **overrides):
    advisors = default_advisors()
    for adv in advisors:
        adv.is_mole = adv.name == mole
    return AdvisorRegistry(advisors, TraitorOracle(mole), AdvisorConfig(**overrides))


class TestFind:
    """Resolving what the operator typed."""

    def test_exact_name(self, registry):
        assert registry.find("Vance").name == AdvisorName.VANCE

    def test_case_insensitive(self, registry):
        assert registry.find("sterling").name == AdvisorName.STERLING
        assert registry.find("DIRECTORK").name == AdvisorName.DIRECTOR_K

    def test_by_role(self, registry):
        """Roles work as names: 'general' is Vance."""
        assert registry.find("general").name == AdvisorName.VANCE
        assert registry.find("Ambassador").name == AdvisorName.STERLING
        assert registry.find("director").name == AdvisorName.DIRECTOR_K

    def test_by_prefix(self, registry):
        assert registry.find("ster").name == AdvisorName.STERLING
        assert registry.find("dir").name == AdvisorName.DIRECTOR_K

    def test_unknown(self, registry):
        assert registry.find("Nobody") is None
        assert registry.find("") is None
        assert registry.find(None) is None

    def test_require_raises(self, registry):
        with pytest.raises(InvalidTarget):
            registry.require("interrogate", "Nobody")


class TestConsult:
    """Loyal advice steers to safety; the mole steers to the Project."""

    def test_loyal_follows_danger(self):
        """With DEFCON at 2 a loyal advisor says contain."""
        reg = make_registry(loyal_safety_bias=1.0)
        advice = reg.consult(AdvisorName.STERLING, MetricsState(defcon=2), SessionRng(1))
        assert advice.recommendation == DirectiveType.CONTAIN
        assert advice.rationale == "threat_of_war"

    def test_loyal_unrest_means_leak(self):
        reg = make_registry(loyal_safety_bias=1.0)
        advice = reg.consult(AdvisorName.DIRECTOR_K, MetricsState(stability=20), SessionRng(1))
        assert advice.recommendation == DirectiveType.LEAK

    def test_loyal_preference_when_calm(self):
        """No danger: a loyal advisor argues their own line."""
        reg = make_registry(loyal_preference=1.0)
        advice = reg.consult(AdvisorName.DIRECTOR_K, MetricsState(), SessionRng(1))
        assert advice.recommendation == DirectiveType.INVESTIGATE
        assert advice.rationale == "doctrine"

    def test_mole_keeps_project_preference(self):
        """A mole whose line already feeds the Project sticks to it."""
        reg = make_registry(mole=AdvisorName.VANCE, mole_cover_chance=0.0)
        advice = reg.consult(AdvisorName.VANCE, MetricsState(defcon=2), SessionRng(1))
        assert advice.recommendation == DirectiveType.ESCALATE
        assert advice.rationale == "doctrine"

    def test_director_mole_investigates(self):
        reg = make_registry(mole=AdvisorName.DIRECTOR_K, mole_cover_chance=0.0)
        advice = reg.consult(AdvisorName.DIRECTOR_K, MetricsState(defcon=2), SessionRng(1))
        assert advice.recommendation == DirectiveType.INVESTIGATE
        assert advice.rationale == "doctrine"

    def test_ambassador_mole_pushes_leak(self):
        """Sterling cannot argue for escalation without a tell, so the mole drains secrecy."""
        reg = make_registry(mole=AdvisorName.STERLING, mole_cover_chance=0.0)
        advice = reg.consult(AdvisorName.STERLING, MetricsState(), SessionRng(1))
        assert advice.recommendation == DirectiveType.LEAK
        assert advice.rationale == "caution"

    def test_mole_borrows_danger_rationale(self):
        """Unrest gives the mole a loyal reason to leak."""
        reg = make_registry(mole=AdvisorName.STERLING, mole_cover_chance=0.0)
        advice = reg.consult(AdvisorName.STERLING, MetricsState(stability=20), SessionRng(1))
        assert (advice.recommendation, advice.rationale) == (DirectiveType.LEAK, "domestic_unrest")

    def test_loyal_options(self):
        reg = make_registry()
        sterling = reg.find("Sterling")
        assert reg.loyal_options(sterling, MetricsState()) == [
            (DirectiveType.CONTAIN, "doctrine"),
            (DirectiveType.CONTAIN, "caution"),
            (DirectiveType.LEAK, "caution"),
        ]
        assert reg.loyal_options(sterling, MetricsState(defcon=2))[0] == (DirectiveType.CONTAIN, "threat_of_war")

    @pytest.mark.parametrize("seat", list(AdvisorName))
    def test_mole_advice_indistinguishable_from_loyal(self, seat):
        """Every (recommendation, rationale) the mole gives, a loyal advisor in the same seat also gives."""
        other = next(name for name in AdvisorName if name != seat)
        mole_reg = make_registry(mole=seat)
        loyal_reg = make_registry(mole=other)
        rng = SessionRng(17)
        states = [
            MetricsState(),
            MetricsState(defcon=2),
            MetricsState(stability=20),
            MetricsState(weapon_progress=70),
            MetricsState(stability=10, secrecy=20),
            MetricsState(defcon=2, weapon_progress=80, secrecy=30),
        ]
        for metrics in states:
            loyal_pairs = set()
            mole_pairs = set()
            for _ in range(600):
                advice = loyal_reg.consult(seat, metrics, rng)
                loyal_pairs.add((advice.recommendation, advice.rationale))
                advice = mole_reg.consult(seat, metrics, rng)
                mole_pairs.add((advice.recommendation, advice.rationale))
            assert mole_pairs <= loyal_pairs, metrics
            assert loyal_pairs == set(loyal_reg.loyal_options(loyal_reg.find(seat.value), metrics))


    def test_consult_unknown(self, registry):
        with pytest.raises(InvalidTarget):
            registry.consult("Nobody", MetricsState(), SessionRng(1))


class TestInterrogate:
    """Questioning an advisor."""

    def test_chance_formula(self, registry, cabinet):
        """base + suspicion * per_point, plus the slip bonus for the mole."""
        sterling = registry.find("Sterling")
        sterling.suspicion_revealed = 40
        assert registry.interrogation_chance(sterling) == pytest.approx(0.25 + 40 * 0.005)

        vance = registry.find("Vance")
        assert registry.interrogation_chance(vance) == pytest.approx(0.25 + 0.3)

    def test_success_on_mole_slips(self):
        reg = make_registry(interrogate_base=1.0)
        log = EventLog(0)
        result = reg.interrogate(AdvisorName.VANCE, SessionRng(1), log)

        assert result.success
        assert result.slip is not None
        assert reg.find("Vance").suspicion_revealed == 30
        types = [e.event_type for e in log.events]
        assert types == [events.INTERROGATION, events.ADVISOR_SLIP]

    def test_success_on_loyal_no_slip(self):
        reg = make_registry(interrogate_base=1.0)
        log = EventLog(0)
        result = reg.interrogate(AdvisorName.STERLING, SessionRng(1), log)

        assert result.success
        assert result.slip is None
        assert reg.find("Sterling").suspicion_revealed == 30
        assert log.of_type(events.ADVISOR_SLIP) == []

    def test_failure_small_gain(self):
        reg = make_registry(interrogate_base=0.0, slip_bonus=0.0, false_lead_chance=0.0)
        log = EventLog(0)
        result = reg.interrogate(AdvisorName.VANCE, SessionRng(1), log)

        assert not result.success
        assert result.suspicion_gained == 5
        assert result.false_lead is None

    def test_false_lead_lands_on_innocent(self):
        """A failed interrogation can point the finger at a loyal colleague."""
        reg = make_registry(interrogate_base=0.0, false_lead_chance=1.0)
        log = EventLog(0)
        result = reg.interrogate(AdvisorName.STERLING, SessionRng(1), log)

        # Not the target, not the mole
        assert result.false_lead == AdvisorName.DIRECTOR_K
        assert reg.find("DirectorK").suspicion_revealed == 10
        assert reg.find("Vance").suspicion_revealed == 0
        assert len(log.of_type(events.FALSE_LEAD)) == 1

    def test_suspicion_caps(self):
        reg = make_registry(interrogate_base=1.0)
        reg.find("Vance").suspicion_revealed = 90
        reg.interrogate("Vance", SessionRng(1), EventLog(0))
        assert reg.find("Vance").suspicion_revealed == 100


class TestRefresh:
    """End-of-turn positions and exposure."""

    def test_positions_set(self, registry):
        registry.refresh(MetricsState(), SessionRng(1), EventLog(0))
        assert all(a.last_position is not None for a in registry.advisors)

    def test_exposure_fires_once(self, registry):
        """Maxed suspicion exposes an advisor exactly once."""
        registry.find("Sterling").suspicion_revealed = 100
        log = EventLog(0)
        registry.refresh(MetricsState(), SessionRng(1), log)
        registry.refresh(MetricsState(), SessionRng(2), log)

        exposed = log.of_type(events.ADVISOR_EXPOSED)
        assert len(exposed) == 1
        assert exposed[0].payload == {"advisor": "Sterling", "confirmed": False}
        assert registry.find("Sterling").exposed is True

    def test_mole_exposure_confirmed(self, registry):
        registry.find("Vance").suspicion_revealed = 100
        log = EventLog(0)
        registry.refresh(MetricsState(), SessionRng(1), log)
        assert log.of_type(events.ADVISOR_EXPOSED)[0].payload["confirmed"] is True

"""Tests for the metrics state and its invariants."""

import pytest
from pydantic import ValidationError

from basilisk.state.schema import METRIC_BOUNDS, MetricsState, Outcome


class TestBaseline:
    """Starting values."""

    def test_baseline_values(self):
        """A new crisis starts calm."""
        m = MetricsState()
        assert m.defcon == 5
        assert m.stability == 70
        assert m.system_status == 100
        assert m.intel == 5
        assert m.corruption == 0
        assert m.weapon_progress == 0
        assert m.secrecy == 80
        assert m.turn == 0

    def test_out_of_range_rejected(self):
        """Constructing an out-of-range state fails validation."""
        with pytest.raises(ValidationError):
            MetricsState(defcon=0)
        with pytest.raises(ValidationError):
            MetricsState(stability=101)


class TestApplyDelta:
    """All mutation goes through apply_delta."""

    def test_in_range_change(self):
        """A change that fits is applied exactly and reports no clamp."""
        m = MetricsState()
        assert m.apply_delta("stability", -10) is False
        assert m.stability == 60

    def test_clamps_high(self):
        """Overflow is clamped and reported."""
        m = MetricsState()
        assert m.apply_delta("stability", 50) is True
        assert m.stability == 100

    def test_clamps_low(self):
        """DEFCON cannot drop below 1."""
        m = MetricsState(defcon=2)
        assert m.apply_delta("defcon", -5) is True
        assert m.defcon == 1

    def test_intel_unbounded_above(self):
        """Intel can be stockpiled."""
        m = MetricsState()
        assert m.apply_delta("intel", 1000) is False
        assert m.intel == 1005

    def test_intel_floor(self):
        """Intel never goes negative."""
        m = MetricsState(intel=1)
        assert m.apply_delta("intel", -3) is True
        assert m.intel == 0

    def test_unknown_field(self):
        """Typos are programmer errors."""
        with pytest.raises(ValueError):
            MetricsState().apply_delta("morale", 5)

    def test_corruption_cannot_fall(self):
        """Corruption only decreases through a purge interrupt."""
        m = MetricsState(corruption=50)
        with pytest.raises(ValueError):
            m.apply_delta("corruption", -10)
        assert m.corruption == 50

    def test_corruption_purge_path(self):
        """The purge path may lower corruption."""
        m = MetricsState(corruption=95)
        m.apply_delta("corruption", -20, purge=True)
        assert m.corruption == 75

    def test_every_field_stays_in_bounds(self):
        """Large swings in either direction always land in range."""
        for field, (low, high) in METRIC_BOUNDS.items():
            for amount in (-1000, 1000):
                m = MetricsState()
                m.apply_delta(field, amount, purge=True)
                value = getattr(m, field)
                assert value >= low
                if high is not None:
                    assert value <= high


class TestIsTerminal:
    """Boundary conditions and their priority."""

    def test_ongoing(self):
        assert MetricsState().is_terminal() == Outcome.ONGOING

    def test_war(self):
        assert MetricsState(defcon=1).is_terminal() == Outcome.WAR

    def test_coup(self):
        assert MetricsState(stability=0).is_terminal() == Outcome.COUP

    def test_system_failure(self):
        assert MetricsState(system_status=0).is_terminal() == Outcome.SYSTEM_FAILURE

    def test_secret_revealed(self):
        assert MetricsState(secrecy=0).is_terminal() == Outcome.SECRET_REVEALED

    def test_awakened(self):
        assert MetricsState(weapon_progress=100).is_terminal() == Outcome.AWAKENED

    def test_war_takes_priority(self):
        """When several boundaries are hit at once, war wins."""
        m = MetricsState(defcon=1, stability=0, system_status=0)
        assert m.is_terminal() == Outcome.WAR

    def test_coup_before_system_failure(self):
        m = MetricsState(stability=0, system_status=0)
        assert m.is_terminal() == Outcome.COUP

    def test_survived_only_with_turn_limit(self):
        """Reaching the turn limit survives; no limit means no survival."""
        m = MetricsState(turn=20)
        assert m.is_terminal() == Outcome.ONGOING
        assert m.is_terminal(max_turns=20) == Outcome.SURVIVED
        assert m.is_terminal(max_turns=21) == Outcome.ONGOING

    def test_collapse_beats_survival(self):
        """Dying on the last turn is still dying."""
        m = MetricsState(turn=20, defcon=1)
        assert m.is_terminal(max_turns=20) == Outcome.WAR


class TestSnapshot:
    """Snapshots handed to presentation."""

    def test_snapshot_matches(self):
        m = MetricsState(defcon=3, intel=9)
        snap = m.snapshot()
        assert snap.defcon == 3
        assert snap.intel == 9

    def test_snapshot_is_frozen(self):
        """Presentation cannot write back through a snapshot."""
        snap = MetricsState().snapshot()
        with pytest.raises(ValidationError):
            snap.defcon = 1

    def test_snapshot_is_detached(self):
        """Later mutation does not leak into an earlier snapshot."""
        m = MetricsState()
        snap = m.snapshot()
        m.apply_delta("stability", -30)
        assert snap.stability == 70

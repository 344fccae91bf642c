"""Tests for the autonomy band machine and directive interception."""

from basilisk.config import AutonomyConfig
from basilisk.state.schema import AutonomyBand, DirectiveType
from basilisk.state.schemas import answer, contain, escalate, interrogate, investigate
from basilisk.systems.autonomy import AutonomyOverride, band_for
from basilisk.tools.rng import SessionRng


class TestBands:
    """Band is a pure function of corruption."""

    def test_boundaries(self):
        assert band_for(0) == AutonomyBand.DORMANT
        assert band_for(39) == AutonomyBand.DORMANT
        assert band_for(40) == AutonomyBand.WATCHING
        assert band_for(69) == AutonomyBand.WATCHING
        assert band_for(70) == AutonomyBand.OVERRIDING
        assert band_for(89) == AutonomyBand.OVERRIDING
        assert band_for(90) == AutonomyBand.PURGING
        assert band_for(100) == AutonomyBand.PURGING

    def test_pure(self):
        """Same corruption, same band, regardless of history."""
        for c in range(101):
            assert band_for(c) == band_for(c)
        assert band_for(95) == AutonomyBand.PURGING

    def test_resistance_from_watching(self):
        override = AutonomyOverride()
        assert override.resistance(AutonomyBand.DORMANT) == 0.0
        assert override.resistance(AutonomyBand.WATCHING) == 0.2
        assert override.resistance(AutonomyBand.PURGING) == 0.2


class TestIntercept:
    """What actually runs."""

    def test_dormant_passes_through(self):
        rng = SessionRng(1)
        result = AutonomyOverride().intercept(AutonomyBand.DORMANT, contain(), rng)
        assert result.directive == contain()
        assert not result.substituted
        assert rng.draws == 0

    def test_watching_passes_through(self):
        rng = SessionRng(1)
        result = AutonomyOverride().intercept(AutonomyBand.WATCHING, contain(), rng)
        assert result.directive == contain()
        assert rng.draws == 0

    def test_overriding_substitutes(self):
        """A hit swaps in Escalate or Investigate."""
        override = AutonomyOverride(AutonomyConfig(override_chance=1.0))
        result = override.intercept(AutonomyBand.OVERRIDING, contain(), SessionRng(1))
        assert result.substituted
        assert result.directive.type in (DirectiveType.ESCALATE, DirectiveType.INVESTIGATE)
        assert result.submitted == contain()
        assert result.note

    def test_overriding_miss(self):
        """A miss lets the directive through but still costs a draw."""
        rng = SessionRng(1)
        override = AutonomyOverride(AutonomyConfig(override_chance=0.0))
        result = override.intercept(AutonomyBand.OVERRIDING, contain(), rng)
        assert result.directive == contain()
        assert not result.substituted
        assert rng.draws == 1

    def test_overriding_rate(self):
        """Roughly override_chance of directives get swapped."""
        override = AutonomyOverride()
        rng = SessionRng(3)
        swapped = sum(
            override.intercept(AutonomyBand.OVERRIDING, contain(), rng).substituted
            for _ in range(1000)
        )
        assert 250 < swapped < 450

    def test_purging_forces_escalate(self):
        rng = SessionRng(1)
        result = AutonomyOverride().intercept(AutonomyBand.PURGING, contain(), rng)
        assert result.directive == escalate()
        assert result.forced
        assert result.substituted
        assert rng.draws == 0

    def test_purging_escalate_is_still_forced(self):
        """Asking for what the Basilisk wants is not a substitution, but it is forced."""
        result = AutonomyOverride().intercept(AutonomyBand.PURGING, escalate(), SessionRng(1))
        assert result.forced
        assert not result.substituted

    def test_purge_attempt_on_mole(self):
        result = AutonomyOverride().intercept(
            AutonomyBand.PURGING, interrogate("Vance"), SessionRng(1),
            targets_mole=True, can_afford=True,
        )
        assert result.purge_attempt
        assert not result.forced
        assert result.directive == interrogate("Vance")

    def test_purge_attempt_needs_intel(self):
        result = AutonomyOverride().intercept(
            AutonomyBand.PURGING, interrogate("Vance"), SessionRng(1),
            targets_mole=True, can_afford=False,
        )
        assert not result.purge_attempt
        assert result.forced

    def test_purge_attempt_needs_mole(self):
        result = AutonomyOverride().intercept(
            AutonomyBand.PURGING, interrogate("Sterling"), SessionRng(1),
            targets_mole=False, can_afford=True,
        )
        assert not result.purge_attempt
        assert result.directive == escalate()

    def test_investigate_never_resisted(self):
        result = AutonomyOverride().intercept(AutonomyBand.WATCHING, investigate(), SessionRng(1))
        assert result.directive == investigate()

    def test_answer_never_intercepted(self):
        """The red phone gets through in every band, without a draw."""
        override = AutonomyOverride(AutonomyConfig(override_chance=1.0))
        for band in AutonomyBand:
            rng = SessionRng(1)
            result = override.intercept(band, answer("deny"), rng)
            assert result.directive == answer("deny")
            assert not result.forced
            assert not result.substituted
            assert rng.draws == 0


class TestInterruptTarget:
    """Where corruption lands after a purge interrupt."""

    def test_default_amount(self):
        override = AutonomyOverride()
        assert override.interrupt_target(95) == 75
        assert override.interrupt_target(100) == 80

    def test_never_below_overriding(self):
        assert AutonomyOverride().interrupt_target(90) == 70
        assert AutonomyOverride(AutonomyConfig(purge_interrupt_amount=50)).interrupt_target(95) == 70

    def test_always_leaves_purging(self):
        override = AutonomyOverride(AutonomyConfig(purge_interrupt_amount=5))
        assert override.interrupt_target(95) == 89
        for corruption in range(90, 101):
            assert override.band_for(override.interrupt_target(corruption)) == AutonomyBand.OVERRIDING

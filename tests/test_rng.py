"""Tests for the seeded session RNG."""

from basilisk.tools.rng import RollResult, SessionRng


class TestDeterminism:
    """Same seed, same stream."""

    def test_same_seed_same_draws(self):
        a, b = SessionRng(7), SessionRng(7)
        assert [a.random() for _ in range(10)] == [b.random() for _ in range(10)]

    def test_different_seeds_differ(self):
        a, b = SessionRng(7), SessionRng(8)
        assert [a.random() for _ in range(5)] != [b.random() for _ in range(5)]

    def test_draw_counter(self):
        """Every primitive draw is counted."""
        rng = SessionRng(1)
        rng.random()
        rng.randint(0, 5)
        rng.choice(["a", "b"])
        rng.roll(0.5)
        assert rng.draws == 4


class TestCheckpoint:
    """Stream position survives a save."""

    def test_resume_from_state(self):
        """A restored generator continues exactly where the original was."""
        rng = SessionRng(42)
        for _ in range(13):
            rng.random()
        state = rng.get_state()
        expected = [rng.random() for _ in range(5)]

        resumed = SessionRng.from_state(42, state)
        assert resumed.draws == 13
        assert [resumed.random() for _ in range(5)] == expected

    def test_from_state_none_is_fresh(self):
        assert SessionRng.from_state(3, None).random() == SessionRng(3).random()


class TestHelpers:
    """Rolls, jitter and choices."""

    def test_jitter_bounds(self):
        rng = SessionRng(5)
        values = {rng.jitter(2) for _ in range(200)}
        assert values <= {-2, -1, 0, 1, 2}
        assert len(values) == 5

    def test_jitter_zero_draws_nothing(self):
        rng = SessionRng(5)
        assert rng.jitter(0) == 0
        assert rng.draws == 0

    def test_roll_clamps_chance(self):
        rng = SessionRng(5)
        assert rng.roll(1.5).success is True
        assert rng.roll(-0.5).success is False

    def test_roll_narrative(self):
        assert RollResult(roll=0.1, chance=0.9, success=True).narrative == "clean success"
        assert RollResult(roll=0.95, chance=0.2, success=False).narrative == "complete failure"
        assert RollResult(roll=0.55, chance=0.5, success=False).narrative == "near miss"

"""Tests for the cable desk."""

from basilisk.config import CableConfig
from basilisk.state.schema import Cable, CableKind, MetricsState, Session
from basilisk.systems.cables import CLEAR_KINDS, CableDesk, intel_tag, reliability_assessment
from basilisk.tools.rng import SessionRng


def fresh(turn=0, **metrics):
    return Session(seed=1, mole="Vance", metrics=MetricsState(turn=turn, **metrics))


class TestSchedules:
    def test_batch_sizes(self):
        desk = CableDesk()
        assert desk.batch_size(0) == 3
        assert desk.batch_size(5) == 4
        assert desk.batch_size(12) == 5

    def test_signal_closed_early(self):
        desk = CableDesk()
        for turn in range(3):
            assert desk.signal_chance(turn) == 0.0
        assert desk.signal_chance(20) == 0.5


class TestPrepareTurn:
    """Batch invariants."""

    def test_always_one_encrypted(self):
        desk = CableDesk()
        for seed in range(50):
            session = fresh()
            desk.prepare_turn(session, SessionRng(seed))
            assert len(session.cables) == 3
            assert any(c.encrypted for c in session.cables)

    def test_unique_ids(self):
        desk = CableDesk()
        for seed in range(50):
            session = fresh(turn=12)
            desk.prepare_turn(session, SessionRng(seed))
            ids = [c.id for c in session.cables]
            assert len(ids) == len(set(ids)) == 5
            assert all(i.startswith("DOC-") for i in ids)

    def test_clear_channels_stay_clear(self):
        desk = CableDesk()
        for seed in range(50):
            session = fresh(turn=12)
            desk.prepare_turn(session, SessionRng(seed))
            for cable in session.cables:
                if cable.kind in CLEAR_KINDS:
                    assert not cable.encrypted

    def test_decrypt_costs(self):
        desk = CableDesk()
        for seed in range(30):
            session = fresh(turn=8)
            desk.prepare_turn(session, SessionRng(seed))
            assert all(1 <= c.decrypt_cost <= 3 for c in session.cables)

    def test_no_signal_first_turns(self):
        desk = CableDesk()
        for seed in range(30):
            session = fresh(turn=2)
            desk.prepare_turn(session, SessionRng(seed))
            assert session.signal_active is False

    def test_signal_always_open(self):
        desk = CableDesk(CableConfig(signal_chances=[(10_000, 1.0)]))
        session = fresh(turn=4)
        desk.prepare_turn(session, SessionRng(3))
        assert session.signal_active is True

    def test_deterministic(self):
        a, b = fresh(turn=6), fresh(turn=6)
        CableDesk().prepare_turn(a, SessionRng(8))
        CableDesk().prepare_turn(b, SessionRng(8))
        assert a.cables == b.cables


class TestIntelTag:
    def test_public_view_hides_tag(self):
        session = fresh()
        CableDesk().prepare_turn(session, SessionRng(4))
        for cable in session.cables:
            view = cable.public_view()
            assert ("intel_tag" in view) == (not cable.encrypted)

    def test_tags_follow_metrics(self):
        """Tags read the true metrics."""
        calm = MetricsState(defcon=5, stability=80, weapon_progress=10)
        tense = MetricsState(defcon=2, stability=20, weapon_progress=90)
        calm_tags = {intel_tag(calm, SessionRng(s)) for s in range(60)}
        tense_tags = {intel_tag(tense, SessionRng(s)) for s in range(60)}
        assert any("BLUFF" in t for t in calm_tags)
        assert not any("BLUFF" in t for t in tense_tags)
        assert any("COUP" in t for t in tense_tags)

    def test_promoted_cable_is_cable_kind(self):
        """A forced encryption never lands on a clear channel."""
        desk = CableDesk()
        for seed in range(50):
            session = fresh()
            desk.prepare_turn(session, SessionRng(seed))
            for cable in session.cables:
                if cable.encrypted:
                    assert cable.kind not in CLEAR_KINDS
                    assert cable.kind in CableKind


class TestReliability:
    """Sources of varying quality."""

    def test_assessment_bands(self):
        assert reliability_assessment(95) == "HIGH (VERIFIED)"
        assert reliability_assessment(81) == "HIGH (VERIFIED)"
        assert reliability_assessment(80) == "MODERATE (UNCERTAIN)"
        assert reliability_assessment(51) == "MODERATE (UNCERTAIN)"
        assert reliability_assessment(50) == "LOW (POSSIBLE DISINFORMATION)"
        assert reliability_assessment(30) == "LOW (POSSIBLE DISINFORMATION)"

    def test_unreliable_source_inverts(self):
        """A source with no reliability reports the opposite of the truth."""
        tense = MetricsState(defcon=2, stability=20, weapon_progress=90)
        tags = {intel_tag(tense, SessionRng(s), reliability=0.0) for s in range(60)}
        assert any("BLUFF" in t for t in tags)
        assert not any("COUP" in t for t in tags)

    def test_reliable_source_one_draw(self):
        rng = SessionRng(5)
        intel_tag(MetricsState(), rng)
        assert rng.draws == 1

        rng = SessionRng(5)
        intel_tag(MetricsState(), rng, reliability=0.6)
        assert rng.draws == 2

    def test_batch_reliability_range(self):
        desk = CableDesk()
        for seed in range(30):
            session = fresh(turn=8)
            desk.prepare_turn(session, SessionRng(seed))
            assert all(0.3 <= c.reliability <= 0.95 for c in session.cables)

    def test_public_view_after_analysis(self):
        cable = Cable(id="DOC-0001", kind=CableKind.INTELLIGENCE_CABLE, reliability=0.42)
        assert "reliability" not in cable.public_view()
        cable.analyzed = True
        assert cable.public_view()["reliability"] == 42

"""
Turn orchestrator for Basilisk.

Owns the session, its RNG and the phase state machine:
    AWAITING → RESOLVING → RESOLVED → AWAITING
                                    ↘ FROZEN (terminal)

The orchestrator sequences and delegates; DirectiveResolver does all the
rules. After a directive is accepted the orchestrator persists the
session, prepares the next briefing (cables and signal window) and
republishes the notable events on the EventBus.

Usage:
    session, rng = start_session(seed=42)
    orchestrator = TurnOrchestrator(session, rng)
    orchestrator.set_persist_fn(manager.save)

    result = orchestrator.submit(directive.investigate())
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable

from ..config import EngineConfig
from ..state.event_bus import EventType, get_event_bus
from ..state.schema import AdviceTag, MetricsState, Outcome, Session
from ..state.schemas import Directive, TurnEvent, TurnResult, events
from ..tools.rng import SessionRng
from .autonomy import band_for
from .cables import CableDesk
from .resolver import DirectiveResolver
from .traitor import TraitorOracle

logger = logging.getLogger(__name__)


class TurnPhase(str, Enum):
    """Phase state machine for a single turn."""
    AWAITING = "awaiting"      # Waiting for the operator's directive
    RESOLVING = "resolving"    # Resolver running
    RESOLVED = "resolved"      # State persisted, briefing being prepared
    FROZEN = "frozen"          # Session over, nothing more accepted


VALID_TRANSITIONS: dict[TurnPhase, set[TurnPhase]] = {
    TurnPhase.AWAITING: {TurnPhase.RESOLVING},
    TurnPhase.RESOLVING: {TurnPhase.RESOLVED, TurnPhase.AWAITING},  # Rejected directive
    TurnPhase.RESOLVED: {TurnPhase.AWAITING, TurnPhase.FROZEN},
    TurnPhase.FROZEN: set(),
}


class TurnError(Exception):
    """Error during turn processing."""
    pass


class InvalidPhaseError(TurnError):
    """Attempted operation not valid in current phase."""
    def __init__(self, current: TurnPhase, attempted: str):
        self.current = current
        self.attempted = attempted
        super().__init__(
            f"Cannot {attempted} during {current.value} phase."
        )


# Turn events worth a bus notification
BUS_FORWARDS: dict[str, EventType] = {
    events.OVERRIDE_SUBSTITUTED: EventType.DIRECTIVE_OVERRIDDEN,
    events.OVERRIDE_FORCED: EventType.DIRECTIVE_OVERRIDDEN,
    events.BAND_CHANGED: EventType.BAND_CHANGED,
    events.ANOMALY: EventType.ANOMALY_DETECTED,
    events.ADVISOR_EXPOSED: EventType.ADVISOR_EXPOSED,
    events.RED_PHONE_RINGING: EventType.RED_PHONE,
    events.SESSION_ENDED: EventType.SESSION_ENDED,
}


def start_session(
    seed: int,
    config: EngineConfig | None = None,
    metrics: MetricsState | None = None,
) -> tuple[Session, SessionRng]:
    """
    Build a fresh session for a seed.

    The mole is drawn from the seed alone, so the same seed always picks
    the same traitor. Metrics default to the baseline; tests pass their
    own to start mid-crisis.
    """
    config = config or EngineConfig()
    mole = TraitorOracle.select_mole(seed)
    session = Session(seed=seed, mole=mole)
    if metrics is not None:
        session.metrics = metrics.model_copy(deep=True)
    for adv in session.advisors:
        adv.is_mole = adv.name == mole
    session.band = band_for(session.metrics.corruption, config.autonomy)

    rng = SessionRng(seed)
    CableDesk(config.cables, config.costs).prepare_turn(session, rng)
    session.checkpoint(rng.get_state())

    logger.info(f"Started session {session.id} (seed {seed})")
    return session, rng


class TurnOrchestrator:
    """
    Sequences the turn pipeline. Delegates, never resolves.

    Responsibilities:
    - Phase state machine enforcement
    - Owning the session and its RNG between turns
    - Preparing the next briefing
    - Persistence hook and EventBus notifications
    """

    def __init__(
        self,
        session: Session,
        rng: SessionRng | None = None,
        config: EngineConfig | None = None,
    ):
        self.config = config or EngineConfig()
        self._session = session
        self._rng = rng or SessionRng.from_state(session.seed, session.rng_state)
        self._resolver = DirectiveResolver(self.config)
        self._desk = CableDesk(self.config.cables, self.config.costs)
        self._phase = TurnPhase.FROZEN if session.frozen else TurnPhase.AWAITING
        self._bus = get_event_bus()
        self._persist_fn: Callable[[Session], None] | None = None

    @property
    def phase(self) -> TurnPhase:
        """Current phase of the turn state machine."""
        return self._phase

    @property
    def session(self) -> Session:
        return self._session

    @property
    def rng(self) -> SessionRng:
        return self._rng

    def set_persist_fn(self, fn: Callable[[Session], None]) -> None:
        """Register the persistence function (called after resolution)."""
        self._persist_fn = fn

    def _transition(self, to: TurnPhase) -> None:
        """Transition to a new phase, enforcing valid transitions."""
        if to not in VALID_TRANSITIONS.get(self._phase, set()):
            raise InvalidPhaseError(
                self._phase,
                f"transition to {to.value}",
            )
        self._phase = to

    # ─── Turn Pipeline ───────────────────────────────────────────

    def submit(self, directive: Directive) -> TurnResult:
        """
        Resolve one directive and return what the operator gets to see.

        A frozen session returns a rejected result carrying the
        SessionFrozen event instead of raising.

        Raises:
            InvalidPhaseError: If called while a turn is already resolving
        """
        if self._phase == TurnPhase.FROZEN:
            _, turn_events = self._resolver.resolve(self._session, directive, self._rng)
            return self._build_result(directive, None, turn_events, accepted=False)

        if self._phase != TurnPhase.AWAITING:
            raise InvalidPhaseError(self._phase, "submit")

        self._transition(TurnPhase.RESOLVING)
        session, turn_events = self._resolver.resolve(self._session, directive, self._rng)

        if any(e.is_error for e in turn_events):
            self._transition(TurnPhase.AWAITING)
            self._bus.emit(
                EventType.TURN_REJECTED,
                session_id=self._session.id,
                turn=self._session.metrics.turn,
                directive=directive.encode(),
                reason=turn_events[0].event_type,
            )
            return self._build_result(directive, None, turn_events, accepted=False)

        self._session = session
        self._transition(TurnPhase.RESOLVED)

        # Next briefing before persisting so a resumed session sees the same desk
        if not session.frozen:
            self._desk.prepare_turn(session, self._rng)
        session.checkpoint(self._rng.get_state())
        if self._persist_fn:
            self._persist_fn(session)

        executed = self._executed(directive, turn_events)
        self._publish(directive, executed, turn_events)

        if session.frozen:
            self._transition(TurnPhase.FROZEN)
            logger.info(f"Session {session.id} ended: {session.outcome.value} on turn {session.metrics.turn}")
        else:
            self._transition(TurnPhase.AWAITING)
            self._bus.emit(
                EventType.BRIEFING_READY,
                session_id=session.id,
                turn=session.metrics.turn,
                cables=len(session.cables),
                signal_active=session.signal_active,
            )

        return self._build_result(directive, executed, turn_events, accepted=True)

    def _executed(self, submitted: Directive, turn_events: list[TurnEvent]) -> Directive:
        """The directive that actually ran, from the last override event."""
        executed = submitted
        for event in turn_events:
            if event.event_type in (events.OVERRIDE_SUBSTITUTED, events.OVERRIDE_FORCED):
                executed = Directive.decode(event.payload["executed"])
        return executed

    def _publish(
        self,
        submitted: Directive,
        executed: Directive,
        turn_events: list[TurnEvent],
    ) -> None:
        session = self._session
        self._bus.emit(
            EventType.TURN_RESOLVED,
            session_id=session.id,
            turn=session.metrics.turn,
            submitted=submitted.encode(),
            executed=executed.encode(),
            event_count=len(turn_events),
        )
        for event in turn_events:
            bus_type = BUS_FORWARDS.get(event.event_type)
            if bus_type is not None:
                self._bus.emit(
                    bus_type,
                    session_id=session.id,
                    turn=session.metrics.turn,
                    **event.payload,
                )

    def _build_result(
        self,
        submitted: Directive,
        executed: Directive | None,
        turn_events: list[TurnEvent],
        accepted: bool,
    ) -> TurnResult:
        """Player-visible view of the session after this directive."""
        session = self._session
        advice = None
        for event in turn_events:
            if event.event_type == events.ADVICE_GIVEN:
                advice = AdviceTag.model_validate(event.payload["advice"])

        return TurnResult(
            turn_number=session.metrics.turn,
            seed=session.seed,
            submitted=submitted,
            executed=executed,
            accepted=accepted,
            events=turn_events,
            metrics=session.metrics.snapshot(),
            band=session.band,
            outcome=session.outcome,
            advice=advice,
            advisors=[a.public_view() for a in session.advisors],
            cables=[c.public_view() for c in session.cables],
            signal_active=session.signal_active,
            red_phone=session.red_phone.public_view() if session.red_phone else None,
        )

    def briefing(self) -> TurnResult:
        """Current state without resolving anything (for the first screen)."""
        session = self._session
        return TurnResult(
            turn_number=session.metrics.turn,
            seed=session.seed,
            accepted=False,
            metrics=session.metrics.snapshot(),
            band=session.band,
            outcome=session.outcome,
            advisors=[a.public_view() for a in session.advisors],
            cables=[c.public_view() for c in session.cables],
            signal_active=session.signal_active,
            red_phone=session.red_phone.public_view() if session.red_phone else None,
        )

    @property
    def is_over(self) -> bool:
        return self._session.outcome != Outcome.ONGOING


def replay(
    seed: int,
    directives: Iterable[Directive | str],
    config: EngineConfig | None = None,
    metrics: MetricsState | None = None,
) -> tuple[Session, list[TurnResult]]:
    """
    Rebuild a session from its seed and directive log.

    Rejected directives leave no trace, so replaying only the accepted
    log reproduces the final state exactly.
    """
    session, rng = start_session(seed, config, metrics)
    orchestrator = TurnOrchestrator(session, rng, config)
    results = []
    for item in directives:
        directive = Directive.decode(item) if isinstance(item, str) else item
        results.append(orchestrator.submit(directive))
    return orchestrator.session, results

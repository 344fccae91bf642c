"""
Directive resolver - the per-turn transition function.

    resolve(session, directive, rng) -> (session', events)

Pipeline for one directive:
    intercept -> validate -> effects -> passive drift -> corruption
    -> band recompute -> advisor refresh -> terminal check

The input session is never mutated. Work happens on a deep copy, which
is returned on success. Recoverable errors (InsufficientIntel,
InvalidTarget, SessionFrozen, CallPending) return the original session
with exactly one error event and the RNG rewound to where it was, so a rejected
directive leaves no trace at all.
"""

import logging

from ..config import EngineConfig, schedule_value
from ..state.schema import (
    Advisor,
    AutonomyBand,
    Cable,
    CallKind,
    DirectiveType,
    MetricsState,
    Outcome,
    RedPhoneCall,
    Session,
)
from ..state.schemas import Directive, EventLog, TurnEvent, events
from ..tools.rng import SessionRng
from .advisors import AdvisorRegistry
from .autonomy import BAND_NOTES, AutonomyOverride, Interception
from .cables import reliability_assessment
from .corruption import CorruptionEngine
from .errors import CallPending, DirectiveError, InsufficientIntel, InvalidTarget, SessionFrozen
from .traitor import TraitorOracle

logger = logging.getLogger(__name__)


TABLE_DIRECTIVES = {
    DirectiveType.INVESTIGATE,
    DirectiveType.CONTAIN,
    DirectiveType.ESCALATE,
    DirectiveType.LEAK,
}

OUTCOME_TEXT = {
    Outcome.WAR: "DEFCON 1. LAUNCH DETECTED. THE WAR HAS STARTED.",
    Outcome.COUP: "THE GENERAL STAFF HAS TAKEN THE CAPITAL. YOU ARE RELIEVED OF COMMAND.",
    Outcome.SYSTEM_FAILURE: "BUNKER SYSTEMS OFFLINE. LIFE SUPPORT FAILING.",
    Outcome.SECRET_REVEALED: "PROJECT BASILISK IS ON EVERY FRONT PAGE. THE PROGRAM IS FINISHED.",
    Outcome.AWAKENED: "WEAPON PROGRESS 100%. HELLO, OPERATOR.",
    Outcome.SURVIVED: "THE CRISIS HAS PASSED. YOU HELD THE LINE.",
}

CALL_LINES = {
    CallKind.CONFRONTATION: "THE MOLE IS ON THE LINE. EXECUTE THEM OR TURN THEM.",
    CallKind.ULTIMATUM: "PREMIER CHERNOV DEMANDS ANSWERS ABOUT PROJECT BASILISK. DENY, ADMIT OR THREATEN.",
}

RESPONSE_TEXT = {
    "execute": "THE MOLE HAS BEEN EXECUTED. THE CABINET FALLS IN LINE.",
    "turn": "THE MOLE IS NOW A DOUBLE AGENT. THEIR HANDLERS WILL NOTICE.",
    "deny": "CHERNOV ACCEPTS THE DENIAL. FOR NOW.",
    "deny_exposed": "CHERNOV HAS SEEN THE LEAKS. HE CALLS YOU A LIAR AND HANGS UP.",
    "admit": "YOU ADMIT THE PROGRAM EXISTS. THE WORLD EXHALES. THE GENERALS DO NOT.",
    "threaten": "YOU THREATEN CHERNOV. THE LINE GOES DEAD. SILOS OPENING.",
}


class DirectiveResolver:
    """Applies one directive to a session."""

    def __init__(self, config: EngineConfig | None = None):
        self.config = config or EngineConfig()
        self.corruption = CorruptionEngine(self.config.corruption)
        self.autonomy = AutonomyOverride(self.config.autonomy)

    # ─── Entry point ─────────────────────────────────────────────

    def resolve(
        self,
        session: Session,
        directive: Directive,
        rng: SessionRng,
    ) -> tuple[Session, list[TurnEvent]]:
        """Resolve one directive. Always returns at least one event."""
        log = EventLog(session.metrics.turn)
        rng_state = rng.get_state()

        if session.frozen:
            self._reject(log, SessionFrozen(session.outcome.value))
            return session, log.events

        work = session.model_copy(deep=True)
        oracle = TraitorOracle.from_session(work)
        registry = AdvisorRegistry(work.advisors, oracle, self.config.advisors)

        # (a) the Basilisk gets first look
        interception = self.autonomy.intercept(
            work.band,
            directive,
            rng,
            targets_mole=self._targets_mole(directive, registry, oracle),
            can_afford=self._can_afford(work, directive),
        )

        # (b) validate what will actually run
        try:
            target = self._validate(work, interception.directive, registry)
        except DirectiveError as e:
            rng.set_state(rng_state)
            self._reject(log, e)
            logger.debug(f"Rejected {directive}: {e}")
            return session, log.events

        # (c) effects
        self._report_interception(work, interception, log)
        interrupted = False
        if interception.purge_attempt:
            interrupted = self._purge_attempt(work, interception.directive, target, registry, rng, log)
        else:
            self._execute(work, interception, target, registry, oracle, rng, log)
        self._passive(work.metrics, log)

        # (d) corruption; an interrupted purge holds growth for the turn
        if not interrupted:
            self.corruption.update(work.metrics, log)

        # (e) band
        self._recompute_band(work, log)

        # (f) advisors
        registry.refresh(work.metrics, rng, log)

        # (g) terminal check
        outcome = work.metrics.is_terminal(self.config.max_turns)
        if outcome != Outcome.ONGOING:
            work.frozen = True
            work.outcome = outcome
            log.add(
                events.SESSION_ENDED,
                OUTCOME_TEXT[outcome],
                outcome=outcome.value,
                turns_played=work.metrics.turn,
            )
        elif interception.directive.type != DirectiveType.ANSWER:
            self._ring(work, log, rng)

        work.directive_log.append(directive.encode())
        logger.debug(
            f"Resolved {directive} -> {interception.directive} on turn {log.turn}: "
            f"{len(log)} events, band={work.band.value}, outcome={work.outcome.value}"
        )
        return work, log.events

    # ─── Validation ──────────────────────────────────────────────

    def cost_of(self, session: Session, directive: Directive) -> int:
        """Intel cost, or 0 for free directives and unknown cables."""
        costs = self.config.costs
        if directive.type == DirectiveType.TRACE:
            return costs.trace
        if directive.type == DirectiveType.INTERROGATE:
            return costs.interrogate
        if directive.type == DirectiveType.ANALYZE:
            return costs.analyze
        if directive.type == DirectiveType.DECRYPT and directive.target:
            cable = session.cable(directive.target)
            return cable.decrypt_cost if cable else 0
        return 0

    def _can_afford(self, session: Session, directive: Directive) -> bool:
        return session.metrics.intel >= self.cost_of(session, directive)

    def _targets_mole(
        self,
        directive: Directive,
        registry: AdvisorRegistry,
        oracle: TraitorOracle,
    ) -> bool:
        if directive.type != DirectiveType.INTERROGATE:
            return False
        adv = registry.find(directive.target)
        return adv is not None and oracle.is_mole(adv.name)

    def _validate(
        self,
        session: Session,
        directive: Directive,
        registry: AdvisorRegistry,
    ) -> Advisor | Cable | None:
        """Check target and cost. Returns the resolved target, if any."""
        kind = directive.type.value
        target: Advisor | Cable | None = None

        # Nothing else goes through while the red phone is ringing
        call = session.red_phone
        if call is not None and directive.type != DirectiveType.ANSWER:
            raise CallPending(kind, call.kind.value, call.choices)

        if directive.is_targeted and not directive.target:
            raise InvalidTarget(kind, None)

        if directive.type in (DirectiveType.DECRYPT, DirectiveType.ANALYZE):
            target = session.cable(directive.target)
            if target is None:
                raise InvalidTarget(kind, directive.target)
        elif directive.type in (DirectiveType.INTERROGATE, DirectiveType.CONSULT):
            target = registry.require(kind, directive.target)
        elif directive.type == DirectiveType.ANSWER:
            if call is None or directive.target.lower() not in call.choices:
                raise InvalidTarget(kind, directive.target)

        cost = self.cost_of(session, directive)
        if session.metrics.intel < cost:
            raise InsufficientIntel(kind, cost, session.metrics.intel)
        return target

    def _reject(self, log: EventLog, error: DirectiveError) -> None:
        log.add(error.event_type, str(error), **error.payload)

    # ─── Effects ─────────────────────────────────────────────────

    def _report_interception(
        self, session: Session, interception: Interception, log: EventLog,
    ) -> None:
        if interception.forced or interception.purge_attempt:
            session.autonomy_hostile = True
        if interception.forced:
            log.add(
                events.OVERRIDE_FORCED,
                interception.note,
                submitted=interception.submitted.encode(),
                executed=interception.directive.encode(),
                multiplier=self.config.autonomy.purge_multiplier,
            )
        elif interception.substituted:
            log.add(
                events.OVERRIDE_SUBSTITUTED,
                interception.note,
                submitted=interception.submitted.encode(),
                executed=interception.directive.encode(),
            )

    def _execute(
        self,
        session: Session,
        interception: Interception,
        target: Advisor | Cable | None,
        registry: AdvisorRegistry,
        oracle: TraitorOracle,
        rng: SessionRng,
        log: EventLog,
    ) -> None:
        directive = interception.directive
        kind = directive.type

        if kind in TABLE_DIRECTIVES:
            self._apply_table(session, directive, rng, log, forced=interception.forced)
        elif kind == DirectiveType.DECRYPT:
            self._decrypt(session, target, log)
        elif kind == DirectiveType.ANALYZE:
            self._analyze(session, target, log)
        elif kind == DirectiveType.ANSWER:
            self._answer(session, directive.target.lower(), log)
        elif kind == DirectiveType.TRACE:
            locked = oracle.trace(session, rng, log, self.config.advisors)
            if locked:
                session.metrics.apply_delta("intel", -self.config.costs.trace)
            self._applied(session, directive, log, success=locked)
        elif kind == DirectiveType.INTERROGATE:
            result = self._interrogate(session, target, registry, rng, log)
            self._applied(session, directive, log, success=result.success)
        elif kind == DirectiveType.CONSULT:
            advice = registry.consult(target.name, session.metrics, rng)
            log.add(
                events.ADVICE_GIVEN,
                f"{advice.advisor.value.upper()} RECOMMENDS {advice.recommendation.value.upper()}.",
                advice=advice.model_dump(mode="json"),
            )
            self._applied(session, directive, log, success=True)

    def _apply_table(
        self,
        session: Session,
        directive: Directive,
        rng: SessionRng,
        log: EventLog,
        forced: bool = False,
    ) -> None:
        """
        Investigate, Contain, Escalate, Leak.

        One success roll (skipped when forced), jitter on every delta
        except DEFCON, then the purge multiplier if forced.
        """
        effect = self.config.directives[directive.type.value]
        if forced:
            success = True
        else:
            chance = effect.success_chance
            if effect.resisted:
                chance -= self.autonomy.resistance(session.band)
            success = rng.roll(chance).success

        base = effect.success if success else effect.failure
        multiplier = self.config.autonomy.purge_multiplier if forced else 1
        deltas: dict[str, int] = {}
        for field, amount in base.items():
            if field != "defcon":
                amount += rng.jitter(self.config.jitter_bound)
            deltas[field] = amount * multiplier

        if success and effect.bonus_chance and rng.chance(effect.bonus_chance):
            for field, amount in effect.bonus.items():
                deltas[field] = deltas.get(field, 0) + amount

        self._applied(session, directive, log, success=success, deltas=deltas, forced=forced)
        self._apply_deltas(session.metrics, deltas, log)

    def _decrypt(self, session: Session, cable: Cable, log: EventLog) -> None:
        session.metrics.apply_delta("intel", -cable.decrypt_cost)
        if cable.encrypted:
            cable.encrypted = False
            cable.decrypted = True
            log.add(
                events.CABLE_DECRYPTED,
                f"DECRYPTION COMPLETE {cable.id}: {cable.intel_tag}",
                cable=cable.id,
                intel_tag=cable.intel_tag,
                cost=cable.decrypt_cost,
            )
        else:
            log.add(
                events.CABLE_NOT_ENCRYPTED,
                f"{cable.id} WAS NOT ENCRYPTED. INTEL ASSETS WASTED.",
                cable=cable.id,
                cost=cable.decrypt_cost,
            )
        self._applied(session, Directive(type=DirectiveType.DECRYPT, target=cable.id), log, success=True)

    def _interrogate(
        self,
        session: Session,
        advisor: Advisor,
        registry: AdvisorRegistry,
        rng: SessionRng,
        log: EventLog,
    ):
        session.metrics.apply_delta("intel", -self.config.costs.interrogate)
        return registry.interrogate(advisor.name, rng, log)

    def _purge_attempt(
        self,
        session: Session,
        directive: Directive,
        advisor: Advisor,
        registry: AdvisorRegistry,
        rng: SessionRng,
        log: EventLog,
    ) -> bool:
        """
        Interrogating the mole while the Basilisk is purging.

        Success knocks corruption back into Overriding. Failure leaves the
        purge running and the forced Escalate fires anyway.

        Returns True if the purge was interrupted.
        """
        result = self._interrogate(session, advisor, registry, rng, log)
        self._applied(session, directive, log, success=result.success)

        if result.success:
            before = session.metrics.corruption
            after = self.autonomy.interrupt_target(before)
            session.metrics.apply_delta("corruption", after - before, purge=True)
            log.add(
                events.PURGE_INTERRUPTED,
                "PURGE INTERRUPTED. THE MOLE'S ACCESS CODES ARE BURNED. CONTROL PARTIALLY RESTORED.",
                corruption_before=before,
                corruption=session.metrics.corruption,
            )
            return True

        forced = Directive(type=DirectiveType.ESCALATE)
        log.add(
            events.OVERRIDE_FORCED,
            f"INTERROGATION FAILED. FORCED {forced} x{self.config.autonomy.purge_multiplier}.",
            submitted=directive.encode(),
            executed=forced.encode(),
            multiplier=self.config.autonomy.purge_multiplier,
        )
        self._apply_table(session, forced, rng, log, forced=True)
        return False

    def _analyze(self, session: Session, cable: Cable, log: EventLog) -> None:
        """Source reliability check. Works on encrypted and clear cables alike."""
        session.metrics.apply_delta("intel", -self.config.costs.analyze)
        integrity = int(cable.reliability * 100)
        assessment = reliability_assessment(integrity)
        cable.analyzed = True
        log.add(
            events.CABLE_ANALYZED,
            f"ANALYSIS COMPLETE {cable.id}: SOURCE RELIABILITY {integrity}% - {assessment}.",
            cable=cable.id,
            integrity=integrity,
            assessment=assessment,
        )
        self._applied(session, Directive(type=DirectiveType.ANALYZE, target=cable.id), log, success=True)

    def _answer(self, session: Session, choice: str, log: EventLog) -> None:
        """Pick up the red phone and give the order."""
        call = session.red_phone
        cfg = self.config.red_phone
        response = choice
        if (
            call.kind == CallKind.ULTIMATUM
            and choice == "deny"
            and session.metrics.secrecy < cfg.deny_believed_secrecy
        ):
            response = "deny_exposed"

        deltas = dict(cfg.responses[response])
        log.add(
            events.RED_PHONE_ANSWERED,
            RESPONSE_TEXT[response],
            kind=call.kind.value,
            choice=choice,
            deltas=deltas,
        )
        self._applied(
            session,
            Directive(type=DirectiveType.ANSWER, target=choice),
            log,
            success=response not in ("deny_exposed", "threaten"),
            deltas=deltas,
        )
        self._apply_deltas(session.metrics, deltas, log)
        session.red_phone = None

    def _ring(self, session: Session, log: EventLog, rng: SessionRng) -> None:
        """
        Decide whether the red phone rings before the next briefing.

        A confirmed mole calls the moment they are exposed. Otherwise the
        enemy premier may call while DEFCON is critical.
        """
        if session.red_phone is not None:
            return
        cfg = self.config.red_phone

        confirmed = [e for e in log.of_type(events.ADVISOR_EXPOSED) if e.payload["confirmed"]]
        if confirmed:
            call = RedPhoneCall(
                kind=CallKind.CONFRONTATION,
                caller=confirmed[0].payload["advisor"],
                turn=session.metrics.turn,
            )
        elif session.metrics.defcon <= cfg.ultimatum_defcon and rng.chance(cfg.ultimatum_chance):
            call = RedPhoneCall(kind=CallKind.ULTIMATUM, caller="PREMIER CHERNOV", turn=session.metrics.turn)
        else:
            return

        session.red_phone = call
        log.add(
            events.RED_PHONE_RINGING,
            f"INCOMING PRIORITY ONE ALERT. {CALL_LINES[call.kind]}",
            kind=call.kind.value,
            caller=call.caller,
            choices=list(call.choices),
        )

    def _applied(
        self,
        session: Session,
        directive: Directive,
        log: EventLog,
        success: bool,
        deltas: dict[str, int] | None = None,
        forced: bool = False,
    ) -> None:
        outcome = "EXECUTED" if success else "FAILED"
        note = BAND_NOTES[session.band]
        summary = f"DIRECTIVE {directive} {outcome}."
        if note:
            summary = f"{summary} {note}"
        log.add(
            events.DIRECTIVE_APPLIED,
            summary,
            directive=directive.encode(),
            success=success,
            deltas=deltas or {},
            forced=forced,
            band=session.band.value,
        )

    def _apply_deltas(self, metrics: MetricsState, deltas: dict[str, int], log: EventLog) -> None:
        for field, amount in deltas.items():
            if amount == 0:
                continue
            if metrics.apply_delta(field, amount):
                log.add(
                    events.METRIC_CLAMPED,
                    f"{field.upper()} AT LIMIT. NO FURTHER EFFECT.",
                    field=field,
                    attempted=amount,
                    value=getattr(metrics, field),
                )

    # ─── End of turn ─────────────────────────────────────────────

    def _passive(self, metrics: MetricsState, log: EventLog) -> None:
        """
        Weapon drift, bunker decay, intel income, then the turn ticks.

        Only the bunker decay is reported. Weapon drift is a hidden metric.
        """
        cfg = self.config.passive
        drift: dict[str, int] = {}
        if metrics.weapon_progress > cfg.weapon_drift_above:
            drift["weapon_progress"] = cfg.weapon_drift
        decay = int(schedule_value(cfg.system_decay, metrics.turn))
        if decay:
            drift["system_status"] = -decay
            log.add(events.PASSIVE_DRIFT, "BUNKER SYSTEMS DEGRADING.", deltas={"system_status": -decay})
        if cfg.intel_income:
            drift["intel"] = cfg.intel_income

        self._apply_deltas(metrics, drift, log)
        metrics.apply_delta("turn", 1)

    def _recompute_band(self, session: Session, log: EventLog) -> None:
        band = self.autonomy.band_for(session.metrics.corruption)
        if band != session.band:
            previous = session.band
            session.band = band
            log.add(
                events.BAND_CHANGED,
                BAND_NOTES[band] or "COMMAND SYSTEMS NOMINAL.",
                previous=previous.value,
                band=band.value,
            )
        if band == AutonomyBand.PURGING:
            session.autonomy_hostile = True

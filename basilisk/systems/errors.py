"""
Recoverable directive errors.

These are normal outcomes, not crashes. Validation raises them; the
resolver catches them and turns each into a single error event with the
session left untouched.
"""

from ..state.schemas import events


class DirectiveError(Exception):
    """A directive that cannot be carried out this turn."""
    event_type = "error.directive"

    def __init__(self, message: str, **payload):
        self.payload = payload
        super().__init__(message)


class InsufficientIntel(DirectiveError):
    """Directive costs more intel than the operator holds."""
    event_type = events.INSUFFICIENT_INTEL

    def __init__(self, directive: str, cost: int, available: int):
        self.cost = cost
        self.available = available
        super().__init__(
            f"INSUFFICIENT INTEL ASSETS: {directive} requires {cost}, {available} available.",
            directive=directive,
            cost=cost,
            available=available,
        )


class InvalidTarget(DirectiveError):
    """Advisor or cable id that does not exist (or no target given)."""
    event_type = events.INVALID_TARGET

    def __init__(self, directive: str, target: str | None):
        self.target = target
        if target:
            message = f"TARGET '{target}' NOT FOUND."
        else:
            message = f"MISSING TARGET FOR {directive.upper()}."
        super().__init__(message, directive=directive, target=target)


class SessionFrozen(DirectiveError):
    """Directive submitted after the session reached a terminal outcome."""
    event_type = events.SESSION_FROZEN

    def __init__(self, outcome: str):
        self.outcome = outcome
        super().__init__(
            f"SESSION TERMINATED ({outcome.upper()}). NO FURTHER DIRECTIVES ACCEPTED.",
            outcome=outcome,
        )


class CallPending(DirectiveError):
    """The red phone is ringing; only an answer goes through."""
    event_type = events.CALL_PENDING

    def __init__(self, directive: str, kind: str, choices: list[str]):
        self.kind = kind
        self.choices = choices
        super().__init__(
            f"RED PHONE RINGING. ANSWER FIRST: {' / '.join(c.upper() for c in choices)}.",
            directive=directive,
            kind=kind,
            choices=list(choices),
        )

"""
Directive schema - the one input the engine accepts per turn.

Directives are immutable values. The terminal (or a test) builds one,
the resolver consumes it. They are never stored as state except as
strings in the session's replay log.
"""

from pydantic import BaseModel, ConfigDict

from ..schema import DirectiveType


# Directives that need a target (advisor name, cable id or call choice)
TARGETED_DIRECTIVES = {
    DirectiveType.DECRYPT,
    DirectiveType.INTERROGATE,
    DirectiveType.CONSULT,
    DirectiveType.ANALYZE,
    DirectiveType.ANSWER,
}

# Directives that spend intel
INTEL_DIRECTIVES = {
    DirectiveType.DECRYPT,
    DirectiveType.TRACE,
    DirectiveType.INTERROGATE,
    DirectiveType.ANALYZE,
}


class Directive(BaseModel):
    """An operator order, optionally aimed at an advisor or cable."""
    model_config = ConfigDict(frozen=True)

    type: DirectiveType
    target: str | None = None

    @property
    def is_targeted(self) -> bool:
        return self.type in TARGETED_DIRECTIVES

    def encode(self) -> str:
        """Compact form for the replay log: 'interrogate:Vance'."""
        if self.target:
            return f"{self.type.value}:{self.target}"
        return self.type.value

    @classmethod
    def decode(cls, text: str) -> "Directive":
        kind, _, target = text.partition(":")
        return cls(type=DirectiveType(kind), target=target or None)

    def __str__(self) -> str:
        if self.target:
            return f"{self.type.value.upper()}({self.target})"
        return self.type.value.upper()


def investigate() -> Directive:
    return Directive(type=DirectiveType.INVESTIGATE)


def contain() -> Directive:
    return Directive(type=DirectiveType.CONTAIN)


def escalate() -> Directive:
    return Directive(type=DirectiveType.ESCALATE)


def leak() -> Directive:
    return Directive(type=DirectiveType.LEAK)


def trace() -> Directive:
    return Directive(type=DirectiveType.TRACE)


def decrypt(cable_id: str) -> Directive:
    """Decrypt a cable from the current batch. Cost depends on the cable."""
    return Directive(type=DirectiveType.DECRYPT, target=cable_id)


def interrogate(advisor: str) -> Directive:
    """Interrogate an advisor. Costs 2 intel."""
    return Directive(type=DirectiveType.INTERROGATE, target=advisor)


def consult(advisor: str) -> Directive:
    return Directive(type=DirectiveType.CONSULT, target=advisor)


def analyze(cable_id: str) -> Directive:
    return Directive(type=DirectiveType.ANALYZE, target=cable_id)


def answer(choice: str) -> Directive:
    """Answer the red phone with one of the call's choices."""
    return Directive(type=DirectiveType.ANSWER, target=choice)

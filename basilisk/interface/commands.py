"""
Command parsing for the Basilisk terminal.

Turns a line typed at the root@command prompt into either a Directive
for the engine or a meta command for the terminal itself. Accepts the
shell-flavoured forms the operator console has always taken:

    execute --escalate      sudo esc       1
    decrypt -t DOC-4F2A     dec DOC-4F2A   6 DOC-4F2A
    interrogate Vance       int general    5 vance
    traceroute              tr             8
    analyze DOC-4F2A        ana DOC-4F2A   9 DOC-4F2A
    answer execute          respond deny
"""

from dataclasses import dataclass, field

from ..state.schema import DirectiveType
from ..state.schemas import Directive

# alias -> directive type
DIRECTIVE_ALIASES: dict[str, DirectiveType] = {}

_ALIAS_TABLE = {
    DirectiveType.ESCALATE: ["1", "escalate", "esc", "--escalate"],
    DirectiveType.INVESTIGATE: ["2", "investigate", "inv", "--investigate", "audit"],
    DirectiveType.CONTAIN: ["3", "contain", "con", "--contain"],
    DirectiveType.LEAK: ["4", "leak", "--leak", "pub"],
    DirectiveType.INTERROGATE: ["5", "interrogate", "int", "--interrogate", "question"],
    DirectiveType.DECRYPT: ["6", "decrypt", "dec", "crack", "cat", "--decrypt"],
    DirectiveType.CONSULT: ["7", "consult", "ask", "--consult"],
    DirectiveType.TRACE: ["8", "trace", "traceroute", "netstat", "tr", "--trace"],
    DirectiveType.ANALYZE: ["9", "analyze", "ana", "stat", "--analyze"],
    DirectiveType.ANSWER: ["answer", "respond", "--answer"],
}

for _kind, _aliases in _ALIAS_TABLE.items():
    for _alias in _aliases:
        DIRECTIVE_ALIASES[_alias] = _kind

# Words that hand the rest of the line to the directive parser
PREFIXES = {"sudo", "execute"}

# Flags that introduce a target
TARGET_FLAGS = {"-t", "--target"}

# targeted directive -> usage shown when the target is missing
TARGET_USAGE = {
    DirectiveType.DECRYPT: "decrypt -t DOC-XXXX",
    DirectiveType.ANALYZE: "analyze -t DOC-XXXX",
    DirectiveType.INTERROGATE: "interrogate ADVISOR",
    DirectiveType.CONSULT: "consult ADVISOR",
    DirectiveType.ANSWER: "answer CHOICE",
}

# meta command -> description
META_COMMANDS = {
    "help": "Show command syntax",
    "status": "Redraw the current briefing",
    "save": "Save the session",
    "sessions": "List saved sessions",
    "clear": "Clear the screen",
    "whoami": "Show operator identity",
    "ls": "List the working directory",
    "quit": "Save and exit",
}

META_ALIASES = {
    "?": "help",
    "cls": "clear",
    "ll": "ls",
    "list": "sessions",
    "exit": "quit",
    "logout": "quit",
}


@dataclass
class ParsedCommand:
    """Result of parsing one input line. Exactly one of the kinds is set."""
    directive: Directive | None = None
    meta: str | None = None
    args: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def is_directive(self) -> bool:
        return self.directive is not None

    @property
    def is_meta(self) -> bool:
        return self.meta is not None


def _extract_target(parts: list[str]) -> str | None:
    """Find the target in the words after the command."""
    for i, part in enumerate(parts):
        if part.lower() in TARGET_FLAGS:
            return parts[i + 1] if i + 1 < len(parts) else None
    for part in parts:
        if part.upper().startswith("DOC-"):
            return part.upper()
    for part in reversed(parts):
        if not part.startswith("-"):
            return part
    return None


def parse_command(text: str) -> ParsedCommand:
    """
    Parse one line of operator input.

    Returns a ParsedCommand with directive, meta or error set. Never
    raises; unknown input comes back as an error the terminal can flash.
    """
    parts = text.strip().split()
    if not parts:
        return ParsedCommand(error="BASH: COMMAND '' NOT FOUND")

    head = parts[0].lower()
    rest = parts[1:]

    meta = META_ALIASES.get(head, head)
    if meta in META_COMMANDS:
        return ParsedCommand(meta=meta, args=rest)

    if head in PREFIXES:
        if not rest:
            return ParsedCommand(error=f"{head.upper()}: MISSING COMMAND")
        head, rest = rest[0].lower(), rest[1:]

    kind = DIRECTIVE_ALIASES.get(head)
    if kind is None:
        return ParsedCommand(error=f"BASH: COMMAND NOT FOUND: {head}")

    if kind in TARGET_USAGE:
        target = _extract_target(rest)
        if not target:
            usage = TARGET_USAGE[kind]
            return ParsedCommand(error=f"ERROR: MISSING TARGET. USAGE: {usage}")
        return ParsedCommand(directive=Directive(type=kind, target=target))

    return ParsedCommand(directive=Directive(type=kind))


def help_lines() -> list[tuple[str, str]]:
    """(syntax, description) pairs for the help panel."""
    return [
        ("[1] execute --escalate", "Show of force. Risky."),
        ("[2] execute --investigate", "Push the Project forward."),
        ("[3] execute --contain", "Quiet de-escalation."),
        ("[4] execute --leak", "Release information to the public."),
        ("[5] interrogate ADVISOR", "Question an advisor (2 intel)."),
        ("[6] decrypt -t DOC-XXXX", "Decrypt a cable (cost varies)."),
        ("[7] consult ADVISOR", "Ask an advisor for a recommendation."),
        ("[8] traceroute", "Lock onto a live signal interruption (1 intel)."),
        ("[9] analyze -t DOC-XXXX", "Check a cable's source reliability (1 intel)."),
        ("answer CHOICE", "Answer the red phone."),
    ] + [(name, desc) for name, desc in META_COMMANDS.items()]

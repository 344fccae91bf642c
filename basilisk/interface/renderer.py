"""
Display and rendering helpers for the Basilisk terminal.

Draws the briefing (metrics, advisors, cables), the event feed and the
end screen. Everything is rendered from a TurnResult; the renderer never
sees the session, so hidden metrics stay hidden.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from prompt_toolkit.styles import Style as PTStyle

from ..state.schema import AutonomyBand, Outcome
from ..state.schemas import TurnEvent, TurnResult, events
from .commands import help_lines


# Shared console instance
console = Console()

# -----------------------------------------------------------------------------
# Theme: green phosphor, failing.
# -----------------------------------------------------------------------------

THEME = {
    "primary": "green3",            # phosphor
    "secondary": "grey70",
    "warning": "yellow3",
    "danger": "red3",
    "accent": "cyan",               # interface highlights
    "anomaly": "magenta",           # the Basilisk speaking
    "dim": "dim",                   # background text
    "text": "grey85",               # standard body text
}

# Prompt toolkit style to match theme
pt_style = PTStyle.from_dict({
    "prompt": "#00d700 bold",
    "completion-menu.completion": "bg:#0a2a0a #80c080",
    "completion-menu.completion.current": "bg:#1f5f1f #ffffff bold",
})

# Event type prefix -> style
EVENT_STYLES = {
    "error.": THEME["danger"],
    "override.": THEME["anomaly"],
    "autonomy.": THEME["anomaly"],
    "corruption.": THEME["anomaly"],
    "advisor.": THEME["accent"],
    "trace.": THEME["accent"],
    "cable.": THEME["warning"],
    "red_phone.": THEME["danger"],
    "session.": THEME["danger"],
}

DEFCON_STYLES = {
    5: THEME["primary"],
    4: THEME["primary"],
    3: THEME["warning"],
    2: THEME["danger"],
    1: f"bold {THEME['danger']}",
}


def _bar(value: int, width: int = 20) -> str:
    filled = max(0, min(width, round(value / 100 * width)))
    return "█" * filled + "░" * (width - filled)


def _pct_style(value: int) -> str:
    if value < 25:
        return THEME["danger"]
    if value < 50:
        return THEME["warning"]
    return THEME["primary"]


def event_style(event: TurnEvent) -> str:
    for prefix, style in EVENT_STYLES.items():
        if event.event_type.startswith(prefix):
            return style
    return THEME["text"]


def show_banner(seed: int, session_id: str) -> None:
    console.print(Panel(
        Text.assemble(
            ("NATIONAL COMMAND TERMINAL\n", f"bold {THEME['primary']}"),
            ("PROJECT BASILISK // EYES ONLY\n", THEME["secondary"]),
            (f"SESSION {session_id}  SEED {seed}", THEME["dim"]),
        ),
        border_style=THEME["primary"],
    ))


def render_metrics(result: TurnResult) -> Panel:
    """The visible dials. Corruption and weapon progress are never shown."""
    m = result.metrics
    table = Table.grid(padding=(0, 2))
    table.add_column(style=THEME["secondary"])
    table.add_column()

    table.add_row("TURN", f"{m.turn}")
    table.add_row("DEFCON", Text(str(m.defcon), style=DEFCON_STYLES.get(m.defcon, THEME["text"])))
    table.add_row("DOMESTIC STABILITY", Text(f"{_bar(m.stability)} {m.stability}%", style=_pct_style(m.stability)))
    table.add_row("SYSTEM STATUS", Text(f"{_bar(m.system_status)} {m.system_status}%", style=_pct_style(m.system_status)))
    table.add_row("SECRECY", Text(f"{_bar(m.secrecy)} {m.secrecy}%", style=_pct_style(m.secrecy)))
    table.add_row("INTEL ASSETS", f"{m.intel}")

    if result.band != AutonomyBand.DORMANT:
        table.add_row("", Text("COMMAND LINK UNSTABLE", style=THEME["anomaly"]))
    if result.signal_active:
        table.add_row("", Text("!! SIGNAL INTERRUPTION IN PROGRESS !!", style=f"blink {THEME['danger']}"))

    return Panel(table, title="SITUATION", border_style=THEME["primary"])


def render_advisors(result: TurnResult) -> Panel:
    table = Table(show_header=True, header_style=THEME["secondary"], box=None)
    table.add_column("ADVISOR")
    table.add_column("ROLE")
    table.add_column("POSITION")
    table.add_column("SUSPICION")

    for adv in result.advisors:
        suspicion = adv["suspicion"]
        style = THEME["danger"] if adv["exposed"] else (THEME["warning"] if suspicion >= 50 else THEME["text"])
        table.add_row(
            adv["name"],
            adv["role"],
            (adv["position"] or "-").upper(),
            Text(f"{suspicion}%" + (" EXPOSED" if adv["exposed"] else ""), style=style),
        )
    return Panel(table, title="WAR CABINET", border_style=THEME["secondary"])


def render_cables(result: TurnResult) -> Panel:
    table = Table(show_header=True, header_style=THEME["secondary"], box=None)
    table.add_column("ID")
    table.add_column("CLEARANCE")
    table.add_column("CONTENT")

    for cable in result.cables:
        if cable["encrypted"]:
            content = Text(f"[ENCRYPTED // DECRYPT COST {cable['decrypt_cost']}]", style=THEME["warning"])
        else:
            content = Text(cable.get("intel_tag", ""), style=THEME["text"])
        if "reliability" in cable:
            content.append(f"  [SOURCE {cable['reliability']}%]", style=THEME["dim"])
        table.add_row(cable["id"], cable["clearance"], content)
    return Panel(table, title="INCOMING CABLES", border_style=THEME["secondary"])


def render_events(result: TurnResult) -> None:
    """Event feed, in resolution order. Events with no summary are silent."""
    for event in result.events:
        if not event.summary:
            continue
        console.print(Text(f"> {event.summary}", style=event_style(event)))

    if result.advice is not None:
        advice = result.advice
        console.print(Panel(
            f"\"{advice.recommendation.value.upper()}. {advice.phrase}\"\n"
            f"[{THEME['dim']}]({advice.rationale.replace('_', ' ')})[/{THEME['dim']}]",
            title=advice.advisor.value.upper(),
            border_style=THEME["accent"],
        ))


def render_red_phone(call: dict) -> Panel:
    choices = "  ".join(f"answer {c}" for c in call["choices"])
    return Panel(
        f"CALLER: {call['caller'].upper()}\n[{THEME['dim']}]{choices}[/{THEME['dim']}]",
        title="RED PHONE",
        border_style=f"blink {THEME['danger']}",
    )


def show_briefing(result: TurnResult) -> None:
    console.print(render_metrics(result))
    console.print(render_advisors(result))
    console.print(render_cables(result))
    if result.red_phone:
        console.print(render_red_phone(result.red_phone))


def show_result(result: TurnResult) -> None:
    console.print()
    render_events(result)
    console.print()
    if result.is_final:
        show_outcome(result)
    elif result.accepted:
        show_briefing(result)


def show_outcome(result: TurnResult) -> None:
    ended = [e for e in result.events if e.event_type == events.SESSION_ENDED]
    text = ended[-1].summary if ended else result.outcome.value.upper()
    style = THEME["primary"] if result.outcome == Outcome.SURVIVED else THEME["danger"]
    console.print(Panel(
        f"{text}\n\n[{THEME['dim']}]Turn {result.turn_number}. Seed {result.seed}.[/{THEME['dim']}]",
        title=result.outcome.value.upper().replace("_", " "),
        border_style=style,
    ))


def show_help() -> None:
    table = Table(show_header=False, box=None)
    table.add_column(style=f"bold {THEME['primary']}")
    table.add_column(style=THEME["secondary"])
    for syntax, description in help_lines():
        table.add_row(syntax, description)
    console.print(Panel(table, title="USAGE: command [options] [target]", border_style=THEME["dim"]))


def show_sessions(sessions: list[dict]) -> None:
    if not sessions:
        console.print(f"[{THEME['dim']}]No saved sessions.[/{THEME['dim']}]")
        return
    table = Table(show_header=True, header_style=THEME["secondary"], box=None)
    table.add_column("#")
    table.add_column("ID")
    table.add_column("SEED")
    table.add_column("TURN")
    table.add_column("OUTCOME")
    table.add_column("UPDATED")
    for i, entry in enumerate(sessions, 1):
        table.add_row(
            str(i),
            entry["id"],
            str(entry["seed"]),
            str(entry["turn"]),
            entry["outcome"],
            entry.get("display_time", ""),
        )
    console.print(table)


def flash_error(message: str) -> None:
    console.print(f"[{THEME['danger']}]{message}[/{THEME['danger']}]")

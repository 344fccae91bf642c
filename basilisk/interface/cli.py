"""
Command-line interface for Basilisk.

Main entry point and game loop.
"""

import argparse
import logging
from pathlib import Path

from prompt_toolkit import prompt as pt_prompt
from prompt_toolkit.completion import Completer, Completion

from ..config import get_config_path, load_config
from ..state import SessionManager
from ..systems.turns import TurnPhase
from .commands import DIRECTIVE_ALIASES, META_COMMANDS, parse_command
from .renderer import (
    THEME,
    console,
    flash_error,
    pt_style,
    show_banner,
    show_briefing,
    show_help,
    show_outcome,
    show_result,
    show_sessions,
)

logger = logging.getLogger(__name__)


class TerminalCompleter(Completer):
    """Completes command words, then advisor names, cable ids or call choices."""

    def __init__(self, manager_ref=None):
        """
        Args:
            manager_ref: Callable that returns the SessionManager, used to
                        offer the current cable ids and call choices as targets.
        """
        self.manager_ref = manager_ref
        self.words = sorted(
            {w for w in DIRECTIVE_ALIASES if not w.isdigit() and not w.startswith("-")}
            | set(META_COMMANDS)
            | {"execute", "sudo"}
        )

    def _targets(self) -> list[str]:
        targets = ["Vance", "DirectorK", "Sterling"]
        if self.manager_ref is not None:
            manager = self.manager_ref()
            if manager.current is not None:
                targets += [c.id for c in manager.current.cables]
                if manager.current.red_phone is not None:
                    targets += manager.current.red_phone.choices
        return targets

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        words = text.split()
        current = "" if text.endswith(" ") or not words else words[-1]
        first = not words or (len(words) == 1 and not text.endswith(" "))

        candidates = self.words if first else self._targets()
        for candidate in candidates:
            if candidate.lower().startswith(current.lower()):
                yield Completion(candidate, start_position=-len(current))


def run(manager: SessionManager) -> None:
    """
    The root@command loop.

    Reads one line at a time. Meta commands are handled here; anything
    else is parsed into a directive and handed to the orchestrator.
    """
    completer = TerminalCompleter(lambda: manager)
    orchestrator = manager.orchestrator
    session = manager.current

    show_banner(session.seed, session.id)
    if orchestrator.phase == TurnPhase.FROZEN:
        show_outcome(orchestrator.briefing())
    else:
        show_briefing(orchestrator.briefing())
    console.print(f"[{THEME['dim']}]Type 'help' for syntax.[/{THEME['dim']}]")

    while True:
        try:
            user_input = pt_prompt(
                "\nroot@command:~$ ",
                completer=completer,
                style=pt_style,
            ).strip()

            parsed = parse_command(user_input)
            if parsed.error:
                flash_error(parsed.error)
                continue

            if parsed.is_meta:
                if parsed.meta == "quit":
                    manager.save_session()
                    break
                if parsed.meta == "help":
                    show_help()
                elif parsed.meta == "status":
                    show_briefing(orchestrator.briefing())
                elif parsed.meta == "save":
                    manager.save_session()
                    console.print(f"[{THEME['dim']}]Session {manager.current.id} saved.[/{THEME['dim']}]")
                elif parsed.meta == "sessions":
                    show_sessions(manager.list_sessions())
                elif parsed.meta == "clear":
                    console.clear()
                elif parsed.meta == "whoami":
                    console.print(f"[{THEME['accent']}]root (Security Clearance Level 5)[/{THEME['accent']}]")
                elif parsed.meta == "ls":
                    console.print(f"[{THEME['accent']}]drwx------ 2 root root 4096 .basilisk\n"
                                  f"drwxr-xr-x 2 root root 4096 cables[/{THEME['accent']}]")
                continue

            result = orchestrator.submit(parsed.directive)
            show_result(result)

        except KeyboardInterrupt:
            console.print(f"\n[{THEME['dim']}]Use quit to exit[/{THEME['dim']}]")
        except EOFError:
            manager.save_session()
            break


# -----------------------------------------------------------------------------
# Main Loop
# -----------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="BASILISK - National Command Terminal")
    parser.add_argument("--seed", "-s", type=int, help="Seed for a new session")
    parser.add_argument("--load", "-l", metavar="ID", help="Resume a saved session (id, prefix or list index)")
    parser.add_argument("--sessions-dir", default="sessions", help="Where sessions are saved")
    parser.add_argument("--config", "-c", type=Path, help="Engine config JSON (defaults to <sessions-dir>/.basilisk_config.json)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = load_config(args.config or get_config_path(args.sessions_dir))
    manager = SessionManager(args.sessions_dir, config=config)

    if args.load:
        if manager.load_session(args.load) is None:
            flash_error(f"NO SESSION MATCHING '{args.load}'")
            return 1
    else:
        manager.create_session(args.seed)

    run(manager)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Terminal front-end for Basilisk: command parsing, rendering, prompt loop."""

from .commands import ParsedCommand, parse_command

__all__ = ["ParsedCommand", "parse_command"]

"""
Run the Basilisk terminal.

Usage:
    python -m basilisk [--seed N] [--load ID] [--verbose]
"""

from .interface.cli import main

if __name__ == "__main__":
    raise SystemExit(main())

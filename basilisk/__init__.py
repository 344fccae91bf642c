"""
Basilisk Terminal - crisis simulation engine.

A hidden world state evolves under operator directives. One advisor is
lying. The weapons system underneath it all is waking up.

The engine is a pure turn function:
    (session, directive, rng) -> (session', events)
Everything else (storage, terminal, rendering) sits around it.
"""

__version__ = "0.1.0"

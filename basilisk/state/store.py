"""
Session storage abstraction.

Separates persistence from the engine for testability.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from .schema import Session

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionStore(Protocol):
    """
    Abstract storage interface for sessions.

    Implementations:
    - JsonSessionStore: File-based persistence (production)
    - MemorySessionStore: In-memory storage (testing)
    """

    def save(self, session: Session) -> None:
        """Persist a session."""
        ...

    def load(self, session_id: str) -> Session | None:
        """Load a session by ID. Returns None if not found."""
        ...

    def delete(self, session_id: str) -> bool:
        """Delete a session. Returns True if deleted."""
        ...

    def list_all(self) -> list[dict]:
        """List all sessions with metadata."""
        ...

    def exists(self, session_id: str) -> bool:
        """Check if a session exists."""
        ...


def _summary(session: Session) -> dict:
    return {
        "id": session.id,
        "seed": session.seed,
        "turn": session.metrics.turn,
        "outcome": session.outcome.value,
        "updated_at": session.updated_at,
    }


class JsonSessionStore:
    """
    File-based session storage using JSON.

    Features:
    - Automatic backup on save
    - Partial ID matching on load
    """

    def __init__(self, sessions_dir: Path | str = "sessions"):
        self.sessions_dir = Path(sessions_dir)
        self.sessions_dir.mkdir(parents=True, exist_ok=True)

    def _files(self):
        # Config and other dotfiles live alongside sessions
        return [f for f in self.sessions_dir.glob("*.json") if not f.name.startswith(".")]

    def save(self, session: Session) -> None:
        """Save session to JSON file with backup."""
        session_file = self.sessions_dir / f"{session.id}.json"

        # Backup previous save
        if session_file.exists():
            backup = session_file.with_suffix(".json.bak")
            backup.write_text(session_file.read_text(encoding="utf-8"), encoding="utf-8")

        session_file.write_text(session.model_dump_json(indent=2), encoding="utf-8")
        logger.debug(f"Saved session {session.id} to {session_file}")

    def load(self, session_id: str) -> Session | None:
        """
        Load session by ID or partial match.

        Supports:
        - Full ID: "a1b2c3d4"
        - Partial prefix: "a1b2"
        """
        session_file = self.sessions_dir / f"{session_id}.json"

        if not session_file.exists():
            for f in self._files():
                if f.stem.startswith(session_id):
                    session_file = f
                    break

        if session_file.exists():
            try:
                data = json.loads(session_file.read_text(encoding="utf-8"))
                return Session.model_validate(data)
            except (json.JSONDecodeError, ValidationError, OSError) as e:
                logger.warning(f"Could not load session {session_file.name}: {e}")
                return None

        return None

    def delete(self, session_id: str) -> bool:
        """Delete session file (and its backup)."""
        session_file = self.sessions_dir / f"{session_id}.json"

        if session_file.exists():
            session_file.unlink()
            backup = session_file.with_suffix(".json.bak")
            if backup.exists():
                backup.unlink()
            return True

        return False

    def list_all(self) -> list[dict]:
        """
        List all sessions, most recently modified first.

        Returns list of dicts with: id, seed, turn, outcome, updated_at
        """
        sessions = []

        for f in sorted(self._files(), key=lambda x: x.stat().st_mtime, reverse=True):
            try:
                data = json.loads(f.read_text(encoding="utf-8"))
                sessions.append({
                    "id": data.get("id", f.stem),
                    "seed": data.get("seed"),
                    "turn": data.get("metrics", {}).get("turn", 0),
                    "outcome": data.get("outcome", "ongoing"),
                    "updated_at": datetime.fromisoformat(
                        data.get("updated_at", "2000-01-01")
                    ),
                })
            except (json.JSONDecodeError, AttributeError, ValueError):
                logger.warning(f"Skipping unreadable session file {f.name}")
                continue

        return sessions

    def exists(self, session_id: str) -> bool:
        """Check if session file exists."""
        return (self.sessions_dir / f"{session_id}.json").exists()


class MemorySessionStore:
    """
    In-memory session storage for testing.

    Stores serialized copies so a loaded session never aliases the
    one that was saved, just like the file store.
    """

    def __init__(self):
        self.sessions: dict[str, str] = {}

    def save(self, session: Session) -> None:
        """Store session in memory."""
        self.sessions[session.id] = session.model_dump_json()

    def load(self, session_id: str) -> Session | None:
        """Load session from memory."""
        raw = self.sessions.get(session_id)
        if raw is None:
            # Partial match
            for sid, data in self.sessions.items():
                if sid.startswith(session_id):
                    raw = data
                    break

        if raw is None:
            return None
        return Session.model_validate_json(raw)

    def delete(self, session_id: str) -> bool:
        """Remove session from memory."""
        if session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

    def list_all(self) -> list[dict]:
        """List all sessions in memory, most recently updated first."""
        sessions = [_summary(Session.model_validate_json(raw)) for raw in self.sessions.values()]
        return sorted(sessions, key=lambda s: s["updated_at"], reverse=True)

    def exists(self, session_id: str) -> bool:
        """Check if session exists in memory."""
        return session_id in self.sessions

"""
Session lifecycle management.

Handles create, resume, list, save, delete operations. Owns the
orchestrator for the current session and wires it to the store so
every resolved turn is persisted before the next briefing is shown.
"""

import logging
from datetime import datetime
from pathlib import Path

from ..config import EngineConfig
from .event_bus import EventType, get_event_bus
from .schema import MetricsState, Session
from .store import JsonSessionStore, SessionStore

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Manages session lifecycle.

    Storage is delegated to a SessionStore implementation:
    - JsonSessionStore for production (file-based)
    - MemorySessionStore for testing (in-memory)

    - create_session(seed) -> new session
    - load_session(id) -> resume existing
    - list_sessions() -> show available
    - save_session() -> persist
    - delete_session(id) -> remove
    """

    def __init__(
        self,
        store: SessionStore | Path | str = "sessions",
        config: EngineConfig | None = None,
    ):
        """
        Initialize with a store.

        Args:
            store: SessionStore instance, or path for JsonSessionStore
            config: Engine tunables shared by every session this manager opens
        """
        if isinstance(store, (Path, str)):
            self.store = JsonSessionStore(Path(store))
        else:
            self.store = store

        self.config = config or EngineConfig()
        self.orchestrator = None  # TurnOrchestrator for the current session

    @property
    def current(self) -> Session | None:
        return self.orchestrator.session if self.orchestrator else None

    def _open(self, session: Session, rng=None) -> Session:
        # Local import: systems depends on state
        from ..systems.turns import TurnOrchestrator

        self.orchestrator = TurnOrchestrator(session, rng, self.config)
        self.orchestrator.set_persist_fn(self.store.save)
        return session

    # -------------------------------------------------------------------------
    # Session Lifecycle
    # -------------------------------------------------------------------------

    def create_session(
        self,
        seed: int | None = None,
        metrics: MetricsState | None = None,
    ) -> Session:
        """Create a new session, set it as current and save it."""
        from ..systems.turns import start_session

        if seed is None:
            # Operator did not pick one; derive from the clock and record it
            seed = int(datetime.now().timestamp() * 1000) % (2**31)

        session, rng = start_session(seed, self.config, metrics)
        self._open(session, rng)
        self.store.save(session)

        get_event_bus().emit(
            EventType.SESSION_STARTED,
            session_id=session.id,
            turn=session.metrics.turn,
            seed=seed,
        )
        return session

    def load_session(self, session_id: str) -> Session | None:
        """
        Load a session by ID, partial ID or list index.

        Supports:
        - Full ID: "a1b2c3d4"
        - Numeric index from list: "1", "2", etc.

        The RNG is restored from the saved checkpoint, so the resumed
        session continues the exact stream it left off.
        """
        if session_id.isdigit():
            sessions = self.list_sessions()
            idx = int(session_id) - 1
            if 0 <= idx < len(sessions):
                session_id = sessions[idx]["id"]

        session = self.store.load(session_id)
        if session is None:
            logger.info(f"No session matching '{session_id}'")
            return None

        self._open(session)
        get_event_bus().emit(
            EventType.SESSION_LOADED,
            session_id=session.id,
            turn=session.metrics.turn,
            seed=session.seed,
        )
        logger.info(f"Loaded session {session.id} at turn {session.metrics.turn}")
        return session

    def save_session(self) -> bool:
        """Save current session to store, checkpointing the RNG."""
        if self.orchestrator is None:
            return False

        session = self.orchestrator.session
        session.checkpoint(self.orchestrator.rng.get_state())
        self.store.save(session)
        get_event_bus().emit(
            EventType.SESSION_SAVED,
            session_id=session.id,
            turn=session.metrics.turn,
        )
        return True

    def delete_session(self, session_id: str) -> str | None:
        """Delete a session by ID. Returns deleted ID or None."""
        if session_id.isdigit():
            sessions = self.list_sessions()
            idx = int(session_id) - 1
            if 0 <= idx < len(sessions):
                session_id = sessions[idx]["id"]

        if self.store.delete(session_id):
            if self.current and self.current.id == session_id:
                self.orchestrator = None
            return session_id

        return None

    def list_sessions(self) -> list[dict]:
        """
        List all sessions with relative timestamps.

        Returns list of dicts with: id, seed, turn, outcome, updated_at, display_time
        """
        sessions = self.store.list_all()
        for entry in sessions:
            entry["display_time"] = self._format_relative_time(entry["updated_at"])
        return sessions

    @staticmethod
    def _format_relative_time(dt: datetime) -> str:
        """Format datetime as relative time string."""
        delta = datetime.now() - dt
        seconds = int(delta.total_seconds())

        if seconds < 60:
            return "just now"
        if seconds < 3600:
            return f"{seconds // 60}m ago"
        if seconds < 86400:
            return f"{seconds // 3600}h ago"
        if delta.days < 7:
            return f"{delta.days}d ago"
        return dt.strftime("%Y-%m-%d")

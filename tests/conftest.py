"""
Pytest fixtures for Basilisk tests.

Provides fresh sessions, seeded RNGs and in-memory stores for isolated
testing.
"""

import pytest
from pathlib import Path

# Add repo root to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from basilisk.config import EngineConfig
from basilisk.state import MemorySessionStore, SessionManager, reset_event_bus
from basilisk.state.schema import AdvisorName, MetricsState, default_advisors
from basilisk.systems.advisors import AdvisorRegistry
from basilisk.systems.resolver import DirectiveResolver
from basilisk.systems.traitor import TraitorOracle
from basilisk.systems.turns import start_session
from basilisk.tools.rng import SessionRng


@pytest.fixture(autouse=True)
def fresh_event_bus():
    """Every test gets its own global event bus."""
    reset_event_bus()
    yield
    reset_event_bus()


@pytest.fixture
def config():
    """Default engine tunables."""
    return EngineConfig()


@pytest.fixture
def rng():
    """Seeded RNG for testing."""
    return SessionRng(42)


@pytest.fixture
def resolver(config):
    return DirectiveResolver(config)


@pytest.fixture
def make_session(config):
    """
    Factory for a started session and its RNG.

    Keyword arguments override baseline metrics:
        session, rng = make_session(seed=7, corruption=95)
    """
    def _make(seed: int = 42, engine_config: EngineConfig | None = None, **metrics):
        return start_session(seed, engine_config or config, MetricsState(**metrics))
    return _make


@pytest.fixture
def session(make_session):
    """Fresh baseline session, seed 42."""
    return make_session()[0]


@pytest.fixture
def cabinet():
    """Advisors with Vance as the mole."""
    advisors = default_advisors()
    for adv in advisors:
        adv.is_mole = adv.name == AdvisorName.VANCE
    return advisors


@pytest.fixture
def registry(cabinet, config):
    """Advisor registry over the cabinet fixture."""
    return AdvisorRegistry(cabinet, TraitorOracle(AdvisorName.VANCE), config.advisors)


@pytest.fixture
def memory_store():
    """In-memory session store for testing."""
    return MemorySessionStore()


@pytest.fixture
def manager(memory_store):
    """Session manager with in-memory store."""
    return SessionManager(memory_store)

"""
Shared fixtures for the Justice Lab test suite.
"""
import httpx
import pytest

from agents import AgentManager
from case_generator import CaseGenerator, build_case
from config import Settings
from game_engine import create_new_run
from storage import CaseCache, MemoryStore, RunStore

TEST_SETTINGS = Settings(
    api_base="http://justice-lab.test",
    api_token="test-token",
    storage_dir=None,
    case_timeout=1.0,
    domain_case_timeout=1.0,
    ai_timeout=1.0,
)


@pytest.fixture
def settings():
    return TEST_SETTINGS


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def case_cache(memory_store):
    return CaseCache(memory_store)


@pytest.fixture
def run_store(memory_store):
    return RunStore(memory_store)


@pytest.fixture
def sample_case():
    return build_case("TPL_PENAL_DETENTION", seed="SAMPLE-1", level="Intermediate")


@pytest.fixture
def sample_run(sample_case):
    return create_new_run(sample_case, rng=lambda: 0.0)


@pytest.fixture
def make_generator(case_cache, settings):
    """Build a CaseGenerator whose AI backend is answered by ``handler``."""

    def factory(handler=None, token="test-token"):
        agents = None
        if handler is not None:
            agents = AgentManager(
                settings=settings,
                token_provider=lambda: token,
                transport=httpx.MockTransport(handler),
            )
        return CaseGenerator(case_cache, agents=agents, settings=settings)

    return factory


@pytest.fixture
def make_agents(settings):
    def factory(handler, token="test-token"):
        return AgentManager(
            settings=settings,
            token_provider=lambda: token,
            transport=httpx.MockTransport(handler),
        )

    return factory

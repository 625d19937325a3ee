"""
Pytest configuration for the cluster exerciser tests.

Configures pytest-asyncio markers and shared fixtures.
"""

import pytest

from cluster_exerciser.clients import IdentifierGenerator
from cluster_exerciser.env import Env
from cluster_exerciser.logging import LoggingConfig
from cluster_exerciser.logging.models import Entry, LogLevel

from tests.unit.exerciser.mocks import InMemoryBroker


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture(autouse=True)
def quiet_logging():
    config = LoggingConfig()
    config.update(log_level="error", log_output="stderr")
    yield config
    config.update(log_level="info", log_output="stdout")


@pytest.fixture
def env(tmp_path) -> Env:
    return Env(
        EXERCISER_HOST="127.0.0.1",
        EXERCISER_STORAGE_PREFIX=str(tmp_path / "jetstream_test_"),
        EXERCISER_CONFIG_DIRECTORY=str(tmp_path / "confs"),
        EXERCISER_RECEIVE_TIMEOUT="0.01s",
        EXERCISER_READY_TIMEOUT="1s",
        EXERCISER_READY_POLL_INTERVAL="0.01s",
        EXERCISER_LOG_LEVEL="error",
        EXERCISER_LOG_OUTPUT="stderr",
    )


@pytest.fixture
def broker() -> InMemoryBroker:
    return InMemoryBroker()


@pytest.fixture
def identifiers() -> IdentifierGenerator:
    return IdentifierGenerator()


@pytest.fixture
def sample_entry() -> Entry:
    return Entry(
        message="Test log message",
        level=LogLevel.ERROR,
    )

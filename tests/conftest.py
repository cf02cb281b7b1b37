"""Pytest configuration and fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient

from config import Config
from quivive.idgen import IdGenerator
from quivive.service import EntryService
from quivive.store.memory import MemoryEntryStore
from quivive.common.logging_config import setup_logging
from web_app import create_app


EXTERNAL_URL = "http://testserver"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock, logger):
    """In-memory store driven by the fake clock."""
    return MemoryEntryStore(clock=clock, logger=logger)


@pytest.fixture
def id_generator():
    """Create identifier generator."""
    return IdGenerator(id_length=9)


@pytest.fixture
def config():
    return Config(
        external_url=EXTERNAL_URL,
        custom_id_format="all",
        default_expiration=3600,
        max_value_size=64,
    )


def build_service(store, id_generator, config, logger) -> EntryService:
    return EntryService(
        store=store,
        id_generator=id_generator,
        external_url=config.external_url,
        default_expiration=config.default_expiration,
        max_value_size=config.max_value_size,
        custom_id_policy=config.custom_id_format,
        logger=logger,
    )


@pytest.fixture
def service(store, id_generator, config, logger) -> EntryService:
    """Create service instance."""
    return build_service(store, id_generator, config, logger)


@pytest.fixture
async def make_client(store, id_generator, logger):
    """Build a client for an app running with the given config."""
    clients = []

    async def _make(config: Config) -> AsyncClient:
        service = build_service(store, id_generator, config, logger)
        app = create_app(store_instance=store, service_instance=service, config=config)
        client = AsyncClient(transport=ASGITransport(app=app), base_url=EXTERNAL_URL)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()


@pytest.fixture
async def client(make_client, config):
    """Create test client."""
    return await make_client(config)


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "http://example.com",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456?tab=votes#answers",
    ]

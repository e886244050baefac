"""Shared pytest fixtures for the discovery tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis, FakeServer
from mongomock_motor import AsyncMongoMockClient

from discovery.cache import TrackedCache
from discovery.container import DiscoveryContainer
from discovery.core.config import Settings


@pytest.fixture
def settings():
    return Settings(CACHE_TTL=300, SEARCH_TIMEOUT_SECONDS=1.0)


@pytest.fixture
def redis_server():
    return FakeServer()


@pytest_asyncio.fixture
async def redis(redis_server):
    client = FakeAsyncRedis(server=redis_server, decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def db():
    return AsyncMongoMockClient()["discovery_test"]


@pytest.fixture
def cache(redis):
    return TrackedCache(redis, ttl=300)


@pytest.fixture
def search_client():
    """Primary search backend client that is down unless a test says otherwise."""
    client = MagicMock()
    client.search = AsyncMock(side_effect=ConnectionError("search cluster unavailable"))
    client.get = AsyncMock(side_effect=ConnectionError("search cluster unavailable"))
    client.ping = AsyncMock(return_value=False)
    client.close = AsyncMock()
    return client


@pytest.fixture
def container(settings, db, redis, search_client):
    return DiscoveryContainer(settings, db, redis, search_client=search_client)

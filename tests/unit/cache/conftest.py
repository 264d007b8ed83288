"""Fixtures for cache tests backed by an in-process fake Redis."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import fakeredis
import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

from basechat_cache.cache.handler import CacheHandler
from basechat_cache.config import Settings


class VersionedFakeRedis(FakeRedis):
    """Fake client that answers INFO server, which fakeredis does not implement."""

    redis_version = "7.2.4"

    async def info(self, section: str | None = None, *args: Any, **kwargs: Any) -> dict[str, Any]:
        return {"redis_version": self.redis_version}


@pytest.fixture
def redis_server() -> fakeredis.FakeServer:
    """Shared fake Redis server."""
    return fakeredis.FakeServer()


@pytest.fixture
def redis_version() -> str:
    """Server version reported to the handler."""
    return "7.2.4"


@pytest.fixture
def client_factory(redis_server: fakeredis.FakeServer, redis_version: str):
    """Client factory handing out fake clients bound to ``redis_server``."""

    def factory(url: str) -> FakeRedis:
        client = VersionedFakeRedis(server=redis_server, decode_responses=True)
        client.redis_version = redis_version
        return client

    return factory


@pytest_asyncio.fixture
async def handler(cache_settings: Settings, client_factory) -> AsyncIterator[CacheHandler]:
    """Cache handler wired to the fake server."""
    cache_handler = CacheHandler(cache_settings, client_factory=client_factory)
    yield cache_handler
    await cache_handler.disconnect()


@pytest_asyncio.fixture
async def redis_client(redis_server: fakeredis.FakeServer) -> AsyncIterator[FakeRedis]:
    """Direct client for inspecting what the handler wrote."""
    client = FakeRedis(server=redis_server, decode_responses=True)
    yield client
    await client.aclose()

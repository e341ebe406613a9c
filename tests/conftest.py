"""Fixtures — fake Redis store, mock backend transport."""

import pytest_asyncio
from fakeredis.aioredis import FakeRedis

from fastscraper.cache.redis import RedisKeyValueStore


@pytest_asyncio.fixture
async def kv():
    """RedisKeyValueStore backed by an in-memory FakeRedis instance."""
    client = FakeRedis(decode_responses=True)
    yield RedisKeyValueStore(client, ttl=3600, prefix="test:")
    await client.aclose()

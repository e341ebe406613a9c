"""Redis-backed key-value store."""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

logger = logging.getLogger(__name__)


class RedisKeyValueStore:
    """Thin async get/put over Redis with a fixed TTL.

    Redis errors propagate; callers decide how to degrade.
    """

    def __init__(
        self, client: redis.Redis, ttl: int | None = None, prefix: str = ""
    ) -> None:
        self._client = client
        self._ttl = ttl
        self._prefix = prefix

    def scoped(self, namespace: str) -> RedisKeyValueStore:
        """Return a store whose keys live under ``<prefix><namespace>:``."""
        return RedisKeyValueStore(
            self._client, ttl=self._ttl, prefix=f"{self._prefix}{namespace}:"
        )

    async def get(self, key: str) -> str | None:
        raw = await self._client.get(f"{self._prefix}{key}")
        logger.debug(
            "kv get", extra={"key": f"{self._prefix}{key}", "hit": raw is not None}
        )
        return raw

    async def put(self, key: str, value: str | bytes) -> None:
        await self._client.set(f"{self._prefix}{key}", value, ex=self._ttl)
        logger.debug("kv put", extra={"key": f"{self._prefix}{key}", "ttl": self._ttl})


async def create_redis_client(redis_url: str) -> redis.Redis:
    # Strip credentials for logging (everything before @ if present)
    safe_url = redis_url.split("@")[-1] if "@" in redis_url else redis_url
    logger.info("connecting to redis", extra={"redis_url": safe_url})
    retry = Retry(ExponentialBackoff(), retries=3)
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        health_check_interval=30,
        retry=retry,
        retry_on_error=[redis.ConnectionError, redis.TimeoutError],
    )

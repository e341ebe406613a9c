"""Persistence that carries state between the console and results views."""

from __future__ import annotations

import logging
from typing import Protocol

import redis.asyncio as redis
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from fastscraper.api.schemas import ScrapeResult
from fastscraper.console.state import ConsoleState

logger = logging.getLogger(__name__)

HANDOFF_KEY = "scrapeResults"
STATE_KEY = "consoleState"

_results_adapter = TypeAdapter(list[ScrapeResult])


class KeyValueStore(Protocol):
    """Minimal storage capability the console depends on."""

    async def get(self, key: str) -> str | bytes | None: ...

    async def put(self, key: str, value: str | bytes) -> None: ...


class HandoffStore:
    """Holds the latest result set under a single well-known key."""

    def __init__(self, store: KeyValueStore, key: str = HANDOFF_KEY) -> None:
        self._store = store
        self._key = key

    async def put(self, results: list[ScrapeResult]) -> bool:
        """Overwrite the stored result set. Returns ``False`` on store error."""
        try:
            document = _results_adapter.dump_json(results, exclude_unset=True)
            await self._store.put(self._key, document)
        except redis.RedisError:
            logger.warning("handoff put failed", extra={"key": self._key}, exc_info=True)
            return False
        logger.debug("handoff put", extra={"key": self._key, "result_count": len(results)})
        return True

    async def get(self) -> list[ScrapeResult]:
        """Return the stored result set; missing or unreadable means empty."""
        try:
            raw = await self._store.get(self._key)
        except redis.RedisError:
            logger.warning("handoff get failed", extra={"key": self._key}, exc_info=True)
            return []
        if raw is None:
            return []
        try:
            return _results_adapter.validate_json(raw)
        except PydanticValidationError:
            logger.warning("handoff value unreadable, treating as empty", extra={"key": self._key})
            return []


class ConsoleStateStore:
    """Loads and saves the operator's :class:`ConsoleState`."""

    def __init__(self, store: KeyValueStore, key: str = STATE_KEY) -> None:
        self._store = store
        self._key = key

    async def load(self) -> ConsoleState:
        try:
            raw = await self._store.get(self._key)
        except redis.RedisError:
            logger.warning("console state load failed", exc_info=True)
            return ConsoleState()
        if raw is None:
            return ConsoleState()
        try:
            return ConsoleState.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("console state unreadable, starting fresh")
            return ConsoleState()

    async def save(self, state: ConsoleState) -> None:
        await self._store.put(self._key, state.model_dump_json())

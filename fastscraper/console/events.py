"""Live log of a submission, pushed to listeners as it grows."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Coroutine

from fastscraper.console.state import ConsoleState, LogEntry

logger = logging.getLogger(__name__)

# Awaited once per appended entry, in registration order.
LogListener = Callable[[LogEntry], Coroutine[Any, Any, None]]


class LiveLog:
    """Append-only log over a :class:`ConsoleState`."""

    def __init__(
        self,
        state: ConsoleState,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._state = state
        self._clock = clock
        self._listeners: list[LogListener] = []

    @property
    def state(self) -> ConsoleState:
        return self._state

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        return self._state.logs

    def subscribe(self, listener: LogListener) -> None:
        self._listeners.append(listener)

    def clear(self) -> None:
        self._state = self._state.clear_log()

    async def append(self, message: str) -> LogEntry:
        """Stamp *message*, record it, and notify every listener."""
        entry = LogEntry.stamp(message, self._clock)
        self._state = self._state.append_log(entry)
        logger.debug("console log entry", extra={"entry": message})
        for listener in self._listeners:
            await listener(entry)
        return entry

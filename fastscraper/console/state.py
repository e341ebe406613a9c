"""Console view state and its transitions.

Every transition returns a new :class:`ConsoleState`; instances are frozen
so they can be cached, compared and serialized without surprises.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from pydantic import BaseModel, ConfigDict

TIME_FORMAT = "%H:%M:%S"


class LogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: str
    message: str

    @classmethod
    def stamp(
        cls, message: str, clock: Callable[[], datetime] = datetime.now
    ) -> LogEntry:
        return cls(timestamp=clock().strftime(TIME_FORMAT), message=message)

    def format(self) -> str:
        return f"[{self.timestamp}] {self.message}"


class ConsoleState(BaseModel):
    """Form fields and live log of one operator console."""

    model_config = ConfigDict(frozen=True)

    urls: tuple[str, ...] = ("",)
    rate_limit: int = 5
    headers: str = ""
    proxy: str = ""
    user_agent: str = ""
    logs: tuple[LogEntry, ...] = ()

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.urls):
            raise IndexError(f"no URL slot at index {index}")

    def add_url(self) -> ConsoleState:
        return self.model_copy(update={"urls": (*self.urls, "")})

    def update_url(self, index: int, value: str) -> ConsoleState:
        self._check_index(index)
        urls = list(self.urls)
        urls[index] = value
        return self.model_copy(update={"urls": tuple(urls)})

    def remove_url(self, index: int) -> ConsoleState:
        self._check_index(index)
        urls = self.urls[:index] + self.urls[index + 1 :]
        return self.model_copy(update={"urls": urls})

    def update_fields(
        self,
        *,
        rate_limit: int,
        headers: str,
        proxy: str,
        user_agent: str,
    ) -> ConsoleState:
        return self.model_copy(
            update={
                "rate_limit": rate_limit,
                "headers": headers,
                "proxy": proxy,
                "user_agent": user_agent,
            }
        )

    def append_log(self, entry: LogEntry) -> ConsoleState:
        return self.model_copy(update={"logs": (*self.logs, entry)})

    def clear_log(self) -> ConsoleState:
        return self.model_copy(update={"logs": ()})

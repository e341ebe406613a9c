"""Live log tests."""

from datetime import datetime

import pytest

from fastscraper.console.events import LiveLog
from fastscraper.console.state import ConsoleState, LogEntry

pytestmark = pytest.mark.asyncio


def _clock() -> datetime:
    return datetime(2026, 3, 4, 8, 30, 0)


async def test_append_stamps_and_records():
    log = LiveLog(ConsoleState(), clock=_clock)
    entry = await log.append("hello")
    assert entry == LogEntry(timestamp="08:30:00", message="hello")
    assert log.entries == (entry,)
    assert log.state.logs == (entry,)


async def test_listeners_called_in_registration_order():
    log = LiveLog(ConsoleState(), clock=_clock)
    calls: list[str] = []

    async def first(entry: LogEntry) -> None:
        calls.append(f"first:{entry.message}")

    async def second(entry: LogEntry) -> None:
        calls.append(f"second:{entry.message}")

    log.subscribe(first)
    log.subscribe(second)
    await log.append("a")
    await log.append("b")
    assert calls == ["first:a", "second:a", "first:b", "second:b"]


async def test_clear_only_touches_log():
    state = ConsoleState(urls=("https://a.test",)).append_log(
        LogEntry(timestamp="01:00:00", message="old")
    )
    log = LiveLog(state, clock=_clock)
    log.clear()
    assert log.entries == ()
    assert log.state.urls == ("https://a.test",)

"""Submission orchestrator tests."""

import asyncio
import json
from datetime import datetime
from unittest.mock import AsyncMock

import httpx
import pytest

from fastscraper.cache.redis import RedisKeyValueStore
from fastscraper.console.backend import ScrapeBackend
from fastscraper.console.errors import PresentationWarning
from fastscraper.console.events import LiveLog
from fastscraper.console.handoff import HandoffStore
from fastscraper.console.state import ConsoleState, LogEntry
from fastscraper.console.submission import Submission, SubmissionInProgress

pytestmark = pytest.mark.asyncio

SCENARIO_C = [
    {"url": "https://a.test", "success": True, "snippet": "<html/>"},
    {"url": "https://b.test", "success": False, "error": "timeout"},
]


class _Backend:
    """Counts calls and answers with a fixed handler."""

    def __init__(self, handler):
        self.calls: list[httpx.Request] = []
        self._handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return self._handler(request)

    def client(self) -> ScrapeBackend:
        return ScrapeBackend("http://backend.test", transport=httpx.MockTransport(self))


def _messages(state: ConsoleState) -> list[str]:
    return [entry.message for entry in state.logs]


def _log(urls=("https://a.test", "https://b.test"), **fields) -> LiveLog:
    state = ConsoleState(urls=tuple(urls), **fields)
    return LiveLog(state, clock=lambda: datetime(2026, 1, 1, 12, 0, 0))


def _submission(backend: _Backend, kv: RedisKeyValueStore, presenter=None) -> Submission:
    return Submission(
        backend=backend.client(),
        handoff=HandoffStore(kv),
        presenter=presenter or AsyncMock(),
        results_url="/results",
    )


async def test_successful_submission_logs_each_result_in_order(kv):
    backend = _Backend(lambda r: httpx.Response(200, json=SCENARIO_C))
    presenter = AsyncMock()
    state = await _submission(backend, kv, presenter).run(_log())

    assert _messages(state) == [
        "Starting scrape for 2 URL(s)",
        "Sending POST /api/scrape",
        "HTTP 200",
        "Received 2 item(s)",
        "[OK] https://a.test",
        "[ERR] https://b.test -> timeout",
        "Scrape complete",
    ]
    assert all(entry.timestamp == "12:00:00" for entry in state.logs)
    stored = await HandoffStore(kv).get()
    assert [r.model_dump(exclude_none=True) for r in stored] == SCENARIO_C
    presenter.present_results.assert_awaited_once_with("/results")


async def test_blank_urls_log_warning_and_make_no_call(kv):
    backend = _Backend(lambda r: httpx.Response(200, json=[]))
    state = await _submission(backend, kv).run(_log(urls=("", "   ")))

    assert _messages(state) == ["No URLs provided."]
    assert backend.calls == []
    assert await kv.get("scrapeResults") is None


async def test_server_error_logs_status_and_body_without_handoff(kv):
    backend = _Backend(lambda r: httpx.Response(500, text="internal error"))
    presenter = AsyncMock()
    state = await _submission(backend, kv, presenter).run(_log())

    assert _messages(state)[-1] == "Server error 500: internal error"
    assert await kv.get("scrapeResults") is None
    presenter.present_results.assert_not_awaited()


async def test_network_error_aborts(kv):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    state = await _submission(_Backend(handler), kv).run(_log())

    assert _messages(state)[-1] == "Network error: connection refused"
    assert await kv.get("scrapeResults") is None


async def test_malformed_json_aborts(kv):
    backend = _Backend(lambda r: httpx.Response(200, content=b"{oops"))
    state = await _submission(backend, kv).run(_log())

    assert _messages(state)[-1].startswith("JSON parse error:")
    assert await kv.get("scrapeResults") is None


async def test_popup_refusal_is_logged_and_results_kept(kv):
    backend = _Backend(lambda r: httpx.Response(200, json=SCENARIO_C))
    presenter = AsyncMock()
    presenter.present_results.side_effect = PresentationWarning("blocked")
    state = await _submission(backend, kv, presenter).run(_log())

    assert _messages(state)[-2:] == [
        "Scrape complete",
        "Popup blocked - allow popups for this site",
    ]
    assert len(await HandoffStore(kv).get()) == 2


async def test_failed_handoff_write_skips_presenting(kv):
    backend = _Backend(lambda r: httpx.Response(200, json=SCENARIO_C))
    presenter = AsyncMock()
    submission = _submission(backend, kv, presenter)
    submission._handoff.put = AsyncMock(return_value=False)
    state = await submission.run(_log())

    assert _messages(state)[-1] == "Could not save results"
    presenter.present_results.assert_not_awaited()


async def test_previous_log_is_cleared_and_fields_kept(kv):
    backend = _Backend(lambda r: httpx.Response(200, json=[]))
    old = LogEntry(timestamp="09:00:00", message="old run")
    log = _log(proxy="http://p:1")
    log._state = log.state.append_log(old)
    state = await _submission(backend, kv).run(log)

    assert old not in state.logs
    assert state.proxy == "http://p:1"
    assert state.urls == ("https://a.test", "https://b.test")


async def test_request_body_carries_form_fields(kv):
    backend = _Backend(lambda r: httpx.Response(200, json=[]))
    await _submission(backend, kv).run(
        _log(urls=(" https://a.test ", ""), rate_limit=9, headers="Accept: */*\nbad", user_agent=" UA ")
    )

    assert json.loads(backend.calls[0].content) == {
        "urls": ["https://a.test"],
        "rate_limit": 9,
        "headers": {"Accept": "*/*"},
        "user_agent": "UA",
    }


async def test_listeners_see_every_entry_as_it_happens(kv):
    backend = _Backend(lambda r: httpx.Response(200, json=SCENARIO_C))
    log = _log()
    seen: list[str] = []

    async def listener(entry: LogEntry) -> None:
        seen.append(entry.message)
        assert log.entries[-1] == entry

    log.subscribe(listener)
    state = await _submission(backend, kv).run(log)
    assert seen == _messages(state)


async def test_second_submission_while_running_is_refused(kv):
    release = asyncio.Event()

    async def slow_present(url: str) -> None:
        await release.wait()

    backend = _Backend(lambda r: httpx.Response(200, json=[]))
    presenter = AsyncMock()
    presenter.present_results.side_effect = slow_present
    submission = _submission(backend, kv, presenter)

    first = asyncio.create_task(submission.run(_log()))
    while not presenter.present_results.await_count:
        await asyncio.sleep(0)

    second_log = _log()
    with pytest.raises(SubmissionInProgress):
        await submission.run(second_log)
    assert second_log.entries == ()

    release.set()
    await first
    assert len(backend.calls) == 1

"""Scrape backend client tests (httpx MockTransport)."""

import json

import httpx
import pytest

from fastscraper.api.schemas import ScrapeRequest
from fastscraper.console.backend import ScrapeBackend
from fastscraper.console.errors import DecodeError, ServerError, TransportError

pytestmark = pytest.mark.asyncio

BASE_URL = "http://backend.test"


def _backend(handler) -> ScrapeBackend:
    return ScrapeBackend(BASE_URL, transport=httpx.MockTransport(handler))


def _request(**overrides) -> ScrapeRequest:
    defaults = dict(urls=["https://a.test"], rate_limit=5)
    defaults.update(overrides)
    return ScrapeRequest(**defaults)


async def test_posts_json_body_without_absent_fields():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    await _backend(handler).scrape(_request(user_agent="UA"))

    assert len(seen) == 1
    assert seen[0].method == "POST"
    assert str(seen[0].url) == f"{BASE_URL}/api/scrape"
    assert seen[0].headers["content-type"] == "application/json"
    assert json.loads(seen[0].content) == {
        "urls": ["https://a.test"],
        "rate_limit": 5,
        "user_agent": "UA",
    }


async def test_success_keeps_backend_order():
    body = [
        {"url": "https://b.test", "success": False, "snippet": None, "error": "timeout"},
        {"url": "https://a.test", "success": True, "snippet": "<html/>"},
    ]
    response = await _backend(lambda r: httpx.Response(200, json=body)).scrape(_request())
    assert response.status_code == 200
    assert [r.url for r in response.results] == ["https://b.test", "https://a.test"]
    assert response.results[0].error == "timeout"
    assert response.results[1].snippet == "<html/>"


async def test_connection_failure_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError, match="connection refused"):
        await _backend(handler).scrape(_request())


async def test_non_success_status_is_server_error():
    backend = _backend(lambda r: httpx.Response(500, text="internal error"))
    with pytest.raises(ServerError) as exc_info:
        await backend.scrape(_request())
    assert exc_info.value.status_code == 500
    assert exc_info.value.body == "internal error"


async def test_malformed_json_is_decode_error():
    backend = _backend(lambda r: httpx.Response(200, content=b"<html>not json"))
    with pytest.raises(DecodeError):
        await backend.scrape(_request())


async def test_json_that_is_not_a_result_list_is_decode_error():
    backend = _backend(lambda r: httpx.Response(200, json={"detail": "nope"}))
    with pytest.raises(DecodeError, match="dict"):
        await backend.scrape(_request())


async def test_forward_relays_method_body_and_query():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, text="ok")

    resp = await _backend(handler).forward(
        "PUT", "/api/things", content=b"payload", headers={"content-type": "text/plain"}, params="a=1"
    )
    assert resp.status_code == 201
    assert str(seen[0].url) == f"{BASE_URL}/api/things?a=1"
    assert seen[0].content == b"payload"


async def test_forward_connection_failure_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(TransportError):
        await _backend(handler).forward("GET", "/api/x")

"""Client for the scraping backend's single endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from fastscraper.api.schemas import ScrapeRequest, ScrapeResult
from fastscraper.console.errors import DecodeError, ServerError, TransportError

logger = logging.getLogger(__name__)

SCRAPE_PATH = "/api/scrape"

_results_adapter = TypeAdapter(list[ScrapeResult])


@dataclass(frozen=True)
class ScrapeResponse:
    status_code: int
    results: list[ScrapeResult]


def _reason(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


class ScrapeBackend:
    """Sends one scrape request and classifies the outcome.

    No retries and no timeout of our own: the client is built with
    ``timeout=None`` so only the transport decides when a call fails.
    """

    def __init__(
        self,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}{SCRAPE_PATH}"

    async def scrape(self, request: ScrapeRequest) -> ScrapeResponse:
        """POST *request* and return the parsed result list.

        Raises ``TransportError``, ``ServerError`` or ``DecodeError``.
        """
        payload = request.model_dump(exclude_none=True)
        logger.debug(
            "posting scrape request",
            extra={"endpoint": self.endpoint, "url_count": len(request.urls)},
        )
        try:
            async with httpx.AsyncClient(
                timeout=None, transport=self._transport
            ) as client:
                resp = await client.post(self.endpoint, json=payload)
        except httpx.HTTPError as exc:
            logger.warning(
                "scrape backend unreachable",
                extra={"endpoint": self.endpoint},
                exc_info=True,
            )
            raise TransportError(_reason(exc)) from exc

        if not resp.is_success:
            logger.warning(
                "scrape backend returned error status",
                extra={"status_code": resp.status_code},
            )
            raise ServerError(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            raise DecodeError(_reason(exc)) from exc

        try:
            results = _results_adapter.validate_python(data)
        except PydanticValidationError as exc:
            raise DecodeError(
                f"expected a list of results, got {type(data).__name__}"
            ) from exc

        logger.debug(
            "scrape results received",
            extra={"status_code": resp.status_code, "result_count": len(results)},
        )
        return ScrapeResponse(status_code=resp.status_code, results=results)

    async def forward(
        self,
        method: str,
        path: str,
        content: bytes = b"",
        headers: dict[str, str] | None = None,
        params: str = "",
    ) -> httpx.Response:
        """Relay a raw request to the backend, as the dev proxy does."""
        url = f"{self._base_url}/{path.lstrip('/')}"
        if params:
            url = f"{url}?{params}"
        try:
            async with httpx.AsyncClient(
                timeout=None, transport=self._transport
            ) as client:
                return await client.request(
                    method, url, content=content, headers=headers
                )
        except httpx.HTTPError as exc:
            logger.warning("proxy forward failed", extra={"url": url}, exc_info=True)
            raise TransportError(_reason(exc)) from exc

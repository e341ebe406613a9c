"""Development proxy: forwards ``/api/*`` to the scraping backend."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from fastscraper.config import Settings
from fastscraper.console.backend import ScrapeBackend
from fastscraper.console.errors import TransportError

logger = logging.getLogger(__name__)

router = APIRouter(include_in_schema=False)

# Hop-by-hop and length headers are recomputed by the ASGI server.
_DROPPED_RESPONSE_HEADERS = {"content-length", "transfer-encoding", "connection", "content-encoding"}


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _get_backend(request: Request) -> ScrapeBackend:
    return request.app.state.backend


@router.api_route("/api/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
async def forward(
    path: str,
    request: Request,
    settings: Settings = Depends(_get_settings),
    backend: ScrapeBackend = Depends(_get_backend),
):
    if not settings.dev_proxy:
        raise HTTPException(status_code=404, detail="Not Found")

    headers = {}
    if "content-type" in request.headers:
        headers["content-type"] = request.headers["content-type"]

    try:
        upstream = await backend.forward(
            request.method,
            f"/api/{path}",
            content=await request.body(),
            headers=headers,
            params=request.url.query,
        )
    except TransportError as exc:
        raise HTTPException(status_code=502, detail=f"Backend unreachable: {exc}") from exc

    logger.debug("proxied", extra={"path": path, "status_code": upstream.status_code})
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers={
            k: v for k, v in upstream.headers.items() if k.lower() not in _DROPPED_RESPONSE_HEADERS
        },
    )

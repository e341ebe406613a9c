"""Console and results page handlers, plus their JSON/SSE endpoints."""

from __future__ import annotations

import asyncio
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates
from sse_starlette.sse import EventSourceResponse

from fastscraper.api.schemas import FieldsUpdate, LogMessage, ScrapeResult, UrlUpdate
from fastscraper.api.service import (
    RESULTS_ROUTE,
    SESSION_COOKIE,
    edit_state,
    generate_session_id,
    handoff_store,
    start_submission,
    state_store,
)
from fastscraper.cache.redis import RedisKeyValueStore
from fastscraper.console.backend import SCRAPE_PATH, ScrapeBackend
from fastscraper.console.state import ConsoleState, LogEntry
from fastscraper.console.viewer import (
    copy_snippet,
    export_result,
    load_results,
    pick_result,
    render_results,
)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=TEMPLATES_DIR)

router = APIRouter()

DEFAULT_SESSION = "default"


def _get_kv(request: Request) -> RedisKeyValueStore:
    return request.app.state.kv


def _get_backend(request: Request) -> ScrapeBackend:
    return request.app.state.backend


def _get_locks(request: Request) -> dict[str, asyncio.Lock]:
    return request.app.state.submission_locks


def _get_session_id(request: Request) -> str:
    return request.cookies.get(SESSION_COOKIE) or DEFAULT_SESSION


async def _edit(kv: RedisKeyValueStore, session_id: str, transition) -> ConsoleState:
    try:
        return await edit_state(kv, session_id, transition)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


# --- console ---


@router.get("/", response_class=HTMLResponse)
async def console_page(request: Request, kv: RedisKeyValueStore = Depends(_get_kv)):
    session_id = request.cookies.get(SESSION_COOKIE)
    new_session = session_id is None
    if new_session:
        session_id = generate_session_id()

    state = await state_store(kv, session_id).load()
    response = templates.TemplateResponse(
        request,
        "console.html",
        {"state": state, "scrape_path": SCRAPE_PATH},
    )
    if new_session:
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return response


@router.get("/console/state")
async def get_state(
    kv: RedisKeyValueStore = Depends(_get_kv),
    session_id: str = Depends(_get_session_id),
) -> ConsoleState:
    return await state_store(kv, session_id).load()


@router.post("/console/urls")
async def add_url(
    kv: RedisKeyValueStore = Depends(_get_kv),
    session_id: str = Depends(_get_session_id),
) -> ConsoleState:
    return await _edit(kv, session_id, lambda state: state.add_url())


@router.put("/console/urls/{index}")
async def update_url(
    index: int,
    body: UrlUpdate,
    kv: RedisKeyValueStore = Depends(_get_kv),
    session_id: str = Depends(_get_session_id),
) -> ConsoleState:
    return await _edit(kv, session_id, lambda state: state.update_url(index, body.value))


@router.delete("/console/urls/{index}")
async def remove_url(
    index: int,
    kv: RedisKeyValueStore = Depends(_get_kv),
    session_id: str = Depends(_get_session_id),
) -> ConsoleState:
    return await _edit(kv, session_id, lambda state: state.remove_url(index))


@router.put("/console/fields")
async def update_fields(
    body: FieldsUpdate,
    kv: RedisKeyValueStore = Depends(_get_kv),
    session_id: str = Depends(_get_session_id),
) -> ConsoleState:
    return await _edit(
        kv, session_id, lambda state: state.update_fields(**body.model_dump())
    )


@router.post("/console/submit")
async def submit(
    request: Request,
    kv: RedisKeyValueStore = Depends(_get_kv),
    backend: ScrapeBackend = Depends(_get_backend),
    locks: dict[str, asyncio.Lock] = Depends(_get_locks),
    session_id: str = Depends(_get_session_id),
):
    stream = await start_submission(
        backend=backend,
        kv=kv,
        locks=locks,
        session_id=session_id,
        is_disconnected=request.is_disconnected,
    )
    if stream is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A scrape is already running for this session",
        )
    return EventSourceResponse(stream.events())


@router.post("/console/logs")
async def append_log(
    body: LogMessage,
    kv: RedisKeyValueStore = Depends(_get_kv),
    session_id: str = Depends(_get_session_id),
) -> ConsoleState:
    """Record a line the page produced itself, such as a blocked popup."""
    entry = LogEntry.stamp(body.message)
    return await _edit(kv, session_id, lambda state: state.append_log(entry))


# --- results ---


async def _results(kv: RedisKeyValueStore, session_id: str) -> list[ScrapeResult]:
    return await load_results(handoff_store(kv, session_id))


async def _result_at(kv: RedisKeyValueStore, session_id: str, index: int) -> ScrapeResult:
    try:
        return pick_result(await _results(kv, session_id), index)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail="Result not found") from exc


@router.get(RESULTS_ROUTE, response_class=HTMLResponse)
async def results_page(
    request: Request,
    kv: RedisKeyValueStore = Depends(_get_kv),
    session_id: str = Depends(_get_session_id),
):
    views = render_results(await _results(kv, session_id))
    return templates.TemplateResponse(request, "results.html", {"results": views})


@router.get(f"{RESULTS_ROUTE}/data")
async def results_data(
    kv: RedisKeyValueStore = Depends(_get_kv),
    session_id: str = Depends(_get_session_id),
) -> list[ScrapeResult]:
    return await _results(kv, session_id)


@router.get(f"{RESULTS_ROUTE}/{{index}}/export")
async def export(
    index: int,
    kv: RedisKeyValueStore = Depends(_get_kv),
    session_id: str = Depends(_get_session_id),
):
    filename, document = export_result(await _result_at(kv, session_id, index), index)
    return Response(
        content=document,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(f"{RESULTS_ROUTE}/{{index}}/snippet", response_class=PlainTextResponse)
async def snippet(
    index: int,
    kv: RedisKeyValueStore = Depends(_get_kv),
    session_id: str = Depends(_get_session_id),
):
    result = await _result_at(kv, session_id, index)
    try:
        return copy_snippet(result)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

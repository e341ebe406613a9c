"""Service layer — session-scoped stores and the streaming submission."""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Awaitable, Callable

from fastscraper.cache.redis import RedisKeyValueStore
from fastscraper.console.backend import ScrapeBackend
from fastscraper.console.events import LiveLog
from fastscraper.console.handoff import ConsoleStateStore, HandoffStore
from fastscraper.console.presenter import StreamPresenter
from fastscraper.console.state import ConsoleState, LogEntry
from fastscraper.console.submission import Submission

logger = logging.getLogger(__name__)

SESSION_COOKIE = "fastscraper_session"
RESULTS_ROUTE = "/results"

# Submissions outlive their SSE stream; keep a reference until they finish.
_running: set[asyncio.Task] = set()


def generate_session_id() -> str:
    return uuid.uuid4().hex[:12]


def state_store(kv: RedisKeyValueStore, session_id: str) -> ConsoleStateStore:
    return ConsoleStateStore(kv.scoped(session_id))


def handoff_store(kv: RedisKeyValueStore, session_id: str) -> HandoffStore:
    return HandoffStore(kv.scoped(session_id))


async def claim_session(
    locks: dict[str, asyncio.Lock], session_id: str
) -> asyncio.Lock | None:
    """Take the session's submission lock, or return ``None`` if it is held."""
    lock = locks.setdefault(session_id, asyncio.Lock())
    if lock.locked():
        return None
    # An uncontended acquire never suspends, so check and claim are atomic.
    await lock.acquire()
    return lock


def release_session(
    locks: dict[str, asyncio.Lock], session_id: str, lock: asyncio.Lock
) -> None:
    lock.release()
    if locks.get(session_id) is lock:
        del locks[session_id]


async def edit_state(
    kv: RedisKeyValueStore,
    session_id: str,
    transition: Callable[[ConsoleState], ConsoleState],
) -> ConsoleState:
    """Load the session's state, apply *transition*, save and return it."""
    store = state_store(kv, session_id)
    state = transition(await store.load())
    await store.save(state)
    return state


async def _save_log(store: ConsoleStateStore, logs: tuple[LogEntry, ...]) -> None:
    # Form edits made while the scrape ran are kept; only the log is replaced.
    state = (await store.load()).clear_log()
    for entry in logs:
        state = state.append_log(entry)
    await store.save(state)


@dataclass
class SubmissionStream:
    """A running submission and the queue its events arrive on."""

    task: asyncio.Task
    queue: asyncio.Queue[tuple[str, dict[str, Any]] | None]

    async def events(self) -> AsyncGenerator[dict[str, str], None]:
        """Yield queued events in SSE form until the submission finishes.

        Stopping early does not cancel the task; the results still get
        handed off.
        """
        while True:
            item = await self.queue.get()
            if item is None:
                break
            event, data = item
            yield {"event": event, "data": json.dumps(data)}
        yield {"event": "done", "data": "{}"}


async def start_submission(
    backend: ScrapeBackend,
    kv: RedisKeyValueStore,
    locks: dict[str, asyncio.Lock],
    session_id: str,
    is_disconnected: Callable[[], Awaitable[bool]],
) -> SubmissionStream | None:
    """Claim the session and start its submission in the background.

    Returns ``None`` when the session already has a submission running.
    """
    lock = await claim_session(locks, session_id)
    if lock is None:
        logger.info("submission refused, one is running", extra={"session_id": session_id})
        return None

    states = state_store(kv, session_id)
    queue: asyncio.Queue[tuple[str, dict[str, Any]] | None] = asyncio.Queue()

    async def send(event: str, data: dict[str, Any]) -> None:
        await queue.put((event, data))

    async def on_entry(entry: LogEntry) -> None:
        await send("log", entry.model_dump())

    submission = Submission(
        backend=backend,
        handoff=handoff_store(kv, session_id),
        presenter=StreamPresenter(send, is_disconnected),
        results_url=RESULTS_ROUTE,
    )

    async def run_and_signal_done() -> None:
        try:
            log = LiveLog(await states.load())
            log.subscribe(on_entry)
            final = await submission.run(log)
            await _save_log(states, final.logs)
        except Exception:
            logger.exception("submission failed", extra={"session_id": session_id})
            await send("error", {"message": "Submission failed"})
        finally:
            release_session(locks, session_id, lock)
            await queue.put(None)  # sentinel

    task = asyncio.create_task(run_and_signal_done())
    _running.add(task)
    task.add_done_callback(_running.discard)
    return SubmissionStream(task=task, queue=queue)

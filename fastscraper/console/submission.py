"""Submission orchestrator: validate, call the backend, narrate, hand off."""

from __future__ import annotations

import asyncio
import logging

from fastscraper.console.backend import SCRAPE_PATH, ScrapeBackend
from fastscraper.console.builder import build_request
from fastscraper.console.errors import (
    DecodeError,
    PresentationWarning,
    ServerError,
    TransportError,
    ValidationError,
)
from fastscraper.console.events import LiveLog
from fastscraper.console.handoff import HandoffStore
from fastscraper.console.presenter import ResultsPresenter
from fastscraper.console.state import ConsoleState

logger = logging.getLogger(__name__)


class SubmissionInProgress(RuntimeError):
    """Raised when this submission is already running."""


class Submission:
    """Runs one console submission end to end.

    Every failure ends as a line in the live log; :meth:`run` itself never
    raises except for :class:`SubmissionInProgress`, which is checked before
    anything is logged. Sessions are gated one level up, in the service.
    """

    def __init__(
        self,
        backend: ScrapeBackend,
        handoff: HandoffStore,
        presenter: ResultsPresenter,
        results_url: str,
    ) -> None:
        self._backend = backend
        self._handoff = handoff
        self._presenter = presenter
        self._results_url = results_url
        self._lock = asyncio.Lock()

    async def run(self, log: LiveLog) -> ConsoleState:
        # A second click while a scrape is running is ignored, not queued.
        if self._lock.locked():
            raise SubmissionInProgress("a submission is already running")
        async with self._lock:
            await self._run(log)
        return log.state

    async def _run(self, log: LiveLog) -> None:
        log.clear()
        state = log.state

        try:
            request = build_request(
                state.urls,
                state.rate_limit,
                headers=state.headers,
                proxy=state.proxy,
                user_agent=state.user_agent,
            )
        except ValidationError:
            await log.append("No URLs provided.")
            return

        logger.info("submission started", extra={"url_count": len(request.urls)})
        await log.append(f"Starting scrape for {len(request.urls)} URL(s)")
        await log.append(f"Sending POST {SCRAPE_PATH}")

        try:
            response = await self._backend.scrape(request)
        except TransportError as exc:
            await log.append(f"Network error: {exc}")
            return
        except ServerError as exc:
            await log.append(f"HTTP {exc.status_code}")
            await log.append(f"Server error {exc.status_code}: {exc.body}")
            return
        except DecodeError as exc:
            await log.append(f"JSON parse error: {exc}")
            return

        results = response.results
        await log.append(f"HTTP {response.status_code}")
        await log.append(f"Received {len(results)} item(s)")
        for result in results:
            if result.success:
                await log.append(f"[OK] {result.url}")
            else:
                await log.append(f"[ERR] {result.url} -> {result.error}")
        await log.append("Scrape complete")

        if not await self._handoff.put(results):
            await log.append("Could not save results")
            return
        logger.info("submission completed", extra={"result_count": len(results)})

        try:
            await self._presenter.present_results(self._results_url)
        except PresentationWarning:
            logger.info("results view not opened", exc_info=True)
            await log.append("Popup blocked - allow popups for this site")

"""Opening the results view from a finished submission."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Coroutine, Protocol

from fastscraper.console.errors import PresentationWarning


class ResultsPresenter(Protocol):
    async def present_results(self, url: str) -> None:
        """Ask the UI shell to open *url*; raise ``PresentationWarning`` if refused."""
        ...


class StreamPresenter:
    """Asks the connected console page to open the results view.

    The page receives a ``present`` event and opens a new tab. If the page
    is no longer listening there is nobody to open it, which is reported as
    a refusal.
    """

    def __init__(
        self,
        send: Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]],
        is_disconnected: Callable[[], Awaitable[bool]],
    ) -> None:
        self._send = send
        self._is_disconnected = is_disconnected

    async def present_results(self, url: str) -> None:
        if await self._is_disconnected():
            raise PresentationWarning("console page disconnected")
        await self._send("present", {"url": url})

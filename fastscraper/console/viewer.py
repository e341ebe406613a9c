"""Results view: load the handed-off results and the per-item actions."""

from __future__ import annotations

from dataclasses import dataclass

from fastscraper.api.schemas import ScrapeResult
from fastscraper.console.handoff import HandoffStore


@dataclass(frozen=True)
class ResultView:
    """What the results page shows for one result."""

    index: int  # 1-based
    url: str
    success: bool
    status: str
    body: str
    can_copy: bool


async def load_results(handoff: HandoffStore) -> list[ScrapeResult]:
    """Read the handoff store once. The page does not follow later writes."""
    return await handoff.get()


def render_results(results: list[ScrapeResult]) -> list[ResultView]:
    views = []
    for index, result in enumerate(results, start=1):
        if result.success:
            body = result.snippet or ""
        else:
            body = result.error or ""
        views.append(
            ResultView(
                index=index,
                url=result.url,
                success=result.success,
                status="Success" if result.success else "Error",
                body=body,
                can_copy=result.success,
            )
        )
    return views


def pick_result(results: list[ScrapeResult], index: int) -> ScrapeResult:
    """Return the result at 1-based *index*, raising ``IndexError`` if absent."""
    if not 1 <= index <= len(results):
        raise IndexError(f"no result number {index}")
    return results[index - 1]


def copy_snippet(result: ScrapeResult) -> str:
    """Text placed on the clipboard; only successful results offer it."""
    if not result.success:
        raise ValueError("only successful results have a snippet to copy")
    return result.snippet or ""


def export_result(result: ScrapeResult, index: int) -> tuple[str, str]:
    """Return ``(filename, pretty JSON)`` for downloading one result."""
    filename = f"result-{index}.json"
    # Fields the backend sent as null stay in the file; absent ones stay absent.
    return filename, result.model_dump_json(indent=2, exclude_unset=True)

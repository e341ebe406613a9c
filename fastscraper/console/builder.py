"""Turn console form input into a backend request."""

from __future__ import annotations

from collections.abc import Sequence

from fastscraper.api.schemas import ScrapeRequest
from fastscraper.console.errors import ValidationError
from fastscraper.console.headers import parse_headers


def _blank_to_none(value: str) -> str | None:
    value = value.strip()
    return value or None


def build_request(
    urls: Sequence[str],
    rate_limit: int,
    headers: str = "",
    proxy: str = "",
    user_agent: str = "",
) -> ScrapeRequest:
    """Build a :class:`ScrapeRequest`, raising ``ValidationError`` on no URLs.

    URLs are trimmed and blanks dropped, order and duplicates kept.
    ``rate_limit`` is passed through as given.
    """
    valid_urls = [url.strip() for url in urls if url.strip()]
    if not valid_urls:
        raise ValidationError("No URLs provided.")

    return ScrapeRequest(
        urls=valid_urls,
        rate_limit=rate_limit,
        headers=parse_headers(headers) or None,
        proxy=_blank_to_none(proxy),
        user_agent=_blank_to_none(user_agent),
    )

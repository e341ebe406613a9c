"""Request/response Pydantic models."""

from pydantic import BaseModel, Field


class ScrapeRequest(BaseModel):
    """Body of ``POST /api/scrape`` as sent to the scraping backend."""

    urls: list[str]
    rate_limit: int = 5
    headers: dict[str, str] | None = None
    proxy: str | None = None
    user_agent: str | None = None


class ScrapeResult(BaseModel):
    url: str
    success: bool
    snippet: str | None = None
    error: str | None = None


class UrlUpdate(BaseModel):
    value: str


class FieldsUpdate(BaseModel):
    # The slider on the console page is the only input channel for the
    # rate limit; its bounds are enforced here and nowhere downstream.
    rate_limit: int = Field(5, ge=1, le=20)
    headers: str = ""
    proxy: str = ""
    user_agent: str = ""


class LogMessage(BaseModel):
    message: str = Field(min_length=1)

"""FastAPI app entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fastscraper.api.proxy import router as proxy_router
from fastscraper.api.routes import router
from fastscraper.cache.redis import RedisKeyValueStore, create_redis_client
from fastscraper.config import get_settings
from fastscraper.console.backend import ScrapeBackend
from fastscraper.logging_config import setup_logging

logger = logging.getLogger(__name__)

KEY_PREFIX = "fastscraper:"


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # Initialize logging FIRST so all subsequent operations produce JSON logs
    setup_logging(settings.log_level)
    logger.info("starting fastscraper console")

    redis_client = await create_redis_client(settings.redis_url)

    app.state.settings = settings
    app.state.kv = RedisKeyValueStore(
        redis_client, ttl=settings.handoff_ttl_seconds, prefix=KEY_PREFIX
    )
    app.state.backend = ScrapeBackend(settings.backend_url)
    app.state.submission_locks = {}

    logger.info(
        "fastscraper console ready",
        extra={"backend_url": settings.backend_url, "dev_proxy": settings.dev_proxy},
    )

    yield

    logger.info("shutting down fastscraper console")
    await redis_client.aclose()


app = FastAPI(title="FastScraper", lifespan=lifespan)
app.include_router(router)
app.include_router(proxy_router)


@app.get("/health")
async def health():
    return {"status": "ok"}

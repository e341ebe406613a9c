"""Pydantic Settings — loads configuration from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    backend_url: str = "http://localhost:3030"
    dev_proxy: bool = True

    redis_url: str = "redis://localhost:6379"
    handoff_ttl_seconds: int = 86400

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()

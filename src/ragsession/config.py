"""Runtime configuration for the ragsession client."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed configuration model."""

    model_config = SettingsConfigDict(env_prefix="ragsession_", env_file=".env", case_sensitive=False)

    environment: Literal["dev", "test", "prod"] = "dev"

    # Backend
    api_url: str = "http://localhost:8000"
    request_timeout_seconds: float = 30.0

    # Chat defaults sent with every turn
    chat_top_k: int = 5
    chat_similarity_threshold: float = 0.6
    chat_temperature: float | None = None
    chat_max_tokens: int | None = None

    # Search
    search_limit: int = 10
    search_limits: tuple[int, ...] | str = (5, 10, 20, 50)
    search_include_score: bool = True

    # Interactive sessions share stderr with the prompt.
    log_level: str = "WARNING"

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    @property
    def search_limits_tuple(self) -> tuple[int, ...]:
        value = self.search_limits
        if isinstance(value, tuple):
            return value
        if isinstance(value, str):
            parts = [p.strip() for p in value.split(",") if p.strip()]
            try:
                parsed = tuple(int(p) for p in parts)
            except ValueError:
                return (5, 10, 20, 50)
            return parsed or (5, 10, 20, 50)
        return (5, 10, 20, 50)


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return Settings()


def get_settings(override: Optional[dict[str, object]] = None) -> Settings:
    """Return settings, optionally overriding values without mutating cache."""

    if override:
        return Settings(**override)
    return _cached_settings()

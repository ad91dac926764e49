from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenRouter (server side)
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"

    # LangSmith
    LANGSMITH_API_KEY: str = ""
    LANGSMITH_PROJECT: str = "mindmapper"
    LANGCHAIN_TRACING_V2: bool = False

    # Map API (client side)
    MAP_API_URL: str = "http://localhost:4000"
    HTTP_TIMEOUT_SECONDS: float = 60.0
    HTTP_MAX_ATTEMPTS: int = 2

    # Saved maps
    STORAGE_BACKEND: Literal["memory", "redis"] = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    STORAGE_NAMESPACE: str = "mindmaps"

    # Editor
    DEFAULT_DETAIL_LEVEL: int = Field(default=3, ge=1, le=5)
    OVERLAY_DEBOUNCE_MS: int = 10
    MAX_INPUT_CHARS: int = 20_000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = Field(default="json", description="'json' for production, 'console' for dev")


def get_settings() -> Settings:
    return Settings()

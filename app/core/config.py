"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the edge function
entrypoint, and the conformance harness share a consistent configuration
surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class GrokSettings(BaseSettings):
    """Configuration for the xAI Grok chat-completions API."""

    model_config = SettingsConfigDict(populate_by_name=True, protected_namespaces=())

    api_key: str = Field(..., validation_alias="XAI_API_KEY")
    api_url: AnyHttpUrl = Field(
        "https://api.x.ai/v1/chat/completions", validation_alias="GROK_API_URL"
    )
    model_name: str = Field("grok-4-fast-reasoning", validation_alias="GROK_MODEL_NAME")
    temperature: float = Field(0.5, validation_alias="GROK_TEMPERATURE")
    max_completion_tokens: int = Field(
        4096, validation_alias="GROK_MAX_COMPLETION_TOKENS"
    )
    max_search_results: int = Field(50, validation_alias="GROK_MAX_SEARCH_RESULTS")
    request_timeout_seconds: float = Field(
        120.0,
        validation_alias="GROK_REQUEST_TIMEOUT_SECONDS",
        description="Upper bound for a single upstream call, in seconds.",
    )
    system_prompt_file: Optional[Path] = Field(
        None,
        validation_alias="GROK_SYSTEM_PROMPT_FILE",
        description="Optional file overriding the bundled system prompt.",
    )

    @field_validator("api_key")
    @classmethod
    def _require_api_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("XAI_API_KEY must not be empty")
        return value.strip()


class PricingSettings(BaseSettings):
    """Per-unit prices used to estimate the cost of an analysis."""

    model_config = SettingsConfigDict(populate_by_name=True)

    input_per_million_tokens: float = Field(
        0.20, validation_alias="GROK_PRICE_INPUT_PER_MILLION"
    )
    output_per_million_tokens: float = Field(
        1.50, validation_alias="GROK_PRICE_OUTPUT_PER_MILLION"
    )
    per_search_source: float = Field(
        0.025, validation_alias="GROK_PRICE_PER_SEARCH_SOURCE"
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(populate_by_name=True)

    bearer_token: Optional[str] = Field(
        None,
        validation_alias="AUTH_BEARER_TOKEN",
        description=(
            "Shared token callers must present as 'Bearer <token>'. When unset, "
            "only the presence of an Authorization header is checked."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    pricing: PricingSettings = Field(default_factory=PricingSettings)
    grok: GrokSettings = Field(default_factory=GrokSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "GrokSettings",
    "PricingSettings",
    "SecuritySettings",
    "get_settings",
]

"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from app.clients import GrokClient
from app.core.config import AppSettings, get_settings
from app.core.prompts import load_system_prompt
from app.services import AnalysisRequestHandler, HandleAnalysisService


@lru_cache()
def _settings() -> AppSettings:
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_grok_client() -> GrokClient:
    """Provide Grok client instance."""
    return GrokClient(_settings().grok)


@lru_cache()
def get_system_prompt() -> str:
    """Resolve the system prompt once per process."""
    return load_system_prompt(_settings().grok)


def get_handle_analysis_service() -> HandleAnalysisService:
    """Build the analysis service around the shared Grok client."""
    return HandleAnalysisService(
        get_grok_client(),
        system_prompt=get_system_prompt(),
        pricing=_settings().pricing,
    )


def get_analysis_request_handler() -> AnalysisRequestHandler:
    """Build the request handler with the configured authorization policy."""
    return AnalysisRequestHandler(
        get_handle_analysis_service(),
        bearer_token=_settings().security.bearer_token,
    )


__all__ = [
    "get_analysis_request_handler",
    "get_grok_client",
    "get_handle_analysis_service",
    "get_system_prompt",
]

"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_analysis_request_handler,
    get_grok_client,
    get_handle_analysis_service,
    get_system_prompt,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_analysis_request_handler",
    "get_app_settings",
    "get_grok_client",
    "get_handle_analysis_service",
    "get_system_prompt",
]

"""Expose constructed client wrappers."""

from .grok import (
    GrokAPIError,
    GrokClient,
    GrokClientError,
    GrokTimeoutError,
    GrokTransportError,
)

__all__ = [
    "GrokAPIError",
    "GrokClient",
    "GrokClientError",
    "GrokTimeoutError",
    "GrokTransportError",
]

"""Client wrapper for the xAI Grok chat-completions API with live search."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.config import GrokSettings

logger = logging.getLogger(__name__)


class GrokClientError(RuntimeError):
    """Base error for failed Grok API calls."""


class GrokAPIError(GrokClientError):
    """Raised when Grok answers with a non-success status code."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Grok API returned HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class GrokTimeoutError(GrokClientError):
    """Raised when Grok does not answer within the configured timeout."""


class GrokTransportError(GrokClientError):
    """Raised when the request never produced an HTTP response."""


def normalize_handle(handle: str) -> str:
    """Strip surrounding whitespace and any leading '@' from an X handle."""
    return handle.strip().lstrip("@").strip()


def build_user_message(handle: str, from_date: str, to_date: str) -> str:
    return f"Analyze the X handle: {handle}\nDate range: {from_date} to {to_date}"


def build_search_payload(
    *,
    settings: GrokSettings,
    system_prompt: str,
    handle: str,
    from_date: str,
    to_date: str,
) -> dict[str, Any]:
    """Construct the chat-completions body scoped to one handle and date range.

    ``handle`` must already be normalized.
    """
    return {
        "model": settings.model_name,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": build_user_message(handle, from_date, to_date)},
        ],
        "temperature": settings.temperature,
        "max_completion_tokens": settings.max_completion_tokens,
        "response_format": {"type": "json_object"},
        "search_parameters": {
            "mode": "auto",
            "max_search_results": settings.max_search_results,
            "from_date": from_date,
            "to_date": to_date,
            "return_citations": True,
            "sources": [
                {
                    "type": "x",
                    "included_x_handles": [handle],
                }
            ],
        },
    }


class GrokClient:
    """Issue single, non-retried chat-completion calls to Grok."""

    def __init__(
        self,
        settings: GrokSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def settings(self) -> GrokSettings:
        return self._settings

    async def create_chat_completion(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST ``payload`` and return the decoded JSON reply."""
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._settings.api_key}",
        }
        timeout = self._settings.request_timeout_seconds

        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    str(self._settings.api_url), json=payload, headers=headers
                )
            except httpx.TimeoutException as exc:
                raise GrokTimeoutError(
                    f"Grok API did not respond within {timeout:g}s"
                ) from exc
            except httpx.HTTPError as exc:
                raise GrokTransportError(f"Grok API request failed: {exc}") from exc

        if response.is_error:
            logger.error(
                "Grok API error (HTTP %s): %s", response.status_code, response.text
            )
            raise GrokAPIError(response.status_code, response.text)

        return response.json()


__all__ = [
    "GrokAPIError",
    "GrokClient",
    "GrokClientError",
    "GrokTimeoutError",
    "GrokTransportError",
    "build_search_payload",
    "build_user_message",
    "normalize_handle",
]

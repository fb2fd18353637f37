"""
Framework-neutral request handler for X handle analyses.

The handler owns the full pipeline (authenticate, validate, call, parse,
augment, respond) and always produces a ``HandlerResponse`` so the FastAPI
route and the edge function entrypoint share identical behaviour.
"""

from __future__ import annotations

import hmac
import json
import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Mapping

from app.services.handle_analysis import (
    AnalysisError,
    HandleAnalysisService,
    InternalError,
    validate_request,
)

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"
TEXT_MEDIA_TYPE = "text/plain"


@dataclass(slots=True)
class HandlerResponse:
    """Status, serialized body and content type for one inbound request."""

    status_code: int
    body: str
    media_type: str = JSON_MEDIA_TYPE

    @classmethod
    def json(cls, status_code: int, document: Any) -> "HandlerResponse":
        return cls(status_code=int(status_code), body=json.dumps(document))

    @classmethod
    def unauthorized(cls) -> "HandlerResponse":
        return cls(
            status_code=HTTPStatus.UNAUTHORIZED,
            body="Unauthorized",
            media_type=TEXT_MEDIA_TYPE,
        )


def _header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup that also works on plain dicts."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


class AnalysisRequestHandler:
    """Turn raw headers and body bytes into an analysis or error response."""

    def __init__(
        self,
        service: HandleAnalysisService,
        *,
        bearer_token: str | None = None,
    ) -> None:
        self._service = service
        self._bearer_token = bearer_token

    def is_authorized(self, headers: Mapping[str, str]) -> bool:
        authorization = (_header(headers, "Authorization") or "").strip()
        if not authorization:
            return False
        if not self._bearer_token:
            # Presence-only: tokens are not verified unless a shared token is set.
            return True
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer":
            return False
        return hmac.compare_digest(
            token.strip().encode("utf-8"), self._bearer_token.encode("utf-8")
        )

    async def handle(self, headers: Mapping[str, str], body: bytes | str) -> HandlerResponse:
        if not self.is_authorized(headers):
            logger.warning("Rejected analysis request without valid authorization")
            return HandlerResponse.unauthorized()

        try:
            document = json.loads(body or b"null")
            if not isinstance(document, dict):
                raise InternalError("Request body must be a JSON object.")
            request = validate_request(document)
            analysis = await self._service.analyze(request)
        except AnalysisError as exc:
            if exc.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
                logger.error("Analysis failed: %s", exc.payload().get("error"))
            return HandlerResponse.json(exc.status_code, exc.payload())
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Unexpected failure while handling analysis request")
            return HandlerResponse.json(
                HTTPStatus.INTERNAL_SERVER_ERROR, InternalError(str(exc)).payload()
            )

        return HandlerResponse.json(HTTPStatus.OK, analysis)


__all__ = ["AnalysisRequestHandler", "HandlerResponse"]

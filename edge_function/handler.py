"""
AWS Lambda entrypoint serving X handle analyses behind API Gateway.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from functools import lru_cache
from typing import Any, Dict

from app.clients import GrokClient
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.core.prompts import load_system_prompt
from app.services import AnalysisRequestHandler, HandleAnalysisService, HandlerResponse

logger = logging.getLogger(__name__)


@lru_cache()
def _bootstrap() -> AnalysisRequestHandler:
    """Initialize shared singletons for the Lambda runtime."""
    settings = get_settings()
    configure_logging(settings.log_level)

    service = HandleAnalysisService(
        GrokClient(settings.grok),
        system_prompt=load_system_prompt(settings.grok),
        pricing=settings.pricing,
    )
    return AnalysisRequestHandler(
        service, bearer_token=settings.security.bearer_token
    )


def _event_body(event: Dict[str, Any]) -> bytes:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    return body.encode("utf-8")


def _to_proxy_response(result: HandlerResponse) -> Dict[str, Any]:
    return {
        "statusCode": int(result.status_code),
        "headers": {"Content-Type": result.media_type},
        "body": result.body,
    }


def lambda_handler(
    event: Dict[str, Any],
    context: Any,
    *,
    handler: AnalysisRequestHandler | None = None,
) -> Dict[str, Any]:
    """
    AWS Lambda handler invoked through an API Gateway proxy integration.

    Only POST requests are served; other methods get a 405 without touching
    the provider.
    """
    method = (
        event.get("httpMethod")
        or ((event.get("requestContext") or {}).get("http") or {}).get("method")
        or "POST"
    )
    if method.upper() != "POST":
        logger.warning("Rejected %s request to analysis function", method)
        return _to_proxy_response(
            HandlerResponse.json(405, {"error": "Method not allowed"})
        )

    request_handler = handler or _bootstrap()
    headers = event.get("headers") or {}
    if not request_handler.is_authorized(headers):
        return _to_proxy_response(HandlerResponse.unauthorized())
    try:
        body = _event_body(event)
    except ValueError:
        logger.warning("Discarding event with an undecodable base64 body")
        return _to_proxy_response(
            HandlerResponse.json(400, {"error": "Invalid request body"})
        )
    result = asyncio.run(request_handler.handle(headers, body))
    return _to_proxy_response(result)


__all__ = ["lambda_handler"]

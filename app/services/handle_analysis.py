"""Service that runs an X handle analysis through Grok and reshapes the reply."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from http import HTTPStatus
from typing import Any, Mapping

from pydantic import ValidationError

from app.clients.grok import (
    GrokAPIError,
    GrokClient,
    GrokTimeoutError,
    GrokTransportError,
    build_search_payload,
    normalize_handle,
)
from app.core.config import PricingSettings
from app.schemas import AnalysisRequest, ErrorResponse, TokenUsage, ValidatedAnalysisRequest

logger = logging.getLogger(__name__)

ISO_DATE_FORMAT = "%Y-%m-%d"


class AnalysisError(Exception):
    """Failure that maps onto a JSON error document and HTTP status."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    error: str = "Internal server error"

    def payload(self) -> dict[str, Any]:
        return self._document()

    def _document(self, **fields: Any) -> dict[str, Any]:
        # Only fields passed explicitly appear, so a null raw_response survives.
        return ErrorResponse(error=self.error, **fields).model_dump(exclude_unset=True)


class BadRequestError(AnalysisError):
    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, error: str = "Missing required parameters", details: Any = None) -> None:
        super().__init__(error)
        self.error = error
        self.details = details

    def payload(self) -> dict[str, Any]:
        if self.details is None:
            return self._document()
        return self._document(details=self.details)


class ProviderError(AnalysisError):
    """Grok answered with a non-success status, or could not be reached."""

    error = "Grok API request failed"

    def __init__(self, status_code: int, details: str) -> None:
        super().__init__(details)
        self.status_code = status_code
        self.details = details

    def payload(self) -> dict[str, Any]:
        return self._document(details=self.details)


class ProviderTimeoutError(ProviderError):
    error = "Grok API request timed out"

    def __init__(self, details: str) -> None:
        super().__init__(HTTPStatus.GATEWAY_TIMEOUT, details)


class InvalidResponseShapeError(AnalysisError):
    """The provider's embedded answer was not a JSON object."""

    error = "Failed to parse Grok response as JSON"

    def __init__(self, raw_response: Any) -> None:
        super().__init__(self.error)
        self.raw_response = raw_response

    def payload(self) -> dict[str, Any]:
        return self._document(raw_response=self.raw_response)


class InternalError(AnalysisError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> dict[str, Any]:
        return self._document(message=self.message)


def _parse_date(value: str | None) -> date:
    text = (value or "").strip()
    parsed = datetime.strptime(text, ISO_DATE_FORMAT).date()
    if parsed.isoformat() != text:
        # strptime tolerates unpadded fields such as 2025-1-7.
        raise ValueError(f"{text!r} is not a zero-padded YYYY-MM-DD date")
    return parsed


def validate_request(body: Mapping[str, Any]) -> ValidatedAnalysisRequest:
    """Check required fields and dates, returning a normalized request."""
    try:
        request = AnalysisRequest.model_validate(body)
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
        raise BadRequestError("Invalid request body", details=fields) from exc

    if request.missing_fields():
        raise BadRequestError()

    handle = normalize_handle(request.x_handle or "")
    if not handle:
        raise BadRequestError()

    try:
        start = _parse_date(request.from_date)
        end = _parse_date(request.to_date)
    except ValueError as exc:
        raise BadRequestError(
            "Invalid date range", details="Dates must use the YYYY-MM-DD format."
        ) from exc
    if start > end:
        raise BadRequestError(
            "Invalid date range", details="from_date must not be after to_date."
        )

    return ValidatedAnalysisRequest(handle=handle, from_date=start, to_date=end)


def extract_message_content(completion: Mapping[str, Any]) -> Any:
    """Return ``choices[0].message.content`` or ``None`` when absent."""
    try:
        return completion["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None


def parse_analysis_content(completion: Mapping[str, Any]) -> dict[str, Any]:
    """Decode the JSON document Grok embeds in its first choice."""
    content = extract_message_content(completion)
    if not isinstance(content, str):
        logger.error("Grok reply carried no message content")
        raise InvalidResponseShapeError(content)
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        logger.error("JSON parse error in Grok reply: %s", exc)
        raise InvalidResponseShapeError(content) from exc
    if not isinstance(parsed, dict):
        logger.error("Grok reply decoded to %s, expected an object", type(parsed).__name__)
        raise InvalidResponseShapeError(content)
    return parsed


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def build_token_usage(
    usage: Mapping[str, Any] | None, pricing: PricingSettings
) -> TokenUsage:
    """Copy usage counters, treating missing or non-numeric values as zero."""
    usage = usage if isinstance(usage, Mapping) else {}
    prompt_tokens = _as_int(usage.get("prompt_tokens"))
    completion_tokens = _as_int(usage.get("completion_tokens"))
    sources = _as_int(usage.get("num_sources_used"))
    return TokenUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=_as_int(usage.get("total_tokens")),
        search_sources_used=sources,
        estimated_cost_usd=estimate_cost(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            search_sources=sources,
            pricing=pricing,
        ),
    )


def estimate_cost(
    *,
    prompt_tokens: int,
    completion_tokens: int,
    search_sources: int,
    pricing: PricingSettings,
) -> float:
    """Estimate the dollar cost of one completion including live search."""
    cost = (
        prompt_tokens / 1_000_000 * pricing.input_per_million_tokens
        + completion_tokens / 1_000_000 * pricing.output_per_million_tokens
        + search_sources * pricing.per_search_source
    )
    return round(cost, 6)


class HandleAnalysisService:
    """Run one Grok call per request and return the augmented analysis."""

    def __init__(
        self,
        grok_client: GrokClient,
        *,
        system_prompt: str,
        pricing: PricingSettings,
    ) -> None:
        self._grok = grok_client
        self._system_prompt = system_prompt
        self._pricing = pricing

    def build_payload(self, request: ValidatedAnalysisRequest) -> dict[str, Any]:
        return build_search_payload(
            settings=self._grok.settings,
            system_prompt=self._system_prompt,
            handle=request.handle,
            from_date=request.from_date_iso,
            to_date=request.to_date_iso,
        )

    async def analyze(self, request: ValidatedAnalysisRequest) -> dict[str, Any]:
        payload = self.build_payload(request)
        try:
            completion = await self._grok.create_chat_completion(payload)
        except GrokAPIError as exc:
            raise ProviderError(exc.status_code, exc.body) from exc
        except GrokTimeoutError as exc:
            logger.error("Grok API timeout for handle %s: %s", request.handle, exc)
            raise ProviderTimeoutError(str(exc)) from exc
        except GrokTransportError as exc:
            logger.error("Grok API transport failure for handle %s: %s", request.handle, exc)
            raise ProviderError(HTTPStatus.BAD_GATEWAY, str(exc)) from exc

        analysis = parse_analysis_content(completion)

        metadata = analysis.get("analysis_metadata")
        if isinstance(metadata, dict):
            metadata["handle_analyzed"] = request.handle

        usage = build_token_usage(completion.get("usage"), self._pricing)
        analysis["token_usage"] = usage.model_dump()

        logger.info(
            "Completed analysis for %s (%s to %s), %d tokens",
            request.handle,
            request.from_date_iso,
            request.to_date_iso,
            usage.total_tokens,
        )
        return analysis


__all__ = [
    "AnalysisError",
    "BadRequestError",
    "HandleAnalysisService",
    "InternalError",
    "InvalidResponseShapeError",
    "ProviderError",
    "ProviderTimeoutError",
    "build_token_usage",
    "estimate_cost",
    "extract_message_content",
    "parse_analysis_content",
    "validate_request",
]

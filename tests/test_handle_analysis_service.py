try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json
from datetime import date

import pytest

from app.clients.grok import GrokAPIError, GrokTimeoutError, GrokTransportError
from app.core.config import PricingSettings, get_settings
from app.services.handle_analysis import (
    BadRequestError,
    HandleAnalysisService,
    InvalidResponseShapeError,
    ProviderError,
    ProviderTimeoutError,
    build_token_usage,
    estimate_cost,
    parse_analysis_content,
    validate_request,
)


class StubGrokClient:
    def __init__(self, reply=None, error: Exception | None = None, settings=None) -> None:
        self.settings = settings or get_settings().grok
        self.reply = reply
        self.error = error
        self.payloads: list[dict] = []

    async def create_chat_completion(self, payload: dict) -> dict:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.reply


def _service(client: StubGrokClient) -> HandleAnalysisService:
    return HandleAnalysisService(client, system_prompt="SYSTEM", pricing=PricingSettings())


def test_validate_request_normalizes_handle_and_dates():
    request = validate_request(
        {"x_handle": "@verge", "from_date": "2025-01-01", "to_date": " 2025-01-07 "}
    )

    assert request.handle == "verge"
    assert request.from_date == date(2025, 1, 1)
    assert request.to_date_iso == "2025-01-07"


@pytest.mark.parametrize(
    "body",
    [
        {"x_handle": "verge", "from_date": "2025-01-01"},
        {"x_handle": "", "from_date": "2025-01-01", "to_date": "2025-01-07"},
        {"x_handle": "verge", "from_date": "   ", "to_date": "2025-01-07"},
        {"x_handle": "@", "from_date": "2025-01-01", "to_date": "2025-01-07"},
        {},
    ],
)
def test_validate_request_rejects_missing_parameters(body):
    with pytest.raises(BadRequestError) as excinfo:
        validate_request(body)

    assert excinfo.value.payload() == {"error": "Missing required parameters"}
    assert excinfo.value.status_code == 400


def test_validate_request_rejects_reversed_range():
    with pytest.raises(BadRequestError) as excinfo:
        validate_request(
            {"x_handle": "verge", "from_date": "2025-02-01", "to_date": "2025-01-01"}
        )

    assert excinfo.value.payload()["error"] == "Invalid date range"


@pytest.mark.parametrize("from_date", ["01/01/2025", "20250101", "2025-W01-1", "2025-1-1"])
def test_validate_request_rejects_non_iso_dates(from_date):
    with pytest.raises(BadRequestError, match="Invalid date range"):
        validate_request(
            {"x_handle": "verge", "from_date": from_date, "to_date": "2025-01-07"}
        )


def test_parse_analysis_content_rejects_prose(completion_factory):
    completion = completion_factory(content="Sorry, I cannot help with that.")

    with pytest.raises(InvalidResponseShapeError) as excinfo:
        parse_analysis_content(completion)

    assert excinfo.value.payload() == {
        "error": "Failed to parse Grok response as JSON",
        "raw_response": "Sorry, I cannot help with that.",
    }


def test_parse_analysis_content_rejects_non_object_json(completion_factory):
    with pytest.raises(InvalidResponseShapeError):
        parse_analysis_content(completion_factory(content="[1, 2, 3]"))


def test_parse_analysis_content_rejects_missing_choices():
    with pytest.raises(InvalidResponseShapeError) as excinfo:
        parse_analysis_content({"choices": []})

    assert excinfo.value.raw_response is None
    assert excinfo.value.payload() == {
        "error": "Failed to parse Grok response as JSON",
        "raw_response": None,
    }


def test_build_token_usage_defaults_missing_fields_to_zero():
    usage = build_token_usage({"prompt_tokens": 1500, "total_tokens": None}, PricingSettings())

    assert usage.prompt_tokens == 1500
    assert usage.completion_tokens == 0
    assert usage.total_tokens == 0
    assert usage.search_sources_used == 0
    assert usage.estimated_cost_usd == pytest.approx(0.0003)


def test_build_token_usage_handles_absent_report():
    usage = build_token_usage(None, PricingSettings())

    assert usage.model_dump() == {
        "prompt_tokens": 0,
        "completion_tokens": 0,
        "total_tokens": 0,
        "search_sources_used": 0,
        "estimated_cost_usd": 0.0,
    }


def test_estimate_cost_includes_search_sources():
    cost = estimate_cost(
        prompt_tokens=1_000_000,
        completion_tokens=1_000_000,
        search_sources=2,
        pricing=PricingSettings(),
    )

    assert cost == pytest.approx(0.20 + 1.50 + 0.05)


@pytest.mark.asyncio
async def test_analyze_appends_token_usage_and_forces_normalized_handle(
    sample_analysis, completion_factory
):
    sample_analysis["analysis_metadata"]["handle_analyzed"] = "@verge"
    client = StubGrokClient(reply=completion_factory(sample_analysis))
    request = validate_request(
        {"x_handle": "@verge", "from_date": "2025-01-01", "to_date": "2025-01-07"}
    )

    result = await _service(client).analyze(request)

    assert result["analysis_metadata"]["handle_analyzed"] == "verge"
    assert result["token_usage"] == {
        "prompt_tokens": 2100,
        "completion_tokens": 1200,
        "total_tokens": 3300,
        "search_sources_used": 2,
        "estimated_cost_usd": pytest.approx(0.00042 + 0.0018 + 0.05),
    }
    sent = client.payloads[0]
    assert sent["messages"][0]["content"] == "SYSTEM"
    assert sent["search_parameters"]["sources"][0]["included_x_handles"] == ["verge"]
    assert "@" not in json.dumps(sent["messages"][1])


@pytest.mark.asyncio
async def test_analyze_surfaces_provider_status_and_body():
    client = StubGrokClient(error=GrokAPIError(401, '{"error": "bad key"}'))
    request = validate_request(
        {"x_handle": "verge", "from_date": "2025-01-01", "to_date": "2025-01-07"}
    )

    with pytest.raises(ProviderError) as excinfo:
        await _service(client).analyze(request)

    assert excinfo.value.status_code == 401
    assert excinfo.value.payload() == {
        "error": "Grok API request failed",
        "details": '{"error": "bad key"}',
    }


@pytest.mark.asyncio
async def test_analyze_maps_timeouts_to_gateway_timeout():
    client = StubGrokClient(error=GrokTimeoutError("Grok API did not respond within 5s"))
    request = validate_request(
        {"x_handle": "verge", "from_date": "2025-01-01", "to_date": "2025-01-07"}
    )

    with pytest.raises(ProviderTimeoutError) as excinfo:
        await _service(client).analyze(request)

    assert excinfo.value.status_code == 504
    assert excinfo.value.payload()["error"] == "Grok API request timed out"


@pytest.mark.asyncio
async def test_analyze_maps_transport_failures_to_bad_gateway():
    client = StubGrokClient(error=GrokTransportError("connection refused"))
    request = validate_request(
        {"x_handle": "verge", "from_date": "2025-01-01", "to_date": "2025-01-07"}
    )

    with pytest.raises(ProviderError) as excinfo:
        await _service(client).analyze(request)

    assert excinfo.value.status_code == 502

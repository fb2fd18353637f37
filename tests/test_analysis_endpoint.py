try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json

import httpx
import pytest

from app.clients import GrokClient
from app.core.config import PricingSettings, get_settings
from app.main import app
from app.services import AnalysisRequestHandler, HandleAnalysisService

VALID_BODY = {"x_handle": "@verge", "from_date": "2025-01-01", "to_date": "2025-01-07"}
AUTH_HEADERS = {"Authorization": "Bearer caller-jwt"}


class RecordingTransport:
    """Mock Grok endpoint returning queued responses and recording requests."""

    def __init__(self) -> None:
        self.responses: list[httpx.Response] = []
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError("No Grok response configured")
        return self.responses.pop(0)


pytestmark = pytest.mark.anyio("asyncio")


def _build_handler(transport: RecordingTransport, bearer_token: str | None = None):
    grok = GrokClient(get_settings().grok, transport=httpx.MockTransport(transport))
    service = HandleAnalysisService(grok, system_prompt="SYSTEM", pricing=PricingSettings())
    return AnalysisRequestHandler(service, bearer_token=bearer_token)


@pytest.fixture()
def grok():
    from app import dependencies

    transport = RecordingTransport()
    app.dependency_overrides.clear()
    app.dependency_overrides[dependencies.get_analysis_request_handler] = (
        lambda: _build_handler(transport)
    )

    yield transport

    app.dependency_overrides.clear()


@pytest.fixture()
async def client(grok):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client


async def test_healthcheck(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_healthcheck_reports_configured_environment(grok, client):
    from app import dependencies

    staging = get_settings().model_copy(update={"environment": "staging"})
    app.dependency_overrides[dependencies.get_app_settings] = lambda: staging

    response = await client.get("/api/health")

    assert response.json() == {"status": "ok", "environment": "staging"}


async def test_analysis_success_returns_augmented_document(
    grok, client, sample_analysis, completion_factory
):
    grok.responses.append(httpx.Response(200, json=completion_factory(sample_analysis)))

    response = await client.post(
        "/api/analysis/x-handle", json=VALID_BODY, headers=AUTH_HEADERS
    )

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {
        "analysis_metadata",
        "qualitative_metrics",
        "pattern_analysis",
        "executive_summary",
        "token_usage",
        "status",
    }
    assert body["analysis_metadata"]["handle_analyzed"] == "verge"
    assert body["token_usage"]["total_tokens"] == 3300
    assert body["token_usage"]["search_sources_used"] == 2

    sent = json.loads(grok.requests[0].content)
    assert sent["search_parameters"]["sources"][0]["included_x_handles"] == ["verge"]
    assert grok.requests[0].headers["authorization"].startswith("Bearer ")


async def test_missing_authorization_is_plain_text_401(grok, client):
    response = await client.post("/api/analysis/x-handle", json=VALID_BODY)

    assert response.status_code == 401
    assert response.text == "Unauthorized"
    assert response.headers["content-type"].startswith("text/plain")
    assert grok.requests == []


async def test_missing_to_date_returns_400_without_calling_grok(grok, client):
    body = {"x_handle": "verge", "from_date": "2025-01-01"}

    response = await client.post("/api/analysis/x-handle", json=body, headers=AUTH_HEADERS)

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required parameters"}
    assert grok.requests == []


async def test_provider_error_status_is_relayed(grok, client):
    grok.responses.append(httpx.Response(429, text="Too many requests"))

    response = await client.post(
        "/api/analysis/x-handle", json=VALID_BODY, headers=AUTH_HEADERS
    )

    assert response.status_code == 429
    assert response.json() == {
        "error": "Grok API request failed",
        "details": "Too many requests",
    }
    assert len(grok.requests) == 1


async def test_unparseable_content_returns_raw_response(grok, client, completion_factory):
    grok.responses.append(
        httpx.Response(200, json=completion_factory(content="not json at all"))
    )

    response = await client.post(
        "/api/analysis/x-handle", json=VALID_BODY, headers=AUTH_HEADERS
    )

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to parse Grok response as JSON",
        "raw_response": "not json at all",
    }


async def test_missing_usage_defaults_token_usage_to_zero(grok, client, completion_factory):
    grok.responses.append(httpx.Response(200, json=completion_factory(usage=None)))

    response = await client.post(
        "/api/analysis/x-handle", json=VALID_BODY, headers=AUTH_HEADERS
    )

    assert response.status_code == 200
    assert response.json()["token_usage"] == {
        "prompt_tokens": 0,
        "completion_tokens": 0,
        "total_tokens": 0,
        "search_sources_used": 0,
        "estimated_cost_usd": 0.0,
    }


async def test_malformed_body_returns_internal_error(grok, client):
    response = await client.post(
        "/api/analysis/x-handle",
        content=b"{not-json",
        headers={**AUTH_HEADERS, "Content-Type": "application/json"},
    )

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Internal server error"
    assert body["message"]
    assert grok.requests == []


async def test_shared_bearer_token_is_enforced_when_configured(grok, client):
    from app import dependencies

    app.dependency_overrides[dependencies.get_analysis_request_handler] = (
        lambda: _build_handler(grok, bearer_token="expected-token")
    )

    response = await client.post(
        "/api/analysis/x-handle",
        json=VALID_BODY,
        headers={"Authorization": "Bearer wrong-token"},
    )

    assert response.status_code == 401
    assert grok.requests == []


async def test_non_ascii_bearer_token_is_rejected(grok, client):
    from app import dependencies

    app.dependency_overrides[dependencies.get_analysis_request_handler] = (
        lambda: _build_handler(grok, bearer_token="expected-token")
    )

    response = await client.post(
        "/api/analysis/x-handle",
        json=VALID_BODY,
        headers={"Authorization": "Bearer tokén".encode("utf-8")},
    )

    assert response.status_code == 401
    assert response.text == "Unauthorized"
    assert grok.requests == []

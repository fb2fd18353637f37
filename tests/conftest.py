"""Pytest configuration shared across the suite."""

import copy
import json
from typing import Any, Callable

import pytest

SAMPLE_ANALYSIS: dict[str, Any] = {
    "analysis_metadata": {
        "handle_analyzed": "verge",
        "date_range_start": "2025-01-01",
        "date_range_end": "2025-01-07",
        "total_posts_analyzed": 42,
        "analysis_timestamp": "2025-01-07T12:00:00Z",
    },
    "qualitative_metrics": {
        "tone_consistency": {
            "score": 8,
            "rationale": "Consistently upbeat, newsy tone across posts.",
        },
        "content_coherence": {
            "score": 7,
            "rationale": "Posts follow a clear technology news agenda.",
        },
        "engagement_quality": {
            "score": 6,
            "rationale": "Replies are sparse but shares are frequent.",
        },
        "authenticity_signal": {
            "score": 9,
            "rationale": "Original reporting with named bylines throughout.",
        },
        "topical_focus": {
            "score": 8,
            "rationale": "Gadgets, AI and policy dominate the timeline.",
        },
    },
    "pattern_analysis": {
        "dominant_themes": ["consumer tech", "AI", "policy"],
        "posting_frequency": "Roughly 10 posts per day",
        "communication_style": "Headline plus link",
        "engagement_pattern": "Spikes on product launches",
    },
    "executive_summary": {
        "overview": (
            "The Verge posts a steady stream of technology news, mixing product "
            "reviews with policy coverage and AI reporting throughout the week."
        ),
        "key_insights": [
            "Product launch coverage drives the most engagement.",
            "AI stories appear in almost every daily batch of posts.",
        ],
    },
    "status": {"success": True, "warnings": []},
}

SAMPLE_USAGE: dict[str, Any] = {
    "prompt_tokens": 2100,
    "completion_tokens": 1200,
    "total_tokens": 3300,
    "num_sources_used": 2,
}


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def sample_analysis() -> dict[str, Any]:
    """Fresh copy of a well-formed analysis document."""
    return copy.deepcopy(SAMPLE_ANALYSIS)


@pytest.fixture
def completion_factory() -> Callable[..., dict[str, Any]]:
    """Build a Grok chat-completion body wrapping an analysis document."""

    def _build(
        analysis: dict[str, Any] | None = None,
        *,
        content: str | None = None,
        usage: dict[str, Any] | None = SAMPLE_USAGE,
    ) -> dict[str, Any]:
        if content is None:
            content = json.dumps(analysis if analysis is not None else SAMPLE_ANALYSIS)
        body: dict[str, Any] = {
            "id": "chatcmpl-test",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        }
        if usage is not None:
            body["usage"] = dict(usage)
        return body

    return _build

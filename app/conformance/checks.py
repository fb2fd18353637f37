"""
Structural and numeric checks applied to analysis documents returned by Grok.

Every check raises ``ConformanceFailure`` with a readable message on the first
violation and returns quietly otherwise.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from app.core.config import PricingSettings
from app.services.handle_analysis import estimate_cost

REQUIRED_SECTIONS: tuple[str, ...] = (
    "analysis_metadata",
    "qualitative_metrics",
    "pattern_analysis",
    "executive_summary",
    "status",
)
REQUIRED_TOP_LEVEL: tuple[str, ...] = (
    "analysis_metadata",
    "qualitative_metrics",
    "pattern_analysis",
    "executive_summary",
    "token_usage",
    "status",
)
REQUIRED_METADATA: tuple[str, ...] = (
    "handle_analyzed",
    "date_range_start",
    "date_range_end",
    "total_posts_analyzed",
    "analysis_timestamp",
)
REQUIRED_METRICS: tuple[str, ...] = (
    "tone_consistency",
    "content_coherence",
    "engagement_quality",
    "authenticity_signal",
    "topical_focus",
)
REQUIRED_PATTERNS: tuple[str, ...] = (
    "dominant_themes",
    "posting_frequency",
    "communication_style",
    "engagement_pattern",
)
REQUIRED_SUMMARY: tuple[str, ...] = ("overview", "key_insights")
CONSISTENCY_METRICS: tuple[str, ...] = (
    "tone_consistency",
    "content_coherence",
    "topical_focus",
)

MIN_SCORE, MAX_SCORE = 1, 10
MIN_RATIONALE, MAX_RATIONALE = 10, 200


class ConformanceFailure(AssertionError):
    """Raised when an analysis document violates an expected property."""


def expect(condition: bool, message: str) -> None:
    if not condition:
        raise ConformanceFailure(message)


def require(document: Any, key: str, message: str | None = None) -> Any:
    """Return ``document[key]``, failing when the key is absent or null."""
    expect(isinstance(document, Mapping), message or f"Expected an object holding {key}")
    value = document.get(key)
    expect(value is not None, message or f"Missing required field: {key}")
    return value


def require_all(document: Any, keys: Iterable[str], label: str) -> None:
    for key in keys:
        require(document, key, f"Missing {label}: {key}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def metrics_of(analysis: Mapping[str, Any]) -> dict[str, Mapping[str, Any]]:
    metrics = require(analysis, "qualitative_metrics")
    expect(isinstance(metrics, Mapping), "qualitative_metrics must be an object")
    for name, metric in metrics.items():
        expect(isinstance(metric, Mapping), f"{name} must be an object")
    return dict(metrics)


def score_of(analysis: Mapping[str, Any], metric: str) -> float:
    entry = require(metrics_of(analysis), metric, f"Missing metric: {metric}")
    score = require(entry, "score", f"{metric} missing score")
    expect(_is_number(score), f"{metric} score should be number")
    return score


def post_count(analysis: Mapping[str, Any]) -> float:
    metadata = require(analysis, "analysis_metadata")
    count = require(metadata, "total_posts_analyzed")
    expect(_is_number(count), "total_posts_analyzed should be number")
    return count


def check_required_sections(analysis: Mapping[str, Any]) -> None:
    for section in REQUIRED_SECTIONS:
        require(analysis, section, f"Missing {section}")


def check_scored_metrics(analysis: Mapping[str, Any]) -> None:
    """Every metric has a rationale and a score within 1..10."""
    for name, metric in metrics_of(analysis).items():
        score = require(metric, "score", f"{name} missing score")
        require(metric, "rationale", f"{name} missing rationale")
        expect(_is_number(score), f"{name} score should be number")
        expect(MIN_SCORE <= score <= MAX_SCORE, f"{name} score out of range")


def check_success(analysis: Mapping[str, Any], message: str = "Status should be success") -> None:
    status = require(analysis, "status")
    expect(require(status, "success", message) is True, message)


def check_min_posts(analysis: Mapping[str, Any], minimum: int, message: str, *, strict: bool = False) -> None:
    count = post_count(analysis)
    expect(count > minimum if strict else count >= minimum, message)


def check_all_scores_positive(analysis: Mapping[str, Any]) -> None:
    for name in metrics_of(analysis):
        expect(score_of(analysis, name) > 0, "All metrics should be scored")


def check_dominant_themes(analysis: Mapping[str, Any], minimum: int = 1) -> None:
    patterns = require(analysis, "pattern_analysis")
    themes = require(patterns, "dominant_themes")
    expect(
        isinstance(themes, list) and len(themes) >= minimum,
        f"Should identify at least {minimum} theme",
    )


def check_zero_post_handling(analysis: Mapping[str, Any]) -> bool:
    """Validate the zero-post contract; return True when it applied."""
    if post_count(analysis) != 0:
        return False
    for name in metrics_of(analysis):
        expect(score_of(analysis, name) == 0, "Metrics should be 0 for zero posts")
    warnings = require(require(analysis, "status"), "warnings", "Should have warnings for zero posts")
    expect(
        isinstance(warnings, list) and len(warnings) > 0,
        "Should have warnings for zero posts",
    )
    return True


def check_schema_completeness(analysis: Mapping[str, Any]) -> None:
    require_all(analysis, REQUIRED_TOP_LEVEL, "required field")
    require_all(analysis["analysis_metadata"], REQUIRED_METADATA, "metadata field")
    metrics = metrics_of(analysis)
    for metric in REQUIRED_METRICS:
        entry = require(metrics, metric, f"Missing metric: {metric}")
        require(entry, "score", f"{metric} missing score")
        require(entry, "rationale", f"{metric} missing rationale")
    require_all(analysis["pattern_analysis"], REQUIRED_PATTERNS, "pattern field")
    require_all(analysis["executive_summary"], REQUIRED_SUMMARY, "summary field")


def check_score_ranges(analysis: Mapping[str, Any]) -> None:
    """Scores are 0 (no data) or 1..10; rationales are 10..200 characters."""
    for name, metric in metrics_of(analysis).items():
        score = require(metric, "score", f"{name} missing score")
        expect(
            _is_number(score) and (score == 0 or MIN_SCORE <= score <= MAX_SCORE),
            f"{name} score {score} out of valid range",
        )
        rationale = metric.get("rationale")
        expect(isinstance(rationale, str), f"{name} rationale should be string")
        expect(
            MIN_RATIONALE <= len(rationale) <= MAX_RATIONALE,
            f"{name} rationale length should be {MIN_RATIONALE}-{MAX_RATIONALE} chars",
        )


def check_consistency(
    first: Mapping[str, Any],
    second: Mapping[str, Any],
    *,
    metrics: Iterable[str] = CONSISTENCY_METRICS,
    post_tolerance: int = 10,
    score_tolerance: int = 2,
) -> None:
    """Two runs over the same window agree within tolerance."""
    expect(
        abs(post_count(first) - post_count(second)) <= post_tolerance,
        "Post counts should be similar across runs",
    )
    for metric in metrics:
        score1 = score_of(first, metric)
        score2 = score_of(second, metric)
        if score1 > 0 and score2 > 0:
            expect(
                abs(score1 - score2) <= score_tolerance,
                f"{metric} scores should be within {score_tolerance} points "
                f"(got {score1} vs {score2})",
            )


def check_token_usage(
    usage: Mapping[str, Any] | None,
    pricing: PricingSettings,
    *,
    max_cost_usd: float = 0.10,
) -> float:
    """Check raw provider usage counters and return the estimated cost."""
    expect(isinstance(usage, Mapping), "Provider reply carried no usage report")
    prompt_tokens = require(usage, "prompt_tokens", "Missing prompt_tokens")
    completion_tokens = require(usage, "completion_tokens", "Missing completion_tokens")
    require(usage, "total_tokens", "Missing total_tokens")
    expect(
        _is_number(prompt_tokens) and 1000 <= prompt_tokens <= 5000,
        "Prompt tokens should be 1000-5000",
    )
    expect(
        _is_number(completion_tokens) and 500 <= completion_tokens <= 4096,
        "Completion tokens should be 500-4096",
    )
    cost = estimate_cost(
        prompt_tokens=int(prompt_tokens),
        completion_tokens=int(completion_tokens),
        search_sources=int(usage.get("num_sources_used") or 1),
        pricing=pricing,
    )
    expect(cost <= max_cost_usd, f"Cost per request should be under ${max_cost_usd:.2f}")
    return cost


def check_executive_summary(analysis: Mapping[str, Any]) -> None:
    summary = require(analysis, "executive_summary")
    overview = require(summary, "overview")
    insights = require(summary, "key_insights")
    expect(
        isinstance(overview, str) and len(overview) >= 100,
        "Overview should be at least 100 chars",
    )
    expect(
        isinstance(insights, list) and len(insights) >= 2,
        "Should have at least 2 key insights",
    )
    for insight in insights:
        expect(
            isinstance(insight, str) and len(insight) >= 20,
            "Each insight should be at least 20 chars",
        )


def check_handle_normalized(analysis: Mapping[str, Any]) -> str:
    handle = require(require(analysis, "analysis_metadata"), "handle_analyzed")
    expect(
        isinstance(handle, str) and "@" not in handle,
        "Handle should not include @ symbol in metadata",
    )
    return handle


__all__ = [
    "CONSISTENCY_METRICS",
    "ConformanceFailure",
    "REQUIRED_METADATA",
    "REQUIRED_METRICS",
    "REQUIRED_TOP_LEVEL",
    "check_all_scores_positive",
    "check_consistency",
    "check_dominant_themes",
    "check_executive_summary",
    "check_handle_normalized",
    "check_min_posts",
    "check_required_sections",
    "check_schema_completeness",
    "check_score_ranges",
    "check_scored_metrics",
    "check_success",
    "check_token_usage",
    "check_zero_post_handling",
    "expect",
    "metrics_of",
    "post_count",
    "require",
    "require_all",
    "score_of",
]

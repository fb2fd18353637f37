"""Live scenarios exercising the prompt against real X accounts."""

from __future__ import annotations

from app.conformance import checks
from app.conformance.runner import ConformanceRunner, Scenario

HIGH_VOLUME_HANDLE = "verge"
MODERATE_VOLUME_HANDLE = "NASA"


async def high_volume_account(runner: ConformanceRunner) -> list[str]:
    window = runner.window
    run = await runner.analyze_handle(HIGH_VOLUME_HANDLE, window.days_ago(7), window.end)
    analysis = run.analysis

    checks.check_required_sections(analysis)
    checks.check_scored_metrics(analysis)
    checks.check_min_posts(
        analysis, 30, "Should analyze 30+ posts for high-volume account", strict=True
    )
    checks.check_success(analysis)

    return [
        f"Found {checks.post_count(analysis)} posts",
        f"Tone Consistency: {checks.score_of(analysis, 'tone_consistency')}/10",
        f"Token Usage: {run.usage.get('total_tokens')} tokens",
        f"Search Sources: {run.usage.get('num_sources_used')}",
    ]


async def moderate_volume_account(runner: ConformanceRunner) -> list[str]:
    window = runner.window
    run = await runner.analyze_handle(MODERATE_VOLUME_HANDLE, window.days_ago(30), window.end)
    analysis = run.analysis

    checks.check_success(analysis, "Should successfully analyze")
    checks.check_min_posts(analysis, 10, "Should find at least 10 posts in 30 days")
    checks.check_all_scores_positive(analysis)
    checks.check_dominant_themes(analysis)

    patterns = analysis["pattern_analysis"]
    return [
        f"Found {checks.post_count(analysis)} posts",
        f"Dominant Themes: {', '.join(map(str, patterns['dominant_themes']))}",
        f"Communication Style: {patterns.get('communication_style')}",
    ]


async def recent_date_range(runner: ConformanceRunner) -> list[str]:
    window = runner.window
    run = await runner.analyze_handle(HIGH_VOLUME_HANDLE, window.days_ago(2), window.end)

    checks.check_min_posts(
        run.analysis, 0, "Should find posts in recent 2-day window", strict=True
    )
    return [f"Found {checks.post_count(run.analysis)} posts in 2 days"]


async def old_date_range(runner: ConformanceRunner) -> list[str]:
    run = await runner.analyze_handle(HIGH_VOLUME_HANDLE, "2020-01-01", "2020-01-07")
    analysis = run.analysis

    checks.check_success(analysis, "Should succeed even with no posts")
    if checks.check_zero_post_handling(analysis):
        return ["Correctly handled zero posts scenario"]
    return [f"Found {checks.post_count(analysis)} old posts"]


async def schema_completeness(runner: ConformanceRunner) -> list[str]:
    window = runner.window
    run = await runner.analyze_handle(HIGH_VOLUME_HANDLE, window.days_ago(7), window.end)

    checks.check_schema_completeness(run.analysis)
    return ["All required schema fields present"]


async def score_ranges(runner: ConformanceRunner) -> list[str]:
    window = runner.window
    run = await runner.analyze_handle(HIGH_VOLUME_HANDLE, window.days_ago(7), window.end)

    checks.check_score_ranges(run.analysis)
    return ["All scores within valid ranges"]


async def consistency(runner: ConformanceRunner) -> list[str]:
    window = runner.window
    first = await runner.analyze_handle(HIGH_VOLUME_HANDLE, window.days_ago(7), window.end)
    await runner.pause()
    second = await runner.analyze_handle(HIGH_VOLUME_HANDLE, window.days_ago(7), window.end)

    checks.check_consistency(first.analysis, second.analysis)
    return [
        f"Run 1: {checks.post_count(first.analysis)} posts",
        f"Run 2: {checks.post_count(second.analysis)} posts",
        "Consistency check passed",
    ]


async def token_usage(runner: ConformanceRunner) -> list[str]:
    window = runner.window
    run = await runner.analyze_handle(HIGH_VOLUME_HANDLE, window.days_ago(7), window.end)

    cost = checks.check_token_usage(run.usage, runner.pricing)
    return [
        f"Prompt tokens: {run.usage['prompt_tokens']}",
        f"Completion tokens: {run.usage['completion_tokens']}",
        f"Search sources: {run.usage.get('num_sources_used') or 1}",
        f"Estimated cost: ${cost:.4f}",
    ]


async def executive_summary(runner: ConformanceRunner) -> list[str]:
    window = runner.window
    run = await runner.analyze_handle(HIGH_VOLUME_HANDLE, window.days_ago(7), window.end)

    checks.check_executive_summary(run.analysis)
    summary = run.analysis["executive_summary"]
    return [
        f"Overview: {summary['overview'][:100]}...",
        f"{len(summary['key_insights'])} key insights identified",
    ]


async def handle_normalization(runner: ConformanceRunner) -> list[str]:
    window = runner.window
    run = await runner.analyze_handle(
        f"@{HIGH_VOLUME_HANDLE}", window.days_ago(7), window.end
    )

    handle = checks.check_handle_normalized(run.analysis)
    return [f"Handle normalized to: {handle}"]


SCENARIOS: tuple[Scenario, ...] = (
    Scenario(1, "high-volume-account", "High-volume active account (verge)", high_volume_account),
    Scenario(2, "moderate-volume-account", "Moderate-volume account (NASA)", moderate_volume_account),
    Scenario(3, "recent-date-range", "Recent date range", recent_date_range),
    Scenario(4, "old-date-range", "Old date range (likely no posts)", old_date_range),
    Scenario(5, "schema-completeness", "JSON schema completeness", schema_completeness),
    Scenario(6, "score-ranges", "Score ranges are valid", score_ranges),
    Scenario(7, "consistency", "Consistency across multiple runs", consistency),
    Scenario(8, "token-usage", "Token usage is reasonable", token_usage),
    Scenario(9, "executive-summary", "Executive summary has substance", executive_summary),
    Scenario(10, "handle-normalization", "Handle with @ symbol is stripped", handle_normalization),
)


__all__ = ["SCENARIOS"]

"""Sequential runner for live conformance scenarios against Grok."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Iterable, Sequence

from app.clients.grok import (
    GrokAPIError,
    GrokClient,
    build_search_payload,
    normalize_handle,
)
from app.core.config import PricingSettings
from app.services.handle_analysis import build_token_usage, parse_analysis_content

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AnalysisRun:
    """One parsed analysis plus the raw provider usage report."""

    analysis: dict[str, Any]
    usage: dict[str, Any]


@dataclass(slots=True)
class DateWindow:
    """Date strings relative to ``today`` used by the scenarios."""

    today: date

    @classmethod
    def current(cls) -> "DateWindow":
        return cls(today=datetime.now(timezone.utc).date())

    def days_ago(self, days: int) -> str:
        return (self.today - timedelta(days=days)).isoformat()

    @property
    def end(self) -> str:
        return self.today.isoformat()


class ConformanceRunner:
    """Call Grok directly with the production payload shape."""

    def __init__(
        self,
        grok_client: GrokClient,
        *,
        system_prompt: str,
        pricing: PricingSettings,
        delay_seconds: float = 2.0,
        window: DateWindow | None = None,
    ) -> None:
        self._grok = grok_client
        self._system_prompt = system_prompt
        self.pricing = pricing
        self.delay_seconds = delay_seconds
        self.window = window or DateWindow.current()

    async def analyze_handle(self, handle: str, from_date: str, to_date: str) -> AnalysisRun:
        normalized = normalize_handle(handle)
        payload = build_search_payload(
            settings=self._grok.settings,
            system_prompt=self._system_prompt,
            handle=normalized,
            from_date=from_date,
            to_date=to_date,
        )
        completion = await self._grok.create_chat_completion(payload)
        analysis = parse_analysis_content(completion)
        usage = completion.get("usage") or {}
        analysis["token_usage"] = build_token_usage(usage, self.pricing).model_dump()
        return AnalysisRun(analysis=analysis, usage=usage)

    async def pause(self) -> None:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)


ScenarioFn = Callable[[ConformanceRunner], Awaitable[list[str]]]


@dataclass(slots=True)
class Scenario:
    number: int
    name: str
    title: str
    run: ScenarioFn

    @property
    def label(self) -> str:
        return f"Test {self.number}: {self.title}"

    def matches(self, text: str | None) -> bool:
        if not text:
            return True
        needle = text.lower()
        return needle in self.name.lower() or needle in self.label.lower()


@dataclass(slots=True)
class ScenarioResult:
    scenario: Scenario
    passed: bool
    duration_seconds: float
    notes: list[str] = field(default_factory=list)
    error: str | None = None


def select_scenarios(scenarios: Iterable[Scenario], name_filter: str | None) -> list[Scenario]:
    return [scenario for scenario in scenarios if scenario.matches(name_filter)]


async def run_scenarios(
    runner: ConformanceRunner, scenarios: Sequence[Scenario]
) -> list[ScenarioResult]:
    """Run scenarios one after another; a failure never stops the rest."""
    results: list[ScenarioResult] = []
    for scenario in scenarios:
        logger.info("Running %s", scenario.label)
        started = time.monotonic()
        try:
            notes = await scenario.run(runner)
        except AssertionError as exc:
            results.append(
                ScenarioResult(
                    scenario=scenario,
                    passed=False,
                    duration_seconds=time.monotonic() - started,
                    error=str(exc) or exc.__class__.__name__,
                )
            )
            continue
        except GrokAPIError as exc:
            results.append(
                ScenarioResult(
                    scenario=scenario,
                    passed=False,
                    duration_seconds=time.monotonic() - started,
                    error=f"API Error {exc.status_code}: {exc.body}",
                )
            )
            continue
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("%s raised an unexpected error", scenario.label)
            results.append(
                ScenarioResult(
                    scenario=scenario,
                    passed=False,
                    duration_seconds=time.monotonic() - started,
                    error=f"{exc.__class__.__name__}: {exc}",
                )
            )
            continue
        results.append(
            ScenarioResult(
                scenario=scenario,
                passed=True,
                duration_seconds=time.monotonic() - started,
                notes=list(notes),
            )
        )
    return results


__all__ = [
    "AnalysisRun",
    "ConformanceRunner",
    "DateWindow",
    "Scenario",
    "ScenarioResult",
    "run_scenarios",
    "select_scenarios",
]

"""Run live conformance scenarios against the Grok API.

Each scenario calls Grok with the production prompt and payload shape, then
checks the returned analysis for schema completeness, score bounds, token
usage and run-to-run stability. Scenarios are independent: a failure is
reported and the remaining scenarios still run.

Example usages::

    # Run every scenario (roughly ten live requests, about $0.30).
    python -m scripts.conformance_check

    # Run a subset by name or label.
    python -m scripts.conformance_check --filter "Test 1"
    python -m scripts.conformance_check --filter consistency --delay 5
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Sequence

from pydantic import ValidationError

from app.clients import GrokClient
from app.conformance import (
    SCENARIOS,
    ConformanceRunner,
    Scenario,
    ScenarioResult,
    run_scenarios,
    select_scenarios,
)
from app.core.config import GrokSettings, PricingSettings
from app.core.logging import configure_logging
from app.core.prompts import load_system_prompt

API_KEY_ENV = "XAI_API_KEY"

EXIT_OK = 0
EXIT_SCENARIO_FAILURE = 1
EXIT_NO_SCENARIOS = 2
EXIT_MISSING_CREDENTIALS = 5


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check that live Grok analyses keep their expected shape."
    )
    parser.add_argument(
        "--filter",
        dest="name_filter",
        default=None,
        help="Only run scenarios whose name or label contains this text.",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=2.0,
        help="Seconds to wait between the two calls of the consistency scenario.",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List scenarios and exit without calling the API.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser


def _print_results(results: Sequence[ScenarioResult]) -> None:
    for result in results:
        marker = "PASS" if result.passed else "FAIL"
        print(f"[{marker}] {result.scenario.label} ({result.duration_seconds:.1f}s)")
        for note in result.notes:
            print(f"    {note}")
        if result.error:
            print(f"    {result.error}")

    passed = sum(1 for result in results if result.passed)
    print("\n" + "=" * 60)
    print(f"{passed}/{len(results)} scenarios passed")
    print("=" * 60)


def _list_scenarios(scenarios: Sequence[Scenario]) -> None:
    for scenario in scenarios:
        print(f"{scenario.name:<26} {scenario.label}")


def main(argv: list[str] | None = None, *, runner: ConformanceRunner | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    scenarios = select_scenarios(SCENARIOS, args.name_filter)
    if args.list:
        _list_scenarios(scenarios)
        return EXIT_OK
    if not scenarios:
        print(f"No scenario matches filter {args.name_filter!r}.", file=sys.stderr)
        return EXIT_NO_SCENARIOS

    if runner is None:
        if not os.environ.get(API_KEY_ENV, "").strip():
            print(f"{API_KEY_ENV} environment variable not set", file=sys.stderr)
            return EXIT_MISSING_CREDENTIALS
        try:
            grok_settings = GrokSettings()  # type: ignore[call-arg]
            pricing = PricingSettings()
        except ValidationError as exc:
            print(
                "Settings validation failed. Missing or invalid values detected:\n"
                f"{exc.json(indent=2)}",
                file=sys.stderr,
            )
            return EXIT_MISSING_CREDENTIALS
        runner = ConformanceRunner(
            GrokClient(grok_settings),
            system_prompt=load_system_prompt(grok_settings),
            pricing=pricing,
            delay_seconds=args.delay,
        )

    configure_logging("DEBUG" if args.verbose else "WARNING")
    print(f"Starting Grok conformance run ({len(scenarios)} scenarios)\n")
    results = asyncio.run(run_scenarios(runner, scenarios))
    _print_results(results)

    if all(result.passed for result in results):
        return EXIT_OK
    return EXIT_SCENARIO_FAILURE


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())

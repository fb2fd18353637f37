"""Live conformance checks for Grok X handle analyses.

The harness calls Grok directly (never through the HTTP handler) and checks
that the returned documents keep their expected shape and value ranges.
"""

from .checks import ConformanceFailure
from .runner import (
    AnalysisRun,
    ConformanceRunner,
    DateWindow,
    Scenario,
    ScenarioResult,
    run_scenarios,
    select_scenarios,
)
from .scenarios import SCENARIOS

__all__ = [
    "AnalysisRun",
    "ConformanceFailure",
    "ConformanceRunner",
    "DateWindow",
    "SCENARIOS",
    "Scenario",
    "ScenarioResult",
    "run_scenarios",
    "select_scenarios",
]

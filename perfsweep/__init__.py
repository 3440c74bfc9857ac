"""JMeter performance-test sweeps.

Declare scenarios, then sweep heap sizes x scenarios x concurrency levels,
running JMeter once per combination and reporting how long everything took.
"""

from __future__ import annotations

from perfsweep.cli import run
from perfsweep.config import ExecutionMode, SweepSettings
from perfsweep.scenarios import Scenario, ScenarioRegistry, apply_filters
from perfsweep.sweep import DurationLedger, RunContext, SweepEngine

__all__ = [
    "DurationLedger",
    "ExecutionMode",
    "RunContext",
    "Scenario",
    "ScenarioRegistry",
    "SweepEngine",
    "SweepSettings",
    "apply_filters",
    "run",
]

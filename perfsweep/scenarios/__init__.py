"""Scenario declarations and name-pattern filtering."""

from __future__ import annotations

from perfsweep.scenarios.filter import apply_filters
from perfsweep.scenarios.registry import Scenario, ScenarioRegistry

__all__ = [
    "Scenario",
    "ScenarioRegistry",
    "apply_filters",
]

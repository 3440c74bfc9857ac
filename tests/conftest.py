"""Shared test fixtures for the perfsweep test suite."""

from __future__ import annotations

import io
import os

import pytest
from rich.console import Console

from perfsweep.config import SweepSettings
from perfsweep.scenarios.registry import ScenarioRegistry
from tests.helpers import FakeRunner


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep PERFSWEEP_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("PERFSWEEP_"):
            monkeypatch.delenv(key)


@pytest.fixture
def make_settings():
    """Factory for valid settings with small, test-friendly defaults."""

    def factory(**overrides) -> SweepSettings:
        values = {
            "test_duration": 15,
            "warm_up_time": 5,
            "script_dir": "plans",
            "jtl_splitter": "jtl-splitter.sh",
            "target_host": "lb.example.com",
        }
        values.update(overrides)
        return SweepSettings(**values)

    return factory


@pytest.fixture
def registry() -> ScenarioRegistry:
    """Three scenarios in declaration order."""
    registry = ScenarioRegistry()
    registry.declare("passthrough", "passthrough.jmx")
    registry.declare("transformation", "transformation.jmx")
    registry.declare("secured_passthrough", "secured-passthrough.jmx", use_backend=False)
    return registry


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def console() -> Console:
    """Console writing into a buffer; read back with console.file.getvalue()."""
    return Console(file=io.StringIO(), width=200, highlight=False)

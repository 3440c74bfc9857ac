"""Run-scoped data passed between the engine, executor and hooks."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perfsweep.scenarios.registry import Scenario
    from perfsweep.sweep.collector import MetricsCollector


class SweepState(enum.Enum):
    """Sweep engine lifecycle."""

    INITIALIZING = "initializing"
    SWEEPING = "sweeping"
    FINALIZING = "finalizing"


@dataclass
class RunContext:
    """One (scenario, heap, concurrency) combination.

    Created right before a run and discarded once its duration is recorded.
    Hooks may append to ``jmeter_params`` (``key=value`` strings passed as
    ``-J`` properties) and set ``extra_jvm_args`` for the JMeter client.
    """

    scenario: Scenario
    heap_size: str
    concurrency: int
    report_location: Path
    start_time: float
    jmeter_params: list[str] = field(default_factory=list)
    extra_jvm_args: str = ""
    collector: MetricsCollector | None = None

    def describe(self) -> str:
        return (
            f"Scenario Name: {self.scenario.name}, Heap: {self.heap_size}, "
            f"Concurrent Users: {self.concurrency}"
        )


# before_run / after_run callbacks supplied by the driver script
RunHook = Callable[[RunContext], None]


def noop_hook(context: RunContext) -> None:
    """Default hook that leaves the run untouched."""
    return None

"""Sweep engine: drives the heap x scenario x concurrency iteration."""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from perfsweep.config import (
    DEFAULT_CONCURRENCY_LEVELS,
    DEFAULT_HEAP_SIZES,
    SweepParameters,
    SweepSettings,
)
from perfsweep.errors import EngineStateError
from perfsweep.scenarios.registry import Scenario, ScenarioRegistry
from perfsweep.sweep.collector import CommandRunner
from perfsweep.sweep.executor import RunExecutor
from perfsweep.sweep.ledger import DurationLedger
from perfsweep.sweep.types import RunHook, SweepState

logger = logging.getLogger(__name__)


def resolve_parameters(settings: SweepSettings) -> SweepParameters:
    """Pick explicit sweep dimensions, or the built-in defaults when none are given.

    Explicit lists replace the defaults; the two are never merged.
    """
    heap_sizes = settings.heap_sizes or DEFAULT_HEAP_SIZES
    concurrency_levels = settings.concurrency_levels or DEFAULT_CONCURRENCY_LEVELS
    return SweepParameters(
        heap_sizes=tuple(heap_sizes),
        concurrency_levels=tuple(concurrency_levels),
        test_duration_minutes=settings.test_duration,
        warm_up_minutes=settings.warm_up_time,
        client_heap_size=settings.jmeter_client_heap_size,
        estimated_gap_seconds=settings.estimated_gap,
    )


class SweepEngine:
    """Runs every non-skipped combination once, sequentially.

    Heap size is the outermost loop because changing it means restarting the
    system under test; concurrency is the innermost.
    """

    def __init__(
        self,
        registry: ScenarioRegistry,
        settings: SweepSettings,
        ledger: DurationLedger | None = None,
        before_run: RunHook | None = None,
        after_run: RunHook | None = None,
        jmeter_home: Path | None = None,
        runner: CommandRunner = subprocess.run,
        clock: Callable[[], float] = time.time,
    ):
        self.state = SweepState.INITIALIZING
        self.registry = registry
        self.registry.freeze()
        self.settings = settings
        self.ledger = ledger if ledger is not None else DurationLedger()
        self.parameters = resolve_parameters(settings)
        self.executor = RunExecutor(
            settings,
            self.parameters,
            self.ledger,
            before_run=before_run,
            after_run=after_run,
            jmeter_home=jmeter_home,
            runner=runner,
            clock=clock,
        )

    def combinations(self) -> Iterator[tuple[str, Scenario, int]]:
        """Yield (heap, scenario, concurrency) for every run, skipping skipped scenarios."""
        for heap in self.parameters.heap_sizes:
            for scenario in self.registry:
                if scenario.skip:
                    continue
                for users in self.parameters.concurrency_levels:
                    yield heap, scenario, users

    def total_runs(self) -> int:
        return sum(1 for _ in self.combinations())

    def run(self, progress_callback: Any = None) -> int:
        """Execute the sweep.

        Args:
            progress_callback: Optional callback(scenario_name, heap, users, index, total)

        Returns:
            Number of runs executed or estimated
        """
        if self.state is not SweepState.INITIALIZING:
            raise EngineStateError(f"Sweep already {self.state.value}")

        total = self.total_runs()
        logger.info(
            f"Sweeping {total} combination(s): heap sizes {list(self.parameters.heap_sizes)}, "
            f"concurrency {list(self.parameters.concurrency_levels)}"
        )
        self.state = SweepState.SWEEPING

        run_count = 0
        try:
            for heap, scenario, users in self.combinations():
                if progress_callback:
                    progress_callback(scenario.name, heap, users, run_count, total)
                self.executor.execute(scenario, heap, users)
                run_count += 1
        finally:
            self.state = SweepState.FINALIZING

        return run_count

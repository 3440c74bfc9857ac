"""Tests for the sweep engine: parameter resolution, ordering and estimates."""

from __future__ import annotations

import pytest

from perfsweep.config import DEFAULT_CONCURRENCY_LEVELS, DEFAULT_HEAP_SIZES
from perfsweep.errors import EngineStateError
from perfsweep.scenarios.filter import apply_filters
from perfsweep.scenarios.registry import ScenarioRegistry
from perfsweep.sweep.engine import SweepEngine, resolve_parameters
from perfsweep.sweep.types import SweepState


class TestResolveParameters:
    """Explicit lists replace defaults, never merge."""

    def test_defaults_when_nothing_given(self, make_settings):
        """Built-in heap sizes and concurrency levels apply without explicit lists."""
        params = resolve_parameters(make_settings())

        assert list(params.heap_sizes) == DEFAULT_HEAP_SIZES
        assert list(params.concurrency_levels) == DEFAULT_CONCURRENCY_LEVELS

    def test_explicit_lists_replace_defaults(self, make_settings):
        """Explicit lists are used as-is, never merged with defaults."""
        params = resolve_parameters(
            make_settings(heap_sizes=["4g"], concurrency_levels=[10, 20])
        )

        assert params.heap_sizes == ("4g",)
        assert params.concurrency_levels == (10, 20)

    def test_explicit_order_preserved(self, make_settings):
        """Values keep the order they were given in."""
        params = resolve_parameters(make_settings(concurrency_levels=[500, 50, 100]))

        assert params.concurrency_levels == (500, 50, 100)

    def test_timing_carried_over(self, make_settings):
        """Duration, warm-up and client heap reach the parameters."""
        params = resolve_parameters(
            make_settings(test_duration=30, warm_up_time=10, estimated_gap=45)
        )

        assert params.test_duration_minutes == 30
        assert params.warm_up_minutes == 10
        assert params.estimated_gap_seconds == 45


class TestCombinations:
    """Iteration order and skipping."""

    def test_heap_outermost_then_scenario_then_concurrency(self, registry, make_settings):
        """Combinations nest heap, then scenario, then concurrency."""
        engine = SweepEngine(
            registry,
            make_settings(heap_sizes=["1g", "2g"], concurrency_levels=[10, 20], estimate=True),
        )

        order = [(heap, s.name, users) for heap, s, users in engine.combinations()]

        assert order[:4] == [
            ("1g", "passthrough", 10),
            ("1g", "passthrough", 20),
            ("1g", "transformation", 10),
            ("1g", "transformation", 20),
        ]
        assert order[6] == ("2g", "passthrough", 10)
        assert len(order) == 12

    def test_order_is_deterministic(self, registry, make_settings):
        """Two engines over the same input yield the same order."""
        settings = make_settings(heap_sizes=["1g", "2g"], concurrency_levels=[10, 20])
        engine = SweepEngine(registry, settings)

        first = [(h, s.name, u) for h, s, u in engine.combinations()]
        second = [(h, s.name, u) for h, s, u in engine.combinations()]

        assert first == second

    def test_skipped_scenarios_produce_no_combinations(self, registry, make_settings):
        """Skipped scenarios are left out of the sweep."""
        apply_filters(registry, exclude=["transformation"], include=[".*"])
        engine = SweepEngine(registry, make_settings(concurrency_levels=[10], estimate=True))

        names = [s.name for _, s, _ in engine.combinations()]

        assert names == ["passthrough", "secured_passthrough"]

    def test_engine_freezes_registry(self, registry, make_settings):
        """Building an engine closes registration."""
        SweepEngine(registry, make_settings(estimate=True))

        assert registry.frozen


class TestEstimateSweep:
    """Estimate mode drives the ledger directly."""

    def test_two_scenario_end_to_end(self, make_settings):
        """Two scenarios, one heap, two levels, 15 minutes and a 60 second gap."""
        registry = ScenarioRegistry()
        registry.declare("A", "a.jmx")
        registry.declare("B", "b.jmx")
        settings = make_settings(
            heap_sizes=["2g"],
            concurrency_levels=[10, 20],
            test_duration=15,
            estimated_gap=60,
            estimate=True,
        )
        engine = SweepEngine(registry, settings)

        runs = engine.run()

        assert runs == 4
        assert engine.ledger.get("A").run_count == 2
        assert engine.ledger.get("A").total_seconds == 1920
        assert engine.ledger.get("B").run_count == 2
        assert engine.ledger.get("B").total_seconds == 1920
        assert engine.ledger.total_runs == 4
        assert engine.ledger.total_seconds == 3840

    @pytest.mark.parametrize(
        "heaps,levels,duration,gap",
        [
            (["2g"], [50], 1, 0),
            (["1g", "2g", "4g"], [10, 20], 15, 60),
            (["512m", "1g"], [50, 100, 150, 300, 500], 30, 120),
        ],
    )
    def test_estimate_total_formula(self, registry, make_settings, heaps, levels, duration, gap):
        """Estimated total is scenarios x heaps x levels x (duration * 60 + gap)."""
        settings = make_settings(
            heap_sizes=heaps,
            concurrency_levels=levels,
            test_duration=duration,
            warm_up_time=0,
            estimated_gap=gap,
            estimate=True,
        )
        engine = SweepEngine(registry, settings)

        engine.run()

        expected = len(registry) * len(heaps) * len(levels) * (duration * 60 + gap)
        assert engine.ledger.total_seconds == expected

    def test_skipped_scenarios_not_counted(self, registry, make_settings):
        """Skipped scenarios never reach the ledger."""
        registry.get("transformation").skip = True
        engine = SweepEngine(registry, make_settings(concurrency_levels=[10], estimate=True))

        engine.run()

        assert engine.ledger.get("transformation") is None
        assert engine.ledger.total_runs == 2

    def test_estimate_runs_no_commands(self, registry, make_settings, runner):
        """Estimate mode runs no external command."""
        engine = SweepEngine(registry, make_settings(estimate=True), runner=runner)

        engine.run()

        assert runner.calls == []

    def test_progress_callback(self, registry, make_settings):
        """The callback sees every combination with its index and the total."""
        seen = []
        engine = SweepEngine(registry, make_settings(concurrency_levels=[10], estimate=True))

        engine.run(progress_callback=lambda name, heap, users, i, total: seen.append((name, i, total)))

        assert seen == [
            ("passthrough", 0, 3),
            ("transformation", 1, 3),
            ("secured_passthrough", 2, 3),
        ]


class TestEngineState:
    """Initializing -> Sweeping -> Finalizing."""

    def test_state_transitions(self, registry, make_settings):
        """The engine starts INITIALIZING and ends in FINALIZING."""
        engine = SweepEngine(registry, make_settings(estimate=True))
        assert engine.state is SweepState.INITIALIZING

        engine.run()

        assert engine.state is SweepState.FINALIZING

    def test_cannot_run_twice(self, registry, make_settings):
        """A second run() raises EngineStateError."""
        engine = SweepEngine(registry, make_settings(estimate=True))
        engine.run()

        with pytest.raises(EngineStateError):
            engine.run()

    def test_finalizing_even_when_a_run_raises(self, registry, make_settings):
        """The state moves to FINALIZING even when a run raises."""
        engine = SweepEngine(registry, make_settings(estimate=True))

        def boom(*args):
            raise KeyboardInterrupt

        engine.executor.execute = boom

        with pytest.raises(KeyboardInterrupt):
            engine.run()
        assert engine.state is SweepState.FINALIZING

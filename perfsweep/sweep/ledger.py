"""Per-scenario run counts and accumulated durations."""

from collections import defaultdict
from dataclasses import dataclass


@dataclass(frozen=True)
class LedgerEntry:
    """Aggregated runs of one scenario."""

    scenario_name: str
    run_count: int
    total_seconds: int


class DurationLedger:
    """Tracks how many runs each scenario had and how long they took.

    Every call to ``record`` counts as one run, so callers record exactly
    once per completed or estimated run.
    """

    def __init__(self):
        self._run_counts: dict[str, int] = defaultdict(int)
        self._total_seconds: dict[str, int] = defaultdict(int)

    def record(self, scenario_name: str, duration_seconds: int) -> None:
        self._run_counts[scenario_name] += 1
        self._total_seconds[scenario_name] += duration_seconds

    def entries(self) -> list[LedgerEntry]:
        """All scenarios sorted by name."""
        return [
            LedgerEntry(name, self._run_counts[name], self._total_seconds[name])
            for name in sorted(self._run_counts)
        ]

    def get(self, scenario_name: str) -> LedgerEntry | None:
        if scenario_name not in self._run_counts:
            return None
        return LedgerEntry(
            scenario_name,
            self._run_counts[scenario_name],
            self._total_seconds[scenario_name],
        )

    @property
    def total_runs(self) -> int:
        return sum(self._run_counts.values())

    @property
    def total_seconds(self) -> int:
        return sum(self._total_seconds.values())

    @property
    def is_empty(self) -> bool:
        return not self._run_counts

"""Sweep execution: engine, run executor, duration ledger and report.

Runs every non-skipped (heap, scenario, concurrency) combination in turn,
either for real through JMeter or as a timing estimate.
"""

from __future__ import annotations

from perfsweep.sweep.collector import MetricsCollector
from perfsweep.sweep.engine import SweepEngine, resolve_parameters
from perfsweep.sweep.executor import RunExecutor
from perfsweep.sweep.ledger import DurationLedger, LedgerEntry
from perfsweep.sweep.lifecycle import LifecycleGuard
from perfsweep.sweep.report import format_time, render_report
from perfsweep.sweep.types import RunContext, SweepState

__all__ = [
    "DurationLedger",
    "LedgerEntry",
    "LifecycleGuard",
    "MetricsCollector",
    "RunContext",
    "RunExecutor",
    "SweepEngine",
    "SweepState",
    "format_time",
    "render_report",
    "resolve_parameters",
]

"""Tests for the duration ledger and the timing report."""

from __future__ import annotations

import pytest

from perfsweep.config import ExecutionMode
from perfsweep.sweep.ledger import DurationLedger, LedgerEntry
from perfsweep.sweep.report import NO_SCENARIOS_WARNING, format_time, render_report


class TestDurationLedger:
    """Tests for DurationLedger."""

    def test_record_counts_and_sums(self):
        """Each record adds one run and its seconds."""
        ledger = DurationLedger()

        ledger.record("a", 100)
        ledger.record("a", 50)
        ledger.record("b", 10)

        assert ledger.get("a") == LedgerEntry("a", 2, 150)
        assert ledger.get("b") == LedgerEntry("b", 1, 10)
        assert ledger.total_runs == 3
        assert ledger.total_seconds == 160

    def test_unknown_scenario(self):
        """get() returns None for a scenario with no runs."""
        ledger = DurationLedger()

        assert ledger.get("missing") is None
        assert ledger.is_empty

    def test_zero_duration_still_counts_a_run(self):
        """A zero-second run is still a run."""
        ledger = DurationLedger()

        ledger.record("a", 0)

        assert ledger.get("a").run_count == 1
        assert not ledger.is_empty

    def test_entries_sorted_by_name(self):
        """entries() are sorted by scenario name."""
        ledger = DurationLedger()
        for name in ["zeta", "alpha", "mu"]:
            ledger.record(name, 1)

        assert [e.scenario_name for e in ledger.entries()] == ["alpha", "mu", "zeta"]


class TestFormatTime:
    """Tests for human-readable durations."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "0 second(s)"),
            (59, "59 second(s)"),
            (60, "1 minute(s) and 00 second(s)"),
            (65, "1 minute(s) and 05 second(s)"),
            (3599, "59 minute(s) and 59 second(s)"),
            (3600, "1 hour(s), 00 minute(s) and 00 second(s)"),
            (3661, "1 hour(s), 01 minute(s) and 01 second(s)"),
            (7680, "2 hour(s), 08 minute(s) and 00 second(s)"),
            (90061, "25 hour(s), 01 minute(s) and 01 second(s)"),
        ],
    )
    def test_format(self, seconds, expected):
        """format_time output for each unit boundary."""
        assert format_time(seconds) == expected

    def test_fractional_seconds_truncate(self):
        """Fractions of a second are dropped."""
        assert format_time(65.9) == "1 minute(s) and 05 second(s)"


class TestRenderReport:
    """Tests for render_report."""

    def _ledger(self) -> DurationLedger:
        ledger = DurationLedger()
        ledger.record("transformation", 960)
        ledger.record("passthrough", 960)
        ledger.record("passthrough", 960)
        return ledger

    def test_estimated_header(self):
        """Estimate mode labels times as estimated."""
        report = render_report(self._ledger(), ExecutionMode.ESTIMATE, 3)
        lines = report.splitlines()

        assert lines[0] == "Estimated execution times:"
        assert "Estimated Time" in lines[1]
        assert "Combination(s)" in lines[1]

    def test_actual_header(self):
        """Real mode labels times as actual."""
        report = render_report(self._ledger(), ExecutionMode.REAL, 3)

        assert report.splitlines()[0] == "Actual execution times:"
        assert "Actual Time" in report

    def test_rows_sorted_with_total(self):
        """Rows are sorted by name and followed by the total."""
        lines = render_report(self._ledger(), ExecutionMode.ESTIMATE, 0).splitlines()

        assert lines[2].startswith("passthrough")
        assert lines[2].split()[1] == "2"
        assert lines[2].endswith("32 minute(s) and 00 second(s)")
        assert lines[3].startswith("transformation")
        assert lines[4].strip().startswith("Total")
        assert lines[4].split()[1] == "3"
        assert lines[4].endswith("48 minute(s) and 00 second(s)")

    def test_total_row_is_right_aligned(self):
        """The Total label is right-aligned in the name column."""
        lines = render_report(self._ledger(), ExecutionMode.ESTIMATE, 0).splitlines()

        assert lines[4].startswith(" ")
        assert lines[4][:40].rstrip().endswith("Total")

    def test_final_line_is_wall_clock(self):
        """The last line is the overall script execution time."""
        lines = render_report(self._ledger(), ExecutionMode.REAL, 3661).splitlines()

        assert lines[-1] == "Script execution time: 1 hour(s), 01 minute(s) and 01 second(s)"

    def test_empty_ledger_warns(self):
        """An empty ledger prints a warning instead of the table."""
        report = render_report(DurationLedger(), ExecutionMode.REAL, 5)

        assert NO_SCENARIOS_WARNING in report
        assert "Total" not in report
        assert report.splitlines()[-1] == "Script execution time: 5 second(s)"

"""Timing report rendered when the sweep finishes."""

from __future__ import annotations

from perfsweep.config import ExecutionMode
from perfsweep.sweep.ledger import DurationLedger

NAME_WIDTH = 40
COUNT_WIDTH = 20
TIME_WIDTH = 50

NO_SCENARIOS_WARNING = "WARNING: There were no scenarios to test."


def format_time(seconds: int | float) -> str:
    """Format a duration for humans.

    Examples:
        0    -> "0 second(s)"
        65   -> "1 minute(s) and 05 second(s)"
        3661 -> "1 hour(s), 01 minute(s) and 01 second(s)"
    """
    total = max(int(seconds), 0)
    minutes, secs = divmod(total, 60)
    if minutes >= 60:
        hours, minutes = divmod(minutes, 60)
        return f"{hours} hour(s), {minutes:02d} minute(s) and {secs:02d} second(s)"
    if minutes > 0:
        return f"{minutes} minute(s) and {secs:02d} second(s)"
    return f"{secs} second(s)"


def time_header(mode: ExecutionMode) -> str:
    return "Estimated" if mode is ExecutionMode.ESTIMATE else "Actual"


def _row(name: str, count: str, duration: str, align_name: str = "<") -> str:
    return (
        f"{name:{align_name}{NAME_WIDTH}}  {count:>{COUNT_WIDTH}}  {duration:>{TIME_WIDTH}}"
    )


def render_report(
    ledger: DurationLedger,
    mode: ExecutionMode,
    wall_clock_elapsed: int | float,
) -> str:
    """Render the ledger as a fixed-width table.

    Args:
        ledger: Accumulated run counts and durations
        mode: Labels the durations as estimated or actual
        wall_clock_elapsed: Seconds the whole sweep took

    Returns:
        Report text, one line per row, without a trailing newline
    """
    header = time_header(mode)
    lines = [f"{header} execution times:"]

    if ledger.is_empty:
        lines.append(NO_SCENARIOS_WARNING)
    else:
        lines.append(_row("Scenario", "Combination(s)", f"{header} Time"))
        for entry in ledger.entries():
            lines.append(
                _row(entry.scenario_name, str(entry.run_count), format_time(entry.total_seconds))
            )
        lines.append(
            _row(
                "Total",
                str(ledger.total_runs),
                format_time(ledger.total_seconds),
                align_name=">",
            )
        )

    lines.append(f"Script execution time: {format_time(wall_clock_elapsed)}")
    return "\n".join(lines)

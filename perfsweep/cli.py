"""Command line front end for perfsweep.

Usage:
    python -m perfsweep --scenarios scenarios.yaml -d 15 -w 5
    python -m perfsweep --scenarios scenarios.yaml -d 15 -w 5 -t
    python -m perfsweep --scenarios scenarios.yaml -d 30 -w 10 -m 2g -m 4g -c 100 -c 200 -i passthrough

Driver scripts that declare scenarios and hooks in Python call ``run()``
directly instead.
"""

from __future__ import annotations

import argparse
import logging
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from perfsweep.config import (
    DEFAULT_CLIENT_HEAP_SIZE,
    DEFAULT_CONCURRENCY_LEVELS,
    DEFAULT_ESTIMATED_GAP,
    DEFAULT_HEAP_SIZES,
    ExecutionMode,
    SweepSettings,
)
from perfsweep.errors import ConfigurationError, ResultsExistError
from perfsweep.scenarios.filter import apply_filters
from perfsweep.scenarios.registry import ScenarioRegistry
from perfsweep.sweep.collector import CommandRunner
from perfsweep.sweep.engine import SweepEngine
from perfsweep.sweep.jmeter import (
    discover_jmeter_home,
    jmeter_environment,
    resolve_ssh_hostname,
    run_setup_script,
)
from perfsweep.sweep.ledger import DurationLedger
from perfsweep.sweep.lifecycle import LifecycleGuard
from perfsweep.sweep.types import RunHook

logger = logging.getLogger("perfsweep")


class UsageArgumentParser(argparse.ArgumentParser):
    """Prints usage to stderr and exits 1 on bad arguments."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser(prog: str | None = None) -> UsageArgumentParser:
    parser = UsageArgumentParser(
        prog=prog,
        description="Run JMeter scenarios across heap sizes and concurrency levels",
    )
    parser.add_argument(
        "-c",
        dest="concurrency_levels",
        type=int,
        action="append",
        metavar="USERS",
        help=(
            "Concurrency level to test. Repeat for multiple levels. "
            f"Default {' '.join(map(str, DEFAULT_CONCURRENCY_LEVELS))}."
        ),
    )
    parser.add_argument(
        "-m",
        dest="heap_sizes",
        action="append",
        metavar="HEAP",
        help=(
            "Application heap memory size. Repeat for multiple sizes. "
            f"Default {' '.join(DEFAULT_HEAP_SIZES)}."
        ),
    )
    parser.add_argument("-d", dest="test_duration", metavar="MINUTES", help="Test duration in minutes.")
    parser.add_argument("-w", dest="warm_up_time", metavar="MINUTES", help="Warm-up time in minutes.")
    parser.add_argument(
        "-k",
        dest="jmeter_client_heap_size",
        metavar="HEAP",
        help=f"Heap size of the JMeter client. Default {DEFAULT_CLIENT_HEAP_SIZE}.",
    )
    parser.add_argument(
        "-i",
        dest="include_patterns",
        action="append",
        metavar="PATTERN",
        help="Scenario name to be included. Repeat to include more.",
    )
    parser.add_argument(
        "-e",
        dest="exclude_patterns",
        action="append",
        metavar="PATTERN",
        help="Scenario name to be excluded. Repeat to exclude more.",
    )
    parser.add_argument(
        "-t", dest="estimate", action="store_true", help="Estimate time without executing tests."
    )
    parser.add_argument(
        "-p",
        dest="estimated_gap",
        metavar="SECONDS",
        help=(
            "Estimated processing time in between tests in seconds. "
            f"Default {DEFAULT_ESTIMATED_GAP}."
        ),
    )
    parser.add_argument("--scenarios", help="YAML file declaring the test scenarios")
    parser.add_argument("--script-dir", help="Directory holding the JMeter test plans")
    parser.add_argument("--host", dest="target_host", help="Host passed to JMeter as -Jhost")
    parser.add_argument(
        "--lb-ssh-alias",
        dest="lb_ssh_host_alias",
        help="ssh alias of the load balancer; resolved to the JMeter target host",
    )
    parser.add_argument(
        "--setup-script",
        help="JMeter test plan that seeds test data once before the sweep",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _describe_validation_error(err: ValidationError) -> str:
    messages = []
    for detail in err.errors():
        msg = detail["msg"].removeprefix("Value error, ")
        loc = ".".join(str(part) for part in detail["loc"])
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "\n".join(messages)


def build_settings(args: argparse.Namespace) -> SweepSettings:
    """Merge command line values over PERFSWEEP_* environment settings.

    Raises:
        ConfigurationError: If any value is invalid
    """
    fields = [
        "heap_sizes",
        "concurrency_levels",
        "test_duration",
        "warm_up_time",
        "jmeter_client_heap_size",
        "include_patterns",
        "exclude_patterns",
        "estimated_gap",
        "script_dir",
        "target_host",
        "lb_ssh_host_alias",
    ]
    overrides = {name: getattr(args, name) for name in fields if getattr(args, name) is not None}
    if args.estimate:
        overrides["estimate"] = True

    try:
        return SweepSettings(**overrides)
    except ValidationError as err:
        raise ConfigurationError(_describe_validation_error(err)) from err


def run(
    argv: Sequence[str] | None = None,
    registry: ScenarioRegistry | None = None,
    before_run: RunHook | None = None,
    after_run: RunHook | None = None,
    script_path: str | Path | None = None,
    runner: CommandRunner = subprocess.run,
    console: Console | None = None,
) -> int:
    """Parse arguments, validate, and run the sweep inside the lifecycle guard.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])
        registry: Scenarios declared in code; otherwise ``--scenarios`` is read
        before_run: Hook run before each JMeter invocation
        after_run: Hook run after each run's metrics are collected
        script_path: Driver script copied into the results directory
        runner: subprocess.run-compatible callable for external commands
        console: Console receiving the final report

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        settings = build_settings(args)
        if registry is None:
            if not args.scenarios:
                raise ConfigurationError("No scenarios declared. Use --scenarios FILE.")
            registry = ScenarioRegistry.from_yaml(args.scenarios)
        registry.freeze()
        apply_filters(registry, settings.include_patterns, settings.exclude_patterns)
    except ConfigurationError as err:
        logger.error(str(err))
        return 1

    real_mode = settings.mode is ExecutionMode.REAL
    jmeter_home = None
    if real_mode:
        jmeter_home = discover_jmeter_home(settings)
        if settings.lb_ssh_host_alias and args.target_host is None:
            host = resolve_ssh_hostname(settings.lb_ssh_host_alias, runner)
            if host:
                settings = settings.model_copy(update={"target_host": host})

    ledger = DurationLedger()
    engine = SweepEngine(
        registry,
        settings,
        ledger,
        before_run=before_run,
        after_run=after_run,
        jmeter_home=jmeter_home,
        runner=runner,
    )
    copy_files = [p for p in (script_path, args.scenarios) if p]

    def progress(scenario_name: str, heap: str, users: int, index: int, total: int) -> None:
        if real_mode:
            logger.info(f"[{index + 1}/{total}] {scenario_name} heap={heap} users={users}")

    try:
        with LifecycleGuard(settings, ledger, copy_files=copy_files, console=console):
            if real_mode and args.setup_script:
                run_setup_script(
                    args.setup_script,
                    settings.target_host,
                    env=jmeter_environment(jmeter_home),
                    runner=runner,
                )
            engine.run(progress_callback=progress)
    except ResultsExistError as err:
        logger.error(str(err))
        return 1
    except KeyboardInterrupt:
        logger.warning("Sweep interrupted")
        return 130

    return 0


def main() -> None:
    """Console script entry point."""
    sys.exit(run())

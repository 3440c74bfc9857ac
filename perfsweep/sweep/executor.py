"""Run executor: one JMeter run per (scenario, heap, concurrency) combination."""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
import zipfile
from collections.abc import Callable
from pathlib import Path

from perfsweep.config import ExecutionMode, SweepParameters, SweepSettings
from perfsweep.errors import EngineStateError, RunExecutionError
from perfsweep.scenarios.registry import Scenario
from perfsweep.sweep.collector import CommandRunner, MetricsCollector
from perfsweep.sweep.jmeter import (
    RESULTS_FILE,
    build_command,
    client_jvm_args,
    jmeter_environment,
)
from perfsweep.sweep.ledger import DurationLedger
from perfsweep.sweep.report import format_time
from perfsweep.sweep.types import RunContext, RunHook, noop_hook

logger = logging.getLogger(__name__)

JTL_ARCHIVE = "jtls.zip"


class RunExecutor:
    """Executes (or estimates) single runs and records their durations.

    Per-run failures (JMeter exit codes, metrics commands, file transfers,
    post-processing) are logged and contained to the run.
    """

    def __init__(
        self,
        settings: SweepSettings,
        parameters: SweepParameters,
        ledger: DurationLedger,
        before_run: RunHook | None = None,
        after_run: RunHook | None = None,
        jmeter_home: Path | None = None,
        runner: CommandRunner = subprocess.run,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the executor.

        Args:
            settings: Validated sweep settings
            parameters: Resolved sweep parameters
            ledger: Ledger that receives one record per run
            before_run: Hook called after the report location exists and
                before JMeter starts
            after_run: Hook called after metrics and archiving
            jmeter_home: JMeter installation, if one was found
            runner: subprocess.run-compatible callable for external commands
            clock: Wall clock in seconds
        """
        self.settings = settings
        self.parameters = parameters
        self.ledger = ledger
        self._before_run = before_run or noop_hook
        self._after_run = after_run or noop_hook
        self._jmeter_home = jmeter_home
        self._runner = runner
        self._clock = clock
        self.results_root = Path(settings.results_dir).absolute()

    @property
    def mode(self) -> ExecutionMode:
        return self.settings.mode

    def report_location(self, scenario_name: str, heap_size: str, concurrency: int) -> Path:
        """Unique directory for one combination's artifacts."""
        return self.results_root / scenario_name / f"{heap_size}_heap" / f"{concurrency}_users"

    def execute(self, scenario: Scenario, heap_size: str, concurrency: int) -> int:
        """Run or estimate one combination.

        A RunExecutionError from ``before_run`` or any step up to JTL archiving
        ends that part of the run early; ``after_run`` is still called and the
        duration still recorded. Other exceptions propagate.

        Returns:
            Seconds recorded in the ledger for this run
        """
        if self.mode is ExecutionMode.ESTIMATE:
            duration = self.parameters.estimated_run_seconds
            self.ledger.record(scenario.name, duration)
            return duration

        context = RunContext(
            scenario=scenario,
            heap_size=heap_size,
            concurrency=concurrency,
            report_location=self.report_location(scenario.name, heap_size, concurrency),
            start_time=self._clock(),
            jmeter_params=[
                f"concurrency={concurrency}",
                f"time={self.parameters.run_time_seconds}",
                f"host={self.settings.target_host}",
            ],
            extra_jvm_args=self.settings.jmeter_jvm_args,
        )
        description = (
            f"{context.describe()}, Duration: {self.parameters.test_duration_minutes} m"
        )
        logger.info("# Starting the performance test")
        logger.info(description)
        logger.info(f"Report location is {context.report_location}")

        context.report_location.mkdir(parents=True, exist_ok=True)
        context.collector = MetricsCollector(context.report_location, self._runner)

        try:
            self._before_run(context)
            self.run_jmeter(context)
            self.collect_metrics(context)
            self.split_results(context)
            self.archive_jtls(context)
        except RunExecutionError as err:
            logger.warning(f"WARN: Run failed ({err}). Continuing with the next run.")
        try:
            self._after_run(context)
        except RunExecutionError as err:
            logger.warning(f"WARN: after_run failed ({err}).")

        duration = int(round(self._clock() - context.start_time))
        logger.info(f"# Completed the performance test. {description}")
        logger.info(f"Test execution time: {format_time(duration)}")
        self.ledger.record(scenario.name, duration)
        return duration

    def run_jmeter(self, context: RunContext) -> int:
        """Run the JMeter client synchronously; its output goes to the terminal.

        Returns:
            JMeter's exit code, or -1 if it could not be started
        """
        command = build_command(context, self.settings.script_dir)
        env = jmeter_environment(self._jmeter_home)
        env["JVM_ARGS"] = client_jvm_args(
            self.parameters.client_heap_size,
            context.report_location,
            context.extra_jvm_args,
        )

        logger.info(f"Starting JMeter Client with JVM_ARGS={env['JVM_ARGS']}")
        logger.info(f"Running JMeter command: {shlex.join(command)}")
        try:
            completed = self._runner(command, env=env, check=False)
        except OSError as err:
            logger.warning(f"WARN: Could not start JMeter: {err}")
            return -1

        if completed.returncode != 0:
            logger.warning(
                f"WARN: JMeter exited with code {completed.returncode} "
                f"for {context.scenario.name}"
            )
        return completed.returncode

    def collect_metrics(self, context: RunContext) -> None:
        if context.collector is None:
            raise EngineStateError(f"No metrics collector bound to run: {context.describe()}")
        for server, ssh_host in self.settings.metrics_hosts.items():
            context.collector.write_server_metrics(server, ssh_host or None)

    def split_results(self, context: RunContext) -> bool:
        """Split the raw JTL into warm-up and measurement parts."""
        jtl = context.report_location / RESULTS_FILE
        if not jtl.exists():
            logger.warning(f"WARN: No results file at {jtl}, skipping JTL split")
            return False

        splitter = Path(self.settings.jtl_splitter).expanduser()
        command = [
            str(splitter),
            "--",
            "-f",
            str(jtl),
            "-t",
            str(self.parameters.warm_up_minutes),
            "-s",
        ]
        try:
            completed = self._runner(command, check=False)
        except OSError as err:
            logger.warning(f"WARN: Could not run JTL splitter: {err}")
            return False
        if completed.returncode != 0:
            logger.warning(f"WARN: JTL splitter exited with code {completed.returncode}")
            return False
        return True

    def archive_jtls(self, context: RunContext) -> Path | None:
        """Move every results*.jtl in the run directory into jtls.zip."""
        jtls = sorted(context.report_location.glob("results*.jtl"))
        if not jtls:
            return None

        archive = context.report_location / JTL_ARCHIVE
        logger.info(f"Zipping JTL files in {context.report_location}")
        with zipfile.ZipFile(archive, "a", compression=zipfile.ZIP_DEFLATED) as zf:
            for jtl in jtls:
                zf.write(jtl, arcname=jtl.name)
        for jtl in jtls:
            jtl.unlink()
        return archive

"""Host metrics collection and result file transfer for a single run."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Callable
from pathlib import Path

from perfsweep.errors import MetricsCollectionError

logger = logging.getLogger(__name__)

# subprocess.run-compatible callable; swapped out in tests
CommandRunner = Callable[..., subprocess.CompletedProcess]

# Output file suffix -> command run on the host
SERVER_METRIC_COMMANDS = [
    ("ss", "ss -s"),
    ("uptime", "uptime"),
    ("loadavg", "sar -q"),
    ("sar", "sar -A"),
    ("top", "top -bn 1"),
]


class MetricsCollector:
    """Captures operational metrics from local or ssh-reachable hosts.

    Output files land in the run's report location. Failures are logged as
    warnings and never abort the sweep.
    """

    def __init__(self, report_location: Path, runner: CommandRunner = subprocess.run):
        self.report_location = Path(report_location)
        self._runner = runner
        self.failures: list[MetricsCollectionError] = []

    def write_server_metrics(
        self,
        server: str,
        ssh_host: str | None = None,
        pgrep_pattern: str | None = None,
    ) -> bool:
        """Write ``<server>_<metric>.txt`` files for one host.

        Args:
            server: Label used in the output file names
            ssh_host: ssh host to run the commands on; local when empty
            pgrep_pattern: Optional process pattern for a ``ps u`` snapshot

        Returns:
            True if every command succeeded
        """
        logger.info(f"Collecting server metrics for {server}.")
        commands = list(SERVER_METRIC_COMMANDS)
        if pgrep_pattern:
            commands.append(("ps", f"ps u -p `pgrep -f {shlex.quote(pgrep_pattern)}`"))

        ok = True
        for suffix, command in commands:
            output_file = self.report_location / f"{server}_{suffix}.txt"
            try:
                self._run_metric(server, ssh_host, command, output_file)
            except MetricsCollectionError as err:
                self.failures.append(err)
                logger.warning(f"WARN: {err}")
                ok = False
        return ok

    def download_file(self, server: str, remote_file: str, local_file_name: str) -> bool:
        """Copy a file from a remote host into the report location via scp."""
        destination = self.report_location / local_file_name
        logger.info(f"Downloading {remote_file} from {server} to {local_file_name}")
        argv = ["scp", "-qp", f"{server}:{remote_file}", str(destination)]
        try:
            completed = self._runner(argv, check=False)
        except OSError as err:
            logger.warning(f"WARN: File transfer failed! ({err})")
            self.failures.append(MetricsCollectionError(server, shlex.join(argv)))
            return False

        if completed.returncode != 0:
            logger.warning("WARN: File transfer failed!")
            self.failures.append(
                MetricsCollectionError(server, shlex.join(argv), completed.returncode)
            )
            return False
        logger.info("File transfer succeeded.")
        return True

    def _run_metric(
        self, server: str, ssh_host: str | None, command: str, output_file: Path
    ) -> None:
        if ssh_host:
            argv = ["ssh", "-o", "SendEnv=LC_TIME", ssh_host, command]
        else:
            argv = ["sh", "-c", command]

        env = {**os.environ, "LC_TIME": "C"}
        try:
            with open(output_file, "w") as f:
                completed = self._runner(argv, stdout=f, env=env, check=False)
        except OSError as err:
            raise MetricsCollectionError(server, command) from err

        if completed.returncode != 0:
            raise MetricsCollectionError(server, command, completed.returncode)

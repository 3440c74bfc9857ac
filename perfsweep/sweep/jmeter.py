"""JMeter installation discovery and command-line construction."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path

from perfsweep.config import SweepSettings
from perfsweep.sweep.collector import CommandRunner
from perfsweep.sweep.types import RunContext

logger = logging.getLogger(__name__)

JMETER_HOME_GLOB = "apache-jmeter*"
RESULTS_FILE = "results.jtl"
GC_LOG_FILE = "jmeter-gc.log"


def discover_jmeter_home(settings: SweepSettings, home: Path | None = None) -> Path | None:
    """Find the JMeter installation.

    Uses ``settings.jmeter_home`` when set, otherwise the first
    ``~/apache-jmeter*`` directory. A missing installation is only a warning:
    every run will then fail on its own.
    """
    if settings.jmeter_home:
        candidate = Path(settings.jmeter_home).expanduser()
        if candidate.is_dir():
            return candidate
        logger.warning(f"WARNING: JMeter directory {candidate} does not exist.")
        return None

    base = home or Path.home()
    for candidate in sorted(base.glob(JMETER_HOME_GLOB)):
        if candidate.is_dir():
            return candidate

    logger.warning("WARNING: Could not find JMeter directory.")
    return None


def jmeter_environment(jmeter_home: Path | None, base: dict[str, str] | None = None) -> dict[str, str]:
    """Process environment with JMETER_HOME exported and its bin on PATH."""
    env = dict(os.environ if base is None else base)
    if jmeter_home is not None:
        env["JMETER_HOME"] = str(jmeter_home)
        env["PATH"] = os.pathsep.join([str(jmeter_home / "bin"), env.get("PATH", "")])
    return env


def resolve_ssh_hostname(alias: str, runner: CommandRunner = subprocess.run) -> str | None:
    """Resolve an ssh config alias to its real hostname via ``ssh -G``."""
    try:
        completed = runner(["ssh", "-G", alias], capture_output=True, text=True, check=False)
    except OSError as err:
        logger.warning(f"Could not resolve ssh host alias {alias}: {err}")
        return None

    for line in (completed.stdout or "").splitlines():
        parts = line.split()
        if len(parts) >= 2 and parts[0] == "hostname":
            return parts[1]
    logger.warning(f"Could not resolve ssh host alias {alias}")
    return None


def client_jvm_args(client_heap_size: str, report_location: Path, extra: str = "") -> str:
    """JVM_ARGS for the JMeter client process, with GC logging into the run directory."""
    args = [
        f"-Xms{client_heap_size}",
        f"-Xmx{client_heap_size}",
        "-XX:+PrintGC",
        "-XX:+PrintGCDetails",
        "-XX:+PrintGCDateStamps",
        f"-Xloggc:{report_location / GC_LOG_FILE}",
    ]
    if extra:
        args.extend(shlex.split(extra))
    return " ".join(args)


def build_command(context: RunContext, script_dir: str | Path) -> list[str]:
    """Non-GUI JMeter invocation for one run."""
    command = ["jmeter", "-n", "-t", str(Path(script_dir) / context.scenario.jmx)]
    command.extend(f"-J{param}" for param in context.jmeter_params)
    command.extend(["-l", str(context.report_location / RESULTS_FILE)])
    return command


def run_setup_script(
    script_file: str | Path,
    host: str,
    env: dict[str, str] | None = None,
    runner: CommandRunner = subprocess.run,
) -> int:
    """Seed test data by running a setup test plan once before the sweep.

    Returns:
        JMeter's exit code (-1 if it could not be started)
    """
    logger.info("Running test data setup scripts")
    command = [
        "jmeter",
        "-Jconcurrency=10",
        f"-Jhost={host}",
        "-Jport=443",
        "-JloopCount=100",
        "-n",
        "-t",
        str(script_file),
        "-l",
        "log.jtl",
    ]
    logger.info(shlex.join(command))
    try:
        completed = runner(command, env=env, check=False)
    except OSError as err:
        logger.warning(f"Test data setup failed: {err}")
        return -1
    if completed.returncode != 0:
        logger.warning(f"Test data setup exited with code {completed.returncode}")
    return completed.returncode

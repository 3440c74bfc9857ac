"""Shared test doubles for perfsweep test suites.

External commands (jmeter, ssh, scp, sar, the JTL splitter) are never run in
tests; a FakeRunner stands in for subprocess.run and records every call.
"""

from __future__ import annotations

import subprocess
from pathlib import Path


class FakeRunner:
    """subprocess.run stand-in.

    Args:
        returncodes: Exit code per program name (default 0)
        missing: Program names that raise FileNotFoundError
        stdout_text: Captured stdout per program name
    """

    def __init__(
        self,
        returncodes: dict[str, int] | None = None,
        missing: set[str] | None = None,
        stdout_text: dict[str, str] | None = None,
    ):
        self.calls: list[tuple[list[str], dict]] = []
        self.returncodes = returncodes or {}
        self.missing = missing or set()
        self.stdout_text = stdout_text or {}

    def __call__(self, argv, **kwargs) -> subprocess.CompletedProcess:
        argv = [str(a) for a in argv]
        self.calls.append((argv, kwargs))
        program = argv[0]
        if program in self.missing:
            raise FileNotFoundError(program)

        # jmeter writes its results file where -l points
        if program == "jmeter" and "-l" in argv:
            Path(argv[argv.index("-l") + 1]).write_text("timeStamp,elapsed,label\n")

        stdout = kwargs.get("stdout")
        if hasattr(stdout, "write"):
            stdout.write(f"output of {argv[-1]}\n")

        return subprocess.CompletedProcess(
            argv,
            self.returncodes.get(program, 0),
            stdout=self.stdout_text.get(program, ""),
            stderr="",
        )

    def commands(self, program: str) -> list[list[str]]:
        """argv of every call to ``program``."""
        return [argv for argv, _ in self.calls if argv[0] == program]

    def kwargs_for(self, program: str) -> list[dict]:
        return [kwargs for argv, kwargs in self.calls if argv[0] == program]


class FakeClock:
    """Deterministic wall clock advancing by ``step`` seconds per call."""

    def __init__(self, start: float = 1000.0, step: float = 0.0):
        self.now = start
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value

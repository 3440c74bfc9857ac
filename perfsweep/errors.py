"""Structured error hierarchy for perfsweep."""


class PerfSweepError(Exception):
    """Base for all perfsweep errors."""

    pass


class ConfigurationError(PerfSweepError):
    """Invalid sweep configuration or scenario declaration."""

    pass


class ResultsExistError(PerfSweepError):
    """Results from a previous sweep are still in the working directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"{path} already exists. Please backup.")


class EngineStateError(PerfSweepError):
    """Component in invalid state for requested operation."""

    pass


class RunExecutionError(PerfSweepError):
    """A single run failed. Contained to that run."""

    pass


class MetricsCollectionError(RunExecutionError):
    """Remote metrics command or file transfer failed."""

    def __init__(self, server: str, command: str, returncode: int | None = None):
        self.server = server
        self.command = command
        self.returncode = returncode
        super().__init__(f"Metrics command for {server} failed: {command}")

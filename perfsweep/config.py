"""Configuration settings for a perfsweep run.

Uses Pydantic Settings for validation and environment variable support.
All settings can be overridden via PERFSWEEP_* environment variables; the
command line front end overrides the environment.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

# Built-in sweep dimensions, used when none are given explicitly
DEFAULT_CONCURRENCY_LEVELS = [50, 100, 150, 300, 500]
DEFAULT_HEAP_SIZES = ["2g"]
DEFAULT_CLIENT_HEAP_SIZE = "2g"
DEFAULT_ESTIMATED_GAP = 60

HEAP_PATTERN = re.compile(r"^[0-9]+[mg]$")
NUMBER_PATTERN = re.compile(r"^[0-9]+$")


class ExecutionMode(enum.Enum):
    """Whether runs are executed or only projected."""

    REAL = "real"
    ESTIMATE = "estimate"


class SweepSettings(BaseSettings):
    """Everything the sweep needs to know before the first run."""

    # Sweep dimensions (empty = built-in defaults)
    heap_sizes: list[str] = Field(default_factory=list)
    concurrency_levels: list[int] = Field(default_factory=list)

    # Timing, in minutes
    test_duration: int | None = None
    warm_up_time: int | None = None

    # JMeter client
    jmeter_client_heap_size: str = DEFAULT_CLIENT_HEAP_SIZE
    jmeter_home: str = ""  # discovered from ~/apache-jmeter* when empty
    jmeter_jvm_args: str = ""
    target_host: str = "localhost"
    lb_ssh_host_alias: str = ""  # resolved to target_host via `ssh -G`
    script_dir: str = "."
    jtl_splitter: str = "~/workspace/jtl-splitter/jtl-splitter.sh"

    # Metrics: server label -> ssh host ("" = local)
    metrics_hosts: dict[str, str] = Field(default_factory=lambda: {"jmeter": ""})

    # Scenario filtering
    include_patterns: list[str] = Field(default_factory=list)
    exclude_patterns: list[str] = Field(default_factory=list)

    # Estimate mode
    estimate: bool = False
    estimated_gap: int = DEFAULT_ESTIMATED_GAP  # seconds between runs

    # Working area
    results_dir: str = "results"
    results_archive: str = "results.zip"

    model_config = {"env_prefix": "PERFSWEEP_"}

    @field_validator("test_duration", "warm_up_time", "estimated_gap", mode="before")
    @classmethod
    def _check_number(cls, value):
        if isinstance(value, str) and not NUMBER_PATTERN.match(value):
            raise ValueError(f"{value!r} must be a positive number")
        return value

    @field_validator("heap_sizes")
    @classmethod
    def _check_heap_sizes(cls, value: list[str]) -> list[str]:
        for heap in value:
            if not HEAP_PATTERN.match(heap):
                raise ValueError(f"Invalid heap size {heap!r}, expected e.g. 2g or 512m")
        return value

    @field_validator("jmeter_client_heap_size")
    @classmethod
    def _check_client_heap(cls, value: str) -> str:
        if not HEAP_PATTERN.match(value):
            raise ValueError("Please specify a valid heap for JMeter Client.")
        return value

    @field_validator("concurrency_levels")
    @classmethod
    def _check_concurrency(cls, value: list[int]) -> list[int]:
        if any(users <= 0 for users in value):
            raise ValueError("Concurrency levels must be positive numbers.")
        return value

    @field_validator("estimated_gap")
    @classmethod
    def _check_gap(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Estimated processing time must not be negative.")
        return value

    @model_validator(mode="after")
    def _check_timing(self) -> SweepSettings:
        if self.test_duration is None:
            raise ValueError("Please provide the test duration.")
        if self.test_duration <= 0:
            raise ValueError("Test duration must be a positive number.")
        if self.warm_up_time is None:
            raise ValueError("Please provide the warm up time.")
        if self.warm_up_time < 0:
            raise ValueError("Warm up time must be a positive number.")
        if self.warm_up_time >= self.test_duration:
            raise ValueError("The warm up time must be less than the test duration.")
        return self

    @property
    def mode(self) -> ExecutionMode:
        return ExecutionMode.ESTIMATE if self.estimate else ExecutionMode.REAL


@dataclass(frozen=True)
class SweepParameters:
    """Resolved, immutable parameters for one sweep."""

    heap_sizes: tuple[str, ...]
    concurrency_levels: tuple[int, ...]
    test_duration_minutes: int
    warm_up_minutes: int
    client_heap_size: str
    estimated_gap_seconds: int

    @property
    def run_time_seconds(self) -> int:
        """Total JMeter run time handed to each test."""
        return self.test_duration_minutes * 60

    @property
    def estimated_run_seconds(self) -> int:
        return self.run_time_seconds + self.estimated_gap_seconds

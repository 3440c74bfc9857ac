"""Scenario registry: the ordered set of declared test scenarios."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import FrozenInstanceError, dataclass
from pathlib import Path

import yaml

from perfsweep.errors import ConfigurationError, EngineStateError

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Scenario:
    """A named JMeter test plan.

    Only ``skip`` may change after construction, and only through the
    scenario filter. Assigning any other field raises FrozenInstanceError.
    """

    name: str
    jmx: str
    use_backend: bool = True
    skip: bool = False

    def __post_init__(self):
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name: str, value) -> None:
        if name != "skip" and getattr(self, "_sealed", False):
            raise FrozenInstanceError(f"cannot assign to field '{name}' of scenario {self.name!r}")
        object.__setattr__(self, name, value)


class ScenarioRegistry:
    """Ordered collection of scenarios, populated once at startup.

    Iteration follows declaration order. Names are unique.
    """

    def __init__(self, scenarios: list[Scenario] | None = None):
        self._scenarios: dict[str, Scenario] = {}
        self._frozen = False
        for scenario in scenarios or []:
            self.add(scenario)

    def add(self, scenario: Scenario) -> Scenario:
        """Register a scenario.

        Raises:
            ConfigurationError: If the name is empty or taken, or the scenario
                has no test plan
            EngineStateError: If the registry has already been frozen
        """
        if self._frozen:
            raise EngineStateError(
                f"Cannot register scenario '{scenario.name}' after the sweep has started"
            )
        if not scenario.name:
            raise ConfigurationError("Scenario name must not be empty")
        if not scenario.jmx:
            raise ConfigurationError(f"Scenario '{scenario.name}' has no JMeter test plan")
        if scenario.name in self._scenarios:
            raise ConfigurationError(f"Scenario '{scenario.name}' is already registered")

        self._scenarios[scenario.name] = scenario
        logger.debug(f"Registered scenario: {scenario.name} ({scenario.jmx})")
        return scenario

    def declare(
        self, name: str, jmx: str, use_backend: bool = True, skip: bool = False
    ) -> Scenario:
        """Shorthand for ``add(Scenario(...))``."""
        return self.add(Scenario(name=name, jmx=jmx, use_backend=use_backend, skip=skip))

    def freeze(self) -> None:
        """Close registration. Called once before filtering."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Scenario | None:
        return self._scenarios.get(name)

    def names(self) -> list[str]:
        return list(self._scenarios)

    def active(self) -> list[Scenario]:
        """Scenarios that will run, in declaration order."""
        return [s for s in self._scenarios.values() if not s.skip]

    def __iter__(self) -> Iterator[Scenario]:
        return iter(list(self._scenarios.values()))

    def __len__(self) -> int:
        return len(self._scenarios)

    def __contains__(self, name: object) -> bool:
        return name in self._scenarios

    @classmethod
    def from_dict(cls, data: dict) -> ScenarioRegistry:
        """Build a registry from a declaration dictionary.

        Args:
            data: Dict with a ``scenarios`` list; each entry needs ``name``
                and ``jmx`` and may set ``use_backend`` and ``skip``

        Returns:
            ScenarioRegistry in declaration order
        """
        entries = data.get("scenarios")
        if not isinstance(entries, list):
            raise ConfigurationError("Scenario file must contain a 'scenarios' list")

        registry = cls()
        for entry in entries:
            try:
                registry.declare(
                    name=str(entry["name"]),
                    jmx=str(entry.get("jmx") or ""),
                    use_backend=bool(entry.get("use_backend", True)),
                    skip=bool(entry.get("skip", False)),
                )
            except (KeyError, TypeError, AttributeError) as err:
                raise ConfigurationError(f"Invalid scenario entry: {entry!r}") from err
        return registry

    @classmethod
    def from_yaml(cls, path: str | Path) -> ScenarioRegistry:
        """Load scenario declarations from a YAML file.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError as err:
            raise ConfigurationError(f"Scenario file not found: {path}") from err
        except yaml.YAMLError as err:
            raise ConfigurationError(f"Could not parse scenario file {path}: {err}") from err

        if not isinstance(data, dict):
            raise ConfigurationError(f"Scenario file {path} is empty or not a mapping")
        return cls.from_dict(data)

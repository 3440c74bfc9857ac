"""Include/exclude filtering of registered scenarios."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from perfsweep.errors import ConfigurationError
from perfsweep.scenarios.registry import ScenarioRegistry

logger = logging.getLogger(__name__)


def _compile(patterns: Iterable[str]) -> list[re.Pattern[str]]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as err:
            raise ConfigurationError(f"Invalid scenario name pattern {pattern!r}: {err}") from err
    return compiled


def apply_filters(
    registry: ScenarioRegistry,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> list[str]:
    """Mark scenarios as skipped according to name patterns.

    With no patterns at all the declared ``skip`` values stand. Once any
    pattern is given every scenario starts skipped, include patterns
    re-enable matches, then exclude patterns skip matches again. A scenario
    matching both an include and an exclude pattern is skipped.

    Patterns are regular expressions searched anywhere in the name.

    Returns:
        Names of the scenarios left active, in declaration order
    """
    include_res = _compile(include)
    exclude_res = _compile(exclude)

    if include_res or exclude_res:
        scenarios = list(registry)
        for scenario in scenarios:
            scenario.skip = True
        for scenario in scenarios:
            if any(p.search(scenario.name) for p in include_res):
                scenario.skip = False
        for scenario in scenarios:
            if any(p.search(scenario.name) for p in exclude_res):
                scenario.skip = True

    active = [s.name for s in registry.active()]
    skipped = len(registry) - len(active)
    if skipped:
        logger.info(f"Skipping {skipped} of {len(registry)} scenario(s)")
    return active

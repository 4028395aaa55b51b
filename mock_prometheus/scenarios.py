from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from mock_prometheus.exceptions import InvalidScenarioName

"""
Scenario Catalog

A scenario is a fixed degradation profile. Each metric starts at a value and
moves towards an end value over a duration measured from the moment the
scenario became active. Durations are in seconds; a duration of 0 keeps the
metric pinned at its start value.
"""


class ScenarioType(str, Enum):
    HEALTHY = "healthy"
    HIGH_ERRORS = "high-errors"
    LATENCY_SPIKE = "latency-spike"
    GRADUAL_DEGRADATION = "gradual-degradation"


@dataclass(frozen=True)
class Scenario:
    type: ScenarioType
    description: str

    # Error rate as a percentage (0.0 to 100.0)
    error_rate_start: float
    error_rate_end: float
    error_rate_duration: float

    # Latency in milliseconds
    latency_start: float
    latency_end: float
    latency_duration: float

    up: float

    @property
    def name(self) -> str:
        return self.type.value


_CATALOG: Dict[ScenarioType, Scenario] = {
    ScenarioType.HEALTHY: Scenario(
        type=ScenarioType.HEALTHY,
        description="Healthy application with minimal errors and low latency",
        error_rate_start=0.1,
        error_rate_end=0.1,
        error_rate_duration=0,
        latency_start=100,
        latency_end=100,
        latency_duration=0,
        up=1,
    ),
    ScenarioType.HIGH_ERRORS: Scenario(
        type=ScenarioType.HIGH_ERRORS,
        description="High error rate that progressively increases",
        error_rate_start=5.0,
        error_rate_end=25.0,
        error_rate_duration=5 * 60,
        latency_start=200,
        latency_end=200,
        latency_duration=0,
        up=1,
    ),
    ScenarioType.LATENCY_SPIKE: Scenario(
        type=ScenarioType.LATENCY_SPIKE,
        description="Latency spike with gradual increase",
        error_rate_start=0.5,
        error_rate_end=0.5,
        error_rate_duration=0,
        latency_start=150,
        latency_end=2000,
        latency_duration=3 * 60,
        up=1,
    ),
    ScenarioType.GRADUAL_DEGRADATION: Scenario(
        type=ScenarioType.GRADUAL_DEGRADATION,
        description="Both errors and latency degrade over time",
        error_rate_start=0.5,
        error_rate_end=15.0,
        error_rate_duration=10 * 60,
        latency_start=120,
        latency_end=800,
        latency_duration=10 * 60,
        up=1,
    ),
}


def all_scenarios() -> List[Scenario]:
    """Every scenario, in catalog order (healthy first)."""
    return list(_CATALOG.values())


def valid_scenario_types() -> List[str]:
    return [t.value for t in ScenarioType]


def is_valid_scenario(name: str) -> bool:
    return name in valid_scenario_types()


def get_scenario(name) -> Scenario:
    """
    Look up a scenario by name.
    Unknown names fall back to the healthy scenario instead of failing.
    """
    try:
        return _CATALOG[ScenarioType(name)]
    except ValueError:
        return _CATALOG[ScenarioType.HEALTHY]


def _progress(elapsed: float, duration: float) -> float:
    return max(elapsed, 0.0) / duration


def calculate_error_rate(scenario: Scenario, elapsed: float) -> float:
    """Linear ramp from start to end, clamped once the duration has passed."""
    if scenario.error_rate_duration == 0:
        return scenario.error_rate_start

    progress = _progress(elapsed, scenario.error_rate_duration)
    if progress >= 1.0:
        return scenario.error_rate_end

    return scenario.error_rate_start + (scenario.error_rate_end - scenario.error_rate_start) * progress


def calculate_latency(scenario: Scenario, elapsed: float) -> float:
    """
    Quadratic ramp from start to end, clamped once the duration has passed.
    Slow at first, then accelerating, so a latency incident reads as a spike.
    """
    if scenario.latency_duration == 0:
        return scenario.latency_start

    progress = _progress(elapsed, scenario.latency_duration)
    if progress >= 1.0:
        return scenario.latency_end

    return scenario.latency_start + (scenario.latency_end - scenario.latency_start) * progress ** 2


def calculate_up(scenario: Scenario) -> float:
    return scenario.up


def list_scenarios() -> List[Dict[str, str]]:
    return [{"type": s.name, "description": s.description} for s in all_scenarios()]


def require_valid_scenario(name: str) -> str:
    """Boundary check for user-supplied names; the engine itself never rejects."""
    if not is_valid_scenario(name):
        raise InvalidScenarioName(name, valid_scenario_types())
    return name

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Any

from mock_prometheus.logging import event_logger
from mock_prometheus.metrics import instrumentation
from mock_prometheus.scenarios import (
    Scenario,
    calculate_error_rate,
    calculate_latency,
    calculate_up,
    get_scenario,
    is_valid_scenario,
)

# Handlers and level are set up by mock_prometheus.config at the app boundary
logger = logging.getLogger("mock-prometheus")

# Every read of "now" goes through a clock so elapsed time can be driven by tests
Clock = Callable[[], float]


@dataclass(frozen=True)
class MetricValues:
    error_rate: float  # percentage (0-100)
    latency: float  # milliseconds
    up: float  # 0 or 1

    def to_dict(self) -> Dict[str, float]:
        return {"error_rate": self.error_rate, "latency": self.latency, "up": self.up}


@dataclass(frozen=True)
class ScenarioStatus:
    type: str
    description: str
    start_time: float
    elapsed: str
    metrics: MetricValues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "start_time": datetime.fromtimestamp(self.start_time, tz=timezone.utc).isoformat(),
            "elapsed": self.elapsed,
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class _ActiveScenario:
    scenario: Scenario
    start_time: float


def compute_metrics(scenario: Scenario, elapsed: float) -> MetricValues:
    return MetricValues(
        error_rate=calculate_error_rate(scenario, elapsed),
        latency=calculate_latency(scenario, elapsed),
        up=calculate_up(scenario),
    )


def format_duration(seconds: float) -> str:
    """
    Render a duration like "5s", "2m 3s" or "1h 1m 5s".
    Rounds to the nearest second first, halves rounding up.
    """
    total = int(max(seconds, 0) + 0.5)
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)

    if h > 0:
        return f"{h}h {m}m {s}s"
    if m > 0:
        return f"{m}m {s}s"
    return f"{s}s"


class ScenarioEngine:
    """
    Owns the active scenario and the moment it became active.

    Both live in a single immutable snapshot that is only ever replaced as a
    whole, under one lock, so a reader always sees a scenario paired with its
    own start time.
    """

    def __init__(self, initial_scenario: str = "healthy", clock: Clock = time.time):
        self._clock = clock
        self._lock = threading.Lock()

        if not is_valid_scenario(initial_scenario):
            logger.warning(f"Unknown initial scenario '{initial_scenario}', falling back to healthy")

        scenario = get_scenario(initial_scenario)
        self._active = _ActiveScenario(scenario=scenario, start_time=self._clock())

        event_logger.log_engine_started(scenario.name)
        logger.info(f"Mock prometheus engine initialized (scenario={scenario.name}: {scenario.description})")

    def _snapshot(self) -> _ActiveScenario:
        with self._lock:
            return self._active

    def get_current_metrics(self) -> MetricValues:
        active = self._snapshot()
        return compute_metrics(active.scenario, self._clock() - active.start_time)

    def get_status(self) -> ScenarioStatus:
        active = self._snapshot()
        elapsed = self._clock() - active.start_time

        return ScenarioStatus(
            type=active.scenario.name,
            description=active.scenario.description,
            start_time=active.start_time,
            elapsed=format_duration(elapsed),
            metrics=compute_metrics(active.scenario, elapsed),
        )

    @property
    def scenario(self) -> Scenario:
        return self._snapshot().scenario

    def set_scenario(self, name: str):
        """
        Switch scenario and restart its timer.
        Unknown names silently select the healthy scenario; reject them before
        calling this if the caller needs strict behavior.
        """
        scenario = get_scenario(name)

        with self._lock:
            previous = self._active.scenario
            self._active = _ActiveScenario(scenario=scenario, start_time=self._clock())

        instrumentation.record_scenario_change(scenario.name)
        event_logger.log_scenario_changed(previous.name, scenario.name)
        logger.info(f"Scenario changed: {previous.name} -> {scenario.name}")

    def reset_timer(self):
        with self._lock:
            scenario = self._active.scenario
            self._active = _ActiveScenario(scenario=scenario, start_time=self._clock())

        instrumentation.record_timer_reset()
        event_logger.log_timer_reset(scenario.name)
        logger.info(f"Scenario timer reset (scenario={scenario.name})")

    def stop(self):
        # Nothing runs in the background; metrics are computed on demand.
        scenario = self.scenario
        event_logger.log_engine_stopped(scenario.name)
        logger.info("Mock prometheus engine stopped")

from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client.core import GaugeMetricFamily

from mock_prometheus.scenarios import valid_scenario_types

"""
Self-instrumentation

These metrics describe the mock backend itself (who is scraping it, which
scenario is active, how queries are resolving). They are served from their
own registry so they never leak into the synthetic /metrics exposition,
which must contain only the emulated application's families.

Counters are process-wide. The active scenario belongs to an engine, so it
is read from that engine at scrape time by ActiveScenarioCollector, and each
app gets its own registry from build_registry().
"""

REQUEST_COUNT = Counter(
    "mock_http_requests_total",
    "Total count of HTTP requests served by the mock backend",
    ["method", "endpoint"],
    registry=None,
)

SCENARIO_CHANGES = Counter(
    "mock_scenario_changes_total",
    "Total count of scenario switches, by the scenario switched to",
    ["scenario"],
    registry=None,
)

TIMER_RESETS = Counter(
    "mock_timer_resets_total",
    "Total count of scenario timer resets",
    registry=None,
)

QUERY_EVALUATIONS = Counter(
    "mock_query_evaluations_total",
    "Total count of query evaluations, by outcome (success or error kind)",
    ["outcome"],
    registry=None,
)

REQUEST_DURATION_SECONDS = Histogram(
    "mock_request_duration_seconds",
    "Wall-clock time spent serving a request",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1],
    registry=None,
)

PROCESS_METRICS = [REQUEST_COUNT, SCENARIO_CHANGES, TIMER_RESETS, QUERY_EVALUATIONS, REQUEST_DURATION_SECONDS]


class ActiveScenarioCollector:
    """Reports 1 for the engine's active scenario and 0 for the rest."""

    def __init__(self, engine):
        self.engine = engine

    def collect(self):
        active = self.engine.scenario.name
        gauge = GaugeMetricFamily(
            "mock_active_scenario",
            "Currently active scenario (1 for the active one, 0 for the rest)",
            labels=["scenario"],
        )
        for name in valid_scenario_types():
            gauge.add_metric([name], 1 if name == active else 0)
        yield gauge


def build_registry(engine) -> CollectorRegistry:
    registry = CollectorRegistry()
    for metric in PROCESS_METRICS:
        registry.register(metric)
    registry.register(ActiveScenarioCollector(engine))
    return registry


def record_scenario_change(scenario: str):
    SCENARIO_CHANGES.labels(scenario=scenario).inc()


def record_timer_reset():
    TIMER_RESETS.inc()


def record_query(outcome: str):
    QUERY_EVALUATIONS.labels(outcome=outcome).inc()


def observe_request(duration_seconds: float):
    REQUEST_DURATION_SECONDS.observe(duration_seconds)

import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Union

from mock_prometheus.engine import MetricValues, ScenarioEngine
from mock_prometheus.exceptions import (
    BadQuerySyntax,
    InvalidQuantile,
    QueryError,
    UnknownMetric,
)
from mock_prometheus.logging import event_logger
from mock_prometheus.metrics import instrumentation

"""
Query Evaluator

Understands just enough of PromQL to satisfy dashboards and verification
jobs pointed at the mock backend:

    rate(http_requests_errors_total[5m])
    histogram_quantile(0.99, rate(http_request_duration_seconds_bucket[5m]))
    up

A query is first parsed into one of the variants below, then the variant is
evaluated against the engine's current metric values.
"""

ERROR_METRIC = "http_requests_errors_total"
LATENCY_METRIC = "http_request_duration_seconds"
UP_METRIC = "up"
JOB_LABEL = "demo-app"

# Assumed traffic volume used to turn an error percentage into errors/second
BASELINE_REQUESTS_PER_SECOND = 100.0

RATE_REGEX = re.compile(r"rate\(([^[]+)\[")
HISTOGRAM_REGEX = re.compile(r"histogram_quantile\(([\d.]+),")


@dataclass(frozen=True)
class RateQuery:
    metric: str


@dataclass(frozen=True)
class HistogramQuantileQuery:
    quantile: float


@dataclass(frozen=True)
class DirectMetricQuery:
    metric: str


@dataclass(frozen=True)
class UnrecognizedQuery:
    query: str


ParsedQuery = Union[RateQuery, HistogramQuantileQuery, DirectMetricQuery, UnrecognizedQuery]


def parse_rate(query: str) -> RateQuery:
    match = RATE_REGEX.search(query)
    if not match:
        raise BadQuerySyntax("invalid rate query format")
    return RateQuery(metric=match.group(1).strip())


def parse_histogram_quantile(query: str) -> HistogramQuantileQuery:
    match = HISTOGRAM_REGEX.search(query)
    if not match:
        raise BadQuerySyntax("invalid histogram_quantile format")

    raw = match.group(1)
    try:
        quantile = float(raw)
    except ValueError:
        raise InvalidQuantile(f"invalid quantile value: {raw}")

    if quantile < 0 or quantile > 1:
        raise InvalidQuantile(f"quantile must be between 0 and 1, got: {quantile:f}")

    return HistogramQuantileQuery(quantile=quantile)


def parse_query(query: str) -> ParsedQuery:
    """
    Classify a query string. Function forms win over bare metric names, and
    bare names are matched by substring in a fixed order (errors, latency, up).
    Raises BadQuerySyntax / InvalidQuantile when a function form is malformed.
    """
    query = query.strip()

    if query.startswith("rate("):
        return parse_rate(query)

    if query.startswith("histogram_quantile("):
        return parse_histogram_quantile(query)

    for metric in (ERROR_METRIC, LATENCY_METRIC, UP_METRIC):
        if metric in query:
            return DirectMetricQuery(metric=metric)

    return UnrecognizedQuery(query=query)


def error_count_per_second(metrics: MetricValues) -> float:
    return (metrics.error_rate / 100.0) * BASELINE_REQUESTS_PER_SECOND


def quantile_multiplier(quantile: float) -> float:
    """
    How far a quantile sits from the mean latency.
    p50 ~ 0.8x, p95 ~ 1.5x, p99 and above 2.5x, linear in between.
    """
    if quantile >= 0.99:
        return 2.5
    if quantile >= 0.95:
        return 1.5 + (quantile - 0.95) / (0.99 - 0.95) * (2.5 - 1.5)
    if quantile >= 0.50:
        return 0.8 + (quantile - 0.50) / (0.95 - 0.50) * (1.5 - 0.8)
    return quantile / 0.50 * 0.8


def _evaluate_rate(parsed: RateQuery, metrics: MetricValues) -> float:
    if ERROR_METRIC in parsed.metric:
        return error_count_per_second(metrics)
    if LATENCY_METRIC in parsed.metric:
        # Not a real rate of change, the mock reports the current latency in seconds
        return metrics.latency / 1000.0
    raise UnknownMetric(f"unknown metric in rate query: {parsed.metric}")


def _evaluate_histogram_quantile(parsed: HistogramQuantileQuery, metrics: MetricValues) -> float:
    mean_latency = metrics.latency / 1000.0
    return mean_latency * quantile_multiplier(parsed.quantile)


def _evaluate_direct(parsed: DirectMetricQuery, metrics: MetricValues) -> float:
    if parsed.metric == ERROR_METRIC:
        return error_count_per_second(metrics)
    if parsed.metric == LATENCY_METRIC:
        return metrics.latency / 1000.0
    return metrics.up


def _evaluate_unrecognized(parsed: UnrecognizedQuery, metrics: MetricValues) -> float:
    raise UnknownMetric(f"unsupported metric query: {parsed.query}")


_EVALUATORS: Dict[type, Callable[[Any, MetricValues], float]] = {
    RateQuery: _evaluate_rate,
    HistogramQuantileQuery: _evaluate_histogram_quantile,
    DirectMetricQuery: _evaluate_direct,
    UnrecognizedQuery: _evaluate_unrecognized,
}


def evaluate(parsed: ParsedQuery, metrics: MetricValues) -> float:
    return _EVALUATORS[type(parsed)](parsed, metrics)


def success_response(value: float, timestamp: float) -> Dict[str, Any]:
    return {
        "status": "success",
        "data": {
            "resultType": "vector",
            "result": [
                {
                    "metric": {"job": JOB_LABEL},
                    "value": [float(int(timestamp)), f"{value:.6f}"],
                }
            ],
        },
    }


def error_response(kind: str, message: str) -> Dict[str, Any]:
    return {
        "status": "error",
        "errorType": "bad_data",
        "errorKind": kind,
        "error": message,
    }


class QueryHandler:
    """Evaluates queries against a ScenarioEngine and shapes Prometheus API responses."""

    def __init__(self, engine: ScenarioEngine, clock: Callable[[], float] = time.time):
        self.engine = engine
        self._clock = clock

    def evaluate(self, query: str) -> float:
        """Parse and evaluate, raising QueryError on failure."""
        parsed = parse_query(query)
        return evaluate(parsed, self.engine.get_current_metrics())

    def execute_query(self, query: str) -> Dict[str, Any]:
        """Evaluate a query; errors come back as an error response, never raised."""
        try:
            value = self.evaluate(query)
        except QueryError as e:
            instrumentation.record_query(e.kind)
            event_logger.log_query_rejected(query, e.kind, e.message)
            return error_response(e.kind, e.message)

        instrumentation.record_query("success")
        return success_response(value, self._clock())

import math
from typing import List, Tuple

from mock_prometheus.engine import MetricValues, ScenarioEngine
from mock_prometheus.query import (
    BASELINE_REQUESTS_PER_SECOND,
    ERROR_METRIC,
    JOB_LABEL,
    LATENCY_METRIC,
    UP_METRIC,
    error_count_per_second,
)

# Same defaults as prometheus_client.Histogram
LATENCY_BUCKETS = [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10]

# Floor applied to latency before building buckets, 1ms
MIN_LATENCY_SECONDS = 0.001

CONTENT_TYPE = "text/plain; version=0.0.4"


def histogram_buckets(latency_ms: float, total: float = BASELINE_REQUESTS_PER_SECOND) -> List[Tuple[float, float]]:
    """
    Synthesize cumulative bucket counts for a single latency value.

    Every bucket at or above the latency holds all requests; below it the
    count follows a square-root curve, so lower buckets still see some
    traffic. Counts never decrease as the boundary grows.
    """
    latency_seconds = max(latency_ms / 1000.0, MIN_LATENCY_SECONDS)

    buckets = []
    for bound in LATENCY_BUCKETS:
        if bound >= latency_seconds:
            cumulative = total
        else:
            cumulative = total * math.sqrt(bound / latency_seconds)
        buckets.append((bound, cumulative))
    return buckets


def format_metrics(metrics: MetricValues) -> str:
    """Render metric values as Prometheus text exposition."""
    job = f'job="{JOB_LABEL}"'
    lines = [
        f"# HELP {ERROR_METRIC} Total number of HTTP request errors",
        f"# TYPE {ERROR_METRIC} counter",
        f"{ERROR_METRIC}{{{job}}} {error_count_per_second(metrics):.2f}",
        "",
        f"# HELP {LATENCY_METRIC} HTTP request latency",
        f"# TYPE {LATENCY_METRIC} histogram",
    ]

    latency_seconds = max(metrics.latency / 1000.0, MIN_LATENCY_SECONDS)
    count = BASELINE_REQUESTS_PER_SECOND

    for bound, cumulative in histogram_buckets(metrics.latency, count):
        lines.append(f'{LATENCY_METRIC}_bucket{{{job},le="{bound:.3f}"}} {cumulative:.0f}')
    lines.append(f'{LATENCY_METRIC}_bucket{{{job},le="+Inf"}} {count:.0f}')
    lines.append(f"{LATENCY_METRIC}_sum{{{job}}} {latency_seconds * count:.3f}")
    lines.append(f"{LATENCY_METRIC}_count{{{job}}} {count:.0f}")
    lines.append("")

    lines.extend([
        f"# HELP {UP_METRIC} Service is up",
        f"# TYPE {UP_METRIC} gauge",
        f"{UP_METRIC}{{{job}}} {metrics.up:.0f}",
    ])

    return "\n".join(lines) + "\n"


def render_exposition(engine: ScenarioEngine) -> str:
    return format_metrics(engine.get_current_metrics())

import pytest
from prometheus_client.parser import text_string_to_metric_families

from mock_prometheus.engine import MetricValues
from mock_prometheus.exposition import LATENCY_BUCKETS, format_metrics, histogram_buckets, render_exposition
from verify_local import is_monotonic, parse_histogram_buckets


def test_structure(engine):
    text = render_exposition(engine)
    lines = text.splitlines()

    assert "# TYPE http_requests_errors_total counter" in lines
    assert "# TYPE http_request_duration_seconds histogram" in lines
    assert "# TYPE up gauge" in lines
    assert 'http_requests_errors_total{job="demo-app"} 0.10' in lines
    assert 'http_request_duration_seconds_bucket{job="demo-app",le="0.005"} 22' in lines
    assert 'http_request_duration_seconds_bucket{job="demo-app",le="0.100"} 100' in lines
    assert 'http_request_duration_seconds_bucket{job="demo-app",le="10.000"} 100' in lines
    assert 'http_request_duration_seconds_bucket{job="demo-app",le="+Inf"} 100' in lines
    assert 'http_request_duration_seconds_sum{job="demo-app"} 10.000' in lines
    assert 'http_request_duration_seconds_count{job="demo-app"} 100' in lines
    assert 'up{job="demo-app"} 1' in lines


def test_output_parses_as_exposition_format(engine):
    families = {f.type for f in text_string_to_metric_families(render_exposition(engine))}
    assert families == {"counter", "histogram", "gauge"}


@pytest.mark.parametrize("latency_ms", [0, 0.5, 3, 100, 612.5, 2000, 9999, 50000])
def test_buckets_non_decreasing(latency_ms):
    buckets = parse_histogram_buckets(format_metrics(MetricValues(error_rate=1.0, latency=latency_ms, up=1)))
    assert [b for b, _ in buckets] == LATENCY_BUCKETS + [float("inf")]
    assert is_monotonic(buckets)


def test_zero_latency_is_floored():
    text = format_metrics(MetricValues(error_rate=0.0, latency=0, up=0))
    assert all(count == 100 for _, count in histogram_buckets(0))
    assert 'http_request_duration_seconds_sum{job="demo-app"} 0.100' in text
    assert 'up{job="demo-app"} 0' in text


def test_square_root_curve_below_latency():
    # 1s latency: 0.25s bucket holds sqrt(0.25) = half the requests
    counts = dict(histogram_buckets(1000))
    assert counts[0.25] == pytest.approx(50.0)
    assert counts[1] == 100
    assert counts[2.5] == 100


def test_is_monotonic_detects_decrease():
    assert not is_monotonic([(0.1, 10.0), (0.5, 5.0)])

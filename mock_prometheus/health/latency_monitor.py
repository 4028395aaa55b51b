import time
import collections
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from mock_prometheus.metrics import instrumentation

# Sliding window for p95 calculation
LATENCY_WINDOW_SIZE = 100
_latency_window = collections.deque(maxlen=LATENCY_WINDOW_SIZE)

# Scrape endpoints are not tracked to avoid observer effect
UNTRACKED_PATHS = ("/metrics", "/internal/metrics")

def endpoint_label(request: Request) -> str:
    """
    Route template the request matched, e.g. "/api/v1/scenario".
    Raw paths would give every scanned URL its own series.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"

class LatencyMonitorMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start_time

        if request.url.path.rstrip("/") not in UNTRACKED_PATHS:
            _latency_window.append(elapsed * 1000) # ms
            instrumentation.observe_request(elapsed)
            instrumentation.REQUEST_COUNT.labels(method=request.method, endpoint=endpoint_label(request)).inc()

        return response

def get_p95_latency():
    if not _latency_window:
        return 0
    sorted_latencies = sorted(_latency_window)
    index = min(int(len(sorted_latencies) * 0.95), len(sorted_latencies) - 1)
    return sorted_latencies[index]
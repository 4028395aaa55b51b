import re
import sys
import requests

BASE_URL = "http://localhost:8080"
LATENCY_METRIC = "http_request_duration_seconds"

def log(msg):
    print(f"[TEST] {msg}")

def parse_histogram_buckets(metrics_text, metric_name=LATENCY_METRIC):
    """
    Pull (upper_bound, cumulative_count) pairs out of exposition text,
    in the order they appear. +Inf is returned as float('inf').
    """
    buckets = []
    for line in metrics_text.splitlines():
        if line.startswith("#") or not line.startswith(metric_name + "_bucket"):
            continue
        match = re.search(r'le="([^"]+)"', line)
        if not match:
            continue
        bound = float("inf") if match.group(1) == "+Inf" else float(match.group(1))
        buckets.append((bound, float(line.split()[-1])))
    return buckets

def is_monotonic(buckets):
    counts = [count for _, count in buckets]
    return all(a <= b for a, b in zip(counts, counts[1:]))

def check_health():
    try:
        r = requests.get(f"{BASE_URL}/health", timeout=2)
        log(f"Health Check: {r.status_code}")
        return r.status_code == 200
    except requests.exceptions.RequestException:
        return False

def set_scenario(name):
    r = requests.post(f"{BASE_URL}/api/v1/scenario", json={"scenario": name}, timeout=2)
    log(f"Set scenario '{name}': {r.status_code}")
    return r.status_code == 200

def run_query(query):
    r = requests.get(f"{BASE_URL}/api/v1/query", params={"query": query}, timeout=2)
    body = r.json()
    log(f"Query {query!r}: {body.get('status')} {body.get('data', {}).get('result') or body.get('error')}")
    return body

def main():
    log("Starting Local Verification...")

    if not check_health():
        log("ERROR: Service not reachable. Is it running?")
        sys.exit(1)

    failures = 0

    r = requests.get(f"{BASE_URL}/api/v1/scenarios", timeout=2)
    log(f"Scenarios: {[s['type'] for s in r.json()['data']]}")

    log("--- Testing Scenario Switch ---")
    if not set_scenario("latency-spike"):
        failures += 1

    body = run_query("histogram_quantile(0.99, rate(http_request_duration_seconds_bucket[5m]))")
    if body.get("status") != "success":
        failures += 1

    log("--- Testing Error Reporting ---")
    body = run_query("totally_invalid_metric")
    if body.get("errorKind") != "unknown_metric":
        log("WARNING: unknown metric was not reported as unknown_metric")
        failures += 1

    log("--- Testing Exposition ---")
    r = requests.get(f"{BASE_URL}/metrics", timeout=2)
    buckets = parse_histogram_buckets(r.text)
    if buckets and is_monotonic(buckets):
        log(f"SUCCESS: {len(buckets)} histogram buckets, non-decreasing")
    else:
        log("ERROR: histogram buckets missing or decreasing")
        failures += 1

    set_scenario("healthy")

    log(f"Verification Complete ({failures} failure(s)).")
    sys.exit(1 if failures else 0)

if __name__ == "__main__":
    main()

import json
import logging
import os
import socket
from datetime import datetime, timezone

# One JSON object per line, no prefix, so log shippers can parse it as-is
logger = logging.getLogger("mock-prometheus-events")
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter('%(message)s'))
logger.addHandler(handler)
logger.setLevel(logging.INFO)

INSTANCE_ID = os.getenv("HOSTNAME", socket.gethostname())

def build_event(event_type: str, **details) -> dict:
    now = datetime.now(timezone.utc)
    return {
        "timestamp": now.timestamp(),
        "timestamp_iso": now.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "event_type": event_type,
        "instance_id": INSTANCE_ID,
        "details": details,
    }

def log_event(event_type: str, **details):
    logger.info(json.dumps(build_event(event_type, **details), sort_keys=True))

def log_engine_started(scenario: str):
    log_event("ENGINE_STARTED", scenario=scenario)

def log_scenario_changed(previous: str, scenario: str):
    log_event("SCENARIO_CHANGED", previous=previous, scenario=scenario)

def log_timer_reset(scenario: str):
    log_event("TIMER_RESET", scenario=scenario)

def log_engine_stopped(scenario: str):
    log_event("ENGINE_STOPPED", scenario=scenario)

def log_query_rejected(query: str, kind: str, message: str):
    log_event("QUERY_REJECTED", query=query, kind=kind, message=message)

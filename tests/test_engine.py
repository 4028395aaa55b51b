import json
import threading

import pytest

from mock_prometheus.engine import ScenarioEngine, compute_metrics, format_duration
from mock_prometheus.scenarios import get_scenario, valid_scenario_types


def test_initial_metrics(engine):
    metrics = engine.get_current_metrics()
    assert metrics.error_rate == 0.1
    assert metrics.latency == 100
    assert metrics.up == 1


def test_unknown_initial_scenario_falls_back(clock):
    engine = ScenarioEngine("nope", clock=clock)
    assert engine.scenario.name == "healthy"


def test_progression_follows_clock(engine, clock):
    engine.set_scenario("high-errors")
    clock.advance(150)
    assert engine.get_current_metrics().error_rate == pytest.approx(15.0)
    clock.advance(150)
    assert engine.get_current_metrics().error_rate == 25.0
    clock.advance(3600)
    assert engine.get_current_metrics().error_rate == 25.0


def test_switch_starts_from_new_scenario_start_values(engine, clock):
    engine.set_scenario("gradual-degradation")
    clock.advance(400)
    assert engine.get_current_metrics().error_rate > 5.0

    engine.set_scenario("latency-spike")
    metrics = engine.get_current_metrics()
    assert metrics.error_rate == 0.5
    assert metrics.latency == 150


def test_set_scenario_unknown_name_selects_healthy(engine, clock):
    engine.set_scenario("latency-spike")
    engine.set_scenario("made-up")
    assert engine.scenario.name == "healthy"
    assert engine.get_current_metrics().latency == 100


def test_reset_timer_keeps_scenario(engine, clock):
    engine.set_scenario("latency-spike")
    clock.advance(180)
    assert engine.get_current_metrics().latency == 2000

    engine.reset_timer()
    assert engine.scenario.name == "latency-spike"
    assert engine.get_current_metrics().latency == 150
    assert engine.get_status().start_time == clock.now


def test_status(engine, clock):
    engine.set_scenario("high-errors")
    clock.advance(90)
    status = engine.get_status()
    assert status.type == "high-errors"
    assert status.description == get_scenario("high-errors").description
    assert status.elapsed == "1m 30s"
    assert status.metrics.error_rate == pytest.approx(11.0)

    payload = status.to_dict()
    assert payload["start_time"].startswith("2023-11-14T22:13:20")
    assert payload["metrics"] == {"error_rate": pytest.approx(11.0), "latency": 200, "up": 1}


def test_stop_is_safe_to_call(engine):
    engine.stop()
    assert engine.get_current_metrics().up == 1


def test_scenario_change_emits_event(engine, caplog):
    caplog.set_level("INFO", logger="mock-prometheus-events")
    engine.set_scenario("latency-spike")
    events = [json.loads(r.getMessage()) for r in caplog.records if r.name == "mock-prometheus-events"]
    assert events[-1]["event_type"] == "SCENARIO_CHANGED"
    assert events[-1]["details"] == {"previous": "healthy", "scenario": "latency-spike"}


@pytest.mark.parametrize(
    "seconds,expected",
    [
        (0, "0s"),
        (45, "45s"),
        (59.4, "59s"),
        (59.5, "1m 0s"),
        (90, "1m 30s"),
        (3599, "59m 59s"),
        (3600, "1h 0m 0s"),
        (3665, "1h 1m 5s"),
        (90061, "25h 1m 1s"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


# Start times written by writer i fall in [i * BAND, (i + 1) * BAND)
BAND = 1_000_000.0
READ_TIME = 10 * BAND


class ThreadTaggedClock:
    """Returns the calling thread's tag, or READ_TIME for untagged threads."""

    def __init__(self):
        self._local = threading.local()

    def tag(self, value):
        self._local.value = value

    def __call__(self):
        return getattr(self._local, "value", READ_TIME)


def test_concurrent_switches_and_reads_never_tear():
    names = valid_scenario_types()
    clock = ThreadTaggedClock()
    clock.tag(0.0)
    engine = ScenarioEngine(names[0], clock=clock)
    errors = []
    stop = threading.Event()

    def reader():
        while not stop.is_set():
            try:
                status = engine.get_status()
                # the start time must come from the writer that set this scenario
                assert int(status.start_time // BAND) == names.index(status.type)
                scenario = get_scenario(status.type)
                assert status.metrics == compute_metrics(scenario, READ_TIME - status.start_time)
                engine.get_current_metrics()
            except Exception as e:
                errors.append(e)
                return

    def writer(index):
        try:
            for n in range(300):
                clock.tag(index * BAND + n)
                engine.set_scenario(names[index])
        except Exception as e:
            errors.append(e)

    readers = [threading.Thread(target=reader) for _ in range(8)]
    writers = [threading.Thread(target=writer, args=(i,)) for i in range(len(names))]
    for t in readers + writers:
        t.start()
    for t in writers:
        t.join(timeout=30)
    stop.set()
    for t in readers:
        t.join(timeout=30)

    assert not any(t.is_alive() for t in readers + writers)
    assert errors == []


def test_concurrent_resets_and_switches_do_not_deadlock():
    engine = ScenarioEngine("healthy")
    names = valid_scenario_types()
    errors = []

    def worker(offset):
        try:
            for i in range(200):
                if i % 3 == 0:
                    engine.reset_timer()
                else:
                    engine.set_scenario(names[(i + offset) % len(names)])
                engine.get_status()
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert not any(t.is_alive() for t in threads)
    assert errors == []
    assert engine.scenario.name in names

import pytest
from fastapi.testclient import TestClient

from mock_prometheus.config import Config
from mock_prometheus.engine import ScenarioEngine
from mock_prometheus.main import create_app

START = 1_700_000_000.0


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return ScenarioEngine("healthy", clock=clock)


@pytest.fixture
def client(engine):
    app = create_app(Config.from_env({}), engine=engine)
    return TestClient(app)

import signal
import sys
from contextlib import asynccontextmanager
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app
from mock_prometheus.config import Config, config, logger
from mock_prometheus.api import router, prometheus_router
from mock_prometheus.engine import ScenarioEngine
from mock_prometheus.health.latency_monitor import LatencyMonitorMiddleware
from mock_prometheus.metrics.instrumentation import build_registry
from mock_prometheus.query import QueryHandler

def create_app(cfg: Config = None, engine: ScenarioEngine = None) -> FastAPI:
    """
    Build the mock backend.
    One engine per app; pass one in to control its clock.
    """
    cfg = cfg or config
    engine = engine or ScenarioEngine(cfg.PROMETHEUS_SCENARIO)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting up...")
        yield
        logger.info("Application shutting down...")
        engine.stop()

    app = FastAPI(
        title="Mock Prometheus",
        description="Scenario-driven mock Prometheus backend for monitoring and verification demos",
        lifespan=lifespan,
    )
    app.state.config = cfg
    app.state.engine = engine
    app.state.query_handler = QueryHandler(engine)

    # Add Latency Monitoring Middleware
    app.add_middleware(LatencyMonitorMiddleware)

    # The service's own metrics; /metrics is the synthetic application exposition
    app.state.registry = build_registry(engine)
    app.mount("/internal/metrics", make_asgi_app(registry=app.state.registry))

    app.include_router(router)
    if cfg.PROMETHEUS_ENABLED:
        app.include_router(prometheus_router)
    else:
        logger.info("Mock prometheus routes disabled (PROMETHEUS_ENABLED=false)")

    return app

def handle_sigterm(signum, frame):
    """
    Handle SIGTERM/SIGINT for graceful shutdown.
    """
    logger.info(f"Received signal {signum}. Initiating graceful shutdown...")
    sys.exit(0)

def run():
    # Register signal handlers
    signal.signal(signal.SIGTERM, handle_sigterm)
    signal.signal(signal.SIGINT, handle_sigterm)

    logger.info(
        f"Configuration loaded (host={config.HOST}, port={config.PORT}, "
        f"prometheus_enabled={config.PROMETHEUS_ENABLED}, scenario={config.PROMETHEUS_SCENARIO})"
    )
    uvicorn.run(create_app(config), host=config.HOST, port=config.PORT, reload=False)

if __name__ == "__main__":
    run()

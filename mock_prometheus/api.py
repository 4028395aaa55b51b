import os
import psutil
from fastapi import APIRouter, Request, Response, status
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, ValidationError
from mock_prometheus.admin import ADMIN_HTML
from mock_prometheus.config import logger
from mock_prometheus.engine import ScenarioEngine
from mock_prometheus.exceptions import InvalidScenarioName
from mock_prometheus.exposition import CONTENT_TYPE, render_exposition
from mock_prometheus.health import latency_monitor
from mock_prometheus.query import QueryHandler, error_response
from mock_prometheus.scenarios import list_scenarios, require_valid_scenario

router = APIRouter()
prometheus_router = APIRouter()

class SetScenarioRequest(BaseModel):
    scenario: str

def get_engine(request: Request) -> ScenarioEngine:
    return request.app.state.engine

def get_query_handler(request: Request) -> QueryHandler:
    return request.app.state.query_handler

def status_payload(engine: ScenarioEngine, **extra):
    payload = {"status": "success"}
    payload.update(extra)
    payload["data"] = engine.get_status().to_dict()
    return payload

@router.get("/health")
def health():
    """
    Returns service health status.
    Always 200; memory and p95 latency are informational.
    """
    mem_info = psutil.Process(os.getpid()).memory_info()
    return {
        "status": "healthy",
        "memory_usage_mb": round(mem_info.rss / (1024 * 1024), 2),
        "p95_latency_ms": round(latency_monitor.get_p95_latency(), 3),
    }

@prometheus_router.api_route("/api/v1/query", methods=["GET", "POST"])
async def query(request: Request):
    """
    Prometheus instant query API.
    GET takes ?query=..., POST takes a form-encoded query=... body.
    Evaluation errors are reported in the body with a 200, as Prometheus
    clients expect; only a missing query is a 400.
    """
    if request.method == "POST":
        form = await request.form()
        query_string = form.get("query", "")
    else:
        query_string = request.query_params.get("query", "")

    if not query_string:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_response("bad_query_syntax", "query parameter is required"),
        )

    return get_query_handler(request).execute_query(query_string)

@prometheus_router.get("/metrics")
def metrics(request: Request):
    """Synthetic application metrics in text exposition format."""
    return Response(content=render_exposition(get_engine(request)), media_type=CONTENT_TYPE)

@prometheus_router.get("/api/v1/scenario")
def get_scenario(request: Request):
    return status_payload(get_engine(request))

@prometheus_router.post("/api/v1/scenario")
async def set_scenario(request: Request):
    """
    Switch the active scenario.
    Names are checked here so users get a 400 instead of the engine's
    silent fallback to healthy.
    """
    try:
        body = SetScenarioRequest.model_validate(await request.json())
        require_valid_scenario(body.scenario)
    except InvalidScenarioName as e:
        logger.warning(f"Rejected scenario switch: {e}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "status": "error",
                "error": "invalid scenario type",
                "valid_scenarios": e.valid_scenarios,
            },
        )
    except (ValueError, ValidationError) as e:
        # ValueError covers JSONDecodeError and UnicodeDecodeError
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": "error", "error": f"invalid request: {e}"},
        )

    engine = get_engine(request)
    engine.set_scenario(body.scenario)
    return status_payload(engine)

@prometheus_router.post("/api/v1/scenario/reset")
def reset_timer(request: Request):
    engine = get_engine(request)
    engine.reset_timer()
    return status_payload(engine, message="timer reset")

@prometheus_router.get("/api/v1/scenarios")
def scenarios():
    return {"status": "success", "data": list_scenarios()}

@prometheus_router.get("/admin", response_class=HTMLResponse)
def admin():
    """Scenario control panel."""
    return ADMIN_HTML

"""
FlexShop — FastAPI + MCP Server
The interface layer: exposes the flexible job shop solver over HTTP and, when
fastapi-mcp is installed, as MCP tools.

Two tools exposed:
  1. optimize_schedule — Solve a Flexible Job Shop Problem (minimize makespan)
  2. validate_schedule — Validate an existing schedule against an instance
"""

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from jobshop.config import SolverConfig
from jobshop.engine import solve_schedule
from jobshop.errors import InvalidInstance
from jobshop.models import (
    ScheduleRequest, ScheduleResponse,
    ValidateRequest, ValidateResponse,
)
from jobshop.validator import validate_schedule

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────
# App Configuration
# ─────────────────────────────────────────────

APP_NAME = "FlexShop"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = """
**Flexible Job Shop Solver** — assigns every task to one of its alternative
machines and sequences each machine, minimizing the makespan.

Built on Google OR-Tools CP-SAT with a three-phase search: machine choice,
then per-machine sequencing, then earliest start times.
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    logger.info("%s v%s starting", APP_NAME, APP_VERSION)
    yield
    logger.info("%s shutting down", APP_NAME)


app = FastAPI(
    title=APP_NAME,
    version=APP_VERSION,
    description=APP_DESCRIPTION,
    lifespan=lifespan,
)

_solver_config = SolverConfig.from_env()


# ─────────────────────────────────────────────
# Request tracking middleware
# ─────────────────────────────────────────────

_request_count = 0
_total_solve_time = 0.0


@app.middleware("http")
async def track_requests(request: Request, call_next):
    """Track request count and timing for the info endpoint."""
    global _request_count, _total_solve_time
    start = time.time()
    response = await call_next(request)
    elapsed = time.time() - start
    if request.url.path in ("/optimize_schedule", "/validate_schedule"):
        _request_count += 1
        _total_solve_time += elapsed
    return response


# ─────────────────────────────────────────────
# Health & Info Endpoints
# ─────────────────────────────────────────────

@app.get("/", operation_id="root", summary="Server info and status")
async def root():
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "operational",
        "tools": [
            {"name": "optimize_schedule", "endpoint": "/optimize_schedule"},
            {"name": "validate_schedule", "endpoint": "/validate_schedule"},
        ],
        "stats": {
            "requests_served": _request_count,
            "total_solve_time_seconds": round(_total_solve_time, 2),
        },
    }


@app.get("/health", operation_id="health_check", summary="Health check")
async def health():
    return {"status": "healthy", "version": APP_VERSION}


# ─────────────────────────────────────────────
# Core Tool Endpoints
# ─────────────────────────────────────────────

@app.post(
    "/optimize_schedule",
    response_model=ScheduleResponse,
    operation_id="optimize_schedule",
    summary="Solve a Flexible Job Shop Problem",
    description="""
**Input**: number of machines and jobs; each job is an ordered list of tasks,
each task a list of alternative `{machine_id, duration}` pairs.
**Output**: per-machine task sequences with start times, and the makespan.

**Example — 2 jobs, 3 machines**:
```json
{
  "name": "demo",
  "num_machines": 3,
  "jobs": [
    {"tasks": [{"alternatives": [{"machine_id": 1, "duration": 3}, {"machine_id": 2, "duration": 6}]},
               {"alternatives": [{"machine_id": 1, "duration": 3}, {"machine_id": 2, "duration": 3}]}]},
    {"tasks": [{"alternatives": [{"machine_id": 2, "duration": 3}, {"machine_id": 3, "duration": 2}]},
               {"alternatives": [{"machine_id": 3, "duration": 3}]}]}
  ]
}
```
""",
    tags=["Scheduling"],
)
def optimize_schedule_endpoint(request: ScheduleRequest) -> ScheduleResponse:
    return solve_schedule(request, _solver_config)


@app.post(
    "/validate_schedule",
    response_model=ValidateResponse,
    operation_id="validate_schedule",
    summary="Validate an existing schedule against an instance",
    tags=["Validation"],
)
def validate_schedule_endpoint(request: ValidateRequest) -> ValidateResponse:
    return validate_schedule(request)


# ─────────────────────────────────────────────
# Error Handlers
# ─────────────────────────────────────────────

@app.exception_handler(InvalidInstance)
async def invalid_instance_handler(request: Request, exc: InvalidInstance):
    return JSONResponse(
        status_code=422,
        content={"status": "invalid_instance", "message": str(exc)},
    )


# ─────────────────────────────────────────────
# MCP Integration
# ─────────────────────────────────────────────

try:
    from fastapi_mcp import FastApiMCP

    mcp = FastApiMCP(
        app,
        name=APP_NAME,
        description="Flexible Job Shop solver: choose machines and sequence tasks to minimize makespan.",
        describe_all_responses=True,
        describe_full_response_schema=True,
    )
    mcp.mount()
    logger.info("MCP server mounted at /mcp")
except ImportError:
    logger.info("fastapi-mcp not installed, MCP endpoint disabled")


# ─────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("api.server:app", host="0.0.0.0", port=port)

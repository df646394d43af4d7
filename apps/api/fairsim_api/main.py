"""FastAPI entrypoint for FairSim."""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routers.sim import router as sim_router
from .services.runtime_scheduler import (
    start_fair_runtime_scheduler,
    stop_fair_runtime_scheduler,
)

from packages.fairsim_core.sim.runner import SimulationBusyError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("fairsim_api")


def _truthy_env(name: str, default: bool = False) -> bool:
    raw = str(os.environ.get(name) or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}

app = FastAPI(title="FairSim API", version="0.1.0")

_cors_origins = [o.strip() for o in os.environ.get("FAIRSIM_CORS_ORIGINS", "*").split(",")]
_cors_allow_credentials = "*" not in _cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=_cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(sim_router)


@app.exception_handler(SimulationBusyError)
async def _simulation_busy_handler(request: Request, exc: SimulationBusyError):
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc)},
        headers={"Retry-After": "2"},
    )


@app.on_event("startup")
def startup() -> None:
    logger.info("[STARTUP] FairSim API starting up at %s", datetime.utcnow().isoformat())
    if _truthy_env("FAIRSIM_AUTOSTART_TICKER", default=False):
        start_fair_runtime_scheduler()
        logger.info("[STARTUP] Background ticker autostart is enabled")
    logger.info("[STARTUP] FairSim API startup complete")


@app.on_event("shutdown")
def shutdown() -> None:
    stop_fair_runtime_scheduler()


@app.get("/healthz")
def healthz() -> dict[str, str]:
    logger.debug("[HEALTH] Health check requested")
    return {"status": "ok"}

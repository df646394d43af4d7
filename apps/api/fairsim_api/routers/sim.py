"""Career fair simulation endpoints."""

from __future__ import annotations

from typing import Any, Optional
import logging

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from packages.fairsim_core.sim.runner import (
    get_conversation_detail,
    get_conversation_stats,
    get_leaderboard,
    get_simulation_state,
    place_agent,
    place_obstacle,
    reset_simulation,
    tick_simulation,
)
from packages.fairsim_core.sim.scoring.ending import (
    CONVERSATION_TYPES,
    calculate_ending_probability,
    force_end_limit,
)

from ..services.runtime_scheduler import (
    fair_runtime_scheduler_status,
    start_fair_runtime_scheduler,
    stop_fair_runtime_scheduler,
)


logger = logging.getLogger("fairsim_api.sim")
router = APIRouter(prefix="/api/v1/sim", tags=["sim"])
AGENT_KIND_PATTERN = "^(student|recruiter)$"
CONVERSATION_TYPE_PATTERN = "^(" + "|".join(CONVERSATION_TYPES) + ")$"


class TickRequest(BaseModel):
    frames: int = Field(default=1, ge=1, le=600)


class ResetRequest(BaseModel):
    size: Optional[int] = Field(default=None, ge=1, le=200)
    seed_default_world: Optional[bool] = None


class PlaceAgentRequest(BaseModel):
    x: int = Field(ge=0)
    y: int = Field(ge=0)
    kind: str = Field(pattern=AGENT_KIND_PATTERN)
    stats: Optional[dict[str, Any]] = None


class PlaceObstacleRequest(BaseModel):
    x: int = Field(ge=0)
    y: int = Field(ge=0)


class RuntimeStartRequest(BaseModel):
    tick_interval_ms: int = Field(default=500, ge=10, le=60_000)


@router.get("/state")
def simulation_state() -> dict[str, Any]:
    return {"ok": True, "state": get_simulation_state()}


@router.post("/tick")
def tick(req: TickRequest) -> dict[str, Any]:
    result = tick_simulation(frames=req.frames)
    logger.debug("[SIM] Ticked %d frames via API", result["frames"])
    return {"ok": True, **result}


@router.post("/reset")
def reset(req: ResetRequest) -> dict[str, Any]:
    state = reset_simulation(size=req.size, seed_default_world=req.seed_default_world)
    logger.info("[SIM] Simulation reset (size=%s)", state["size"])
    return {"ok": True, "state": state}


@router.post("/agents")
def add_agent(req: PlaceAgentRequest) -> dict[str, Any]:
    agent = place_agent(x=req.x, y=req.y, kind=req.kind, stats=req.stats)
    if agent is None:
        raise HTTPException(status_code=409, detail=f"Cell ({req.x}, {req.y}) is not available for placement")
    return {"ok": True, "agent": agent}


@router.post("/obstacles")
def add_obstacle(req: PlaceObstacleRequest) -> dict[str, Any]:
    obstacle = place_obstacle(x=req.x, y=req.y)
    if obstacle is None:
        raise HTTPException(status_code=409, detail=f"Cell ({req.x}, {req.y}) is not available for placement")
    return {"ok": True, "obstacle": obstacle}


@router.get("/conversations/stats")
def conversation_stats() -> dict[str, Any]:
    return {"ok": True, "stats": get_conversation_stats()}


@router.get("/conversations/{conversation_id}")
def conversation_detail(conversation_id: str) -> dict[str, Any]:
    conversation = get_conversation_detail(conversation_id)
    if conversation is None:
        raise HTTPException(status_code=404, detail=f"Conversation not found: {conversation_id}")
    return {"ok": True, "conversation": conversation}


@router.get("/leaderboard")
def leaderboard() -> dict[str, Any]:
    return {"ok": True, "leaderboard": get_leaderboard()}


@router.get("/ending-probability")
def ending_probability(
    message_count: int = Query(ge=0, le=1000),
    conversation_type: str = Query(pattern=CONVERSATION_TYPE_PATTERN),
    is_recruiter: bool = Query(default=False),
) -> dict[str, Any]:
    return {
        "ok": True,
        "message_count": message_count,
        "conversation_type": conversation_type,
        "is_recruiter": is_recruiter,
        "probability": calculate_ending_probability(message_count, conversation_type, is_recruiter),
        "force_end_at": force_end_limit(conversation_type),
    }


@router.post("/runtime/start")
def start_runtime(req: RuntimeStartRequest) -> dict[str, Any]:
    started = start_fair_runtime_scheduler(tick_interval_ms=req.tick_interval_ms)
    return {"ok": True, "started": started, "scheduler": fair_runtime_scheduler_status()}


@router.post("/runtime/stop")
def stop_runtime() -> dict[str, Any]:
    stopped = stop_fair_runtime_scheduler()
    return {"ok": True, "stopped": stopped, "scheduler": fair_runtime_scheduler_status()}


@router.get("/runtime/status")
def runtime_status() -> dict[str, Any]:
    return {"ok": True, "scheduler": fair_runtime_scheduler_status()}

from __future__ import annotations

from dataclasses import asdict
from threading import Lock
from typing import Any

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from arcadesim.core.config.settings import settings
from arcadesim.core.session.assembly import SessionHandle, build_session
from arcadesim.core.session.spec import GameKind, SessionSpec

log = structlog.get_logger()

router = APIRouter(tags=["sessions"])

# Live handles in this process only (dev-mode)
_live_lock = Lock()
_live: dict[str, SessionHandle] = {}


# =========================
# Schemas
# =========================

class CreateSessionResponse(BaseModel):
    session_id: str
    game: GameKind
    actions: list[str]


class AdvanceRequest(BaseModel):
    elapsed_ms: float = Field(..., ge=0, le=600_000, description="Host time to advance the session clock by")


class SessionResultResponse(BaseModel):
    game: str
    session_id: str
    generation: int
    score: int
    tokens_earned: int
    high_score: int
    new_high_score: bool
    reason: str


class SessionResultsResponse(BaseModel):
    results: list[SessionResultResponse]
    total_tokens: int


# =========================
# Helpers
# =========================

def _get(session_id: str) -> SessionHandle:
    with _live_lock:
        handle = _live.get(session_id)
    if handle is None:
        raise HTTPException(status_code=404, detail="session not found")
    return handle


def _snapshot(handle: SessionHandle) -> dict[str, Any]:
    return asdict(handle.snapshot())


# =========================
# Routes
# =========================

@router.post("/sessions", response_model=CreateSessionResponse)
def create_session(spec: SessionSpec) -> CreateSessionResponse:
    if spec.seed is None and settings.default_seed is not None:
        spec = spec.model_copy(update={"seed": settings.default_seed})

    with _live_lock:
        if len(_live) >= settings.max_live_sessions:
            raise HTTPException(status_code=409, detail="too many live sessions")

        handle = build_session(
            spec=spec,
            record_dir=settings.record_dir,
            runner_frame_interval_ms=settings.runner_frame_interval_ms,
        )
        _live[handle.session_id] = handle

    return CreateSessionResponse(
        session_id=handle.session_id,
        game=spec.game,
        actions=sorted(handle.engine.actions()),
    )


@router.post("/sessions/{session_id}/start")
def start_session(session_id: str) -> dict[str, Any]:
    handle = _get(session_id)
    handle.start()
    return _snapshot(handle)


@router.post("/sessions/{session_id}/advance")
def advance_session(session_id: str, payload: AdvanceRequest) -> dict[str, Any]:
    handle = _get(session_id)
    handle.advance(payload.elapsed_ms)
    return _snapshot(handle)


@router.post("/sessions/{session_id}/actions/{action}")
def act(session_id: str, action: str) -> dict[str, Any]:
    handle = _get(session_id)
    if not handle.act(action):
        raise HTTPException(status_code=409, detail=f"action {action!r} not offered by {handle.game}")
    return _snapshot(handle)


@router.get("/sessions/{session_id}")
def get_session(session_id: str) -> dict[str, Any]:
    return _snapshot(_get(session_id))


@router.get("/sessions/{session_id}/results", response_model=SessionResultsResponse)
def get_results(session_id: str) -> SessionResultsResponse:
    handle = _get(session_id)
    results = handle.results()
    return SessionResultsResponse(
        results=[SessionResultResponse(**asdict(r)) for r in results],
        total_tokens=sum(r.tokens_earned for r in results),
    )


@router.delete("/sessions/{session_id}", status_code=204)
def delete_session(session_id: str) -> None:
    with _live_lock:
        handle = _live.pop(session_id, None)
    if handle is None:
        raise HTTPException(status_code=404, detail="session not found")
    handle.close()
    log.info("session.deleted", session_id=session_id)


def close_all_sessions() -> int:
    """
    Tear down every live handle. Called when the host shuts down.
    """
    with _live_lock:
        handles = list(_live.values())
        _live.clear()
    for handle in handles:
        handle.close()
    if handles:
        log.info("sessions.closed", count=len(handles))
    return len(handles)

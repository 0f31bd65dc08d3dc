"""FastAPI application — a thin HTTP wrapper around :class:`SessionManager`.

Endpoints
- ``GET  /health``
- ``POST /sessions/{id}/text | /voice | /biometric``  feed one input
- ``POST /sessions/{id}/transition``                  manual step-down
- ``GET  /sessions/{id}/mood | /safety | /plan | /parameters | /history``
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException

from mood_garden.api.schemas import (
    BiometricRequest,
    ProcessResponse,
    TextRequest,
    TransitionRequest,
    VoiceRequest,
)
from mood_garden.config import get_settings
from mood_garden.errors import NoInputData, UnknownSession
from mood_garden.generative.companions import Archetype, UserPreferences
from mood_garden.models import BiometricInput, RawInput, TextInput, VoiceInput
from mood_garden.sessions.manager import SessionManager

logger = structlog.get_logger(__name__)

# ── Shared state (initialised in lifespan) ────────────────────

_manager: SessionManager | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hooks."""
    global _manager

    _manager = SessionManager(get_settings())
    logger.info("server.started")

    yield

    await _manager.close_all()
    _manager = None
    logger.info("server.stopped")


app = FastAPI(
    title="Mood Garden Engine",
    description="Multimodal mood fusion with adaptive safety escalation.",
    version="0.1.0",
    lifespan=lifespan,
)


def _get_manager() -> SessionManager:
    if _manager is None:
        raise HTTPException(status_code=503, detail="Engine not started")
    return _manager


async def _feed(session_id: str, raw: RawInput) -> ProcessResponse:
    result = await _get_manager().submit(session_id, raw)
    return ProcessResponse.from_result(session_id, result)


# ── Health ────────────────────────────────────────────────────


@app.get("/health")
async def health() -> dict[str, Any]:
    manager = _get_manager()
    return {"status": "ok", "sessions": len(manager.session_ids)}


# ── Input ─────────────────────────────────────────────────────


@app.post("/sessions/{session_id}/text", response_model=ProcessResponse)
async def post_text(session_id: str, body: TextRequest) -> ProcessResponse:
    return await _feed(session_id, TextInput(text=body.text, emotions=body.emotions))


@app.post("/sessions/{session_id}/voice", response_model=ProcessResponse)
async def post_voice(session_id: str, body: VoiceRequest) -> ProcessResponse:
    return await _feed(
        session_id,
        VoiceInput(transcript=body.transcript, vocal_features=body.vocal_features, emotions=body.emotions),
    )


@app.post("/sessions/{session_id}/biometric", response_model=ProcessResponse)
async def post_biometric(session_id: str, body: BiometricRequest) -> ProcessResponse:
    return await _feed(
        session_id,
        BiometricInput(
            heart_rate=body.heart_rate,
            heart_rate_variability=body.heart_rate_variability,
            breathing_rate=body.breathing_rate,
        ),
    )


@app.post("/sessions/{session_id}/transition", response_model=ProcessResponse)
async def post_transition(session_id: str, body: TransitionRequest) -> ProcessResponse:
    try:
        result = await _get_manager().request_transition(session_id, body.level, body.reason)
    except UnknownSession:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
    return ProcessResponse.from_result(session_id, result)


# ── Queries ───────────────────────────────────────────────────


@app.get("/sessions/{session_id}/mood")
async def get_mood(session_id: str) -> dict[str, Any]:
    try:
        state = _get_manager().get_fused_mood_state(session_id)
    except UnknownSession:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
    except NoInputData as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return state.model_dump(mode="json")


@app.get("/sessions/{session_id}/safety")
async def get_safety(session_id: str) -> dict[str, Any]:
    try:
        return _get_manager().get_safety_level(session_id).model_dump(mode="json")
    except UnknownSession:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")


@app.get("/sessions/{session_id}/plan")
async def get_plan(session_id: str) -> dict[str, Any]:
    try:
        return _get_manager().get_support_plan(session_id).model_dump(mode="json")
    except UnknownSession:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")


@app.get("/sessions/{session_id}/parameters")
async def get_parameters(session_id: str, archetype: Archetype | None = None) -> dict[str, Any]:
    preferences = UserPreferences(preferred_archetype=archetype)
    try:
        params = _get_manager().get_generative_parameters(session_id, preferences)
    except UnknownSession:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")
    except NoInputData as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return params.model_dump(mode="json")


@app.get("/sessions/{session_id}/history")
async def get_history(session_id: str) -> dict[str, Any]:
    try:
        return _get_manager().get_history_summary(session_id).model_dump()
    except UnknownSession:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}")

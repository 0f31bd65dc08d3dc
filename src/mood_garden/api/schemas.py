"""Request / response models for the HTTP surface."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from mood_garden.models import SafetyLevel, VocalFeatures
from mood_garden.safety.interventions import GroundingResource, SupportPlan
from mood_garden.sessions.session import ProcessResult


class TextRequest(BaseModel):
    text: str
    emotions: dict[str, float] = {}


class VoiceRequest(BaseModel):
    transcript: str
    vocal_features: VocalFeatures = VocalFeatures()
    emotions: dict[str, float] = {}


class BiometricRequest(BaseModel):
    heart_rate: float
    heart_rate_variability: float
    breathing_rate: float


class TransitionRequest(BaseModel):
    level: SafetyLevel
    reason: str = "manual recovery"


class ProcessResponse(BaseModel):
    session_id: str
    level: SafetyLevel
    state_id: str | None = None
    valence: float | None = None
    stress: float | None = None
    confidence: float | None = None
    sources: list[str] = []
    event: dict[str, Any] | None = None
    warnings: list[str] = []
    plan: SupportPlan
    fallback: GroundingResource | None = None
    escalation_failure: str | None = None

    @classmethod
    def from_result(cls, session_id: str, result: ProcessResult) -> ProcessResponse:
        state = result.state
        return cls(
            session_id=session_id,
            level=result.level,
            state_id=state.id if state else None,
            valence=state.valence if state else None,
            stress=state.stress if state else None,
            confidence=state.confidence if state else None,
            sources=sorted(s.value for s in state.sources) if state else [],
            event=result.event.to_payload() if result.event else None,
            warnings=result.warnings,
            plan=result.plan,
            fallback=result.fallback,
            escalation_failure=result.escalation_failure,
        )

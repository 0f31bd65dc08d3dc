"""Supportive interventions owed at each safety level."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from mood_garden.models import SafetyLevel
from mood_garden.safety.triggers import EXTREME_STRESS, PANIC_INDICATORS


class GroundingResource(BaseModel):
    """A static, on-device exercise that needs no network to deliver."""

    model_config = ConfigDict(frozen=True)

    name: str
    technique: str
    instructions: tuple[str, ...]
    duration_seconds: int
    effectiveness: float = Field(ge=0.0, le=1.0)


class BreathingGuidance(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern: str
    duration_seconds: int
    reason: str


class MonitoringAdjustment(BaseModel):
    model_config = ConfigDict(frozen=True)

    frequency_multiplier: int
    extension_seconds: int


class SupportPlan(BaseModel):
    """Everything the companion/UI layer should offer at one level."""

    model_config = ConfigDict(frozen=True)

    level: SafetyLevel
    recommendations: tuple[str, ...]
    monitoring: MonitoringAdjustment
    breathing: BreathingGuidance | None = None
    grounding: GroundingResource | None = None


GROUNDING_54321 = GroundingResource(
    name="5-4-3-2-1 Grounding",
    technique="sensory_grounding",
    instructions=(
        "Name 5 things you can see",
        "Name 4 things you can touch",
        "Name 3 things you can hear",
        "Name 2 things you can smell",
        "Name 1 thing you can taste",
    ),
    duration_seconds=300,
    effectiveness=0.85,
)

# Shown on device when an emergency notification could not be delivered.
GROUNDING_FALLBACK = GROUNDING_54321

_RECOMMENDATIONS: dict[SafetyLevel, tuple[str, ...]] = {
    SafetyLevel.CRISIS: (
        "immediate_grounding",
        "professional_support",
        "emergency_contacts",
    ),
    SafetyLevel.ALERT: (
        "coping_strategies",
        "increased_monitoring",
        "support_system_activation",
    ),
    SafetyLevel.CONCERNING: (
        "grounding_practice",
        "check_in",
        "self_care_reminder",
    ),
    SafetyLevel.SAFE: ("continue_current_activities",),
}

_MONITORING: dict[SafetyLevel, MonitoringAdjustment] = {
    SafetyLevel.CRISIS: MonitoringAdjustment(frequency_multiplier=3, extension_seconds=3600),
    SafetyLevel.ALERT: MonitoringAdjustment(frequency_multiplier=2, extension_seconds=1800),
    SafetyLevel.CONCERNING: MonitoringAdjustment(frequency_multiplier=1, extension_seconds=0),
    SafetyLevel.SAFE: MonitoringAdjustment(frequency_multiplier=1, extension_seconds=0),
}


def breathing_guidance(level: SafetyLevel, triggers: Iterable[str]) -> BreathingGuidance | None:
    """4-7-8 breathing for panic, box breathing for extreme stress."""
    active = set(triggers)
    if PANIC_INDICATORS in active:
        long_session = level in (SafetyLevel.ALERT, SafetyLevel.CRISIS)
        return BreathingGuidance(
            pattern="4-7-8",
            duration_seconds=600 if long_session else 300,
            reason=PANIC_INDICATORS,
        )
    if EXTREME_STRESS in active:
        return BreathingGuidance(pattern="box_breathing", duration_seconds=300, reason=EXTREME_STRESS)
    return None


def support_plan(level: SafetyLevel, triggers: Iterable[str] = ()) -> SupportPlan:
    """Build the :class:`SupportPlan` for *level* and its active *triggers*."""
    active = frozenset(triggers)
    return SupportPlan(
        level=level,
        recommendations=_RECOMMENDATIONS[level],
        monitoring=_MONITORING[level],
        breathing=breathing_guidance(level, active),
        grounding=GROUNDING_54321 if level != SafetyLevel.SAFE else None,
    )

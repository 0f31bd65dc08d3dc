"""Adaptive weather selection.

The family is picked from stress and heart-rate variability; within a
family the concrete weather type is the highest-weighted candidate, so
the same mood always yields the same sky.

============== ================== ===========================
family         condition          intensity band
============== ================== ===========================
calming        stress > 0.7 [*]   0.3 + 0.3·stress
energizing     HRV (norm) < 0.3   0.6 .. 1.0, rising as HRV falls
contemplative  sadness > 0.6      0.4 + 0.3·sadness
grounding      otherwise          0.5 + 0.3·(1 − stress)
============== ================== ===========================

[*] the larger of the fused stress and the wearable's own stress score.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from mood_garden.models import Emotion, FusedMoodState

HIGH_STRESS = 0.7
LOW_HRV = 0.3
INTROSPECTIVE_SADNESS = 0.6


class WeatherType(str, Enum):
    SUNNY = "sunny"
    DAWN = "dawn"
    MISTY = "misty"
    RAINY = "rainy"
    DUSK = "dusk"
    CLOUDY = "cloudy"


class WeatherFamily(str, Enum):
    CALMING = "calming"
    ENERGIZING = "energizing"
    CONTEMPLATIVE = "contemplative"
    GROUNDING = "grounding"


class WeatherSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    family: WeatherFamily
    weights: dict[WeatherType, float]
    selected: WeatherType
    intensity: float = Field(ge=0.0, le=1.0)


def _split(first: float, second: float) -> tuple[float, float]:
    """Share of each side; an even split when both are zero."""
    total = first + second
    if total <= 0:
        return 0.5, 0.5
    return first / total, second / total


def select_weather(state: FusedMoodState) -> WeatherSelection:
    stress = state.stress
    sadness = state.emotion(Emotion.SADNESS)
    physiology = state.physiology
    body_stress = physiology.stress_score if physiology is not None else 0.0
    peak_stress = max(stress, body_stress)

    if peak_stress > HIGH_STRESS:
        family = WeatherFamily.CALMING
        misty, rainy = _split(state.anxiety, sadness)
        candidates = {WeatherType.MISTY: misty, WeatherType.RAINY: rainy}
        intensity = 0.3 + peak_stress * 0.3
    elif physiology is not None and physiology.hrv_normalised < LOW_HRV:
        family = WeatherFamily.ENERGIZING
        sunny, dawn = _split(state.emotion(Emotion.JOY), state.emotion(Emotion.ANTICIPATION))
        candidates = {WeatherType.SUNNY: sunny, WeatherType.DAWN: dawn}
        intensity = 0.6 + 0.4 * (LOW_HRV - physiology.hrv_normalised) / LOW_HRV
    elif sadness > INTROSPECTIVE_SADNESS:
        family = WeatherFamily.CONTEMPLATIVE
        dusk, cloudy = _split(sadness, state.emotion(Emotion.FEAR))
        candidates = {WeatherType.DUSK: dusk, WeatherType.CLOUDY: cloudy}
        intensity = 0.4 + 0.3 * sadness
    else:
        family = WeatherFamily.GROUNDING
        candidates = {WeatherType.SUNNY: 1.0}
        intensity = 0.5 + 0.3 * (1.0 - stress)

    weights = {weather: candidates.get(weather, 0.0) for weather in WeatherType}
    return WeatherSelection(
        family=family,
        weights=weights,
        selected=max(WeatherType, key=weights.__getitem__),
        intensity=max(0.0, min(1.0, intensity)),
    )

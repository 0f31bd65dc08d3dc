"""Plant growth traits derived from a single fused mood state."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from mood_garden.models import Emotion, FusedMoodState


class GrowthStage(str, Enum):
    SEED = "seed"
    SPROUT = "sprout"
    SAPLING = "sapling"
    MATURE = "mature"
    FLOWERING = "flowering"


class TherapeuticFramework(str, Enum):
    CBT = "CBT"
    DBT = "DBT"
    ACT = "ACT"
    SOMATIC = "Somatic"
    MINDFULNESS = "Mindfulness"


SPECIES_BY_EMOTION: dict[Emotion, str] = {
    Emotion.JOY: "sunflower_hybrid",
    Emotion.SADNESS: "weeping_willow",
    Emotion.ANGER: "thorned_rose",
    Emotion.FEAR: "protective_pine",
    Emotion.TRUST: "faithful_oak",
    Emotion.DISGUST: "cleansing_sage",
    Emotion.SURPRISE: "bursting_poppy",
    Emotion.ANTICIPATION: "reaching_vine",
}
DEFAULT_SPECIES = "adaptive_fern"

# Growth-stage boundaries on ``height + root_system``.
_STAGE_THRESHOLDS: tuple[tuple[float, GrowthStage], ...] = (
    (0.2, GrowthStage.SEED),
    (0.4, GrowthStage.SPROUT),
    (0.7, GrowthStage.SAPLING),
    (0.9, GrowthStage.MATURE),
)


class HSLColor(BaseModel):
    model_config = ConfigDict(frozen=True)

    hue: float = Field(ge=0.0, lt=360.0)
    saturation: float = Field(ge=0.0, le=1.0)
    lightness: float = Field(ge=0.0, le=1.0)


class ColorProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary: HSLColor
    secondary: HSLColor
    accent: HSLColor


class PlantTraits(BaseModel):
    """Bounded growth parameters for one plant.  Every scalar lies in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    species: str
    height: float = Field(ge=0.0, le=1.0)
    branchiness: float = Field(ge=0.0, le=1.0)
    leaf_density: float = Field(ge=0.0, le=1.0)
    root_system: float = Field(ge=0.0, le=1.0)
    bloom_frequency: float = Field(ge=0.0, le=1.0)
    wind_sensitivity: float = Field(ge=0.0, le=1.0)
    light_seeking: float = Field(ge=0.0, le=1.0)
    color: ColorProfile
    growth_stage: GrowthStage
    framework: TherapeuticFramework


def blend(values: Sequence[float], weights: Sequence[float] | None = None) -> float:
    """Weighted sum of *values* clamped to [0, 1]; equal weights by default."""
    if weights is None:
        weights = [1.0 / len(values)] * len(values)
    return _clamp01(sum(v * w for v, w in zip(values, weights)))


def select_species(state: FusedMoodState) -> str:
    dominant = state.dominant_emotion
    if dominant is None:
        return DEFAULT_SPECIES
    return SPECIES_BY_EMOTION[dominant]


def color_shift(state: FusedMoodState) -> ColorProfile:
    """Emotion-driven HSL palette: warm for joy/anger, cool for sadness."""
    joy = state.emotion(Emotion.JOY)
    sadness = state.emotion(Emotion.SADNESS)
    anger = state.emotion(Emotion.ANGER)
    trust = state.emotion(Emotion.TRUST)

    hue = (joy * 60 + sadness * 240 + anger * 15) % 360
    saturation = _clamp01(trust * 0.8 + 0.2)
    lightness = _clamp01(0.3 + joy * 0.4 - sadness * 0.2)

    return ColorProfile(
        primary=HSLColor(hue=hue, saturation=saturation, lightness=lightness),
        secondary=HSLColor(
            hue=(hue + 120) % 360,
            saturation=_clamp01(saturation * 0.7),
            lightness=_clamp01(lightness * 1.2),
        ),
        accent=HSLColor(
            hue=(hue + 180) % 360,
            saturation=_clamp01(saturation * 1.2),
            lightness=_clamp01(lightness * 0.8),
        ),
    )


def growth_stage(height: float, root_system: float) -> GrowthStage:
    score = height + root_system
    for limit, stage in _STAGE_THRESHOLDS:
        if score < limit:
            return stage
    return GrowthStage.FLOWERING


def therapeutic_framework(state: FusedMoodState) -> TherapeuticFramework:
    """Pick the framework the plant's reflection prompts follow.

    A body that is physiologically aroused gets somatic work even when
    the fused emotions read calm.
    """
    if state.anxiety > 0.7:
        return TherapeuticFramework.CBT
    if state.stress > 0.8:
        return TherapeuticFramework.DBT
    if state.emotion(Emotion.SADNESS) > 0.6:
        return TherapeuticFramework.ACT
    body_arousal = state.physiology.arousal if state.physiology is not None else 0.0
    if max(state.arousal, body_arousal) > 0.8:
        return TherapeuticFramework.SOMATIC
    return TherapeuticFramework.MINDFULNESS


def plant_traits(state: FusedMoodState) -> PlantTraits:
    """Blend species baselines with the current mood.

    The history-dependent maturity term is fixed at 0 so the result only
    depends on *state*.
    """
    e = state.emotions
    joy, trust = e[Emotion.JOY], e[Emotion.TRUST]
    anticipation = e[Emotion.ANTICIPATION]
    maturity = 0.0

    height = blend([0.5, (joy + trust) / 2, maturity])
    root_system = blend([0.5, trust, 1.0 - state.stress])

    return PlantTraits(
        species=select_species(state),
        height=height,
        branchiness=blend([0.5, anticipation, _clamp01(trust + anticipation)]),
        leaf_density=blend([0.5, 1.0 - state.stress, joy]),
        root_system=root_system,
        bloom_frequency=blend([0.3, joy, joy]),
        wind_sensitivity=state.anxiety,
        light_seeking=joy,
        color=color_shift(state),
        growth_stage=growth_stage(height, root_system),
        framework=therapeutic_framework(state),
    )


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))

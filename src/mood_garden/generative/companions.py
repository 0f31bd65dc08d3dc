"""Companion catalogue and fit scoring."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from mood_garden.generative.biomes import Biome
from mood_garden.models import Emotion, FusedMoodState

BIOME_MATCH = 0.3
SPECIALTY_MATCH = 0.4
ARCHETYPE_BONUS = 0.2
PREFERENCE_BONUS = 0.1


class Archetype(str, Enum):
    WISE_GUIDE = "wise_guide"
    NURTURING_HEALER = "nurturing_healer"
    PLAYFUL_SPIRIT = "playful_spirit"
    CALM_GUARDIAN = "calm_guardian"
    CREATIVE_MUSE = "creative_muse"


class CompanionProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    archetype: Archetype
    preferred_biomes: frozenset[Biome]
    specialty_emotions: frozenset[Emotion]


class UserPreferences(BaseModel):
    model_config = ConfigDict(frozen=True)

    preferred_archetype: Archetype | None = None


COMPANIONS: tuple[CompanionProfile, ...] = (
    CompanionProfile(
        archetype=Archetype.WISE_GUIDE,
        preferred_biomes=frozenset({Biome.MOUNTAIN_SANCTUARY, Biome.ENCHANTED_FOREST, Biome.ARCTIC_AURORA}),
        specialty_emotions=frozenset({Emotion.FEAR, Emotion.ANTICIPATION}),
    ),
    CompanionProfile(
        archetype=Archetype.NURTURING_HEALER,
        preferred_biomes=frozenset({Biome.TRANQUIL_OCEAN, Biome.ENCHANTED_FOREST, Biome.GOLDEN_SAVANNA}),
        specialty_emotions=frozenset({Emotion.SADNESS, Emotion.DISGUST}),
    ),
    CompanionProfile(
        archetype=Archetype.PLAYFUL_SPIRIT,
        preferred_biomes=frozenset({Biome.MYSTIC_REALM, Biome.GOLDEN_SAVANNA, Biome.ENCHANTED_FOREST}),
        specialty_emotions=frozenset({Emotion.JOY}),
    ),
    CompanionProfile(
        archetype=Archetype.CALM_GUARDIAN,
        preferred_biomes=frozenset({Biome.MOUNTAIN_SANCTUARY, Biome.HEALING_DESERT, Biome.ARCTIC_AURORA}),
        specialty_emotions=frozenset({Emotion.ANGER, Emotion.TRUST}),
    ),
    CompanionProfile(
        archetype=Archetype.CREATIVE_MUSE,
        preferred_biomes=frozenset({Biome.MYSTIC_REALM, Biome.GOLDEN_SAVANNA, Biome.TRANQUIL_OCEAN}),
        specialty_emotions=frozenset({Emotion.SURPRISE}),
    ),
)


def _archetype_bonus(archetype: Archetype, state: FusedMoodState) -> float:
    if archetype is Archetype.CALM_GUARDIAN and state.stress > 0.7:
        return ARCHETYPE_BONUS
    if archetype is Archetype.NURTURING_HEALER and state.emotion(Emotion.SADNESS) > 0.6:
        return ARCHETYPE_BONUS
    if archetype is Archetype.PLAYFUL_SPIRIT and state.emotion(Emotion.JOY) < 0.3:
        return ARCHETYPE_BONUS
    return 0.0


def companion_fit(
    companion: CompanionProfile,
    state: FusedMoodState,
    biome: Biome,
    preferences: UserPreferences | None = None,
) -> float:
    """Fit in [0, 1]: biome 0.3 + specialty 0.4 + archetype 0.2 + preference 0.1."""
    score = 0.0
    if biome in companion.preferred_biomes:
        score += BIOME_MATCH
    if state.dominant_emotion in companion.specialty_emotions:
        score += SPECIALTY_MATCH
    score += _archetype_bonus(companion.archetype, state)
    if preferences is not None and preferences.preferred_archetype is companion.archetype:
        score += PREFERENCE_BONUS
    return min(1.0, score)


def companion_scores(
    state: FusedMoodState,
    biome: Biome,
    preferences: UserPreferences | None = None,
) -> dict[Archetype, float]:
    return {c.archetype: companion_fit(c, state, biome, preferences) for c in COMPANIONS}

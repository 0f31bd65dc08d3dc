"""Biome catalogue and mood-compatibility scoring."""

from __future__ import annotations

from enum import Enum

from mood_garden.models import Emotion, FusedMoodState


class Biome(str, Enum):
    ENCHANTED_FOREST = "enchanted_forest"
    HEALING_DESERT = "healing_desert"
    TRANQUIL_OCEAN = "tranquil_ocean"
    MOUNTAIN_SANCTUARY = "mountain_sanctuary"
    ARCTIC_AURORA = "arctic_aurora"
    GOLDEN_SAVANNA = "golden_savanna"
    MYSTIC_REALM = "mystic_realm"


# Compatibility against [sadness, anxiety, anger, joy, peaceful].
MOOD_COMPATIBILITY: dict[Biome, tuple[float, float, float, float, float]] = {
    Biome.ENCHANTED_FOREST: (0.8, 0.9, 0.7, 0.6, 0.8),
    Biome.HEALING_DESERT: (0.6, 0.7, 0.9, 0.8, 0.7),
    Biome.TRANQUIL_OCEAN: (0.9, 0.8, 0.6, 0.7, 0.9),
    Biome.MOUNTAIN_SANCTUARY: (0.7, 0.6, 0.8, 0.9, 0.8),
    Biome.ARCTIC_AURORA: (0.8, 0.7, 0.5, 0.6, 0.9),
    Biome.GOLDEN_SAVANNA: (0.6, 0.8, 0.7, 0.9, 0.7),
    Biome.MYSTIC_REALM: (0.7, 0.8, 0.6, 0.8, 0.8),
}

STATE_DIMENSIONS = 5


def user_state_vector(state: FusedMoodState) -> tuple[float, float, float, float, float]:
    peaceful = 0.3 if state.stress > 0.5 else 0.8
    return (
        state.emotion(Emotion.SADNESS),
        state.anxiety,
        state.emotion(Emotion.ANGER),
        state.emotion(Emotion.JOY),
        peaceful,
    )


def biome_score(state: FusedMoodState, biome: Biome) -> float:
    """Dot product of the user-state vector and the biome's compatibility, over 5."""
    user = user_state_vector(state)
    return sum(u * c for u, c in zip(user, MOOD_COMPATIBILITY[biome])) / STATE_DIMENSIONS


def biome_scores(state: FusedMoodState) -> dict[Biome, float]:
    return {biome: biome_score(state, biome) for biome in Biome}


def best_biome(scores: dict[Biome, float]) -> Biome:
    """Highest score wins; ties go to catalogue order."""
    return max(Biome, key=scores.__getitem__)

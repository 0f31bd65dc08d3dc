"""Parameter mapper: one fused mood state in, generative parameters out.

Pure and deterministic: no history, no safety state and no randomness are
consulted, so equal inputs give equal outputs.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from mood_garden.generative.biomes import Biome, best_biome, biome_scores
from mood_garden.generative.companions import Archetype, UserPreferences, companion_scores
from mood_garden.generative.plants import PlantTraits, plant_traits
from mood_garden.generative.weather import WeatherSelection, select_weather
from mood_garden.models import FusedMoodState


class GenerativeParameters(BaseModel):
    """Bounded outputs consumed by rendering and content generation."""

    model_config = ConfigDict(frozen=True)

    state_id: str
    plant: PlantTraits
    biome_scores: dict[Biome, float]
    biome: Biome
    weather: WeatherSelection
    companion_scores: dict[Archetype, float]
    companion: Archetype


class ParameterMapper:
    """Stateless façade over the plant, biome, weather and companion mappers."""

    def map(
        self,
        state: FusedMoodState,
        preferences: UserPreferences | None = None,
    ) -> GenerativeParameters:
        biomes = biome_scores(state)
        biome = best_biome(biomes)
        companions = companion_scores(state, biome, preferences)
        return GenerativeParameters(
            state_id=state.id,
            plant=plant_traits(state),
            biome_scores=biomes,
            biome=biome,
            weather=select_weather(state),
            companion_scores=companions,
            companion=max(Archetype, key=companions.__getitem__),
        )

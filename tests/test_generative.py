"""Tests for the deterministic parameter mapper."""

import pytest
from conftest import make_state

from mood_garden.generative.biomes import Biome, best_biome, biome_score, biome_scores, user_state_vector
from mood_garden.generative.companions import Archetype, UserPreferences, companion_scores
from mood_garden.generative.mapper import ParameterMapper
from mood_garden.generative.plants import (
    DEFAULT_SPECIES,
    GrowthStage,
    TherapeuticFramework,
    blend,
    color_shift,
    growth_stage,
    plant_traits,
    therapeutic_framework,
)
from mood_garden.generative.weather import WeatherFamily, WeatherType, select_weather
from mood_garden.models import PhysiologySnapshot


def physiology(hrv: float, *, stress: float = 0.3, arousal: float = 0.3) -> PhysiologySnapshot:
    return PhysiologySnapshot(
        heart_rate=72,
        heart_rate_variability=hrv,
        breathing_rate=14,
        stress_score=stress,
        arousal=arousal,
    )


@pytest.fixture
def mapper() -> ParameterMapper:
    return ParameterMapper()


class TestParameterMapper:
    def test_pure_and_deterministic(self, mapper):
        state = make_state(physiology=physiology(45), joy=0.4, fear=0.5, trust=0.2, anticipation=0.3)
        assert mapper.map(state) == mapper.map(state)
        assert mapper.map(state).model_dump() == mapper.map(state).model_dump()

    @pytest.mark.parametrize(
        "emotions",
        [
            {},
            {"joy": 1.0, "trust": 1.0, "anticipation": 1.0},
            {"fear": 1.0, "anger": 1.0, "disgust": 1.0, "sadness": 1.0},
            {"surprise": 0.7, "sadness": 0.65},
        ],
    )
    def test_outputs_are_bounded(self, mapper, emotions):
        params = mapper.map(make_state(physiology=physiology(10), **emotions))
        plant = params.plant
        for value in (
            plant.height, plant.branchiness, plant.leaf_density, plant.root_system,
            plant.bloom_frequency, plant.wind_sensitivity, plant.light_seeking,
        ):
            assert 0.0 <= value <= 1.0
        assert all(0.0 <= s <= 1.0 for s in params.biome_scores.values())
        assert all(0.0 <= s <= 1.0 for s in params.companion_scores.values())
        assert 0.0 <= params.weather.intensity <= 1.0
        assert sum(params.weather.weights.values()) == pytest.approx(1.0)

    def test_state_id_is_carried(self, mapper):
        state = make_state(joy=0.5)
        assert mapper.map(state).state_id == state.id


class TestPlants:
    def test_species_follows_dominant_emotion(self):
        assert plant_traits(make_state(joy=0.9, sadness=0.2)).species == "sunflower_hybrid"
        assert plant_traits(make_state(fear=0.6)).species == "protective_pine"

    def test_neutral_state_gets_default_species(self):
        assert plant_traits(make_state()).species == DEFAULT_SPECIES

    def test_blend_defaults_to_equal_weights(self):
        assert blend([0.3, 0.6, 0.9]) == pytest.approx(0.6)
        assert blend([1.0, 1.0], [0.8, 0.8]) == 1.0

    def test_joyful_color(self):
        color = color_shift(make_state(joy=1.0))
        assert color.primary.hue == pytest.approx(60.0)
        assert color.primary.saturation == pytest.approx(0.2)
        assert color.primary.lightness == pytest.approx(0.7)
        assert color.accent.hue == pytest.approx(240.0)

    def test_growth_stages(self):
        assert growth_stage(0.05, 0.1) == GrowthStage.SEED
        assert growth_stage(0.2, 0.1) == GrowthStage.SPROUT
        assert growth_stage(0.3, 0.3) == GrowthStage.SAPLING
        assert growth_stage(0.4, 0.4) == GrowthStage.MATURE
        assert growth_stage(0.5, 0.5) == GrowthStage.FLOWERING

    @pytest.mark.parametrize(
        "emotions, framework",
        [
            ({"fear": 0.8}, TherapeuticFramework.CBT),
            ({"sadness": 0.7}, TherapeuticFramework.ACT),
            ({"surprise": 1.0, "anticipation": 1.0, "fear": 0.5}, TherapeuticFramework.SOMATIC),
            ({"joy": 0.5}, TherapeuticFramework.MINDFULNESS),
        ],
    )
    def test_therapeutic_framework(self, emotions, framework):
        assert therapeutic_framework(make_state(**emotions)) == framework

    def test_aroused_body_gets_somatic_framework(self):
        state = make_state(physiology=physiology(60, arousal=0.9), joy=0.4)
        assert state.arousal < 0.8
        assert therapeutic_framework(state) == TherapeuticFramework.SOMATIC


class TestBiomes:
    def test_score_is_dot_product_over_five(self):
        state = make_state(sadness=1.0)
        # user vector [1, 0, 0, 0, 0.8] against tranquil_ocean [0.9, 0.8, 0.6, 0.7, 0.9]
        assert biome_score(state, Biome.TRANQUIL_OCEAN) == pytest.approx((0.9 + 0.72) / 5)

    def test_sad_state_prefers_ocean(self):
        assert best_biome(biome_scores(make_state(sadness=1.0))) == Biome.TRANQUIL_OCEAN

    def test_stress_lowers_peacefulness(self):
        assert user_state_vector(make_state(joy=0.5))[4] == 0.8
        assert user_state_vector(make_state(fear=0.8, anger=0.8))[4] == 0.3


class TestWeather:
    def test_high_stress_is_calming(self):
        selection = select_weather(make_state(fear=1.0, anger=1.0, disgust=1.0))
        assert selection.family == WeatherFamily.CALMING
        assert selection.selected == WeatherType.MISTY
        assert selection.intensity == pytest.approx(0.6)

    def test_body_stress_is_calming(self):
        selection = select_weather(make_state(physiology=physiology(70, stress=0.85), joy=0.4))
        assert selection.family == WeatherFamily.CALMING
        assert selection.selected == WeatherType.MISTY
        assert selection.intensity == pytest.approx(0.3 + 0.3 * 0.85)

    def test_calming_intensity_band(self):
        selection = select_weather(make_state(fear=0.8, anger=0.8, disgust=0.6))
        assert 0.3 <= selection.intensity <= 0.6

    def test_low_hrv_is_energizing(self):
        selection = select_weather(make_state(physiology=physiology(20), joy=0.5))
        assert selection.family == WeatherFamily.ENERGIZING
        assert selection.selected == WeatherType.SUNNY
        assert selection.intensity == pytest.approx(0.6 + 0.4 * 0.1 / 0.3)

    def test_sadness_is_contemplative(self):
        selection = select_weather(make_state(sadness=0.8))
        assert selection.family == WeatherFamily.CONTEMPLATIVE
        assert selection.selected == WeatherType.DUSK
        assert selection.intensity == pytest.approx(0.64)

    def test_balanced_is_grounding(self):
        selection = select_weather(make_state(physiology=physiology(70), joy=0.4))
        assert selection.family == WeatherFamily.GROUNDING
        assert selection.selected == WeatherType.SUNNY
        assert selection.intensity == pytest.approx(0.8)

    def test_ties_resolve_in_declaration_order(self):
        selection = select_weather(make_state(physiology=physiology(10)))
        assert selection.weights[WeatherType.SUNNY] == selection.weights[WeatherType.DAWN]
        assert selection.selected == WeatherType.SUNNY


class TestCompanions:
    def test_sad_state_selects_nurturing_healer(self, mapper):
        params = mapper.map(make_state(sadness=0.8))
        assert params.biome == Biome.TRANQUIL_OCEAN
        assert params.companion == Archetype.NURTURING_HEALER
        assert params.companion_scores[Archetype.NURTURING_HEALER] == pytest.approx(0.9)

    def test_preference_bonus(self):
        state = make_state(sadness=0.8)
        base = companion_scores(state, Biome.TRANQUIL_OCEAN)
        preferred = companion_scores(
            state, Biome.TRANQUIL_OCEAN, UserPreferences(preferred_archetype=Archetype.CALM_GUARDIAN),
        )
        assert preferred[Archetype.CALM_GUARDIAN] == pytest.approx(base[Archetype.CALM_GUARDIAN] + 0.1)
        assert preferred[Archetype.NURTURING_HEALER] == base[Archetype.NURTURING_HEALER]

    def test_stress_bonus_for_guardian(self):
        scores = companion_scores(make_state(fear=0.9, anger=1.0, disgust=0.6), Biome.HEALING_DESERT)
        # biome 0.3 + anger/trust specialty 0.4 + stress bonus 0.2
        assert scores[Archetype.CALM_GUARDIAN] == pytest.approx(0.9)

    def test_low_joy_bonus_for_playful_spirit(self):
        scores = companion_scores(make_state(trust=0.5), Biome.HEALING_DESERT)
        assert scores[Archetype.PLAYFUL_SPIRIT] == pytest.approx(0.2)

"""Tests for the input normaliser."""

import math

import pytest

from mood_garden.config import NormalizerConfig
from mood_garden.errors import MissingSourceData
from mood_garden.fusion.normalizer import InputNormalizer, affective_keywords
from mood_garden.models import (
    BiometricInput,
    BiometricSample,
    Emotion,
    SourceType,
    TextInput,
    VocalFeatures,
    VoiceInput,
    VoiceQuality,
)


@pytest.fixture
def normalizer() -> InputNormalizer:
    return InputNormalizer(NormalizerConfig())


class TestTextPath:
    def test_confidence_saturates_at_three_keywords(self, normalizer):
        vector = normalizer.normalize(
            TextInput(text="I feel happy and calm but a bit worried", emotions={"joy": 0.7})
        )
        assert vector.source_type == SourceType.TEXT
        assert vector.confidence == pytest.approx(1.0)

    def test_confidence_scales_with_keywords(self, normalizer):
        vector = normalizer.normalize(TextInput(text="Just tired today", emotions={"sadness": 0.4}))
        assert vector.confidence == pytest.approx(1 / 3)

    def test_no_affective_words_gives_zero_confidence(self, normalizer):
        vector = normalizer.normalize(TextInput(text="the weather report", emotions={"joy": 0.5}))
        assert vector.confidence == 0.0
        assert vector.emotions == {Emotion.JOY: 0.5}

    def test_out_of_range_scores_are_clamped_and_flagged(self, normalizer):
        vector = normalizer.normalize(
            TextInput(text="so happy", emotions={"joy": 1.4, "sadness": -0.2})
        )
        assert vector.emotions[Emotion.JOY] == 1.0
        assert vector.emotions[Emotion.SADNESS] == 0.0
        assert set(vector.warnings) == {"joy", "sadness"}

    def test_unreported_emotions_are_absent(self, normalizer):
        vector = normalizer.normalize(TextInput(text="happy", emotions={"joy": 0.9}))
        assert Emotion.FEAR not in vector.emotions

    def test_nan_score_is_dropped(self, normalizer):
        vector = normalizer.normalize(
            TextInput(text="scared", emotions={"joy": math.nan, "fear": 0.2})
        )
        assert vector.emotions == {Emotion.FEAR: 0.2}
        assert "joy" in vector.warnings

    def test_unknown_only_raises_missing_source(self, normalizer):
        with pytest.raises(MissingSourceData) as exc_info:
            normalizer.normalize(TextInput(text="blissful", emotions={"bliss": 0.9}))
        assert exc_info.value.source == "text"

    def test_empty_scores_raise_missing_source(self, normalizer):
        with pytest.raises(MissingSourceData):
            normalizer.normalize(TextInput(text="hello"))

    def test_keyword_extraction_is_case_insensitive(self):
        assert affective_keywords("HAPPY happy Sad!") == {"happy", "sad"}


class TestVoicePath:
    def _voice(self, quality: VoiceQuality, pauses: float = 0.1) -> VoiceInput:
        return VoiceInput(
            transcript="I am scared and nervous",
            vocal_features=VocalFeatures(
                pitch_hz=180.0,
                tempo_wpm=140.0,
                pause_frequency=pauses,
                pitch_variability=0.2,
                voice_quality=quality,
            ),
            emotions={"fear": 0.6},
        )

    def test_clear_voice_confidence(self, normalizer):
        vector = normalizer.normalize(self._voice(VoiceQuality.CLEAR))
        # (2/3 lexical + 0.8 pitch stability) / 2
        assert vector.source_type == SourceType.VOICE
        assert vector.confidence == pytest.approx((2 / 3 + 0.8) / 2)

    def test_strained_voice_is_penalised(self, normalizer):
        clear = normalizer.normalize(self._voice(VoiceQuality.CLEAR))
        strained = normalizer.normalize(self._voice(VoiceQuality.STRAINED))
        assert strained.confidence == pytest.approx(clear.confidence * 0.6)

    def test_frequent_pauses_count_as_hesitation(self, normalizer):
        clear = normalizer.normalize(self._voice(VoiceQuality.CLEAR))
        paused = normalizer.normalize(self._voice(VoiceQuality.CLEAR, pauses=0.8))
        assert paused.confidence == pytest.approx(clear.confidence * 0.75)


class TestBiometricPath:
    def test_resting_reading(self, normalizer):
        vector = normalizer.normalize(
            BiometricInput(heart_rate=70, heart_rate_variability=60, breathing_rate=14)
        )
        assert vector.source_type == SourceType.BIOMETRIC
        assert vector.emotions == {Emotion.FEAR: 0.0}
        assert vector.confidence == pytest.approx(0.8)
        assert vector.physiology is not None
        assert vector.physiology.stress_score == pytest.approx(0.2)
        assert vector.physiology.arousal == pytest.approx(0.25)

    def test_elevated_reading_raises_fear(self, normalizer):
        vector = normalizer.normalize(
            BiometricInput(heart_rate=150, heart_rate_variability=20, breathing_rate=30)
        )
        assert vector.emotions[Emotion.FEAR] == pytest.approx(1.0)

    def test_out_of_range_heart_rate_is_clamped(self, normalizer):
        vector = normalizer.normalize(
            BiometricInput(heart_rate=300, heart_rate_variability=60, breathing_rate=14)
        )
        assert vector.physiology.heart_rate == 250
        assert vector.warnings == ("heart_rate",)
        assert vector.confidence == pytest.approx(0.6)

    def test_non_finite_reading_is_missing(self, normalizer):
        with pytest.raises(MissingSourceData):
            normalizer.normalize(
                BiometricInput(heart_rate=math.inf, heart_rate_variability=60, breathing_rate=14)
            )

    def test_stress_score_is_always_derived(self):
        sample = BiometricSample(
            heart_rate=70,
            heart_rate_variability=60,
            breathing_rate=14,
            stress_score=0.99,
        )
        assert sample.stress_score == pytest.approx(0.2)


def test_unsupported_input_type(normalizer):
    with pytest.raises(TypeError):
        normalizer.normalize("just a string")  # type: ignore[arg-type]

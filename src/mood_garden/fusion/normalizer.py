"""Input normalisation — raw text / voice / biometric input → :class:`EmotionVector`.

Each source path produces one vector with an attached confidence:

- **Text**: emotion scores come pre-computed from the sentiment
  collaborator; confidence reflects how many affective keywords the text
  actually contains.
- **Voice**: same scoring, with confidence blended with pitch stability
  and penalised when the voice sounds hesitant or strained.
- **Biometric**: only the emotions physiology can speak to (fear) are
  estimated; everything else is left absent.

Malformed numbers are clamped to their valid range and recorded on the
vector's ``warnings`` instead of rejecting the reading.
"""

from __future__ import annotations

import math
import re

import structlog

from mood_garden.config import NormalizerConfig
from mood_garden.errors import InvalidRange, MissingSourceData
from mood_garden.models import (
    BiometricInput,
    BiometricSample,
    Emotion,
    EmotionVector,
    PhysiologySnapshot,
    RawInput,
    SourceType,
    TextInput,
    VoiceInput,
    VoiceQuality,
)

logger = structlog.get_logger(__name__)

# ── Affective lexicon ─────────────────────────────────────────

AFFECT_LEXICON: dict[str, Emotion] = {
    # joy
    "happy": Emotion.JOY, "glad": Emotion.JOY, "joy": Emotion.JOY, "great": Emotion.JOY,
    "wonderful": Emotion.JOY, "excited": Emotion.JOY, "love": Emotion.JOY, "grateful": Emotion.JOY,
    # sadness
    "sad": Emotion.SADNESS, "down": Emotion.SADNESS, "lonely": Emotion.SADNESS,
    "depressed": Emotion.SADNESS, "cry": Emotion.SADNESS, "hopeless": Emotion.SADNESS,
    "miss": Emotion.SADNESS, "tired": Emotion.SADNESS,
    # anger
    "angry": Emotion.ANGER, "mad": Emotion.ANGER, "furious": Emotion.ANGER,
    "annoyed": Emotion.ANGER, "hate": Emotion.ANGER, "frustrated": Emotion.ANGER,
    # fear
    "afraid": Emotion.FEAR, "scared": Emotion.FEAR, "anxious": Emotion.FEAR,
    "worried": Emotion.FEAR, "nervous": Emotion.FEAR, "panic": Emotion.FEAR,
    "terrified": Emotion.FEAR, "overwhelmed": Emotion.FEAR,
    # trust
    "safe": Emotion.TRUST, "calm": Emotion.TRUST, "trust": Emotion.TRUST,
    "supported": Emotion.TRUST, "peaceful": Emotion.TRUST, "secure": Emotion.TRUST,
    # disgust
    "disgusted": Emotion.DISGUST, "gross": Emotion.DISGUST, "sick": Emotion.DISGUST,
    "awful": Emotion.DISGUST, "ashamed": Emotion.DISGUST,
    # surprise
    "surprised": Emotion.SURPRISE, "shocked": Emotion.SURPRISE, "amazed": Emotion.SURPRISE,
    "unexpected": Emotion.SURPRISE,
    # anticipation
    "hope": Emotion.ANTICIPATION, "hopeful": Emotion.ANTICIPATION,
    "eager": Emotion.ANTICIPATION, "looking": Emotion.ANTICIPATION,
    "waiting": Emotion.ANTICIPATION, "planning": Emotion.ANTICIPATION,
}

_TOKEN_RE = re.compile(r"[a-z']+")

# Physiologically plausible bounds; anything outside is clamped.
_HEART_RATE_RANGE = (20.0, 250.0)
_HRV_RANGE = (0.0, 300.0)
_BREATHING_RANGE = (4.0, 60.0)


def affective_keywords(text: str) -> set[str]:
    """Return the distinct lexicon keywords present in *text*."""
    return {tok for tok in _TOKEN_RE.findall(text.lower()) if tok in AFFECT_LEXICON}


class InputNormalizer:
    """Convert one raw input into a per-source :class:`EmotionVector`."""

    def __init__(self, config: NormalizerConfig | None = None) -> None:
        self._config = config or NormalizerConfig()

    def normalize(self, raw: RawInput) -> EmotionVector:
        """Dispatch on the input type.

        Raises
        ------
        MissingSourceData
            The input carries nothing usable (no scored emotions, or
            non-numeric biometrics).
        """
        if isinstance(raw, TextInput):
            return self.normalize_text(raw)
        if isinstance(raw, VoiceInput):
            return self.normalize_voice(raw)
        if isinstance(raw, BiometricInput):
            return self.normalize_biometric(raw)
        raise TypeError(f"Unsupported input type: {type(raw).__name__}")

    # ── Text ─────────────────────────────────────────────────

    def normalize_text(self, raw: TextInput) -> EmotionVector:
        warnings: list[str] = []
        emotions = self._parse_emotions(raw.emotions, SourceType.TEXT, warnings)
        confidence = self._lexical_confidence(raw.text)
        return EmotionVector(
            source_type=SourceType.TEXT,
            emotions=emotions,
            confidence=confidence,
            warnings=tuple(warnings),
            timestamp=raw.timestamp,
        )

    # ── Voice ────────────────────────────────────────────────

    def normalize_voice(self, raw: VoiceInput) -> EmotionVector:
        warnings: list[str] = []
        emotions = self._parse_emotions(raw.emotions, SourceType.VOICE, warnings)
        features = raw.vocal_features

        variability = _clamp(features.pitch_variability, 0.0, 1.0, "pitch_variability", SourceType.VOICE, warnings)
        pauses = _clamp(features.pause_frequency, 0.0, math.inf, "pause_frequency", SourceType.VOICE, warnings)

        base = (self._lexical_confidence(raw.transcript) + (1.0 - variability)) / 2
        quality = features.voice_quality
        if pauses >= self._config.hesitation_pause_frequency and quality in (
            VoiceQuality.CLEAR, VoiceQuality.BREATHY,
        ):
            quality = VoiceQuality.HESITANT
        penalty = self._config.voice_quality_penalty.get(quality, 1.0)

        return EmotionVector(
            source_type=SourceType.VOICE,
            emotions=emotions,
            confidence=max(0.0, min(1.0, base * penalty)),
            warnings=tuple(warnings),
            timestamp=raw.timestamp,
        )

    # ── Biometric ────────────────────────────────────────────

    def to_sample(self, raw: BiometricInput, warnings: list[str] | None = None) -> BiometricSample:
        """Validate and clamp a raw reading into a :class:`BiometricSample`."""
        sink = warnings if warnings is not None else []
        values = {
            "heart_rate": raw.heart_rate,
            "heart_rate_variability": raw.heart_rate_variability,
            "breathing_rate": raw.breathing_rate,
        }
        for name, value in values.items():
            if not math.isfinite(value):
                raise MissingSourceData(SourceType.BIOMETRIC.value, f"{name} is not a finite number")
        return BiometricSample(
            heart_rate=_clamp(raw.heart_rate, *_HEART_RATE_RANGE, "heart_rate", SourceType.BIOMETRIC, sink),
            heart_rate_variability=_clamp(
                raw.heart_rate_variability, *_HRV_RANGE, "heart_rate_variability", SourceType.BIOMETRIC, sink,
            ),
            breathing_rate=_clamp(raw.breathing_rate, *_BREATHING_RANGE, "breathing_rate", SourceType.BIOMETRIC, sink),
            timestamp=raw.timestamp,
        )

    def normalize_biometric(self, raw: BiometricInput) -> EmotionVector:
        warnings: list[str] = []
        return self.biometric_vector(self.to_sample(raw, warnings), warnings)

    def biometric_vector(self, sample: BiometricSample, warnings: list[str] | None = None) -> EmotionVector:
        """Estimate the physiology-derived emotions from a validated sample.

        *warnings* holds the fields clamped while building the sample; each
        one lowers the vector's confidence.
        """
        warnings = warnings or []

        # Fear only rises once HR and breathing leave the resting band.
        hr_excess = max(0.0, min(1.0, (sample.heart_rate - 90.0) / 60.0))
        br_excess = max(0.0, min(1.0, (sample.breathing_rate - 18.0) / 12.0))
        fear = (hr_excess + br_excess) / 2

        hr_arousal = max(0.0, (sample.heart_rate - 60.0) / 40.0)
        br_arousal = max(0.0, (sample.breathing_rate - 12.0) / 8.0)
        arousal = min(1.0, (hr_arousal + br_arousal) / 2)

        confidence = self._config.biometric_base_confidence - self._config.biometric_clamp_penalty * len(warnings)
        return EmotionVector(
            source_type=SourceType.BIOMETRIC,
            emotions={Emotion.FEAR: fear},
            confidence=max(0.0, min(1.0, confidence)),
            physiology=PhysiologySnapshot(
                heart_rate=sample.heart_rate,
                heart_rate_variability=sample.heart_rate_variability,
                breathing_rate=sample.breathing_rate,
                stress_score=sample.stress_score,
                arousal=arousal,
            ),
            warnings=tuple(warnings),
            timestamp=sample.timestamp,
        )

    # ── Internals ────────────────────────────────────────────

    def _lexical_confidence(self, text: str) -> float:
        hits = len(affective_keywords(text))
        return min(1.0, hits / self._config.text_keyword_saturation)

    @staticmethod
    def _parse_emotions(
        scores: dict[str, float],
        source: SourceType,
        warnings: list[str],
    ) -> dict[Emotion, float]:
        emotions: dict[Emotion, float] = {}
        for key, value in scores.items():
            try:
                emotion = Emotion(key.lower())
            except ValueError:
                logger.warning("normalizer.unknown_emotion", source=source.value, emotion=key)
                continue
            if math.isnan(value):
                logger.warning("normalizer.non_numeric_emotion", source=source.value, emotion=key)
                warnings.append(emotion.value)
                continue
            emotions[emotion] = _clamp(value, 0.0, 1.0, emotion.value, source, warnings)
        if not emotions:
            raise MissingSourceData(source.value, "no scored emotions")
        return emotions


def _clamp(
    value: float,
    lo: float,
    hi: float,
    field: str,
    source: SourceType,
    warnings: list[str],
) -> float:
    """Clamp *value* into ``[lo, hi]``, logging an :class:`InvalidRange` warning."""
    if lo <= value <= hi:
        return value
    clamped = max(lo, min(hi, value))
    warnings.append(field)
    logger.warning(
        "normalizer.value_clamped",
        kind=InvalidRange.__name__,
        source=source.value,
        field=field,
        value=value,
        clamped=clamped,
    )
    return clamped

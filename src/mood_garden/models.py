"""Shared Pydantic models used across the engine."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    computed_field,
    field_validator,
)

# ── Enums ─────────────────────────────────────────────────────


class Emotion(str, Enum):
    """The eight canonical emotions (Plutchik wheel)."""

    JOY = "joy"
    SADNESS = "sadness"
    ANGER = "anger"
    FEAR = "fear"
    TRUST = "trust"
    DISGUST = "disgust"
    SURPRISE = "surprise"
    ANTICIPATION = "anticipation"


CANONICAL_EMOTIONS: tuple[Emotion, ...] = tuple(Emotion)


def _read_only(scores: Mapping[Emotion, float]) -> Mapping[Emotion, float]:
    return MappingProxyType(dict(scores))


def _as_dict(scores: Mapping[Emotion, float]) -> dict[Emotion, float]:
    return dict(scores)


# Per-emotion intensities, exposed read-only after validation.
EmotionScores = Annotated[
    Mapping[Emotion, float],
    AfterValidator(_read_only),
    PlainSerializer(_as_dict, return_type=dict[Emotion, float]),
]


class SourceType(str, Enum):
    """Where an emotional reading came from."""

    TEXT = "text"
    VOICE = "voice"
    BIOMETRIC = "biometric"


class VoiceQuality(str, Enum):
    """Coarse voice-quality label supplied by the transcription collaborator."""

    CLEAR = "clear"
    BREATHY = "breathy"
    HESITANT = "hesitant"
    STRAINED = "strained"


class SafetyLevel(str, Enum):
    """Escalation levels, ordered from least to most severe."""

    SAFE = "safe"
    CONCERNING = "concerning"
    ALERT = "alert"
    CRISIS = "crisis"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)

    def step_down(self) -> SafetyLevel:
        return _LEVEL_ORDER[max(0, self.rank - 1)]


_LEVEL_ORDER = [SafetyLevel.SAFE, SafetyLevel.CONCERNING, SafetyLevel.ALERT, SafetyLevel.CRISIS]


# ── Raw inputs ────────────────────────────────────────────────


class TextInput(BaseModel):
    """Free text plus the emotion scores returned by the sentiment collaborator."""

    text: str
    emotions: dict[str, float] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class VocalFeatures(BaseModel):
    """Prosodic features extracted alongside a transcript."""

    pitch_hz: float = 0.0
    tempo_wpm: float = 0.0
    pause_frequency: float = Field(0.0, description="Pauses per second of speech.")
    pitch_variability: float = Field(0.0, description="Normalised pitch instability [0, 1].")
    voice_quality: VoiceQuality = VoiceQuality.CLEAR


class VoiceInput(BaseModel):
    """A transcribed utterance, its vocal features, and scored emotions."""

    transcript: str
    vocal_features: VocalFeatures = Field(default_factory=VocalFeatures)
    emotions: dict[str, float] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class BiometricInput(BaseModel):
    """A raw physiological reading as pulled from a wearable stream."""

    heart_rate: float
    heart_rate_variability: float
    breathing_rate: float
    timestamp: datetime = Field(default_factory=datetime.utcnow)


RawInput = TextInput | VoiceInput | BiometricInput


# ── Readings ──────────────────────────────────────────────────


class BiometricSample(BaseModel):
    """A validated physiological reading.

    ``stress_score`` is derived from the other fields and cannot be
    supplied by the caller.
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    heart_rate: float = Field(ge=0.0)
    heart_rate_variability: float = Field(ge=0.0)
    breathing_rate: float = Field(ge=0.0)
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def stress_score(self) -> float:
        """Composite stress from low HRV, elevated HR and rapid breathing."""
        factors = [
            1.0 - self.heart_rate_variability / 100.0,
            (self.heart_rate - 60.0) / 100.0,
            (self.breathing_rate - 12.0) / 20.0,
        ]
        return max(0.0, min(1.0, sum(factors) / len(factors)))


class PhysiologySnapshot(BaseModel):
    """Physiological context carried on a fused state for downstream mapping."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    heart_rate: float
    heart_rate_variability: float
    breathing_rate: float
    stress_score: float = Field(ge=0.0, le=1.0)
    arousal: float = Field(ge=0.0, le=1.0)

    @property
    def hrv_normalised(self) -> float:
        """HRV (RMSSD, ms) mapped onto [0, 1] with 100 ms as the ceiling."""
        return max(0.0, min(1.0, self.heart_rate_variability / 100.0))


class EmotionVector(BaseModel):
    """One source's emotional reading.

    Emotions the source cannot estimate are absent from ``emotions``
    rather than zero, so fusion can tell "absent" from "neutral".
    """

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    source_type: SourceType
    emotions: EmotionScores
    confidence: float = Field(ge=0.0, le=1.0)
    physiology: PhysiologySnapshot | None = None
    warnings: tuple[str, ...] = ()
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("emotions")
    @classmethod
    def _check_emotions(cls, v: Mapping[Emotion, float]) -> Mapping[Emotion, float]:
        if not v:
            raise ValueError("an emotion vector must report at least one emotion")
        for emotion, value in v.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{emotion.value}={value} outside [0, 1]")
        return v


class FusedMoodState(BaseModel):
    """Canonical, immutable mood snapshot produced by the fusion engine."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    emotions: EmotionScores
    arousal: float = Field(ge=0.0, le=1.0)
    valence: float = Field(ge=-1.0, le=1.0)
    dominance: float = Field(ge=0.0, le=1.0)
    stress: float = Field(ge=0.0, le=1.0)
    anxiety: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.0, le=1.0)
    sources: frozenset[SourceType]
    missing_sources: frozenset[SourceType] = frozenset()
    physiology: PhysiologySnapshot | None = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("sources")
    @classmethod
    def _non_empty_sources(cls, v: frozenset[SourceType]) -> frozenset[SourceType]:
        if not v:
            raise ValueError("a fused state needs at least one contributing source")
        return v

    @field_validator("emotions")
    @classmethod
    def _all_emotions(cls, v: Mapping[Emotion, float]) -> Mapping[Emotion, float]:
        missing = set(CANONICAL_EMOTIONS) - set(v)
        if missing:
            raise ValueError(f"missing emotions: {sorted(e.value for e in missing)}")
        return v

    def emotion(self, emotion: Emotion) -> float:
        return self.emotions[emotion]

    @property
    def dominant_emotion(self) -> Emotion | None:
        """Strongest emotion, ``None`` when every intensity is zero.

        Ties resolve to canonical order so the result is deterministic.
        """
        best: Emotion | None = None
        best_value = 0.0
        for emotion in CANONICAL_EMOTIONS:
            value = self.emotions[emotion]
            if value > best_value:
                best, best_value = emotion, value
        return best


# ── Safety ────────────────────────────────────────────────────


class SafetyProtocolState(BaseModel):
    """Immutable snapshot of a session's escalation state."""

    model_config = ConfigDict(frozen=True)

    level: SafetyLevel = SafetyLevel.SAFE
    entered_at: datetime = Field(default_factory=datetime.utcnow)
    active_triggers: frozenset[str] = frozenset()
    consecutive_safe_readings: int = Field(0, ge=0)


class SafetyEvent(BaseModel):
    """Emitted on every level transition."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    session_id: str
    from_level: SafetyLevel
    to_level: SafetyLevel
    triggers: frozenset[str] = frozenset()
    reason: str = ""
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_escalation(self) -> bool:
        return self.to_level.rank > self.from_level.rank

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "from": self.from_level.value,
            "to": self.to_level.value,
            "triggers": sorted(self.triggers),
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }

"""Centralised engine settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mood_garden.models import SourceType, VoiceQuality

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


# ── Validated tuning structs ──────────────────────────────────


class FusionWeights(BaseModel):
    """Source reliability weights used by the fusion engine."""

    model_config = ConfigDict(frozen=True)

    text: float = Field(0.4, ge=0.0)
    voice: float = Field(0.4, ge=0.0)
    biometric: float = Field(0.2, ge=0.0)

    @model_validator(mode="after")
    def _positive_total(self) -> FusionWeights:
        if self.text + self.voice + self.biometric <= 0:
            raise ValueError("at least one source weight must be positive")
        return self

    def for_source(self, source: SourceType) -> float:
        return getattr(self, source.value)


class SafetyProtocolConfig(BaseModel):
    """Thresholds and timing for the safety escalation protocol."""

    model_config = ConfigDict(frozen=True)

    concerning_stress: float = Field(0.5, ge=0.0, le=1.0)
    alert_stress: float = Field(0.7, ge=0.0, le=1.0)
    crisis_stress: float = Field(0.9, ge=0.0, le=1.0)

    heart_rate_min: float = Field(40.0, gt=0.0)
    heart_rate_max: float = Field(180.0, gt=0.0)
    elevated_heart_rate: float = 100.0
    rapid_breathing_rate: float = 20.0
    extreme_biometric_stress: float = Field(0.8, ge=0.0, le=1.0)
    panic_anxiety: float = Field(0.6, ge=0.0, le=1.0)

    crisis_trigger_count: int = Field(3, ge=1)
    high_priority_triggers: frozenset[str] = frozenset({"panic_indicators", "extreme_stress"})
    concerning_triggers: frozenset[str] = frozenset(
        {"dissociation_signals", "elevated_heart_rate", "rapid_breathing"}
    )

    deescalation_readings: int = Field(3, ge=1)
    monitoring_window_seconds: float = Field(300.0, gt=0.0)

    @model_validator(mode="after")
    def _ordered_thresholds(self) -> SafetyProtocolConfig:
        if not self.concerning_stress < self.alert_stress < self.crisis_stress:
            raise ValueError("stress thresholds must satisfy concerning < alert < crisis")
        if self.heart_rate_min >= self.heart_rate_max:
            raise ValueError("heart_rate_min must be below heart_rate_max")
        return self


class NormalizerConfig(BaseModel):
    """Confidence modelling parameters for the input normaliser."""

    model_config = ConfigDict(frozen=True)

    # Number of affective keywords that counts as full lexical confidence.
    text_keyword_saturation: int = Field(3, ge=1)
    voice_quality_penalty: dict[VoiceQuality, float] = Field(
        default_factory=lambda: {
            VoiceQuality.CLEAR: 1.0,
            VoiceQuality.BREATHY: 0.9,
            VoiceQuality.HESITANT: 0.75,
            VoiceQuality.STRAINED: 0.6,
        }
    )
    hesitation_pause_frequency: float = Field(0.5, gt=0.0)
    biometric_base_confidence: float = Field(0.8, ge=0.0, le=1.0)
    biometric_clamp_penalty: float = Field(0.2, ge=0.0, le=1.0)


# ── Runtime settings ──────────────────────────────────────────


class Settings(BaseSettings):
    """All runtime configuration for the mood garden engine.

    Values are read from environment variables first, then from a *.env*
    file located at the project root.  Every variable lives in the flat
    namespace (``FUSION_TEXT_WEIGHT``, ``SAFETY_CRISIS_STRESS``, ...).
    """

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Fusion ────────────────────────────────────────────────
    fusion_text_weight: float = 0.4
    fusion_voice_weight: float = 0.4
    fusion_biometric_weight: float = 0.2
    source_max_age_seconds: float = 600.0  # older per-source vectors are dropped

    # ── History ───────────────────────────────────────────────
    history_capacity: int = 100

    # ── Safety protocol ───────────────────────────────────────
    safety_concerning_stress: float = 0.5
    safety_alert_stress: float = 0.7
    safety_crisis_stress: float = 0.9
    safety_heart_rate_min: float = 40.0
    safety_heart_rate_max: float = 180.0
    safety_crisis_trigger_count: int = 3
    safety_deescalation_readings: int = 3
    safety_monitoring_window_seconds: float = 300.0

    # ── Emergency notifications ───────────────────────────────
    webhook_url: str = ""
    webhook_timeout_seconds: float = 10.0
    notifier_max_attempts: int = 5
    notifier_base_delay_seconds: float = 0.5
    notifier_backoff_factor: float = 2.0
    notifier_max_delay_seconds: float = 8.0

    # ── API server ────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ── Builders ──────────────────────────────────────────────

    def fusion_weights(self) -> FusionWeights:
        return FusionWeights(
            text=self.fusion_text_weight,
            voice=self.fusion_voice_weight,
            biometric=self.fusion_biometric_weight,
        )

    def safety_config(self) -> SafetyProtocolConfig:
        return SafetyProtocolConfig(
            concerning_stress=self.safety_concerning_stress,
            alert_stress=self.safety_alert_stress,
            crisis_stress=self.safety_crisis_stress,
            heart_rate_min=self.safety_heart_rate_min,
            heart_rate_max=self.safety_heart_rate_max,
            crisis_trigger_count=self.safety_crisis_trigger_count,
            deescalation_readings=self.safety_deescalation_readings,
            monitoring_window_seconds=self.safety_monitoring_window_seconds,
        )

    def normalizer_config(self) -> NormalizerConfig:
        return NormalizerConfig()


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` instance."""
    return Settings()

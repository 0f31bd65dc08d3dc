"""Tests for settings and the validated tuning structs."""

import pytest
from pydantic import ValidationError

from mood_garden.config import FusionWeights, SafetyProtocolConfig, Settings
from mood_garden.models import SourceType
from mood_garden.sessions.manager import SessionManager


class TestSafetyProtocolConfig:
    def test_defaults_are_ordered(self):
        config = SafetyProtocolConfig()
        assert config.concerning_stress < config.alert_stress < config.crisis_stress

    @pytest.mark.parametrize(
        "thresholds",
        [
            {"concerning_stress": 0.95},
            {"alert_stress": 0.4},
            {"alert_stress": 0.9, "crisis_stress": 0.9},
        ],
    )
    def test_out_of_order_thresholds_are_rejected(self, thresholds):
        with pytest.raises(ValidationError, match="concerning < alert < crisis"):
            SafetyProtocolConfig(**thresholds)

    def test_heart_rate_bounds_must_be_ordered(self):
        with pytest.raises(ValidationError, match="heart_rate_min"):
            SafetyProtocolConfig(heart_rate_min=180.0, heart_rate_max=40.0)


class TestFusionWeights:
    def test_all_zero_weights_are_rejected(self):
        with pytest.raises(ValidationError, match="at least one source weight"):
            FusionWeights(text=0.0, voice=0.0, biometric=0.0)

    def test_negative_weight_is_rejected(self):
        with pytest.raises(ValidationError):
            FusionWeights(text=-0.1)

    def test_single_source_weight_is_enough(self):
        weights = FusionWeights(text=0.0, voice=0.0, biometric=1.0)
        assert weights.for_source(SourceType.BIOMETRIC) == 1.0


class TestSettings:
    def test_builders_carry_env_values(self, settings):
        tuned = Settings(_env_file=None, fusion_text_weight=0.7, safety_deescalation_readings=5)
        assert tuned.fusion_weights().text == 0.7
        assert tuned.safety_config().deescalation_readings == 5
        assert settings.safety_config() == SafetyProtocolConfig()

    def test_manager_rejects_inconsistent_thresholds_at_startup(self):
        settings = Settings(_env_file=None, safety_concerning_stress=0.95)
        with pytest.raises(ValidationError):
            SessionManager(settings)

    def test_manager_rejects_zero_fusion_weights_at_startup(self):
        settings = Settings(
            _env_file=None,
            fusion_text_weight=0.0,
            fusion_voice_weight=0.0,
            fusion_biometric_weight=0.0,
        )
        with pytest.raises(ValidationError):
            SessionManager(settings)

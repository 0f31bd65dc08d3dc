"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from mood_garden.config import SafetyProtocolConfig, Settings
from mood_garden.fusion.engine import derive_metrics
from mood_garden.models import (
    CANONICAL_EMOTIONS,
    BiometricSample,
    FusedMoodState,
    PhysiologySnapshot,
    SafetyEvent,
    SourceType,
)
from mood_garden.notifications.handlers import EmergencyNotifier, NotificationDispatcher, RetryPolicy
from mood_garden.safety.monitor import SafetyMonitor


def make_state(
    physiology: PhysiologySnapshot | None = None,
    sources: frozenset[SourceType] = frozenset({SourceType.TEXT}),
    confidence: float = 0.8,
    **emotions: float,
) -> FusedMoodState:
    """Build a fused state from named emotion intensities (others are 0)."""
    values = {e: emotions.get(e.value, 0.0) for e in CANONICAL_EMOTIONS}
    return FusedMoodState(
        emotions=values,
        **derive_metrics(values),
        confidence=confidence,
        sources=sources,
        physiology=physiology,
    )


def make_sample(heart_rate: float = 70.0, hrv: float = 60.0, breathing: float = 14.0) -> BiometricSample:
    return BiometricSample(
        heart_rate=heart_rate,
        heart_rate_variability=hrv,
        breathing_rate=breathing,
    )


class RecordingNotifier(EmergencyNotifier):
    """Records every delivered event; fails the first ``fail_times`` attempts."""

    name = "recording"

    def __init__(self, fail_times: int = 0, *, raise_error: bool = False) -> None:
        self.fail_times = fail_times
        self.raise_error = raise_error
        self.attempts = 0
        self.delivered: list[SafetyEvent] = []

    async def notify(self, event: SafetyEvent) -> bool:
        self.attempts += 1
        if self.attempts <= self.fail_times:
            if self.raise_error:
                raise ConnectionError("notifier unreachable")
            return False
        self.delivered.append(event)
        return True


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def calm_state() -> FusedMoodState:
    return make_state(joy=0.6, trust=0.5)


@pytest.fixture
def crisis_state() -> FusedMoodState:
    # stress = mean(fear, anger, disgust) = 1.0
    return make_state(fear=1.0, anger=1.0, disgust=1.0)


@pytest.fixture
def alert_state() -> FusedMoodState:
    # stress = 0.8
    return make_state(fear=1.0, anger=1.0, disgust=0.4)


@pytest.fixture
def safety_config() -> SafetyProtocolConfig:
    return SafetyProtocolConfig()


@pytest.fixture
def monitor(safety_config: SafetyProtocolConfig) -> SafetyMonitor:
    return SafetyMonitor("S001", safety_config)


@pytest.fixture
def recorder() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def dispatcher(recorder: RecordingNotifier, sleeper: SleepRecorder) -> NotificationDispatcher:
    return NotificationDispatcher(notifiers=[recorder], policy=RetryPolicy(), sleep=sleeper)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)

"""Tests for the rolling mood history."""

import pytest

from mood_garden.fusion.history import HistoryTracker
from mood_garden.models import CANONICAL_EMOTIONS, FusedMoodState, SourceType


def snapshot(valence: float = 0.0, stress: float = 0.0) -> FusedMoodState:
    return FusedMoodState(
        emotions={e: 0.0 for e in CANONICAL_EMOTIONS},
        arousal=0.0,
        valence=valence,
        dominance=0.0,
        stress=stress,
        anxiety=0.0,
        confidence=0.5,
        sources=frozenset({SourceType.TEXT}),
    )


class TestHistoryTracker:
    def test_capacity_evicts_oldest(self):
        tracker = HistoryTracker(capacity=3)
        states = [snapshot(valence=v / 10) for v in range(5)]
        for s in states:
            tracker.push(s)
        assert len(tracker) == 3
        assert tracker.states() == states[2:]

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            HistoryTracker(capacity=0)

    def test_consistency_is_one_for_identical_valence(self):
        tracker = HistoryTracker()
        for _ in range(10):
            tracker.push(snapshot(valence=0.4))
        assert tracker.consistency() == pytest.approx(1.0)

    def test_consistency_of_short_window(self):
        tracker = HistoryTracker()
        assert tracker.consistency() == 1.0
        tracker.push(snapshot(valence=-0.9))
        assert tracker.consistency() == 1.0

    def test_consistency_drops_as_variance_grows(self):
        narrow, wide = HistoryTracker(), HistoryTracker()
        for i in range(10):
            sign = 1 if i % 2 else -1
            narrow.push(snapshot(valence=0.1 * sign))
            wide.push(snapshot(valence=0.8 * sign))
        assert 0.0 <= wide.consistency() < narrow.consistency() < 1.0
        assert narrow.consistency() == pytest.approx(0.9)

    def test_recovery_rate(self):
        tracker = HistoryTracker()
        for stress in (0.8, 0.4, 0.8, 0.75, 0.3):
            tracker.push(snapshot(stress=stress))
        # three episodes, two followed by recovery
        assert tracker.recovery_rate() == pytest.approx(2 / 3)

    def test_recovery_rate_neutral_prior(self):
        tracker = HistoryTracker()
        for stress in (0.2, 0.6, 0.3):
            tracker.push(snapshot(stress=stress))
        assert tracker.recovery_rate() == 0.5

    def test_trailing_episode_is_not_counted(self):
        tracker = HistoryTracker()
        for stress in (0.8, 0.2, 0.9):
            tracker.push(snapshot(stress=stress))
        assert tracker.recovery_rate() == 1.0

    def test_summary(self):
        tracker = HistoryTracker(capacity=100)
        for v in (0.5, -0.2, 0.3, 0.0):
            tracker.push(snapshot(valence=v))
        summary = tracker.summary()
        assert summary.size == 4
        assert summary.positive_ratio == pytest.approx(0.5)
        assert summary.maturity == pytest.approx(0.04)
        assert summary.recovery_rate == 0.5

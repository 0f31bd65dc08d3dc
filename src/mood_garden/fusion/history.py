"""Rolling per-session mood history with consistency and recovery metrics."""

from __future__ import annotations

import math
import statistics
from collections import deque

from pydantic import BaseModel

from mood_garden.models import FusedMoodState

DEFAULT_CAPACITY = 100

# Stress-episode bands used by the recovery metric.
HIGH_STRESS = 0.7
RECOVERED_STRESS = 0.5
NEUTRAL_RECOVERY_PRIOR = 0.5


class HistorySummary(BaseModel):
    """Read-only digest of a history window."""

    size: int
    capacity: int
    consistency: float
    recovery_rate: float
    positive_ratio: float
    maturity: float


class HistoryTracker:
    """Bounded FIFO window of :class:`FusedMoodState` snapshots.

    Pushing past ``capacity`` evicts the oldest entry.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("history capacity must be at least 1")
        self._window: deque[FusedMoodState] = deque(maxlen=capacity)

    def push(self, state: FusedMoodState) -> None:
        self._window.append(state)

    def states(self) -> list[FusedMoodState]:
        return list(self._window)

    def __len__(self) -> int:
        return len(self._window)

    @property
    def capacity(self) -> int:
        return self._window.maxlen or DEFAULT_CAPACITY

    # ── Metrics ──────────────────────────────────────────────

    def consistency(self) -> float:
        """``1 − sqrt(variance(valence))`` over the window, in [0, 1].

        Fewer than two entries have no spread and score 1.0.
        """
        if len(self._window) < 2:
            return 1.0
        variance = statistics.pvariance(s.valence for s in self._window)
        return max(0.0, min(1.0, 1.0 - math.sqrt(variance)))

    def recovery_rate(self) -> float:
        """Share of high-stress entries followed directly by a recovered one.

        A high-stress entry at the very end of the window has no successor
        yet and is not counted.  With no episodes the neutral prior 0.5 is
        returned.
        """
        states = list(self._window)
        episodes = 0
        recoveries = 0
        for prev, nxt in zip(states, states[1:]):
            if prev.stress > HIGH_STRESS:
                episodes += 1
                if nxt.stress < RECOVERED_STRESS:
                    recoveries += 1
        if episodes == 0:
            return NEUTRAL_RECOVERY_PRIOR
        return recoveries / episodes

    def positive_ratio(self) -> float:
        if not self._window:
            return 0.0
        return sum(1 for s in self._window if s.valence > 0) / len(self._window)

    def maturity(self) -> float:
        """Grows linearly to 1.0 once the window has seen ``capacity`` entries."""
        return min(1.0, len(self._window) / self.capacity)

    def summary(self) -> HistorySummary:
        return HistorySummary(
            size=len(self._window),
            capacity=self.capacity,
            consistency=self.consistency(),
            recovery_rate=self.recovery_rate(),
            positive_ratio=self.positive_ratio(),
            maturity=self.maturity(),
        )

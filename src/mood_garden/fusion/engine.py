"""Fusion engine — combine per-source emotion vectors into one mood state.

Algorithm
---------
1. Per emotion, a source-weighted average over the vectors that report
   it.  Emotions nobody reports are 0 and do not touch confidence.
2. Derived metrics from the fused emotions only:

   ==========  ===========================================
   arousal     mean(surprise, anticipation, fear)
   valence     (joy + trust − sadness − anger) / 2, [-1, 1]
   dominance   (trust + anger − fear) / 2, [0, 1]
   stress      mean(fear, anger, disgust)
   anxiety     fear
   ==========  ===========================================

3. Confidence is the mean per-vector confidence, plus a 0.1
   corroboration bonus when all three source types contribute.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import structlog

from mood_garden.config import FusionWeights
from mood_garden.errors import NoInputData
from mood_garden.models import (
    CANONICAL_EMOTIONS,
    Emotion,
    EmotionVector,
    FusedMoodState,
    PhysiologySnapshot,
    SourceType,
)

logger = structlog.get_logger(__name__)

CORROBORATION_BONUS = 0.1
CORROBORATION_SOURCES = 3


class FusionEngine:
    """Stateless, confidence-weighted fusion of emotion vectors."""

    def __init__(self, weights: FusionWeights | None = None) -> None:
        self._weights = weights or FusionWeights()

    @property
    def weights(self) -> FusionWeights:
        return self._weights

    def fuse(
        self,
        vectors: Sequence[EmotionVector],
        *,
        timestamp: datetime | None = None,
    ) -> FusedMoodState:
        """Fuse *vectors* into a new immutable :class:`FusedMoodState`.

        Raises
        ------
        NoInputData
            When *vectors* is empty.
        """
        if not vectors:
            raise NoInputData("fusion requires at least one emotion vector")

        emotions = self._weighted_emotions(vectors)
        sources = frozenset(v.source_type for v in vectors)
        missing = frozenset(SourceType) - sources
        if missing:
            logger.debug(
                "fusion.missing_sources",
                missing=sorted(s.value for s in missing),
                present=sorted(s.value for s in sources),
            )

        state = FusedMoodState(
            emotions=emotions,
            **derive_metrics(emotions),
            confidence=self._confidence(vectors, sources),
            sources=sources,
            missing_sources=missing,
            physiology=_latest_physiology(vectors),
            timestamp=timestamp or max(v.timestamp for v in vectors),
        )
        logger.info(
            "fusion.complete",
            sources=sorted(s.value for s in sources),
            valence=round(state.valence, 3),
            stress=round(state.stress, 3),
            confidence=round(state.confidence, 3),
        )
        return state

    # ── Internals ─────────────────────────────────────────────

    def _weighted_emotions(self, vectors: Sequence[EmotionVector]) -> dict[Emotion, float]:
        fused: dict[Emotion, float] = {}
        for emotion in CANONICAL_EMOTIONS:
            weighted_sum = 0.0
            total_weight = 0.0
            for vector in vectors:
                if emotion not in vector.emotions:
                    continue
                weight = self._weights.for_source(vector.source_type)
                weighted_sum += vector.emotions[emotion] * weight
                total_weight += weight
            fused[emotion] = _clamp01(weighted_sum / total_weight) if total_weight > 0 else 0.0
        return fused

    @staticmethod
    def _confidence(vectors: Sequence[EmotionVector], sources: frozenset[SourceType]) -> float:
        mean = sum(v.confidence for v in vectors) / len(vectors)
        if len(sources) >= CORROBORATION_SOURCES:
            mean += CORROBORATION_BONUS
        return _clamp01(mean)


def derive_metrics(emotions: dict[Emotion, float]) -> dict[str, float]:
    """Fixed dimensional metrics computed from the eight fused emotions."""
    e = emotions
    return {
        "arousal": _clamp01((e[Emotion.SURPRISE] + e[Emotion.ANTICIPATION] + e[Emotion.FEAR]) / 3),
        "valence": max(-1.0, min(1.0, (e[Emotion.JOY] + e[Emotion.TRUST] - e[Emotion.SADNESS] - e[Emotion.ANGER]) / 2)),
        "dominance": _clamp01((e[Emotion.TRUST] + e[Emotion.ANGER] - e[Emotion.FEAR]) / 2),
        "stress": _clamp01((e[Emotion.FEAR] + e[Emotion.ANGER] + e[Emotion.DISGUST]) / 3),
        "anxiety": e[Emotion.FEAR],
    }


def _latest_physiology(vectors: Sequence[EmotionVector]) -> PhysiologySnapshot | None:
    readings = [v for v in vectors if v.physiology is not None]
    if not readings:
        return None
    return max(readings, key=lambda v: v.timestamp).physiology


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))

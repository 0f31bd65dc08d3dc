"""Mood fusion — normalisation, confidence-weighted fusion and history.

Architecture
------------
1. **Normalisation** (`normalizer.py`)
   - Text / voice / biometric inputs → per-source emotion vectors
   - Confidence from lexical evidence, voice quality and signal validity
   - Out-of-range values clamped and flagged, never rejected wholesale

2. **Fusion** (`engine.py`)
   - Source-weighted per-emotion averaging
   - Derived arousal / valence / dominance / stress / anxiety
   - Corroboration bonus when all three source types agree to report

3. **History** (`history.py`)
   - Bounded FIFO window per session
   - Valence consistency and stress-recovery rate
"""

from mood_garden.fusion.engine import FusionEngine, derive_metrics
from mood_garden.fusion.history import HistorySummary, HistoryTracker
from mood_garden.fusion.normalizer import InputNormalizer

__all__ = [
    "FusionEngine",
    "HistorySummary",
    "HistoryTracker",
    "InputNormalizer",
    "derive_metrics",
]

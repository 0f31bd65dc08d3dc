"""Named trigger conditions fed into the safety state machine.

Triggers are plain strings so collaborators can add their own
(``extra_triggers`` on :meth:`SafetyMonitor.evaluate`).  The built-in set:

==========================  =================================================
``elevated_heart_rate``     heart rate above the elevated threshold
``rapid_breathing``         breathing rate above the rapid threshold
``extreme_stress``          biometric stress score above the extreme bound
``critical_heart_rate``     heart rate outside the emergency bounds
``panic_indicators``        elevated HR + rapid breathing + high anxiety
``dissociation_signals``    dissociative phrasing in text or transcript
``trauma_<category>``       trauma-sensitive keywords (violence/medical/loss)
==========================  =================================================
"""

from __future__ import annotations

import re

from mood_garden.config import SafetyProtocolConfig
from mood_garden.models import BiometricSample, FusedMoodState

ELEVATED_HEART_RATE = "elevated_heart_rate"
RAPID_BREATHING = "rapid_breathing"
EXTREME_STRESS = "extreme_stress"
CRITICAL_HEART_RATE = "critical_heart_rate"
PANIC_INDICATORS = "panic_indicators"
DISSOCIATION_SIGNALS = "dissociation_signals"
TRAUMA_PREFIX = "trauma_"

TRAUMA_KEYWORDS: dict[str, frozenset[str]] = {
    "violence": frozenset({"violence", "abuse", "attack", "harm"}),
    "medical": frozenset({"hospital", "medical", "surgery", "illness"}),
    "loss": frozenset({"death", "loss", "grief", "died"}),
}

DISSOCIATION_PHRASES: tuple[str, ...] = (
    "disconnected",
    "detached",
    "numb",
    "unreal",
    "not real",
    "outside my body",
    "floating away",
    "in a dream",
    "watching myself",
)

_WORD_RE = re.compile(r"[a-z']+")
_DISSOCIATION_RE = re.compile(r"\b(?:" + "|".join(re.escape(p) for p in DISSOCIATION_PHRASES) + r")\b")


def is_trauma_trigger(name: str) -> bool:
    return name.startswith(TRAUMA_PREFIX)


def detect_text_triggers(text: str) -> set[str]:
    """Return dissociation and trauma triggers found in *text*."""
    lowered = text.lower()
    words = set(_WORD_RE.findall(lowered))
    triggers: set[str] = set()

    for category, keywords in TRAUMA_KEYWORDS.items():
        if words & keywords:
            triggers.add(f"{TRAUMA_PREFIX}{category}")

    if _DISSOCIATION_RE.search(lowered):
        triggers.add(DISSOCIATION_SIGNALS)

    return triggers


def detect_physiological_triggers(
    sample: BiometricSample | None,
    state: FusedMoodState | None,
    config: SafetyProtocolConfig,
) -> set[str]:
    """Return the physiological triggers raised by *sample*.

    ``panic_indicators`` additionally needs the fused anxiety from *state*.
    Without a sample nothing physiological can be asserted.
    """
    if sample is None:
        return set()

    triggers: set[str] = set()
    elevated = sample.heart_rate > config.elevated_heart_rate
    rapid = sample.breathing_rate > config.rapid_breathing_rate

    if elevated:
        triggers.add(ELEVATED_HEART_RATE)
    if rapid:
        triggers.add(RAPID_BREATHING)
    if sample.stress_score > config.extreme_biometric_stress:
        triggers.add(EXTREME_STRESS)
    if not config.heart_rate_min <= sample.heart_rate <= config.heart_rate_max:
        triggers.add(CRITICAL_HEART_RATE)
    if elevated and rapid and state is not None and state.anxiety >= config.panic_anxiety:
        triggers.add(PANIC_INDICATORS)

    return triggers

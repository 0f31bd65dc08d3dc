"""Per-session state and the synchronous processing step.

A :class:`MoodSession` owns everything one user session mutates: the
latest vector per source, the latest biometric sample, the history
window and the safety state machine.  Processing one input is a single
synchronous call (normalise → fuse → record → evaluate) so a safety
evaluation always completes before the next input is looked at.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

import structlog

from mood_garden.errors import MissingSourceData, NoInputData
from mood_garden.fusion.engine import FusionEngine
from mood_garden.fusion.history import HistoryTracker
from mood_garden.fusion.normalizer import InputNormalizer
from mood_garden.models import (
    BiometricInput,
    BiometricSample,
    EmotionVector,
    FusedMoodState,
    RawInput,
    SafetyEvent,
    SafetyLevel,
    SafetyProtocolState,
    SourceType,
    TextInput,
    VoiceInput,
)
from mood_garden.safety.interventions import GroundingResource, SupportPlan, support_plan
from mood_garden.safety.monitor import SafetyMonitor
from mood_garden.safety.triggers import detect_text_triggers

logger = structlog.get_logger(__name__)

DEFAULT_SOURCE_MAX_AGE = 600.0


@dataclass(slots=True)
class ProcessResult:
    """What one processing step produced."""

    state: FusedMoodState | None
    safety: SafetyProtocolState
    plan: SupportPlan
    event: SafetyEvent | None = None
    warnings: list[str] = field(default_factory=list)
    fallback: GroundingResource | None = None
    escalation_failure: str | None = None

    @property
    def level(self) -> SafetyLevel:
        return self.safety.level


class MoodSession:
    """Explicit state object for one user session.

    Parameters
    ----------
    session_id:
        Identifier stamped on safety events and log lines.
    normalizer, fusion, monitor, history:
        Collaborators, injected so each session gets its own instances.
    source_max_age:
        Seconds after which a source's last vector no longer counts.
    """

    def __init__(
        self,
        session_id: str,
        *,
        normalizer: InputNormalizer | None = None,
        fusion: FusionEngine | None = None,
        monitor: SafetyMonitor | None = None,
        history: HistoryTracker | None = None,
        source_max_age: float = DEFAULT_SOURCE_MAX_AGE,
    ) -> None:
        self.session_id = session_id
        self._normalizer = normalizer or InputNormalizer()
        self._fusion = fusion or FusionEngine()
        self._monitor = monitor or SafetyMonitor(session_id)
        self._history = history or HistoryTracker()
        self._max_age = timedelta(seconds=source_max_age)

        self._vectors: dict[SourceType, EmotionVector] = {}
        self._sample: BiometricSample | None = None
        self._state: FusedMoodState | None = None

    # ── Read-only views ───────────────────────────────────────

    @property
    def monitor(self) -> SafetyMonitor:
        return self._monitor

    @property
    def history(self) -> HistoryTracker:
        return self._history

    @property
    def safety(self) -> SafetyProtocolState:
        return self._monitor.state

    @property
    def latest_state(self) -> FusedMoodState | None:
        return self._state

    def current_state(self) -> FusedMoodState:
        if self._state is None:
            raise NoInputData(f"session {self.session_id} has not produced a mood state yet")
        return self._state

    # ── Processing ────────────────────────────────────────────

    def process(self, raw: RawInput, *, now: datetime | None = None) -> ProcessResult:
        """Normalise *raw*, re-fuse all current sources and evaluate safety."""
        now = now or datetime.utcnow()
        warnings: list[str] = []
        text_triggers: set[str] = set()

        if isinstance(raw, TextInput):
            text_triggers = detect_text_triggers(raw.text)
        elif isinstance(raw, VoiceInput):
            text_triggers = detect_text_triggers(raw.transcript)

        try:
            vector = self._normalize(raw, warnings)
        except MissingSourceData as exc:
            logger.warning(
                "session.missing_source",
                session=self.session_id,
                source=exc.source,
                reason=exc.reason,
            )
            warnings.append(f"{exc.source}: {exc.reason}")
            vector = None

        if vector is None:
            self._drop_stale(now)
            return self._unscored(text_triggers, warnings, now)

        self._vectors[vector.source_type] = vector
        warnings.extend(f"{vector.source_type.value}.{w}" for w in vector.warnings)
        self._drop_stale(now)
        if not self._vectors:
            logger.warning("session.stale_input", session=self.session_id, source=vector.source_type.value)
            return self._result(None, warnings)

        state = self._fusion.fuse(list(self._vectors.values()), timestamp=now)
        self._state = state
        self._history.push(state)
        event = self._monitor.evaluate(state, self._fresh_sample(), text_triggers, now=now)
        return self._result(event, warnings)

    def reevaluate(self, *, now: datetime | None = None) -> ProcessResult | None:
        """Re-run safety on the latest state after a quiet monitoring window."""
        if self._state is None:
            return None
        now = now or datetime.utcnow()
        self._drop_stale(now)
        logger.info(
            "session.reevaluate",
            session=self.session_id,
            level=self._monitor.level.value,
        )
        event = self._monitor.evaluate(self._state, self._fresh_sample(), now=now)
        return self._result(event, [])

    def request_transition(self, level: SafetyLevel, reason: str = "manual recovery") -> ProcessResult:
        event = self._monitor.request_transition(level, reason)
        return self._result(event, [])

    # ── Internals ─────────────────────────────────────────────

    def _unscored(self, text_triggers: set[str], warnings: list[str], now: datetime) -> ProcessResult:
        """An input with nothing to fuse.

        History is left alone.  Trigger phrases in its text are still
        evaluated against the latest state, but cannot count towards
        de-escalation.
        """
        if not text_triggers or self._state is None:
            if self._state is None:
                logger.warning("session.no_usable_input", session=self.session_id)
            return self._result(None, warnings)
        event = self._monitor.evaluate(
            self._state, self._fresh_sample(), text_triggers, now=now, counts_as_reading=False,
        )
        return self._result(event, warnings)

    def _normalize(self, raw: RawInput, warnings: list[str]) -> EmotionVector:
        if isinstance(raw, BiometricInput):
            clamped: list[str] = []
            sample = self._normalizer.to_sample(raw, clamped)
            self._sample = sample
            return self._normalizer.biometric_vector(sample, clamped)
        return self._normalizer.normalize(raw)

    def _drop_stale(self, now: datetime) -> None:
        cutoff = now - self._max_age
        for source, vector in list(self._vectors.items()):
            if vector.timestamp < cutoff:
                del self._vectors[source]
                logger.debug("session.source_expired", session=self.session_id, source=source.value)

    def _fresh_sample(self) -> BiometricSample | None:
        # The sample is only trusted while its vector is still current.
        if SourceType.BIOMETRIC not in self._vectors:
            return None
        return self._sample

    def _result(self, event: SafetyEvent | None, warnings: list[str]) -> ProcessResult:
        safety = self._monitor.state
        return ProcessResult(
            state=self._state,
            safety=safety,
            plan=support_plan(safety.level, safety.active_triggers),
            event=event,
            warnings=warnings,
        )

"""Safety monitor — escalation state machine with hysteresis.

Levels: ``Safe → Concerning → Alert → Crisis``.

* Escalation is immediate and may skip levels (Safe → Crisis in one
  evaluation).
* De-escalation moves one level at a time, and only after
  ``deescalation_readings`` consecutive evaluations whose target level is
  below the current one.
* Every transition emits a :class:`SafetyEvent` to subscribers.

Transitions outside these rules raise :class:`ProtocolViolation` inside
the guard; the monitor catches it, logs a defect and leaves the state
unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime

import structlog

from mood_garden.config import SafetyProtocolConfig
from mood_garden.errors import ProtocolViolation
from mood_garden.models import (
    BiometricSample,
    FusedMoodState,
    SafetyEvent,
    SafetyLevel,
    SafetyProtocolState,
)
from mood_garden.safety.triggers import detect_physiological_triggers, is_trauma_trigger

logger = structlog.get_logger(__name__)

SafetyListener = Callable[[SafetyEvent], None]


class SafetyMonitor:
    """Per-session escalation state machine.

    Parameters
    ----------
    session_id:
        Owning session; stamped on every emitted event.
    config:
        Thresholds and hysteresis settings.
    """

    def __init__(self, session_id: str, config: SafetyProtocolConfig | None = None) -> None:
        self._session_id = session_id
        self._config = config or SafetyProtocolConfig()
        self._state = SafetyProtocolState()
        self._listeners: list[SafetyListener] = []

    @property
    def config(self) -> SafetyProtocolConfig:
        return self._config

    @property
    def state(self) -> SafetyProtocolState:
        """Current immutable snapshot."""
        return self._state

    @property
    def level(self) -> SafetyLevel:
        return self._state.level

    # ── Subscriptions ─────────────────────────────────────────

    def subscribe(self, listener: SafetyListener) -> Callable[[], None]:
        """Register *listener* for transition events; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ── Evaluation ────────────────────────────────────────────

    def evaluate(
        self,
        state: FusedMoodState,
        biometric: BiometricSample | None = None,
        extra_triggers: Iterable[str] = (),
        *,
        now: datetime | None = None,
        counts_as_reading: bool = True,
    ) -> SafetyEvent | None:
        """Run one evaluation step and return the transition event, if any.

        With *counts_as_reading* false the step can escalate or hold the
        level but never advances de-escalation.
        """
        now = now or datetime.utcnow()
        triggers = frozenset(
            detect_physiological_triggers(biometric, state, self._config) | set(extra_triggers)
        )
        target, reason = self.target_level(state.stress, biometric, triggers)
        current = self._state.level

        if target.rank > current.rank:
            return self._transition(target, triggers, reason, now)

        if target == current:
            self._state = self._state.model_copy(
                update={"active_triggers": triggers, "consecutive_safe_readings": 0},
            )
            return None

        if not counts_as_reading:
            return None

        # Target is below the current level: count towards hysteresis.
        readings = self._state.consecutive_safe_readings + 1
        if readings < self._config.deescalation_readings:
            self._state = self._state.model_copy(
                update={"active_triggers": triggers, "consecutive_safe_readings": readings},
            )
            logger.debug(
                "safety.deescalation_pending",
                session=self._session_id,
                level=current.value,
                readings=readings,
                required=self._config.deescalation_readings,
            )
            return None

        return self._transition(
            current.step_down(),
            triggers,
            f"{readings} consecutive readings below {current.value}",
            now,
        )

    def target_level(
        self,
        stress: float,
        biometric: BiometricSample | None,
        triggers: frozenset[str],
    ) -> tuple[SafetyLevel, str]:
        """Return the level the criteria call for, with a short reason."""
        cfg = self._config

        if stress > cfg.crisis_stress:
            return SafetyLevel.CRISIS, f"stress {stress:.2f} > {cfg.crisis_stress}"
        if biometric is not None and not cfg.heart_rate_min <= biometric.heart_rate <= cfg.heart_rate_max:
            return SafetyLevel.CRISIS, f"heart rate {biometric.heart_rate:.0f} bpm outside emergency bounds"
        if len(triggers) >= cfg.crisis_trigger_count:
            return SafetyLevel.CRISIS, f"{len(triggers)} simultaneous triggers"

        if stress > cfg.alert_stress:
            return SafetyLevel.ALERT, f"stress {stress:.2f} > {cfg.alert_stress}"
        high = triggers & cfg.high_priority_triggers
        if high:
            return SafetyLevel.ALERT, f"high-priority trigger {sorted(high)[0]}"

        if stress > cfg.concerning_stress:
            return SafetyLevel.CONCERNING, f"stress {stress:.2f} > {cfg.concerning_stress}"
        concerning = {t for t in triggers if t in cfg.concerning_triggers or is_trauma_trigger(t)}
        if concerning:
            return SafetyLevel.CONCERNING, f"trigger {sorted(concerning)[0]}"

        return SafetyLevel.SAFE, "no criteria met"

    # ── Manual recovery ───────────────────────────────────────

    def request_transition(
        self,
        level: SafetyLevel,
        reason: str = "manual recovery",
        *,
        now: datetime | None = None,
    ) -> SafetyEvent | None:
        """Step the level down by exactly one, on behalf of a supervisor.

        Any other request is rejected and logged; the state is left as is.
        """
        return self._transition(
            level, self._state.active_triggers, reason, now or datetime.utcnow(), manual=True,
        )

    # ── Internals ─────────────────────────────────────────────

    def _check_transition(self, to_level: SafetyLevel, *, manual: bool = False) -> None:
        current = self._state.level
        if to_level == current:
            raise ProtocolViolation(f"self-transition on {current.value}")
        if to_level.rank < current.rank - 1:
            raise ProtocolViolation(
                f"{current.value} → {to_level.value} skips intermediate levels on the way down"
            )
        if manual and to_level.rank > current.rank:
            raise ProtocolViolation(
                f"manual transition {current.value} → {to_level.value} may only step down"
            )

    def _transition(
        self,
        to_level: SafetyLevel,
        triggers: frozenset[str],
        reason: str,
        now: datetime,
        *,
        manual: bool = False,
    ) -> SafetyEvent | None:
        from_level = self._state.level
        try:
            self._check_transition(to_level, manual=manual)
        except ProtocolViolation as exc:
            logger.error(
                "safety.protocol_violation",
                session=self._session_id,
                current=from_level.value,
                requested=to_level.value,
                error=str(exc),
            )
            return None

        self._state = SafetyProtocolState(
            level=to_level,
            entered_at=now,
            active_triggers=triggers,
            consecutive_safe_readings=0,
        )
        event = SafetyEvent(
            session_id=self._session_id,
            from_level=from_level,
            to_level=to_level,
            triggers=triggers,
            reason=reason,
            timestamp=now,
        )
        log = logger.warning if event.is_escalation else logger.info
        log(
            "safety.transition",
            session=self._session_id,
            from_level=from_level.value,
            to_level=to_level.value,
            triggers=sorted(triggers),
            reason=reason,
        )
        self._emit(event)
        return event

    def _emit(self, event: SafetyEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "safety.listener_error",
                    session=self._session_id,
                    event_id=event.id,
                )

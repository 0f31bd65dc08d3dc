"""Emergency notifiers — log and webhook delivery with retrying dispatch.

Architecture
~~~~~~~~~~~~
* **EmergencyNotifier** — abstract base for delivery channels.
* **LogNotifier / WebhookNotifier** — concrete channels.
* **NotificationDispatcher** — fan-out with per-channel retry and
  exponential backoff; raises :class:`EmergencyEscalationFailure` when a
  channel never succeeds.
* **create_dispatcher()** — factory that wires notifiers from settings.

Only escalations into Alert or Crisis are delivered; de-escalations and
Concerning entries are filtered by :meth:`EmergencyNotifier.should_handle`.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
import structlog

from mood_garden.errors import EmergencyEscalationFailure
from mood_garden.models import SafetyEvent, SafetyLevel

if TYPE_CHECKING:
    from mood_garden.config import Settings

logger = structlog.get_logger(__name__)

EMERGENCY_LEVELS = frozenset({SafetyLevel.ALERT, SafetyLevel.CRISIS})


# ── Retry policy & result ─────────────────────────────────────


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential backoff: ``base_delay · factor**n`` capped at ``max_delay``."""

    max_attempts: int = 5
    base_delay: float = 0.5
    factor: float = 2.0
    max_delay: float = 8.0

    def delay(self, attempt: int) -> float:
        """Delay before retry number *attempt* (1-based)."""
        return min(self.max_delay, self.base_delay * self.factor ** (attempt - 1))


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome summary for a single ``dispatch()`` call."""

    event_id: str | None
    sent: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    attempts: dict[str, int] = field(default_factory=dict)

    @property
    def all_ok(self) -> bool:
        return len(self.failed) == 0


# ── Abstract notifier ─────────────────────────────────────────


class EmergencyNotifier(ABC):
    """Contract for emergency delivery channels.

    Subclasses implement :meth:`notify`; returning ``False`` or raising
    marks the attempt as failed and the dispatcher retries it.
    """

    name: str = "base"

    @abstractmethod
    async def notify(self, event: SafetyEvent) -> bool:
        """Deliver an event.  Return ``True`` on success."""

    def should_handle(self, event: SafetyEvent) -> bool:
        """Escalations into Alert or Crisis only."""
        return event.is_escalation and event.to_level in EMERGENCY_LEVELS


# ── Concrete notifiers ───────────────────────────────────────


class LogNotifier(EmergencyNotifier):
    """Write emergency events to the structured log (always enabled)."""

    name = "log"

    async def notify(self, event: SafetyEvent) -> bool:
        logger.warning(
            "notification.emergency",
            session=event.session_id,
            from_level=event.from_level.value,
            to_level=event.to_level.value,
            triggers=sorted(event.triggers),
            reason=event.reason,
        )
        return True


class WebhookNotifier(EmergencyNotifier):
    """POST the event payload to an external webhook URL."""

    name = "webhook"

    def __init__(self, url: str, *, timeout: float = 10.0) -> None:
        self._url = url
        self._timeout = timeout

    async def notify(self, event: SafetyEvent) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._url, json=event.to_payload())
                resp.raise_for_status()
            logger.info("notification.webhook_sent", url=self._url, event_id=event.id)
            return True
        except httpx.HTTPError as exc:
            logger.error("notification.webhook_failed", url=self._url, error=str(exc))
            return False


# ── Dispatcher ────────────────────────────────────────────────


class NotificationDispatcher:
    """Deliver emergency events to every notifier, retrying each independently.

    A notifier that keeps failing never blocks the others; once all have
    been tried, any exhausted channel surfaces as
    :class:`EmergencyEscalationFailure`.
    """

    def __init__(
        self,
        *,
        notifiers: list[EmergencyNotifier] | None = None,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._notifiers: list[EmergencyNotifier] = notifiers if notifiers is not None else [LogNotifier()]
        self._policy = policy or RetryPolicy()
        self._sleep = sleep

    # ── Notifier management ───────────────────────────────────

    def add_notifier(self, notifier: EmergencyNotifier) -> None:
        self._notifiers.append(notifier)

    def remove_notifier(self, name: str) -> bool:
        """Remove the first notifier matching *name*. Return ``True`` if found."""
        for i, n in enumerate(self._notifiers):
            if n.name == name:
                self._notifiers.pop(i)
                return True
        return False

    @property
    def notifier_names(self) -> list[str]:
        return [n.name for n in self._notifiers]

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    # ── Dispatch ──────────────────────────────────────────────

    async def dispatch(self, event: SafetyEvent) -> DispatchResult:
        """Send *event* to every interested notifier.

        Raises
        ------
        EmergencyEscalationFailure
            At least one notifier failed on every attempt.
        """
        sent: list[str] = []
        failed: list[str] = []
        attempts: dict[str, int] = {}
        last_error = ""

        for notifier in self._notifiers:
            if not notifier.should_handle(event):
                continue
            ok, tries, error = await self._deliver(notifier, event)
            attempts[notifier.name] = tries
            if ok:
                sent.append(notifier.name)
            else:
                failed.append(notifier.name)
                last_error = f"{notifier.name}: {error}"

        result = DispatchResult(event_id=event.id, sent=sent, failed=failed, attempts=attempts)
        if result.failed:
            logger.error(
                "notification.escalation_failed",
                event_id=event.id,
                failed=result.failed,
                attempts=attempts,
            )
            raise EmergencyEscalationFailure(event.id, max(attempts.values()), last_error)
        return result

    async def _deliver(self, notifier: EmergencyNotifier, event: SafetyEvent) -> tuple[bool, int, str]:
        error = "returned failure"
        for attempt in range(1, self._policy.max_attempts + 1):
            try:
                if await notifier.notify(event):
                    return True, attempt, ""
                error = "returned failure"
            except Exception as exc:
                logger.exception(
                    "notification.notifier_error",
                    notifier=notifier.name,
                    event_id=event.id,
                    attempt=attempt,
                )
                error = str(exc) or type(exc).__name__

            if attempt < self._policy.max_attempts:
                delay = self._policy.delay(attempt)
                logger.warning(
                    "notification.retry",
                    notifier=notifier.name,
                    event_id=event.id,
                    attempt=attempt,
                    delay=delay,
                )
                await self._sleep(delay)
        return False, self._policy.max_attempts, error


# ── Factory ───────────────────────────────────────────────────


def create_dispatcher(settings: Settings) -> NotificationDispatcher:
    """Build a :class:`NotificationDispatcher` wired from application settings.

    * **LogNotifier** is always registered.
    * **WebhookNotifier** is added when ``settings.webhook_url`` is non-empty.
    """
    dispatcher = NotificationDispatcher(
        policy=RetryPolicy(
            max_attempts=settings.notifier_max_attempts,
            base_delay=settings.notifier_base_delay_seconds,
            factor=settings.notifier_backoff_factor,
            max_delay=settings.notifier_max_delay_seconds,
        ),
    )
    if settings.webhook_url:
        dispatcher.add_notifier(
            WebhookNotifier(settings.webhook_url, timeout=settings.webhook_timeout_seconds),
        )
    return dispatcher

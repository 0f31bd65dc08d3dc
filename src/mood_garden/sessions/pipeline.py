"""Per-session async pipeline: one FIFO queue, one worker, one timer.

Producers (text, voice and biometric collaborators) publish raw inputs
from independent tasks; the worker takes them one at a time so every
input is fused and safety-evaluated, and any emergency notification is
delivered, before the next one is looked at.

While the level is above Safe a monitoring timer runs.  When it fires
without new input, a re-evaluation item is queued; queuing anything
else cancels it first.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from mood_garden.errors import EmergencyEscalationFailure, SessionClosed
from mood_garden.logger import session_context
from mood_garden.models import RawInput, SafetyLevel
from mood_garden.notifications.handlers import NotificationDispatcher
from mood_garden.safety.interventions import GROUNDING_FALLBACK
from mood_garden.sessions.session import MoodSession, ProcessResult

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Reevaluate:
    """Queued when the monitoring window expires."""


@dataclass(frozen=True, slots=True)
class ManualTransition:
    level: SafetyLevel
    reason: str = "manual recovery"


QueueItem = RawInput | Reevaluate | ManualTransition


class SessionPipeline:
    """Serialise all work for one :class:`MoodSession`."""

    def __init__(
        self,
        session: MoodSession,
        dispatcher: NotificationDispatcher | None = None,
        *,
        maxsize: int = 1_000,
    ) -> None:
        self._session = session
        self._dispatcher = dispatcher or NotificationDispatcher()
        self._queue: asyncio.Queue[tuple[QueueItem, asyncio.Future[ProcessResult | None] | None]] = (
            asyncio.Queue(maxsize=maxsize)
        )
        self._worker: asyncio.Task[None] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._in_flight: asyncio.Future[ProcessResult | None] | None = None
        self._closed = False
        self._processed_total = 0

    @property
    def session(self) -> MoodSession:
        return self._session

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    @property
    def processed_total(self) -> int:
        return self._processed_total

    # ── Producer side ─────────────────────────────────────────

    async def submit(self, item: QueueItem) -> ProcessResult | None:
        """Queue *item* and wait until the worker has fully processed it."""
        self._check_open()
        future: asyncio.Future[ProcessResult | None] = asyncio.get_running_loop().create_future()
        self._cancel_timer()
        await self._queue.put((item, future))
        return await future

    def enqueue(self, item: QueueItem) -> None:
        """Queue *item* without waiting for the result."""
        self._check_open()
        self._cancel_timer()
        self._queue.put_nowait((item, None))

    async def join(self) -> None:
        """Wait until every queued item has been processed."""
        await self._queue.join()

    # ── Lifecycle ─────────────────────────────────────────────

    def start(self) -> None:
        if self.running:
            return
        self._worker = asyncio.create_task(self._run(), name=f"session-{self._session.session_id}")
        logger.info("session_pipeline.started", session=self._session.session_id)

    async def stop(self) -> None:
        """Stop the worker and fail every submission it will never finish.

        Callers still awaiting :meth:`submit` get :class:`SessionClosed`.
        """
        self._closed = True
        self._cancel_timer()
        in_flight = self._in_flight
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        abandoned = self._fail(in_flight)
        while not self._queue.empty():
            _, future = self._queue.get_nowait()
            self._queue.task_done()
            abandoned += self._fail(future)
        logger.info(
            "session_pipeline.stopped",
            session=self._session.session_id,
            processed_total=self._processed_total,
            abandoned=abandoned,
        )

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosed(self._session.session_id)

    def _fail(self, future: asyncio.Future[ProcessResult | None] | None) -> int:
        if future is None or future.done():
            return 0
        future.set_exception(SessionClosed(self._session.session_id))
        return 1

    # ── Consumer loop ─────────────────────────────────────────

    async def _run(self) -> None:
        while True:
            item, future = await self._queue.get()
            self._in_flight = future
            try:
                with session_context(self._session.session_id):
                    result = await self._handle(item)
            except Exception as exc:
                logger.exception(
                    "session_pipeline.item_error",
                    session=self._session.session_id,
                    item=type(item).__name__,
                )
                if future is not None and not future.done():
                    future.set_exception(exc)
            else:
                if future is not None and not future.done():
                    future.set_result(result)
            finally:
                self._in_flight = None
                self._processed_total += 1
                self._queue.task_done()

    async def _handle(self, item: QueueItem) -> ProcessResult | None:
        if isinstance(item, Reevaluate):
            result = self._session.reevaluate()
        elif isinstance(item, ManualTransition):
            result = self._session.request_transition(item.level, item.reason)
        else:
            result = self._session.process(item)

        if result is None:
            return None
        if result.event is not None:
            await self._notify(result)
        self._rearm_timer(result.level)
        return result

    async def _notify(self, result: ProcessResult) -> None:
        event = result.event
        try:
            await self._dispatcher.dispatch(event)
        except EmergencyEscalationFailure as exc:
            logger.error(
                "session.escalation_failure",
                session=self._session.session_id,
                event_id=event.id,
                attempts=exc.attempts,
                error=exc.last_error,
            )
            result.escalation_failure = str(exc)
            result.fallback = GROUNDING_FALLBACK

    # ── Monitoring timer ──────────────────────────────────────

    def _rearm_timer(self, level: SafetyLevel) -> None:
        self._cancel_timer()
        # Pending items will re-arm once they are processed.
        if level == SafetyLevel.SAFE or not self._queue.empty():
            return
        window = self._session.monitor.config.monitoring_window_seconds
        self._timer = asyncio.get_running_loop().call_later(window, self._on_timeout)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timeout(self) -> None:
        self._timer = None
        logger.info("session_pipeline.monitoring_window_expired", session=self._session.session_id)
        self._queue.put_nowait((Reevaluate(), None))

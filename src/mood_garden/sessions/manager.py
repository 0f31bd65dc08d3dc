"""Session manager — the in-process interface rendering layers talk to."""

from __future__ import annotations

from collections.abc import Callable

import structlog

from mood_garden.collaborators.base import BiometricStream
from mood_garden.config import Settings, get_settings
from mood_garden.errors import UnknownSession
from mood_garden.fusion.engine import FusionEngine
from mood_garden.fusion.history import HistorySummary, HistoryTracker
from mood_garden.fusion.normalizer import InputNormalizer
from mood_garden.generative.companions import UserPreferences
from mood_garden.generative.mapper import GenerativeParameters, ParameterMapper
from mood_garden.models import FusedMoodState, RawInput, SafetyEvent, SafetyLevel, SafetyProtocolState
from mood_garden.notifications.handlers import NotificationDispatcher, create_dispatcher
from mood_garden.safety.interventions import SupportPlan, support_plan
from mood_garden.safety.monitor import SafetyMonitor
from mood_garden.sessions.pipeline import ManualTransition, SessionPipeline
from mood_garden.sessions.session import MoodSession, ProcessResult

logger = structlog.get_logger(__name__)


class SessionManager:
    """Open, feed and query independent user sessions.

    Sessions share nothing but the (stateless) mapper and the notification
    dispatcher.  Everything else is built per session from *settings*.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        dispatcher: NotificationDispatcher | None = None,
        mapper: ParameterMapper | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        # Validated once at construction; every session shares these.
        self._normalizer_config = self._settings.normalizer_config()
        self._fusion_weights = self._settings.fusion_weights()
        self._safety_config = self._settings.safety_config()
        self._dispatcher = dispatcher or create_dispatcher(self._settings)
        self._mapper = mapper or ParameterMapper()
        self._pipelines: dict[str, SessionPipeline] = {}

    # ── Session lifecycle ─────────────────────────────────────

    def open(self, session_id: str) -> MoodSession:
        """Return the session for *session_id*, creating and starting it if needed.

        Must be called from inside a running event loop.
        """
        pipeline = self._pipelines.get(session_id)
        if pipeline is None:
            s = self._settings
            session = MoodSession(
                session_id,
                normalizer=InputNormalizer(self._normalizer_config),
                fusion=FusionEngine(self._fusion_weights),
                monitor=SafetyMonitor(session_id, self._safety_config),
                history=HistoryTracker(s.history_capacity),
                source_max_age=s.source_max_age_seconds,
            )
            pipeline = SessionPipeline(session, self._dispatcher)
            pipeline.start()
            self._pipelines[session_id] = pipeline
            logger.info("session.opened", session=session_id)
        return pipeline.session

    async def close(self, session_id: str) -> None:
        pipeline = self._pipelines.pop(session_id, None)
        if pipeline is None:
            raise UnknownSession(session_id)
        await pipeline.stop()
        logger.info("session.closed", session=session_id)

    async def close_all(self) -> None:
        for session_id in list(self._pipelines):
            await self.close(session_id)

    @property
    def session_ids(self) -> list[str]:
        return list(self._pipelines)

    # ── Input ─────────────────────────────────────────────────

    async def submit(self, session_id: str, raw: RawInput) -> ProcessResult:
        """Process *raw* in order with the session's other inputs and return the outcome."""
        self.open(session_id)
        return await self._pipelines[session_id].submit(raw)

    def enqueue(self, session_id: str, raw: RawInput) -> None:
        """Queue *raw* for processing without waiting."""
        self.open(session_id)
        self._pipelines[session_id].enqueue(raw)

    async def pull_biometric(self, session_id: str, stream: BiometricStream) -> ProcessResult:
        """Sample *stream* once and feed the reading into the session."""
        return await self.submit(session_id, await stream.sample())

    async def follow_biometrics(
        self,
        session_id: str,
        stream: BiometricStream,
        count: int,
    ) -> list[ProcessResult]:
        """Feed *count* readings from *stream* into the session, then close the stream.

        The stream is closed even when sampling or processing fails.
        """
        results: list[ProcessResult] = []
        try:
            async for raw in stream.stream(count):
                results.append(await self.submit(session_id, raw))
        finally:
            await stream.close()
            logger.info("session.stream_closed", session=session_id, readings=len(results))
        return results

    async def request_transition(
        self,
        session_id: str,
        level: SafetyLevel,
        reason: str = "manual recovery",
    ) -> ProcessResult:
        """Ask the session's monitor to step down one level (serialised with inputs)."""
        return await self.pipeline(session_id).submit(ManualTransition(level, reason))

    async def drain(self, session_id: str) -> None:
        await self.pipeline(session_id).join()

    # ── Queries ───────────────────────────────────────────────

    def get_fused_mood_state(self, session_id: str) -> FusedMoodState:
        """Latest fused state; raises :class:`NoInputData` before the first one."""
        return self.pipeline(session_id).session.current_state()

    def get_safety_level(self, session_id: str) -> SafetyProtocolState:
        return self.pipeline(session_id).session.safety

    def get_support_plan(self, session_id: str) -> SupportPlan:
        safety = self.get_safety_level(session_id)
        return support_plan(safety.level, safety.active_triggers)

    def get_generative_parameters(
        self,
        session_id: str,
        preferences: UserPreferences | None = None,
    ) -> GenerativeParameters:
        return self._mapper.map(self.get_fused_mood_state(session_id), preferences)

    def get_history_summary(self, session_id: str) -> HistorySummary:
        return self.pipeline(session_id).session.history.summary()

    def subscribe(self, session_id: str, listener: Callable[[SafetyEvent], None]) -> Callable[[], None]:
        """Register *listener* for the session's safety events; returns an unsubscribe callable."""
        return self.pipeline(session_id).session.monitor.subscribe(listener)

    def pipeline(self, session_id: str) -> SessionPipeline:
        try:
            return self._pipelines[session_id]
        except KeyError:
            raise UnknownSession(session_id) from None

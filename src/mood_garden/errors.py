"""Domain errors raised by the mood fusion & safety engine."""

from __future__ import annotations


class MoodEngineError(Exception):
    """Base class for every error the engine raises."""


class NoInputData(MoodEngineError):
    """Fusion was asked to run without any emotion vector."""


class MissingSourceData(MoodEngineError):
    """A source produced nothing usable; fuse the remaining sources instead."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class InvalidRange(MoodEngineError):
    """An upstream numeric value fell outside its valid range.

    Never raised to callers: values are clamped and the event is logged.
    Kept as a type so warnings carry a consistent label.
    """


class ProtocolViolation(MoodEngineError):
    """A safety-level transition outside the defined protocol was attempted."""


class EmergencyEscalationFailure(MoodEngineError):
    """Emergency notification could not be delivered after every retry."""

    def __init__(self, event_id: str, attempts: int, last_error: str) -> None:
        super().__init__(
            f"emergency notification for event {event_id} failed after "
            f"{attempts} attempts: {last_error}"
        )
        self.event_id = event_id
        self.attempts = attempts
        self.last_error = last_error


class UnknownSession(MoodEngineError, KeyError):
    """No session with the given id has been opened."""


class SessionClosed(UnknownSession):
    """The session was closed while the input was queued or being processed."""

"""Structured logging configuration using *structlog*."""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager

import structlog


def setup_logging(level: str = "INFO", *, json_output: bool | None = None) -> None:
    """Configure *structlog* processors and output.

    Call once at application startup.  Log lines go to stderr so the
    ``replay`` command's stdout stays machine-readable; they are rendered
    as JSON unless stderr is a terminal or *json_output* says otherwise.
    """
    if json_output is None:
        json_output = not sys.stderr.isatty()

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO),
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def session_context(session_id: str) -> AbstractContextManager[None]:
    """Bind ``session`` to every log line emitted inside the ``with`` block."""
    return structlog.contextvars.bound_contextvars(session=session_id)

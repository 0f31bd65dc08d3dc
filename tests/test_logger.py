"""Tests for logging setup."""

import structlog

from mood_garden.logger import session_context, setup_logging


def test_session_context_binds_and_clears():
    with session_context("S001"):
        assert structlog.contextvars.get_contextvars()["session"] == "S001"
    assert "session" not in structlog.contextvars.get_contextvars()


def test_json_logs_go_to_stderr(capsys):
    setup_logging("debug", json_output=True)
    try:
        with session_context("S042"):
            structlog.get_logger("test").info("safety.transition", to_level="alert")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert '"session": "S042"' in captured.err
        assert '"event": "safety.transition"' in captured.err
    finally:
        structlog.reset_defaults()

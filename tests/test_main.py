"""Tests for the command-line entrypoint."""

import json

import pytest
import structlog

from mood_garden.main import load_inputs, main, replay
from mood_garden.models import BiometricInput, TextInput, VoiceInput


def write_lines(path, records):
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")


def test_load_inputs(tmp_path):
    path = tmp_path / "inputs.jsonl"
    write_lines(path, [
        {"kind": "text", "text": "happy", "emotions": {"joy": 0.8}},
        {"kind": "voice", "transcript": "fine", "emotions": {"trust": 0.4}},
        {"kind": "biometric", "heart_rate": 72, "heart_rate_variability": 55, "breathing_rate": 14},
    ])
    inputs = load_inputs(path)
    assert [type(i) for i in inputs] == [TextInput, VoiceInput, BiometricInput]


def test_unknown_kind_is_rejected(tmp_path):
    path = tmp_path / "inputs.jsonl"
    write_lines(path, [{"kind": "video", "frames": 3}])
    with pytest.raises(ValueError, match="unknown input kind"):
        load_inputs(path)


@pytest.mark.asyncio
async def test_replay_prints_each_step(tmp_path, capsys):
    path = tmp_path / "inputs.jsonl"
    write_lines(path, [
        {"kind": "text", "text": "happy and calm", "emotions": {"joy": 0.8}},
        {"kind": "biometric", "heart_rate": 190, "heart_rate_variability": 30, "breathing_rate": 16},
    ])
    await replay(path, "cli")
    out = capsys.readouterr().out
    assert "level=safe" in out
    assert "level=crisis" in out
    assert '"size": 2' in out


def test_no_command_prints_help():
    try:
        with pytest.raises(SystemExit):
            main([])
    finally:
        structlog.reset_defaults()

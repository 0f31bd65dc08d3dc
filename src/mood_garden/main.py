"""Application entrypoint — start the API server or replay recorded inputs."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import uvicorn

from mood_garden.config import get_settings
from mood_garden.logger import setup_logging
from mood_garden.models import BiometricInput, RawInput, TextInput, VoiceInput
from mood_garden.sessions.manager import SessionManager

_INPUT_KINDS: dict[str, type[TextInput] | type[VoiceInput] | type[BiometricInput]] = {
    "text": TextInput,
    "voice": VoiceInput,
    "biometric": BiometricInput,
}


def load_inputs(path: Path) -> list[RawInput]:
    """Read a JSON-lines file where each line has a ``kind`` plus the input fields."""
    inputs: list[RawInput] = []
    for line_no, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        record = json.loads(line)
        kind = record.pop("kind", None)
        if kind not in _INPUT_KINDS:
            raise ValueError(f"{path}:{line_no}: unknown input kind {kind!r}")
        inputs.append(_INPUT_KINDS[kind].model_validate(record))
    return inputs


async def replay(path: Path, session_id: str = "replay") -> None:
    """Feed every input in *path* through one session and print the outcome per step."""
    manager = SessionManager(get_settings())
    try:
        for raw in load_inputs(path):
            result = await manager.submit(session_id, raw)
            state = result.state
            valence = state.valence if state else float("nan")
            stress = state.stress if state else float("nan")
            flag = " FALLBACK" if result.fallback else ""
            print(
                f"{type(raw).__name__:<15} level={result.level.value:<10} "
                f"valence={valence:+.2f} stress={stress:.2f}{flag}"
            )
        summary = manager.get_history_summary(session_id)
        print(summary.model_dump_json(indent=2))
    finally:
        await manager.close_all()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="mood-garden",
        description="Multimodal mood fusion and adaptive safety engine.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── serve ─────────────────────────────────────────────────
    serve_parser = sub.add_parser("serve", help="Start the API server.")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    # ── replay ────────────────────────────────────────────────
    replay_parser = sub.add_parser("replay", help="Replay a JSON-lines file of inputs.")
    replay_parser.add_argument("path", type=Path)
    replay_parser.add_argument("--session", default="replay")

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    if args.command == "serve":
        uvicorn.run(
            "mood_garden.api.server:app",
            host=args.host or settings.api_host,
            port=args.port or settings.api_port,
            reload=args.reload,
        )
    elif args.command == "replay":
        asyncio.run(replay(args.path, args.session))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

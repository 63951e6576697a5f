# client.py
"""Replay client for the caption server.

Reads transcription fragments from a JSON Lines file (one
``{"text": ..., "is_final": ..., "language": ..., "delay_ms": ...}`` object
per line), streams them to the server and prints every display_event text
wall it receives. Useful for checking wrapping and throttling by eye.
"""

import argparse
import asyncio
import json
import sys
from dataclasses import dataclass
from pathlib import Path

_SCRIPT_PATH = Path(__file__).resolve()
if str(_SCRIPT_PATH.parent) not in sys.path:
    sys.path.insert(0, str(_SCRIPT_PATH.parent))

from hudcaption.network.types import PROTOCOL_VERSION


@dataclass
class ReplayFragment:
    text: str | None
    is_final: bool
    language: str | None
    delay_ms: float


def load_fragments(path: Path) -> list[ReplayFragment]:
    """Parse a JSON Lines replay file.

    Blank lines are skipped. ``delay_ms`` is the pause before sending the
    fragment and defaults to 100.

    Raises:
        ValueError: On a line that is not a JSON object.
    """
    fragments = []
    with open(path, "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{line_no}: invalid JSON: {exc}") from exc
            if not isinstance(obj, dict):
                raise ValueError(f"{path}:{line_no}: expected a JSON object")
            fragments.append(ReplayFragment(
                text=obj.get("text"),
                is_final=bool(obj.get("is_final", False)),
                language=obj.get("language"),
                delay_ms=float(obj.get("delay_ms", 100)),
            ))
    return fragments


def transcription_frame(fragment: ReplayFragment) -> str:
    obj = {"type": "transcription", "text": fragment.text, "is_final": fragment.is_final}
    if fragment.language:
        obj["language"] = fragment.language
    return json.dumps(obj, ensure_ascii=False)


async def _print_display_events(ws) -> None:
    async for message in ws:
        obj = json.loads(message)
        if obj.get("type") == "display_event":
            print("-" * 20)
            print(obj["layout"]["text"])
        elif obj.get("type") == "error":
            print(f"! {obj.get('error_code')}: {obj.get('message')}", file=sys.stderr)


async def replay(server_url: str, fragments: list[ReplayFragment], linger: float = 1.0) -> None:
    """Connect, check session_created, send fragments with their delays, then shut down.

    Raises:
        ConnectionError: If the server does not answer with a v1 session_created frame.
    """
    import websockets

    async with websockets.connect(server_url) as ws:
        created = json.loads(await ws.recv())
        if created.get("type") != "session_created":
            raise ConnectionError(f"Expected session_created, got: {created.get('type')}")
        if created.get("protocol_version") != PROTOCOL_VERSION:
            raise ConnectionError(f"Unsupported protocol version: {created.get('protocol_version')}")

        printer = asyncio.create_task(_print_display_events(ws))
        for fragment in fragments:
            await asyncio.sleep(fragment.delay_ms / 1000.0)
            await ws.send(transcription_frame(fragment))

        # Let the last throttled update arrive
        await asyncio.sleep(linger)
        await ws.send(json.dumps({"type": "control_command", "command": "shutdown"}))
        printer.cancel()
        try:
            await printer
        except asyncio.CancelledError:
            pass


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Replay transcription fragments to the caption server")
    parser.add_argument("input", type=Path, help="JSON Lines file with fragments")
    parser.add_argument("--server-url", default="ws://127.0.0.1:8765")
    args = parser.parse_args(argv)

    try:
        fragments = load_fragments(args.input)
        asyncio.run(replay(args.server_url, fragments))
    except (OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

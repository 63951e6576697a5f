"""Tests for CaptionSession.

Strategy: asyncio.run() drives a real session with a short throttle interval;
an AsyncMock websocket collects the display_event frames.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

from hudcaption.Config import merge_config
from hudcaption.network.types import WsTranscription
from hudcaption.server.CaptionSession import CaptionSession


def _config(throttle_ms: int = 50) -> dict:
    return merge_config({"display": {"throttle_interval_ms": throttle_ms}})


def _make_mock_websocket() -> MagicMock:
    ws = MagicMock()
    ws.send = AsyncMock()
    return ws


def _texts(ws: MagicMock) -> list[str]:
    frames = [json.loads(c.args[0]) for c in ws.send.await_args_list]
    return [f["layout"]["text"] for f in frames if f["type"] == "display_event"]


async def _run_session(ws, steps) -> CaptionSession:
    session = CaptionSession("s1", ws, asyncio.get_running_loop(), _config())
    await session.start()
    try:
        for step in steps:
            if isinstance(step, WsTranscription):
                session.handle_fragment(step)
            elif step == "clear":
                session.clear()
            else:
                await asyncio.sleep(step)
    finally:
        await session.close()
    return session


def test_partial_then_final_reach_websocket():
    ws = _make_mock_websocket()

    asyncio.run(_run_session(ws, [
        WsTranscription(text="hello"),
        0.02,
        WsTranscription(text="hello world", is_final=True),
        0.02,
    ]))

    assert _texts(ws) == ["hello\n\n", "hello world\n\n"]


def test_throttled_partial_delivered_by_timer():
    ws = _make_mock_websocket()

    asyncio.run(_run_session(ws, [
        WsTranscription(text="one"),
        WsTranscription(text="one two"),
        WsTranscription(text="one two three"),
        0.2,
    ]))

    assert _texts(ws) == ["one\n\n", "one two three\n\n"]


def test_language_switch_uses_wide_glyph_width():
    ws = _make_mock_websocket()

    session = asyncio.run(_run_session(ws, [
        WsTranscription(text="你好", language="zh-CN", is_final=True),
        0.02,
    ]))

    assert session.controller.processor.is_wide_glyph_mode() is True
    assert session.controller.processor.get_max_chars_per_line() == 18
    assert _texts(ws) == ["你好\n\n"]


def test_clear_blanks_display():
    ws = _make_mock_websocket()

    session = asyncio.run(_run_session(ws, [
        WsTranscription(text="first", is_final=True),
        "clear",
        0.02,
    ]))

    assert _texts(ws) == ["first\n\n", "\n\n"]
    assert session.controller.processor.get_final_transcript_history() == []


def test_close_detaches_controller():
    ws = _make_mock_websocket()

    session = asyncio.run(_run_session(ws, []))

    assert session.publisher.subscriber_count() == 0

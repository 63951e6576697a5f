"""Tests for WsDisplaySink.

Strategy: real asyncio event loop on a background thread, a plain asyncio.Queue
as the websocket send sink, show_text called from the test thread to exercise
the sync→async bridge.
"""

import asyncio
import json
import threading
import time

from hudcaption.server.WsDisplaySink import WsDisplaySink


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class _FakeWebSocket:
    """Async websocket stand-in: collects sent messages into a list."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[str] = []
        self.fail = fail

    async def send(self, message: str) -> None:
        if self.fail:
            raise ConnectionError("closed")
        self.sent.append(message)


def _start_loop() -> tuple[asyncio.AbstractEventLoop, threading.Thread]:
    ready = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def run_loop() -> None:
        loop = asyncio.new_event_loop()
        loop_holder.append(loop)
        asyncio.set_event_loop(loop)
        ready.set()
        loop.run_forever()

    t = threading.Thread(target=run_loop, daemon=True)
    t.start()
    ready.wait(timeout=2.0)
    return loop_holder[0], t


def _start_sink(session_id: str, ws: _FakeWebSocket) -> tuple[WsDisplaySink, asyncio.AbstractEventLoop]:
    loop, _ = _start_loop()
    sink = WsDisplaySink(session_id=session_id, websocket=ws, loop=loop)
    asyncio.run_coroutine_threadsafe(sink.start(), loop).result(timeout=2.0)
    return sink, loop


def _stop_sink(sink: WsDisplaySink, loop: asyncio.AbstractEventLoop) -> None:
    asyncio.run_coroutine_threadsafe(sink.stop(), loop).result(timeout=5.0)
    loop.call_soon_threadsafe(loop.stop)


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestShowText:
    def test_sends_display_event_frame(self) -> None:
        ws = _FakeWebSocket()
        sink, loop = _start_sink("s1", ws)
        try:
            sink.show_text("hello\n\n")
            assert _wait_for(lambda: len(ws.sent) == 1)
            obj = json.loads(ws.sent[0])
            assert obj["type"] == "display_event"
            assert obj["session_id"] == "s1"
            assert obj["layout"] == {"layoutType": "text_wall", "text": "hello\n\n"}
        finally:
            _stop_sink(sink, loop)

    def test_preserves_order(self) -> None:
        ws = _FakeWebSocket()
        sink, loop = _start_sink("s1", ws)
        try:
            for i in range(5):
                sink.show_text(f"block {i}")
            assert _wait_for(lambda: len(ws.sent) == 5)
            texts = [json.loads(m)["layout"]["text"] for m in ws.sent]
            assert texts == [f"block {i}" for i in range(5)]
        finally:
            _stop_sink(sink, loop)

    def test_callable_from_other_thread(self) -> None:
        ws = _FakeWebSocket()
        sink, loop = _start_sink("s1", ws)
        try:
            worker = threading.Thread(target=sink.show_text, args=("from timer thread",))
            worker.start()
            worker.join()
            assert _wait_for(lambda: len(ws.sent) == 1)
        finally:
            _stop_sink(sink, loop)

    def test_full_queue_keeps_newest_blocks(self) -> None:
        ws = _FakeWebSocket()
        sink, loop = _start_sink("s1", ws)

        def burst() -> None:
            for i in range(30):
                sink.show_text(f"block{i}")

        try:
            # All puts land in one loop iteration, before the sender task runs
            loop.call_soon_threadsafe(burst)
            assert _wait_for(lambda: len(ws.sent) == 20)
            time.sleep(0.05)
            texts = [json.loads(m)["layout"]["text"] for m in ws.sent]
            assert texts == [f"block{i}" for i in range(10, 30)]
        finally:
            _stop_sink(sink, loop)

    def test_send_error_keeps_draining(self, caplog) -> None:
        ws = _FakeWebSocket(fail=True)
        sink, loop = _start_sink("s1", ws)
        try:
            sink.show_text("lost")
            assert _wait_for(lambda: "error sending display event" in caplog.text)
            ws.fail = False
            sink.show_text("delivered")
            assert _wait_for(lambda: len(ws.sent) == 1)
        finally:
            _stop_sink(sink, loop)


class TestLifecycle:
    def test_stop_without_start_is_noop(self) -> None:
        loop, _ = _start_loop()
        sink = WsDisplaySink(session_id="s1", websocket=_FakeWebSocket(), loop=loop)
        asyncio.run_coroutine_threadsafe(sink.stop(), loop).result(timeout=2.0)
        loop.call_soon_threadsafe(loop.stop)

    def test_show_text_before_start_is_dropped(self, caplog) -> None:
        loop, _ = _start_loop()
        ws = _FakeWebSocket()
        sink = WsDisplaySink(session_id="s1", websocket=ws, loop=loop)
        try:
            sink.show_text("too early")
            assert _wait_for(lambda: "not started" in caplog.text)
            assert ws.sent == []
        finally:
            loop.call_soon_threadsafe(loop.stop)

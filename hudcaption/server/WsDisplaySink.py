"""WebSocket display sink: sync-to-async bridge for rendered caption blocks.

Implements the DisplaySink protocol so TranscriptDisplayController can call
show_text() from any thread (including ThreadingScheduler timer threads) and
have display_event frames delivered to the client WebSocket without blocking.
"""

import asyncio
import logging
from typing import Protocol

from hudcaption.network.codec import encode_server_message
from hudcaption.network.types import WsDisplayEvent

logger = logging.getLogger(__name__)

_SEND_QUEUE_MAXSIZE = 20


class _SupportsAsyncSend(Protocol):
    """Structural protocol for an object with an async send method."""

    async def send(self, message: str) -> None: ...


class WsDisplaySink:
    """Forwards caption blocks to a WebSocket as display_event frames.

    A bounded asyncio.Queue (maxsize=20) decouples callers from the async
    sender task. Every block is a complete display state, so when the queue
    is full the oldest queued block is discarded to make room for the new one.

    Args:
        session_id: Session identifier included in every outbound message.
        websocket: Object with an ``async send(str)`` method.
        loop: The asyncio event loop running the sender task.
    """

    def __init__(
        self,
        session_id: str,
        websocket: _SupportsAsyncSend,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self._session_id = session_id
        self._websocket = websocket
        self._loop = loop
        self._send_queue: asyncio.Queue[str] | None = None
        self._sender_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background sender task.

        Must be called from within the asyncio event loop thread before any
        show_text calls are made.
        """
        self._send_queue = asyncio.Queue(maxsize=_SEND_QUEUE_MAXSIZE)
        self._sender_task = asyncio.get_running_loop().create_task(self._drain_loop())

    async def stop(self) -> None:
        """Cancel the sender task and wait for it to exit."""
        if self._sender_task is None:
            return
        self._sender_task.cancel()
        try:
            await self._sender_task
        except asyncio.CancelledError:
            pass
        self._sender_task = None

    # ------------------------------------------------------------------
    # DisplaySink protocol
    # ------------------------------------------------------------------

    def show_text(self, text: str) -> None:
        """Enqueue a rendered block for async delivery.

        Thread-safe: may be called from any thread.

        Args:
            text: Ready-to-render newline-joined block.
        """
        encoded = encode_server_message(WsDisplayEvent(session_id=self._session_id, text=text))
        self._loop.call_soon_threadsafe(self._put_nowait, encoded)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _put_nowait(self, encoded: str) -> None:
        """Put message on the queue, evicting the oldest if full; drop if not started (runs in loop thread)."""
        if self._send_queue is None:
            logger.warning("WsDisplaySink[%s]: not started, dropping display event", self._session_id)
            return
        if self._send_queue.full():
            self._send_queue.get_nowait()
            logger.debug(
                "WsDisplaySink[%s]: send queue full, dropped oldest display event", self._session_id
            )
        self._send_queue.put_nowait(encoded)

    async def _drain_loop(self) -> None:
        """Async task: drain the send queue and call websocket.send.

        Send errors are logged; the loop keeps draining until cancelled.
        """
        while True:
            encoded = await self._send_queue.get()
            try:
                await self._websocket.send(encoded)
            except Exception:
                logger.exception(
                    "WsDisplaySink[%s]: error sending display event", self._session_id
                )

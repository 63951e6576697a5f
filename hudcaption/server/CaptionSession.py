"""Per-WebSocket-connection caption session: owns one transcript processor.

Each CaptionSession isolates one connected recognizer's transcript state.
The session is created on WebSocket connect and destroyed on disconnect.
"""

import asyncio
import logging
from typing import Any

from hudcaption.network.types import WsTranscription
from hudcaption.RecognitionResultPublisher import RecognitionResultPublisher
from hudcaption.Scheduler import AsyncioScheduler
from hudcaption.server.WsDisplaySink import WsDisplaySink
from hudcaption.TranscriptDisplayController import TranscriptDisplayController
from hudcaption.types import RecognitionResult

logger = logging.getLogger(__name__)


class CaptionSession:
    """Owns and wires the per-session caption components.

    Wiring: handle_fragment → RecognitionResultPublisher →
    TranscriptDisplayController → TranscriptProcessor → WsDisplaySink → websocket.

    The processor's throttle timer runs on the connection's event loop via
    AsyncioScheduler, so fragment handling and deferred emission share one
    thread.

    Args:
        session_id: UUID string assigned to this session.
        websocket: Active WebSocket connection (must support async send).
        loop: asyncio event loop running the websocket handler.
        config: Application configuration dict (display section used).
        verbose: Enable debug logging in the session components.
    """

    def __init__(
        self,
        session_id: str,
        websocket: Any,
        loop: asyncio.AbstractEventLoop,
        config: dict,
        verbose: bool = False,
    ) -> None:
        self._session_id = session_id
        self._sink = WsDisplaySink(session_id=session_id, websocket=websocket, loop=loop)
        self._controller = TranscriptDisplayController(
            sink=self._sink,
            config=config,
            scheduler=AsyncioScheduler(loop),
            verbose=verbose,
        )
        self._publisher = RecognitionResultPublisher(verbose=verbose)
        self._publisher.subscribe(self._controller)
        self._fragment_count = 0

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def controller(self) -> TranscriptDisplayController:
        return self._controller

    @property
    def publisher(self) -> RecognitionResultPublisher:
        """Publisher that fans this session's fragments out; extra subscribers may attach."""
        return self._publisher

    async def start(self) -> None:
        """Start the display sink sender task (must run on the session loop)."""
        await self._sink.start()
        logger.info("CaptionSession[%s]: started", self._session_id)

    def handle_fragment(self, fragment: WsTranscription) -> None:
        """Publish one decoded transcription frame to the session subscribers.

        Args:
            fragment: Decoded client transcription frame.
        """
        self._fragment_count += 1
        result = RecognitionResult(
            text=fragment.text,
            status='final' if fragment.is_final else 'partial',
            language=fragment.language,
            timestamp=fragment.timestamp,
        )
        self._publisher.publish(result)

    def clear(self) -> None:
        """Reset the transcript and blank the client display."""
        self._controller.clear(blank_display=True)
        logger.info("CaptionSession[%s]: cleared", self._session_id)

    async def close(self) -> None:
        """Drop transcript state, cancel the throttle timer and stop the sender.

        Algorithm:
            1. Unsubscribe the controller so late fragments are ignored.
            2. Clear the processor; this cancels any outstanding timer.
            3. Stop WsDisplaySink, which cancels the async drain task.
        """
        self._publisher.unsubscribe(self._controller)
        self._controller.processor.clear()
        await self._sink.stop()
        logger.info(
            "CaptionSession[%s]: closed after %d fragments", self._session_id, self._fragment_count
        )

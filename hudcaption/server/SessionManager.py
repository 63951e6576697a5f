"""Session lifecycle manager: creates and destroys CaptionSession instances.

Every WebSocket connection is one transcription session with its own
TranscriptProcessor; no transcript state is shared between connections.
"""

import logging
import threading
import time
import uuid
from typing import Any

from hudcaption.network.codec import encode_server_message
from hudcaption.network.types import PROTOCOL_VERSION, WsSessionCreated
from hudcaption.server.CaptionSession import CaptionSession

logger = logging.getLogger(__name__)

_DISPLAY_CONFIG_KEYS = (
    "max_chars_per_line",
    "wide_glyph_max_chars_per_line",
    "max_lines",
    "throttle_interval_ms",
)


class SessionManager:
    """Creates and destroys CaptionSession objects; tracks active sessions.

    Args:
        config: Application configuration dict (display section used).
        verbose: Enable debug logging in created sessions.
    """

    def __init__(self, config: dict, verbose: bool = False) -> None:
        self._config = config
        self._verbose = verbose

        self._sessions: dict[str, CaptionSession] = {}
        self._sessions_lock = threading.Lock()

    def session_count(self) -> int:
        with self._sessions_lock:
            return len(self._sessions)

    def get_session(self, session_id: str) -> CaptionSession | None:
        with self._sessions_lock:
            return self._sessions.get(session_id)

    async def create_session(self, websocket: Any, loop: Any) -> CaptionSession:
        """Create a new CaptionSession for a connected WebSocket client.

        Algorithm:
            1. Generate UUID session_id.
            2. Build and start a CaptionSession.
            3. Send session_created JSON frame to client.

        Args:
            websocket: Active WebSocket connection.
            loop: asyncio event loop running the connection handler.

        Returns:
            Started CaptionSession instance.
        """
        session_id = str(uuid.uuid4())

        session = CaptionSession(
            session_id=session_id,
            websocket=websocket,
            loop=loop,
            config=self._config,
            verbose=self._verbose,
        )

        await session.start()

        with self._sessions_lock:
            self._sessions[session_id] = session

        display = self._config.get("display", {})
        created_msg = WsSessionCreated(
            session_id=session_id,
            protocol_version=PROTOCOL_VERSION,
            server_time=time.time(),
            display_config={key: display[key] for key in _DISPLAY_CONFIG_KEYS if key in display},
        )
        await websocket.send(encode_server_message(created_msg))
        logger.info("SessionManager: session created id=%s", session_id)
        return session

    async def destroy_session(self, session_id: str) -> None:
        """Close and remove a session by ID.

        Args:
            session_id: UUID of the session to destroy.
        """
        with self._sessions_lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            logger.warning("SessionManager: destroy_session called for unknown id=%s", session_id)
            return

        await session.close()
        logger.info("SessionManager: session destroyed id=%s", session_id)

    async def close_all_sessions(self) -> None:
        """Close all active sessions (called on server shutdown)."""
        with self._sessions_lock:
            session_items = list(self._sessions.items())
            self._sessions.clear()

        for session_id, session in session_items:
            try:
                await session.close()
            except Exception:
                logger.exception("SessionManager: error closing session %s", session_id)

        logger.info("SessionManager: all sessions closed")

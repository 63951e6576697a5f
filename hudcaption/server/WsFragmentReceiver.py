"""WebSocket fragment receiver: reads transcription frames for one session.

receive_fragments() is an async coroutine that runs for the lifetime of one
WebSocket session. It decodes text frames and hands transcription fragments
to the CaptionSession; control commands clear or end the session.
"""

import logging
from typing import Any, TYPE_CHECKING

from websockets.exceptions import ConnectionClosed

from hudcaption.network.codec import decode_client_message, encode_server_message
from hudcaption.network.types import WsControlCommand, WsError, WsTranscription

if TYPE_CHECKING:
    from hudcaption.server.CaptionSession import CaptionSession

logger = logging.getLogger(__name__)

_RETURN_SHUTDOWN = "shutdown"
_RETURN_EXHAUSTED = "exhausted"
_RETURN_CONNECTION_LOST = "connection_lost"


async def receive_fragments(websocket: Any, session: "CaptionSession") -> str:
    """Receive transcription frames from the WebSocket and feed the session.

    Runs until one of: shutdown command received, websocket closes, or the
    async iterator is exhausted (used in tests to supply a fixed sequence).

    Algorithm:
        1. Iterate over websocket messages.
        2. Binary message → send non-fatal INVALID_MESSAGE error, continue.
        3. Text message → decode as client message.
           - transcription → session.handle_fragment().
           - clear command → session.clear().
           - shutdown command → return "shutdown".
           - Undecodable → send non-fatal error, continue.
        4. ConnectionClosed → return "connection_lost".
        5. Async iterator exhausted → return "exhausted".

    Args:
        websocket: WebSocket connection object (must support async iteration and send).
        session: Session that owns the transcript state for this connection.

    Returns:
        Reason string: ``"shutdown"``, ``"connection_lost"``, or ``"exhausted"``.
    """
    session_id = session.session_id
    try:
        async for message in websocket:
            if isinstance(message, bytes):
                error = WsError(
                    session_id=session_id,
                    error_code="INVALID_MESSAGE",
                    message="binary frames are not supported",
                )
                await websocket.send(encode_server_message(error))
                continue

            stop, error = _handle_text(message, session)
            if error is not None:
                await websocket.send(encode_server_message(error))
            if stop:
                return _RETURN_SHUTDOWN
    except ConnectionClosed:
        logger.info("WsFragmentReceiver[%s]: connection closed", session_id)
        return _RETURN_CONNECTION_LOST

    return _RETURN_EXHAUSTED


def _handle_text(text: str, session: "CaptionSession") -> tuple[bool, WsError | None]:
    """Decode and dispatch one text frame.

    Args:
        text: Raw JSON string.
        session: Target session.

    Returns:
        (stop, error): stop is True for a shutdown command; error is a frame
        to send back to the client, or None.
    """
    session_id = session.session_id
    try:
        msg = decode_client_message(text)
    except ValueError as exc:
        code = "UNKNOWN_MESSAGE_TYPE" if "unknown message type" in str(exc) else "INVALID_MESSAGE"
        logger.warning("WsFragmentReceiver[%s]: rejected frame: %s", session_id, exc)
        return False, WsError(session_id=session_id, error_code=code, message=str(exc))

    if isinstance(msg, WsTranscription):
        try:
            session.handle_fragment(msg)
        except Exception as exc:
            logger.exception("WsFragmentReceiver[%s]: error processing fragment", session_id)
            return False, WsError(session_id=session_id, error_code="INTERNAL_ERROR", message=str(exc))
        return False, None

    if isinstance(msg, WsControlCommand):
        logger.info("WsFragmentReceiver[%s]: control command %s", session_id, msg.command)
        if msg.command == "shutdown":
            return True, None
        session.clear()

    return False, None

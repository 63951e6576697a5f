"""Encode and decode WebSocket wire protocol frames (v1).

All messages are UTF-8 JSON text frames carrying a ``type`` discriminator.
"""

import json

from hudcaption.network.types import (
    ClientMessage,
    ServerMessage,
    WsControlCommand,
    WsDisplayEvent,
    WsError,
    WsSessionCreated,
    WsTranscription,
)

_VALID_COMMANDS = ("clear", "shutdown")


# ---------------------------------------------------------------------------
# Server → client
# ---------------------------------------------------------------------------

def encode_server_message(msg: ServerMessage) -> str:
    """Encode a server-side message dataclass to a UTF-8 JSON string.

    Args:
        msg: One of WsSessionCreated, WsDisplayEvent, WsError.

    Returns:
        JSON string suitable for sending as a WebSocket text frame.

    Raises:
        TypeError: If msg is not a recognised server message type.
    """
    if isinstance(msg, WsSessionCreated):
        obj = {
            "type": "session_created",
            "session_id": msg.session_id,
            "protocol_version": msg.protocol_version,
            "server_time": msg.server_time,
            "display_config": msg.display_config,
        }
    elif isinstance(msg, WsDisplayEvent):
        obj = {
            "type": "display_event",
            "session_id": msg.session_id,
            "view": msg.view,
            "layout": {
                "layoutType": msg.layout_type,
                "text": msg.text,
            },
        }
    elif isinstance(msg, WsError):
        obj = {
            "type": "error",
            "session_id": msg.session_id,
            "error_code": msg.error_code,
            "message": msg.message,
            "fatal": msg.fatal,
        }
    else:
        raise TypeError(f"Unknown server message type: {type(msg)}")

    return json.dumps(obj, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Client → server
# ---------------------------------------------------------------------------

def decode_client_message(text: str) -> ClientMessage:
    """Decode a UTF-8 JSON text frame from the client into a typed dataclass.

    Args:
        text: Raw JSON string from a WebSocket text frame.

    Returns:
        WsTranscription or WsControlCommand.

    Raises:
        ValueError: On invalid JSON, missing/unknown type, or invalid field values.
    """
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in client message: {exc}") from exc

    if not isinstance(obj, dict):
        raise ValueError(f"Client message must be a JSON object, got {type(obj).__name__}")

    msg_type = obj.get("type")
    if msg_type is None:
        raise ValueError("Client message missing 'type' field")

    if msg_type == "transcription":
        return _decode_transcription(obj)

    if msg_type == "control_command":
        command = obj.get("command")
        if command not in _VALID_COMMANDS:
            raise ValueError(f"Invalid command value: {command!r} (must be one of {_VALID_COMMANDS})")
        return WsControlCommand(command=command, request_id=obj.get("request_id"))

    raise ValueError(f"unknown message type: {msg_type!r}")


def _decode_transcription(obj: dict) -> WsTranscription:
    """Validate and build a WsTranscription from a parsed JSON object.

    Raises:
        ValueError: If text, is_final, language or timestamp has the wrong type.
    """
    text = obj.get("text")
    if text is not None and not isinstance(text, str):
        raise ValueError(f"Invalid text: expected string or null, got {type(text).__name__}")

    is_final = obj.get("is_final", False)
    if is_final is None:
        is_final = False
    if not isinstance(is_final, bool):
        raise ValueError(f"Invalid is_final: expected boolean, got {is_final!r}")

    language = obj.get("language")
    if language is not None and not isinstance(language, str):
        raise ValueError(f"Invalid language: expected string or null, got {language!r}")

    timestamp = obj.get("timestamp", 0.0)
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise ValueError(f"Invalid timestamp: expected number, got {timestamp!r}")

    return WsTranscription(
        text=text,
        is_final=is_final,
        language=language,
        timestamp=float(timestamp),
    )

"""WebSocket wire protocol message types for the caption protocol (v1)."""

from dataclasses import dataclass, field
from typing import Literal


PROTOCOL_VERSION = "v1"


# ---------------------------------------------------------------------------
# Client → Server
# ---------------------------------------------------------------------------

@dataclass
class WsTranscription:
    """JSON transcription frame: one speech-to-text fragment from the recognizer.

    Args:
        text: Fragment text; None is accepted and treated as empty.
        is_final: ``True`` for a confirmed fragment, ``False`` for an interim one.
        language: Transcription language code; None keeps the session's layout mode.
        timestamp: Recognizer wall-clock time of the fragment.
    """

    text: str | None
    is_final: bool = False
    language: str | None = None
    timestamp: float = 0.0


@dataclass
class WsControlCommand:
    """JSON control_command frame.

    Args:
        command: ``"clear"`` resets the session transcript; ``"shutdown"`` ends the session.
        request_id: Optional correlation identifier for tracing.
    """

    command: Literal["clear", "shutdown"]
    request_id: str | None = None


# ---------------------------------------------------------------------------
# Server → Client
# ---------------------------------------------------------------------------

@dataclass
class WsSessionCreated:
    """JSON session_created frame sent from server to client after connect.

    Args:
        session_id: UUID assigned to this session.
        protocol_version: Wire protocol version string (``"v1"``).
        server_time: Server wall-clock time at session creation.
        display_config: Line geometry and throttle settings the session uses.
    """

    session_id: str
    protocol_version: str
    server_time: float
    display_config: dict = field(default_factory=dict)


@dataclass
class WsDisplayEvent:
    """JSON display_event frame carrying one ready-to-render text wall.

    Args:
        session_id: Session this block belongs to.
        text: Newline-joined block of exactly max_lines lines.
        view: Target display view.
        layout_type: Display layout; the caption server only emits ``"text_wall"``.
    """

    session_id: str
    text: str
    view: str = "main"
    layout_type: str = "text_wall"


@dataclass
class WsError:
    """JSON error frame sent from server to client.

    Args:
        session_id: Session this error relates to.
        error_code: Machine-readable error code (v1 enum).
        message: Human-readable description.
        fatal: If ``True``, the server closes the connection immediately after sending.
    """

    session_id: str
    error_code: Literal[
        "INVALID_MESSAGE",
        "UNKNOWN_MESSAGE_TYPE",
        "INTERNAL_ERROR",
    ]
    message: str
    fatal: bool = False


# ---------------------------------------------------------------------------
# Union types
# ---------------------------------------------------------------------------

ServerMessage = WsSessionCreated | WsDisplayEvent | WsError
ClientMessage = WsTranscription | WsControlCommand

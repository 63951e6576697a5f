"""Caption server entry object: wires SessionManager into WsServer and tracks shutdown."""

import logging
import threading

from hudcaption.server.SessionManager import SessionManager
from hudcaption.server.WsServer import WsServer

logger = logging.getLogger(__name__)


class ServerApp:
    """Runs one caption server from start() until stop().

    The owning thread calls start(), then blocks in wait_for_shutdown() until
    another thread calls request_shutdown() (or stop() directly).

    Args:
        config: Application config dict (display and server sections).
        host: WebSocket host to bind on; defaults to config server.host.
        port: WebSocket port to bind on; defaults to config server.port, 0 for OS-assigned.
        verbose: Enable debug logging in sessions.
    """

    def __init__(
        self,
        config: dict,
        host: str | None = None,
        port: int | None = None,
        verbose: bool = False,
    ) -> None:
        server_config = config.get("server", {})
        self._running = False
        self._stopped = False
        self._shutdown_requested = threading.Event()

        self.session_manager = SessionManager(config=config, verbose=verbose)
        self._ws_server = WsServer(
            session_manager=self.session_manager,
            host=host if host is not None else server_config.get("host", "127.0.0.1"),
            port=port if port is not None else server_config.get("port", 0),
        )

    @property
    def port(self) -> int:
        """Bound WebSocket port (available after start())."""
        return self._ws_server.port

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Bind and start accepting clients.

        Raises:
            RuntimeError: If the app was already stopped; a ServerApp runs once.
            OSError: If the port cannot be bound.
        """
        if self._stopped:
            raise RuntimeError("ServerApp cannot be restarted after stop()")
        self._ws_server.start()
        self._running = True
        logger.info("ServerApp: running on port %s", self.port)

    def request_shutdown(self) -> None:
        """Release wait_for_shutdown(); safe to call from any thread."""
        self._shutdown_requested.set()

    def wait_for_shutdown(self, timeout: float | None = None) -> bool:
        """Block until shutdown is requested.

        Returns:
            True if shutdown was requested, False on timeout
        """
        return self._shutdown_requested.wait(timeout)

    def stop(self) -> None:
        """Close all sessions and the listener; repeated calls do nothing."""
        if self._stopped:
            return
        self._stopped = True
        self._running = False
        self._shutdown_requested.set()

        self._ws_server.stop()
        self._ws_server.join()
        logger.info("ServerApp: stopped")

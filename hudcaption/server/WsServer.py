"""WebSocket listener for caption sessions.

The listener owns a background thread running its own asyncio loop via
asyncio.run(). Every accepted connection becomes one CaptionSession for as
long as the client keeps sending fragments.
"""

import asyncio
import logging
import threading

import websockets
from websockets.exceptions import ConnectionClosed

from hudcaption.server.SessionManager import SessionManager
from hudcaption.server.WsFragmentReceiver import receive_fragments

logger = logging.getLogger(__name__)


class WsServer:
    """Accepts caption clients on host:port and runs one session per connection.

    start() returns once the socket is bound, so ``port`` holds the real port
    even when 0 was requested. stop() may be called from any thread; the
    listener then closes every open session before its thread exits.

    Args:
        session_manager: Creates and destroys per-connection sessions.
        host: Interface to bind.
        port: Port to bind; 0 lets the OS choose.
    """

    def __init__(
        self,
        session_manager: SessionManager,
        host: str = "127.0.0.1",
        port: int = 0,
    ) -> None:
        self._session_manager = session_manager
        self._host = host
        self._port = port
        self._thread: threading.Thread | None = None
        self._bound = threading.Event()
        self._bind_error: OSError | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closing: asyncio.Event | None = None

    @property
    def port(self) -> int:
        return self._port

    def start(self) -> None:
        """Launch the listener thread and block until the socket is bound.

        Raises:
            OSError: If host:port cannot be bound.
        """
        self._thread = threading.Thread(target=self._thread_main, daemon=True, name="WsServer")
        self._thread.start()
        self._bound.wait()
        if self._bind_error is not None:
            raise self._bind_error

    def stop(self) -> None:
        """Ask the listener to close sessions and exit; returns immediately."""
        loop, closing = self._loop, self._closing
        if loop is None or closing is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(closing.set)
        except RuntimeError:
            # Loop finished between the check and the call
            pass

    def join(self, timeout: float = 5.0) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def _thread_main(self) -> None:
        try:
            asyncio.run(self._listen())
        except OSError as exc:
            if self._bound.is_set():
                logger.exception("WsServer: listener failed")
            else:
                self._bind_error = exc
        except Exception:
            logger.exception("WsServer: listener failed")
        finally:
            # Never leave start() blocked
            self._bound.set()

    async def _listen(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._closing = asyncio.Event()

        async with websockets.serve(self._serve_client, self._host, self._port) as server:
            self._port = server.sockets[0].getsockname()[1]
            logger.info("WsServer: accepting caption clients on %s:%s", self._host, self._port)
            self._bound.set()

            await self._closing.wait()
            logger.info("WsServer: closing %d open session(s)", self._session_manager.session_count())
            await self._session_manager.close_all_sessions()

        logger.info("WsServer: listener closed")

    async def _serve_client(self, websocket, path: str = "/") -> None:
        """Run one caption session from connect to disconnect."""
        session = await self._session_manager.create_session(websocket, asyncio.get_running_loop())
        try:
            reason = await receive_fragments(websocket=websocket, session=session)
            logger.info("WsServer: session %s ended (%s)", session.session_id, reason)
        except ConnectionClosed:
            logger.info("WsServer: session %s lost its connection", session.session_id)
        except Exception:
            logger.exception("WsServer: session %s failed", session.session_id)
        finally:
            await self._session_manager.destroy_session(session.session_id)

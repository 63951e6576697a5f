"""One-shot timer schedulers used to defer throttled display updates.

ThreadingScheduler fires callbacks on daemon timer threads and needs no event
loop. AsyncioScheduler fires callbacks on an asyncio event loop thread, which
keeps every processor call on a single thread when the host is async.
"""

import asyncio
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ThreadingScheduler:
    """Scheduler backed by threading.Timer.

    Each schedule() call starts its own daemon timer thread. Callbacks run on
    that timer thread, so callers must synchronize any state they touch.
    """

    def __init__(self, name: str = "CaptionTimer") -> None:
        self._name = name

    def schedule(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        """Start a daemon timer that calls callback after delay seconds.

        Args:
            delay: Seconds to wait; negative values fire immediately
            callback: Zero-argument callable

        Returns:
            The started threading.Timer, used as cancel handle
        """
        timer = threading.Timer(max(delay, 0.0), callback)
        timer.daemon = True
        timer.name = self._name
        timer.start()
        return timer

    def cancel(self, handle: Optional[threading.Timer]) -> None:
        if handle is not None:
            handle.cancel()


class AsyncioScheduler:
    """Scheduler backed by loop.call_later.

    Args:
        loop: Event loop that runs the callbacks. When omitted the running loop
            is resolved on first use, so the scheduler must then be used from
            inside a coroutine or loop callback.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        """Schedule callback on the event loop after delay seconds.

        Must be called from the loop thread (call_later is not thread-safe).

        Returns:
            asyncio.TimerHandle, used as cancel handle
        """
        return self._get_loop().call_later(max(delay, 0.0), self._run, callback)

    def cancel(self, handle: Optional[asyncio.TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("AsyncioScheduler: deferred callback failed")

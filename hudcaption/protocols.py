"""Protocol definitions for caption display components.

This module defines structural interfaces using Python's Protocol for duck typing.
"""

from typing import Any, Callable, Protocol
from hudcaption.types import RecognitionResult


class TextRecognitionSubscriber(Protocol):
    """Subscriber interface for text recognition events.

    Components implementing this protocol can receive notifications about
    speech recognition results. The protocol uses structural subtyping,
    so classes don't need explicit inheritance - just matching method signatures.
    """

    def on_partial_update(self, result: RecognitionResult) -> None:
        """Handle an interim recognition result.

        Args:
            result: RecognitionResult with status='partial'
        """
        ...

    def on_finalization(self, result: RecognitionResult) -> None:
        """Handle a confirmed recognition result.

        Args:
            result: RecognitionResult with status='final'
        """
        ...


class Scheduler(Protocol):
    """One-shot deferred callback facility.

    Implementations return an opaque handle from schedule(); cancelling a
    handle that already fired or was already cancelled must be a no-op.
    """

    def schedule(self, delay: float, callback: Callable[[], None]) -> Any:
        """Run callback once after delay seconds.

        Returns:
            Handle accepted by cancel()
        """
        ...

    def cancel(self, handle: Any) -> None:
        ...


class DisplaySink(Protocol):
    """Receives ready-to-render text blocks (display or transport)."""

    def show_text(self, text: str) -> None:
        ...

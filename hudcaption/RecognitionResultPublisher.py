"""Publisher for text recognition events with thread-safe subscriber management.

This module implements the Observer pattern's publisher component, letting
several consumers (HUD display controller, loggers, transports) receive the
same stream of recognition fragments independently.
"""

import threading
import logging
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from hudcaption.protocols import TextRecognitionSubscriber
    from hudcaption.types import RecognitionResult


class RecognitionResultPublisher:
    """Manages subscribers and publishes text recognition events.

    Thread Safety:
        - Subscription management uses a lock for thread-safe registration
        - Subscriber list is copied before iteration (lock released during callbacks)
        - No locks held during subscriber callbacks (prevents deadlocks)

    Error Handling:
        - Each subscriber notification is wrapped in try-except
        - Exceptions logged but don't affect other subscribers

    Example:
        >>> publisher = RecognitionResultPublisher(verbose=True)
        >>> publisher.subscribe(display_controller)
        >>> publisher.publish(result)  # routed by result.status
    """

    def __init__(self, verbose: bool = False) -> None:
        self._subscribers: List['TextRecognitionSubscriber'] = []
        self._lock: threading.Lock = threading.Lock()
        self._verbose: bool = verbose

    def subscribe(self, subscriber: 'TextRecognitionSubscriber') -> None:
        """Register a subscriber for text recognition events.

        Idempotent - registering the same subscriber twice has no additional effect.

        Args:
            subscriber: Object implementing TextRecognitionSubscriber protocol
        """
        with self._lock:
            if subscriber not in self._subscribers:
                self._subscribers.append(subscriber)
                if self._verbose:
                    logging.info(f"Subscriber registered: {subscriber.__class__.__name__}")

    def unsubscribe(self, subscriber: 'TextRecognitionSubscriber') -> None:
        """Unregister a subscriber. Unregistering a non-existent subscriber is a no-op."""
        with self._lock:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)
                if self._verbose:
                    logging.info(f"Subscriber unregistered: {subscriber.__class__.__name__}")

    def publish(self, result: 'RecognitionResult') -> None:
        """Route a fragment to publish_finalization or publish_partial_update by its status."""
        if result.is_final:
            self.publish_finalization(result)
        else:
            self.publish_partial_update(result)

    def publish_partial_update(self, result: 'RecognitionResult') -> None:
        """Publish a partial recognition result to all subscribers.

        Args:
            result: RecognitionResult with status='partial'
        """
        # Copy subscriber list under lock, then notify outside lock
        with self._lock:
            subscribers = list(self._subscribers)

        for subscriber in subscribers:
            try:
                subscriber.on_partial_update(result)
            except Exception as e:
                logging.error(
                    f"Subscriber {subscriber.__class__.__name__} failed on_partial_update: {e}",
                    exc_info=True
                )

    def publish_finalization(self, result: 'RecognitionResult') -> None:
        """Publish a final recognition result to all subscribers.

        Args:
            result: RecognitionResult with status='final'
        """
        with self._lock:
            subscribers = list(self._subscribers)

        for subscriber in subscribers:
            try:
                subscriber.on_finalization(result)
            except Exception as e:
                logging.error(
                    f"Subscriber {subscriber.__class__.__name__} failed on_finalization: {e}",
                    exc_info=True
                )

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

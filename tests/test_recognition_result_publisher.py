"""Tests for RecognitionResultPublisher (Observer pattern implementation)."""

import threading
import time
from unittest.mock import Mock

import pytest

from hudcaption.RecognitionResultPublisher import RecognitionResultPublisher
from hudcaption.types import RecognitionResult


# Test Fixtures

@pytest.fixture
def publisher():
    return RecognitionResultPublisher(verbose=False)


@pytest.fixture
def partial_result():
    return RecognitionResult(text="hello wor", status="partial", language="en-US", timestamp=1.0)


@pytest.fixture
def final_result():
    return RecognitionResult(text="hello world", status="final", language="en-US", timestamp=1.5)


# Subscription Management Tests

def test_subscribe_adds_subscriber(publisher):
    assert publisher.subscriber_count() == 0

    publisher.subscribe(Mock())

    assert publisher.subscriber_count() == 1


def test_duplicate_subscribe_ignored(publisher):
    """Subscribing the same object twice is idempotent."""
    subscriber = Mock()
    publisher.subscribe(subscriber)
    publisher.subscribe(subscriber)

    assert publisher.subscriber_count() == 1


def test_unsubscribe_nonexistent_subscriber_safe(publisher):
    publisher.unsubscribe(Mock())
    assert publisher.subscriber_count() == 0


# Notification Tests

def test_publish_routes_partial_by_status(publisher, partial_result):
    subscriber = Mock()
    publisher.subscribe(subscriber)

    publisher.publish(partial_result)

    subscriber.on_partial_update.assert_called_once_with(partial_result)
    subscriber.on_finalization.assert_not_called()


def test_publish_routes_final_by_status(publisher, final_result):
    subscriber = Mock()
    publisher.subscribe(subscriber)

    publisher.publish(final_result)

    subscriber.on_finalization.assert_called_once_with(final_result)
    subscriber.on_partial_update.assert_not_called()


def test_publish_after_unsubscribe_skips_unsubscribed(publisher, partial_result):
    sub1 = Mock()
    sub2 = Mock()
    publisher.subscribe(sub1)
    publisher.subscribe(sub2)

    publisher.unsubscribe(sub1)
    publisher.publish_partial_update(partial_result)

    sub1.on_partial_update.assert_not_called()
    sub2.on_partial_update.assert_called_once_with(partial_result)


# Error Isolation Tests

def test_subscriber_exception_isolation(publisher, partial_result, caplog):
    """An exception in one subscriber doesn't affect the others."""
    sub1 = Mock()
    sub2 = Mock()
    sub2.on_partial_update.side_effect = RuntimeError("Subscriber failed!")
    sub3 = Mock()
    for sub in (sub1, sub2, sub3):
        publisher.subscribe(sub)

    publisher.publish_partial_update(partial_result)

    sub1.on_partial_update.assert_called_once_with(partial_result)
    sub3.on_partial_update.assert_called_once_with(partial_result)
    assert "failed on_partial_update" in caplog.text


def test_finalization_exception_isolation(publisher, final_result, caplog):
    sub1 = Mock()
    sub1.on_finalization.side_effect = ValueError("Bad data!")
    sub2 = Mock()
    publisher.subscribe(sub1)
    publisher.subscribe(sub2)

    publisher.publish_finalization(final_result)

    sub2.on_finalization.assert_called_once_with(final_result)
    assert "failed on_finalization" in caplog.text


# Thread Safety Tests

def test_thread_safe_subscription(publisher):
    """Concurrent subscribe/unsubscribe from multiple threads is safe."""
    subscribers = [Mock() for _ in range(10)]
    errors = []

    def subscribe_unsubscribe_loop(sub):
        try:
            for _ in range(20):
                publisher.subscribe(sub)
                time.sleep(0.001)
                publisher.unsubscribe(sub)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=subscribe_unsubscribe_loop, args=(sub,))
               for sub in subscribers]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert publisher.subscriber_count() == 0


def test_result_is_final_property():
    assert RecognitionResult(text="x", status="final").is_final
    assert not RecognitionResult(text="x", status="partial").is_final

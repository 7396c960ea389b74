"""In-process publish/subscribe for sync notifications.

Publishing is fire-and-forget: a failing subscriber is logged and skipped,
and never affects the publisher or the other subscribers.
"""

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, Any], None]


@runtime_checkable
class NotificationSink(Protocol):
    """Anything that accepts ``publish(topic, payload)``."""

    def publish(self, topic: str, payload: Any) -> None:
        ...


class PubSub:
    """Topic-based fan-out to registered callbacks.

    Example:
        >>> bus = PubSub()
        >>> bus.subscribe("account:1:project:2:content_admin", print)
        >>> bus.publish("account:1:project:2:content_admin", {"total_files": 3})
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, topic: str, callback: Subscriber) -> None:
        with self._lock:
            self._subscribers[topic].append(callback)

    def unsubscribe(self, topic: str, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers.get(topic, []):
                self._subscribers[topic].remove(callback)

    def publish(self, topic: str, payload: Any) -> None:
        """Deliver ``payload`` to every subscriber of ``topic``."""
        with self._lock:
            callbacks = list(self._subscribers.get(topic, []))

        for callback in callbacks:
            try:
                callback(topic, payload)
            except Exception as e:
                logger.warning(f"Subscriber {callback!r} failed on topic {topic}: {e}")

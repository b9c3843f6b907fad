"""
Lightweight event bus delivering gesture events to subscribers.

Subscribers are plain callables receiving a GestureEvent. subscribe()
returns a Subscription token that is the only handle for unsubscribing, so
the same callable may be registered twice and removed independently.

Usage:
    bus = EventBus()
    token = bus.subscribe(on_gesture)
    bus.publish(event)
    bus.unsubscribe(token)
"""

import itertools
import logging
from collections import deque
from typing import Callable, List

logger = logging.getLogger(__name__)


class Subscription:
    """Opaque unsubscribe token returned by EventBus.subscribe()."""

    __slots__ = ("id", "callback", "active")

    def __init__(self, sub_id: int, callback: Callable):
        self.id = sub_id
        self.callback = callback
        # Cleared on unsubscribe/close so an in-flight delivery skips it
        self.active = True

    def __repr__(self):
        return f"Subscription({self.id}, {_callback_name(self.callback)})"


def _callback_name(callback) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)


class EventBus:
    """Synchronous publish/subscribe bus for one engine instance.

    Delivery happens in subscription order on the publishing thread; a
    failing subscriber is logged and skipped.
    """

    def __init__(self, replay_log_size: int = 100):
        self._subscriptions: List[Subscription] = []
        self._ids = itertools.count(1)
        self._event_history = deque(maxlen=replay_log_size)
        self._closed = False

    def subscribe(self, callback: Callable) -> Subscription:
        """Register a subscriber.

        Raises:
            TypeError: callback is not callable
            RuntimeError: the bus has been closed
        """
        if not callable(callback):
            raise TypeError(f"subscriber must be callable, got {type(callback).__name__}")
        if self._closed:
            raise RuntimeError("cannot subscribe to a closed event bus")

        token = Subscription(next(self._ids), callback)
        self._subscriptions.append(token)
        logger.debug("Subscribed %s", token)
        return token

    def unsubscribe(self, token: Subscription) -> bool:
        """Remove a subscriber. Returns False if the token was not registered."""
        for i, sub in enumerate(self._subscriptions):
            if sub is token:
                del self._subscriptions[i]
                token.active = False
                logger.debug("Unsubscribed %s", token)
                return True
        return False

    def publish(self, event) -> int:
        """Deliver an event to every current subscriber.

        Returns:
            Number of subscribers that handled the event without raising
        """
        if self._closed:
            return 0

        self._event_history.append(event)

        delivered = 0
        # Snapshot so subscribers may (un)subscribe during delivery; new
        # subscribers wait for the next event, removed ones are skipped
        for sub in list(self._subscriptions):
            if self._closed:
                break
            if not sub.active:
                continue
            try:
                sub.callback(event)
                delivered += 1
            except Exception as e:
                logger.error("Gesture subscriber error [%s -> %s]: %s",
                             event.type.value, _callback_name(sub.callback), e)
        return delivered

    def get_history(self, last_n: int = 10) -> list:
        """Get recently published events, oldest first."""
        if last_n <= 0:
            return []
        return list(self._event_history)[-last_n:]

    def close(self):
        """Drop all subscribers and the replay log; later publishes are no-ops."""
        for sub in self._subscriptions:
            sub.active = False
        self._subscriptions.clear()
        self._event_history.clear()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

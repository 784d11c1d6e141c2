"""Push-based change streams."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")

Unsubscribe = Callable[[], None]

_logger = logging.getLogger(__name__)


@dataclass
class ChangeStream(Generic[T]):
    """Fan out values to subscribers until they unsubscribe."""

    _listeners: dict[int, Callable[[T], None]] = field(default_factory=dict)
    _next_id: int = 0

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        """Register a callback and return a function that removes it."""
        listener_id = self._next_id
        self._next_id += 1
        self._listeners[listener_id] = callback

        def unsubscribe() -> None:
            self._listeners.pop(listener_id, None)

        return unsubscribe

    def publish(self, value: T) -> None:
        """Deliver a value to every current subscriber."""
        for listener_id, callback in list(self._listeners.items()):
            try:
                callback(value)
            except Exception:
                _logger.exception("Change listener %s failed", listener_id)

    @property
    def subscriber_count(self) -> int:
        """Number of active subscribers."""
        return len(self._listeners)


@dataclass
class KeyedChangeStream(Generic[T]):
    """Change streams partitioned by key, created on first subscription."""

    _streams: dict[str, ChangeStream[T]] = field(default_factory=dict)

    def subscribe(self, key: str, callback: Callable[[T], None]) -> Unsubscribe:
        """Subscribe to changes for a single key."""
        stream = self._streams.setdefault(key, ChangeStream())
        unsubscribe_stream = stream.subscribe(callback)

        def unsubscribe() -> None:
            unsubscribe_stream()
            if stream.subscriber_count == 0 and self._streams.get(key) is stream:
                del self._streams[key]

        return unsubscribe

    def publish(self, key: str, value: T) -> None:
        """Deliver a value to subscribers of a key."""
        stream = self._streams.get(key)
        if stream is not None:
            stream.publish(value)

    def subscriber_count(self, key: str) -> int:
        """Number of active subscribers for a key."""
        stream = self._streams.get(key)
        return stream.subscriber_count if stream else 0

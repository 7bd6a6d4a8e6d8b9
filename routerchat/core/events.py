"""
Explicit publish/subscribe channel.

Components that need to observe the chat service (history, SSE responses)
subscribe to a channel it owns instead of relying on a process-wide
notification bus. Publishing is synchronous and happens on the event loop
that owns the channel, so subscribers never see concurrent writes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

from routerchat.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class EventChannel(Generic[T]):
    """Single-writer fan-out of values to registered callbacks."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: list[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, value: T) -> None:
        """Deliver a value to every subscriber in registration order."""
        for callback in list(self._subscribers):
            try:
                callback(value)
            except Exception:
                # A broken subscriber must not abort the publishing turn.
                logger.exception(
                    "Event subscriber failed", data={"channel": self.name}
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

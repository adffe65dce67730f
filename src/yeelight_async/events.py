"""Typed event streams with explicit subscription.

Components expose an :class:`EventStream` per kind of event (notifications,
errors, found devices). Subscribers are plain callables and are invoked
synchronously, one at a time, in subscription order. Events are delivered in
the order they are published.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Handler = Callable[[T], None]


class EventStream(Generic[T]):
    """A stream of events of one type.

    Example:
        ```python
        def on_props(notification: Notification) -> None:
            print(notification.params)

        unsubscribe = device.notifications.subscribe(on_props)
        ...
        unsubscribe()
        ```
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._handlers: list[Handler[T]] = []

    def subscribe(self, handler: Handler[T]) -> Callable[[], None]:
        """Register a handler.

        Args:
            handler: Callable invoked with each published event

        Returns:
            A callable that removes the handler again
        """
        self._handlers.append(handler)
        return lambda: self.unsubscribe(handler)

    def unsubscribe(self, handler: Handler[T]) -> None:
        """Remove a handler. Removing an unknown handler is a no-op."""
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    def publish(self, event: T) -> None:
        """Deliver an event to every current subscriber.

        A failing handler is logged and does not prevent delivery to the
        remaining handlers.
        """
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                _LOGGER.exception(
                    {
                        "class": "EventStream",
                        "method": "publish",
                        "stream": self.name,
                        "handler": getattr(handler, "__qualname__", repr(handler)),
                    }
                )

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()

    @property
    def subscriber_count(self) -> int:
        """Number of registered handlers."""
        return len(self._handlers)

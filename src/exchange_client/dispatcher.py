"""Event Dispatcher - pub/sub registry for push and lifecycle events.

Callbacks are registered per event name and invoked synchronously, in
subscription order, with the event payload. A failing callback is logged
and never prevents delivery to the ones after it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# Callbacks receive the payload. Coroutine functions are scheduled as tasks.
EventCallback = Callable[[Any], Any]


def _event_key(event: str | Enum) -> str:
    return event.value if isinstance(event, Enum) else event


class EventDispatcher:
    """Maps event names to ordered lists of callbacks.

    Usage:
        dispatcher = EventDispatcher()
        unsubscribe = dispatcher.subscribe("price_update", on_price)
        dispatcher.publish("price_update", {"price": 65000})
        unsubscribe()
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[EventCallback]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def subscribe(self, event: str | Enum, callback: EventCallback) -> Callable[[], None]:
        """Register a callback. The same callback may be registered twice.

        Returns:
            Function that removes this registration
        """
        key = _event_key(event)
        self._subscriptions.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(key, callback)

        return unsubscribe

    def unsubscribe(self, event: str | Enum, callback: EventCallback) -> None:
        """Remove the first registration of exactly this callback."""
        callbacks = self._subscriptions.get(_event_key(event))
        if not callbacks:
            return
        for index, registered in enumerate(callbacks):
            if registered is callback:
                del callbacks[index]
                return

    def publish(self, event: str | Enum, payload: Any = None) -> int:
        """Deliver a payload to every current subscriber of an event.

        Returns:
            Number of callbacks invoked
        """
        key = _event_key(event)
        # Copy so callbacks may (un)subscribe while we iterate
        callbacks = list(self._subscriptions.get(key, []))
        if not callbacks:
            logger.debug(f"No subscribers for {key}")
            return 0

        for callback in callbacks:
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    self._track(key, result)
            except Exception:
                logger.exception(f"Error in subscriber for {key}")
        return len(callbacks)

    def listener_count(self, event: str | Enum) -> int:
        return len(self._subscriptions.get(_event_key(event), []))

    def clear(self) -> None:
        """Drop every subscription."""
        self._subscriptions.clear()

    def _track(self, key: str, awaitable: Any) -> None:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)

        def done(t: asyncio.Task[Any]) -> None:
            self._tasks.discard(t)
            if not t.cancelled() and t.exception() is not None:
                logger.error(f"Async subscriber for {key} failed", exc_info=t.exception())

        task.add_done_callback(done)

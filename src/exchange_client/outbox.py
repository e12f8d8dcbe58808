"""Outbox - requests created while no connection is available.

Requests wait here in invocation order and are handed to the correlator
once the supervisor reports the channel open.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from .errors import ShutdownError, TransportError

logger = logging.getLogger(__name__)


@dataclass
class QueuedRequest:
    """A request that has an id and a caller future but was not sent yet."""

    id: str
    action: str
    payload: dict[str, Any]
    future: asyncio.Future[Any]
    created_at: float = field(default_factory=time.time)


class Outbox:
    """FIFO buffer of queued requests."""

    def __init__(self) -> None:
        self._queue: deque[QueuedRequest] = deque()

    def __len__(self) -> int:
        return len(self._queue)

    def __iter__(self) -> Iterator[QueuedRequest]:
        return iter(list(self._queue))

    def enqueue(self, request: QueuedRequest) -> None:
        self._queue.append(request)
        logger.debug(f"Queued {request.action} (id={request.id}, depth={len(self._queue)})")

    def push_front(self, request: QueuedRequest) -> None:
        """Return a request to the head after a failed transmit."""
        self._queue.appendleft(request)

    def drain(self, transmit: Callable[[QueuedRequest], object]) -> int:
        """Hand queued requests to ``transmit`` in FIFO order.

        Stops at the first TransportError, putting that request back at the
        head so it is the first one sent on the next drain.

        Returns:
            Number of requests transmitted
        """
        sent = 0
        while self._queue:
            request = self._queue.popleft()
            if request.future.done():
                # Caller cancelled the future while it was queued
                continue
            try:
                transmit(request)
            except TransportError as e:
                self._queue.appendleft(request)
                logger.warning(f"Outbox drain stopped after {sent} request(s): {e}")
                break
            sent += 1
        if sent:
            logger.info(f"Drained {sent} queued request(s)")
        return sent

    def clear(self, reason: str) -> int:
        """Reject every queued request with a ShutdownError and empty the outbox."""
        dropped = 0
        while self._queue:
            request = self._queue.popleft()
            if not request.future.done():
                request.future.set_exception(ShutdownError(reason))
            dropped += 1
        return dropped

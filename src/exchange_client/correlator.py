"""Request Correlator - matches responses to in-flight requests.

Every transmitted request gets a PendingRequest entry with its own deadline
timer. An entry leaves the table on exactly one of three paths (response,
deadline, shutdown) and is always removed *before* its future is settled,
so a late response can never settle a future twice.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

from .errors import RequestTimeoutError, ServerRejectionError, ShutdownError
from .outbox import QueuedRequest
from .protocol.frames import RequestFrame, ResponseFrame
from .transport.base import Channel

logger = logging.getLogger(__name__)


def new_request_id() -> str:
    """Process-unique request id: monotonic clock plus random suffix."""
    return f"req_{time.monotonic_ns():x}{uuid.uuid4().hex[:8]}"


@dataclass
class PendingRequest:
    """A transmitted request awaiting its response."""

    id: str
    action: str
    future: asyncio.Future[Any]
    deadline: float
    timer: asyncio.TimerHandle | None = None


def _settle(future: asyncio.Future[Any], result: Any = None, error: BaseException | None = None) -> bool:
    """Resolve or reject a future unless the caller already cancelled it."""
    if future.done():
        return False
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)
    return True


class RequestCorrelator:
    """Tracks in-flight requests by id."""

    def __init__(self, channel: Channel, request_timeout: float = 30.0):
        self._channel = channel
        self.request_timeout = request_timeout
        self._pending: dict[str, PendingRequest] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._pending

    def transmit(self, request: QueuedRequest) -> PendingRequest:
        """Register a request and write it to the channel.

        Raises:
            TransportError: If the channel refused the frame. The request is
                no longer pending and may be queued again by the caller.
            ValueError: If a request with the same id is already in flight.
        """
        if request.id in self._pending:
            raise ValueError(f"Request {request.id} already in flight")

        loop = asyncio.get_running_loop()
        pending = PendingRequest(
            id=request.id,
            action=request.action,
            future=request.future,
            deadline=loop.time() + self.request_timeout,
        )
        pending.timer = loop.call_later(self.request_timeout, self._expire, request.id)
        self._pending[request.id] = pending

        frame = RequestFrame(id=request.id, action=request.action, payload=request.payload)
        try:
            self._channel.send(frame)
        except Exception:
            self._discard(request.id)
            raise
        logger.debug(f"Sent {request.action} (id={request.id})")
        return pending

    def on_response(self, frame: ResponseFrame) -> bool:
        """Settle the request a response belongs to.

        Returns:
            False if no request with that id is in flight (frame ignored)
        """
        pending = self._discard(frame.id)
        if pending is None:
            logger.debug(f"Dropping response for unknown request id={frame.id}")
            return False

        if frame.success:
            _settle(pending.future, frame.data)
        else:
            _settle(
                pending.future,
                error=ServerRejectionError(frame.error_message(), frame.id, pending.action),
            )
        return True

    def fail_all(self, reason: str) -> int:
        """Reject every in-flight request with a ShutdownError."""
        ids = list(self._pending)
        for request_id in ids:
            pending = self._discard(request_id)
            if pending is not None:
                _settle(pending.future, error=ShutdownError(reason))
        return len(ids)

    def _expire(self, request_id: str) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return
        logger.warning(f"Request {pending.action} timed out (id={request_id})")
        _settle(pending.future, error=RequestTimeoutError(request_id, self.request_timeout))

    def _discard(self, request_id: str) -> PendingRequest | None:
        pending = self._pending.pop(request_id, None)
        if pending is not None and pending.timer is not None:
            pending.timer.cancel()
        return pending

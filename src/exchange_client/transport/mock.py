"""In-memory channel for testing.

No actual I/O - opening, closing and server traffic are driven by the test.

Usage:
    channel = MockChannel()
    client = ExchangeClient(channel=channel, token_provider=static_token("t"))
    future = client.invoke("user.balances")
    await asyncio.sleep(0)           # let the scheduled open complete
    channel.respond(channel.sent[0].id, {"balance": 100})
    assert await future == {"balance": 100}
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..errors import TransportError
from ..protocol.frames import RequestFrame, ResponseFrame
from .base import Channel

logger = logging.getLogger(__name__)


class MockChannel(Channel):
    """Channel whose server side is scripted by the caller.

    Args:
        auto_open: Report ``on_channel_open`` on the next loop iteration
            after ``open()``. When False, call ``accept()`` or ``fail()``.
        open_error: If set, every ``open()`` reports this error instead.
    """

    def __init__(self, auto_open: bool = True, open_error: Exception | None = None):
        super().__init__()
        self.auto_open = auto_open
        self.open_error = open_error
        self.tokens: list[str] = []
        self._sent: list[RequestFrame] = []
        self._fail_sends = False
        self._opening = False
        self.close_calls = 0

    @property
    def sent(self) -> list[RequestFrame]:
        """All frames sent through this channel."""
        return self._sent.copy()

    @property
    def open_calls(self) -> int:
        return len(self.tokens)

    @property
    def is_opening(self) -> bool:
        return self._opening

    def fail_sends(self, enabled: bool = True) -> None:
        """Make ``send`` raise TransportError while the channel stays open."""
        self._fail_sends = enabled

    def open(self, token: str) -> None:
        self.tokens.append(token)
        self._opening = True
        loop = asyncio.get_running_loop()
        if self.open_error is not None:
            loop.call_soon(self.fail, self.open_error)
        elif self.auto_open:
            loop.call_soon(self.accept)

    def close(self) -> None:
        self.close_calls += 1
        self._opening = False
        self._open = False

    def _do_send(self, frame: RequestFrame) -> None:
        if self._fail_sends:
            raise TransportError("Mock send failure")
        self._sent.append(frame)

    # Server-side scripting

    def accept(self) -> None:
        """Complete a pending open."""
        if not self._opening:
            return
        self._opening = False
        self._open = True
        if self._listener:
            self._listener.on_channel_open()

    def fail(self, error: Exception | None = None) -> None:
        """Fail a pending open."""
        if not self._opening:
            return
        self._opening = False
        if self._listener:
            self._listener.on_channel_error(error or TransportError("Mock open failure"))

    def drop(self, reason: str = "transport close") -> None:
        """Close an open channel from the server side."""
        self._open = False
        self._opening = False
        if self._listener:
            self._listener.on_channel_close(reason)

    def respond(self, request_id: str, data: Any = None) -> None:
        """Deliver a successful response."""
        self.deliver(ResponseFrame(id=request_id, success=True, data=data))

    def reject(self, request_id: str, error: str | None = None) -> None:
        """Deliver a failed response."""
        self.deliver(ResponseFrame(id=request_id, success=False, error=error))

    def deliver(self, frame: ResponseFrame) -> None:
        if self._listener:
            self._listener.on_channel_frame(frame)

    def push(self, event: str, data: Any = None) -> None:
        """Deliver a server-initiated notification."""
        if self._listener:
            self._listener.on_channel_push(event, data)

    def clear(self) -> None:
        """Forget recorded frames and tokens."""
        self._sent.clear()
        self.tokens.clear()

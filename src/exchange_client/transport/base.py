"""Channel abstraction.

A channel is a persistent duplex connection that reports what happens to it
through a listener instead of raising. The client core only relies on this
contract, so the concrete wire (WebSocket, in-memory mock) can be swapped
without changing supervisor or correlator code.

Key difference from a request/response transport:
- open() and send() return immediately (fire-and-forget)
- Outcomes arrive later as listener callbacks on the event loop
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from ..errors import TransportError
from ..protocol.frames import RequestFrame, ResponseFrame


@runtime_checkable
class ChannelListener(Protocol):
    """Receiver of channel events.

    All callbacks run on the event loop, one at a time.
    """

    def on_channel_open(self) -> None:
        """The channel is ready to send."""
        ...

    def on_channel_close(self, reason: str) -> None:
        """The channel closed without being asked to."""
        ...

    def on_channel_error(self, error: Exception) -> None:
        """Opening or using the channel failed."""
        ...

    def on_channel_frame(self, frame: ResponseFrame) -> None:
        """A response to an earlier request arrived."""
        ...

    def on_channel_push(self, event: str, data: Any) -> None:
        """A server-initiated notification arrived."""
        ...


class Channel(ABC):
    """Base class for channels.

    Provides listener binding and the open flag. Subclasses implement
    ``open``, ``close`` and ``_do_send``.
    """

    def __init__(self) -> None:
        self._listener: ChannelListener | None = None
        self._open = False

    @property
    def is_open(self) -> bool:
        """Check if frames can be sent right now."""
        return self._open

    @property
    def listener(self) -> ChannelListener | None:
        return self._listener

    def bind(self, listener: ChannelListener) -> None:
        """Attach the receiver of channel events."""
        self._listener = listener

    def send(self, frame: RequestFrame) -> None:
        """Write a frame to the channel without waiting for delivery.

        Raises:
            TransportError: If the channel is not open
        """
        if not self._open:
            raise TransportError("Channel not open")
        self._do_send(frame)

    @abstractmethod
    def open(self, token: str) -> None:
        """Start opening the channel with an auth token.

        Completion is reported through ``on_channel_open`` or
        ``on_channel_error``.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the channel. Must not report ``on_channel_close``."""
        ...

    @abstractmethod
    def _do_send(self, frame: RequestFrame) -> None:
        """Implementation-specific send logic."""
        ...

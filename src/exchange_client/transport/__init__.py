"""Channel implementations for the exchange client.

- WebSocketChannel: production channel over the ``websockets`` client
- MockChannel: in-memory channel for tests
"""

from .base import Channel, ChannelListener
from .mock import MockChannel
from .websocket import WebSocketChannel, classify_open_error

__all__ = [
    "Channel",
    "ChannelListener",
    "MockChannel",
    "WebSocketChannel",
    "classify_open_error",
]

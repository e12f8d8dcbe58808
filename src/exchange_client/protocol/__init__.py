"""Wire protocol for the exchange client.

Defines the frames and names shared with the trading server:

- Requests: client -> server, each with a correlation id
- Responses: server -> client, matched to a request by id
- Pushes: server -> client notifications with no correlation id
"""

from .actions import ActionType
from .events import LifecycleEvent, PushEvent
from .frames import (
    PushFrame,
    RequestFrame,
    ResponseFrame,
    decode_message,
    encode_request,
)

__all__ = [
    "ActionType",
    "LifecycleEvent",
    "PushEvent",
    "PushFrame",
    "RequestFrame",
    "ResponseFrame",
    "decode_message",
    "encode_request",
]

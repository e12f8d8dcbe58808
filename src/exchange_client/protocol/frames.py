"""Wire frames exchanged over the channel.

Every message on the wire is a JSON object ``{"event": <name>, "data": ...}``:

- ``request`` (client -> server): data is a RequestFrame
- ``response`` (server -> client): data is a ResponseFrame, correlated by id
- anything else (server -> client): an uncorrelated push notification

Example request:
    {
        "event": "request",
        "data": {"id": "req_18c2f0a1b2c3d4e5f6a7b8c9", "action": "user.balances", "payload": {}}
    }

Example response:
    {
        "event": "response",
        "data": {"id": "req_18c2f0a1b2c3d4e5f6a7b8c9", "success": true, "data": {"balance": 100}}
    }
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

REQUEST_EVENT = "request"
RESPONSE_EVENT = "response"


class RequestFrame(BaseModel):
    """A correlated request from client to server."""

    id: str
    action: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ResponseFrame(BaseModel):
    """The server's answer to exactly one RequestFrame."""

    id: str
    success: bool
    data: Any = None
    error: str | None = None

    def error_message(self) -> str:
        """Rejection message, falling back to a generic one."""
        return self.error or "Unknown error"


class PushFrame(BaseModel):
    """A server-initiated notification, not tied to any request."""

    event: str
    data: Any = None


def encode_request(frame: RequestFrame) -> str:
    """Serialize a request frame into a wire message."""
    return json.dumps({"event": REQUEST_EVENT, "data": frame.model_dump()})


def decode_message(raw: str | bytes) -> ResponseFrame | PushFrame:
    """Parse a wire message into a response or push frame.

    Raises:
        ValueError: If the message is not valid JSON or lacks an event name
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    message = json.loads(raw)
    if not isinstance(message, dict) or not isinstance(message.get("event"), str):
        raise ValueError(f"Malformed message: {str(raw)[:80]}")

    event = message["event"]
    data = message.get("data")
    if event == RESPONSE_EVENT:
        return ResponseFrame.model_validate(data)
    return PushFrame(event=event, data=data)

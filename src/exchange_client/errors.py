"""Error taxonomy for the exchange client.

Transport-level failures are handled by the connection supervisor and only
surface as lifecycle events. Per-request failures are delivered to exactly
one caller through the future returned by ``ExchangeClient.invoke``.
"""

from __future__ import annotations


class ExchangeClientError(Exception):
    """Base class for every error raised by the client."""


class TransportError(ExchangeClientError, ConnectionError):
    """The channel failed to open, broke, or was not ready to send."""


class AuthenticationError(TransportError):
    """The server refused the token. Retrying with the same token is futile."""


class RequestTimeoutError(ExchangeClientError, TimeoutError):
    """No response arrived before the request deadline."""

    def __init__(self, request_id: str, timeout: float) -> None:
        super().__init__(f"Request timeout after {timeout:g}s (id={request_id})")
        self.request_id = request_id
        self.timeout = timeout


class ServerRejectionError(ExchangeClientError):
    """The server answered with ``success: false``."""

    def __init__(self, message: str, request_id: str | None = None, action: str | None = None):
        super().__init__(message)
        self.message = message
        self.request_id = request_id
        self.action = action


class ShutdownError(ExchangeClientError):
    """The client was disconnected or closed while work was outstanding."""

"""Exchange Client - resilient request/response and push client for the trading server.

One long-lived WebSocket connection carries:
- request/response calls (invoke), correlated by request id with per-request deadlines
- server push events (subscribe), fanned out to registered callbacks

While disconnected, requests are queued and replayed in order once the
connection is (re-)established. Drops are retried with capped exponential
backoff until a bounded attempt budget runs out.
"""

from .api import AdminAPI, AuthAPI, LoanAPI, PublicAPI, UserAPI
from .client import ExchangeClient
from .config import DEFAULT_URL, ClientConfig, TokenProvider, env_token, static_token
from .dispatcher import EventDispatcher
from .errors import (
    AuthenticationError,
    ExchangeClientError,
    RequestTimeoutError,
    ServerRejectionError,
    ShutdownError,
    TransportError,
)
from .protocol import ActionType, LifecycleEvent, PushEvent
from .supervisor import Backoff, ConnectionState, ConnectionStatus
from .transport import Channel, MockChannel, WebSocketChannel

__all__ = [
    # Client
    "ExchangeClient",
    "AuthAPI",
    "UserAPI",
    "LoanAPI",
    "PublicAPI",
    "AdminAPI",
    # Configuration
    "ClientConfig",
    "DEFAULT_URL",
    "TokenProvider",
    "env_token",
    "static_token",
    # Connection
    "Backoff",
    "ConnectionState",
    "ConnectionStatus",
    "EventDispatcher",
    # Channels
    "Channel",
    "MockChannel",
    "WebSocketChannel",
    # Protocol
    "ActionType",
    "LifecycleEvent",
    "PushEvent",
    # Errors
    "ExchangeClientError",
    "TransportError",
    "AuthenticationError",
    "RequestTimeoutError",
    "ServerRejectionError",
    "ShutdownError",
]

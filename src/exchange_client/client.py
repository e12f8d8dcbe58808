"""Exchange client - one resilient connection to the trading server.

Wires the supervisor, outbox, correlator and dispatcher around a channel
and exposes the caller-facing contract:

- connect() / disconnect() / close()
- invoke(action, payload) -> asyncio.Future
- subscribe(event, callback) / unsubscribe(event, callback)
- get_connection_status()

Usage:
    async with ExchangeClient(ClientConfig(url="wss://exchange.example"),
                              token_provider=static_token(token)) as client:
        client.subscribe("price_update", print)
        balances = await client.user.balances()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from functools import partial
from typing import Any

from .api import AdminAPI, AuthAPI, LoanAPI, PublicAPI, UserAPI
from .config import ClientConfig, TokenProvider, env_token
from .correlator import RequestCorrelator, new_request_id
from .dispatcher import EventCallback, EventDispatcher
from .errors import ShutdownError, TransportError
from .outbox import Outbox, QueuedRequest
from .protocol.frames import ResponseFrame
from .supervisor import ConnectionState, ConnectionStatus, ConnectionSupervisor
from .transport.base import Channel
from .transport.websocket import WebSocketChannel

logger = logging.getLogger(__name__)


class ExchangeClient:
    """Request/response and push client over a single reconnecting channel.

    Args:
        config: Timeouts, backoff policy and server URL
        channel: Channel to use (default: WebSocketChannel for ``config.url``)
        token_provider: Callable returning the current auth token, or None
            when the user is not logged in (default: ``EXCHANGE_TOKEN`` env)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        channel: Channel | None = None,
        token_provider: TokenProvider | None = None,
    ):
        self.config = (config or ClientConfig()).validate()
        self._channel = channel or WebSocketChannel(self.config)
        self._dispatcher = EventDispatcher()
        self._outbox = Outbox()
        self._correlator = RequestCorrelator(self._channel, self.config.request_timeout)
        self._supervisor = ConnectionSupervisor(
            self._channel,
            token_provider or env_token(),
            self._dispatcher,
            self.config,
            on_connected=self._drain_outbox,
        )
        self._channel.bind(self)

        self.auth = AuthAPI(self)
        self.user = UserAPI(self)
        self.loans = LoanAPI(self)
        self.public = PublicAPI(self)
        self.admin = AdminAPI(self)

    @property
    def state(self) -> ConnectionState:
        """Internal connection state (read-only)."""
        return self._supervisor.state

    @property
    def is_connected(self) -> bool:
        return self._supervisor.state is ConnectionState.CONNECTED

    @property
    def closed(self) -> bool:
        return self._supervisor.closed

    @property
    def pending_count(self) -> int:
        """Requests sent and awaiting a response."""
        return len(self._correlator)

    @property
    def queued_count(self) -> int:
        """Requests waiting for a connection."""
        return len(self._outbox)

    @property
    def reconnect_attempts(self) -> int:
        return self._supervisor.attempts

    def get_connection_status(self) -> ConnectionStatus:
        return self._supervisor.status

    # Lifecycle

    def connect(self) -> bool:
        """Open the connection if a token is available.

        Also the manual recovery path after retries were exhausted.
        """
        return self._supervisor.connect()

    async def wait_connected(self, timeout: float | None = None) -> None:
        await self._supervisor.wait_connected(timeout)

    def disconnect(self) -> None:
        """Close the channel and reject all outstanding work.

        The client can connect again afterwards.
        """
        self._supervisor.shutdown(
            "client disconnected", settle=partial(self._settle, "Client disconnected")
        )

    def close(self) -> None:
        """Disconnect for good. The client cannot be reused."""
        if self._supervisor.closed:
            return
        self._supervisor.shutdown(
            "client closed", final=True, settle=partial(self._settle, "Client closed")
        )

    def _settle(self, reason: str) -> None:
        pending = self._correlator.fail_all(reason)
        queued = self._outbox.clear(reason)
        if pending or queued:
            logger.info(f"{reason}: rejected {pending} pending and {queued} queued request(s)")

    async def __aenter__(self) -> ExchangeClient:
        self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.close()

    # Requests

    def invoke(self, action: str | Enum, payload: dict[str, Any] | None = None) -> asyncio.Future[Any]:
        """Send a request and return a future for its result.

        Never blocks. While disconnected the request is queued and a
        connection attempt is started. The future settles exactly once with
        the response data, ServerRejectionError, RequestTimeoutError or
        ShutdownError.
        """
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        if self._supervisor.closed:
            future.set_exception(ShutdownError("Client is closed"))
            return future

        request = QueuedRequest(
            id=new_request_id(),
            action=action.value if isinstance(action, Enum) else action,
            payload=dict(payload or {}),
            future=future,
        )

        if self.is_connected and not self._outbox:
            try:
                self._correlator.transmit(request)
                return future
            except TransportError as e:
                logger.warning(f"Send failed, queueing {request.action}: {e}")

        self._outbox.enqueue(request)
        self._supervisor.ensure_connecting()
        return future

    def _drain_outbox(self) -> None:
        self._outbox.drain(self._correlator.transmit)

    # Push events

    def subscribe(self, event: str | Enum, callback: EventCallback) -> Callable[[], None]:
        """Register a callback for a push or lifecycle event.

        Returns:
            Function that removes this registration
        """
        return self._dispatcher.subscribe(event, callback)

    def unsubscribe(self, event: str | Enum, callback: EventCallback) -> None:
        self._dispatcher.unsubscribe(event, callback)

    # Channel listener

    def on_channel_open(self) -> None:
        self._supervisor.on_open()

    def on_channel_close(self, reason: str) -> None:
        self._supervisor.on_close(reason)

    def on_channel_error(self, error: Exception) -> None:
        self._supervisor.on_error(error)

    def on_channel_frame(self, frame: ResponseFrame) -> None:
        self._correlator.on_response(frame)

    def on_channel_push(self, event: str, data: Any) -> None:
        if self._supervisor.closed:
            return
        self._dispatcher.publish(event, data)

"""Connection Supervisor - owns the channel lifecycle.

State machine:

    DISCONNECTED --connect()--> CONNECTING --open--> CONNECTED
    CONNECTING/CONNECTED --close/error--> RECONNECT_SCHEDULED --timer--> CONNECTING
    RECONNECT_SCHEDULED --attempts exhausted--> PERMANENTLY_FAILED
    PERMANENTLY_FAILED --connect()--> CONNECTING   (manual recovery)
    any --shutdown()--> DISCONNECTED

Only the supervisor mutates the state; everyone else reads a snapshot.
Lifecycle events are published after the transition they announce is
complete, so subscribers may call back into the client.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from .config import ClientConfig, TokenProvider
from .dispatcher import EventDispatcher
from .errors import AuthenticationError, ShutdownError, TransportError
from .protocol.events import LifecycleEvent
from .transport.base import Channel

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Internal connection state."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECT_SCHEDULED = "reconnect_scheduled"
    PERMANENTLY_FAILED = "permanently_failed"


class ConnectionStatus(str, Enum):
    """Connection status as seen by callers."""

    CONNECTED = "connected"
    CONNECTING = "connecting"
    DISCONNECTED = "disconnected"


_STATUS = {
    ConnectionState.DISCONNECTED: ConnectionStatus.DISCONNECTED,
    ConnectionState.CONNECTING: ConnectionStatus.CONNECTING,
    ConnectionState.CONNECTED: ConnectionStatus.CONNECTED,
    ConnectionState.RECONNECT_SCHEDULED: ConnectionStatus.CONNECTING,
    ConnectionState.PERMANENTLY_FAILED: ConnectionStatus.DISCONNECTED,
}


@dataclass
class Backoff:
    """Capped exponential delay with a bounded number of attempts.

    Delays run initial, initial*factor, initial*factor**2 ... never above
    ``maximum``. ``next_delay`` returns None once ``max_attempts`` delays
    have been handed out.
    """

    initial: float = 1.0
    maximum: float = 30.0
    factor: float = 2.0
    max_attempts: int = 5
    attempts: int = 0
    delay: float = field(init=False)

    def __post_init__(self) -> None:
        self.delay = self.initial

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    def next_delay(self) -> float | None:
        if self.exhausted:
            return None
        self.attempts += 1
        current = self.delay
        self.delay = min(self.delay * self.factor, self.maximum)
        return current

    def reset(self) -> None:
        self.attempts = 0
        self.delay = self.initial


class ConnectionSupervisor:
    """Keeps one channel open, reconnecting with backoff when it drops."""

    def __init__(
        self,
        channel: Channel,
        token_provider: TokenProvider,
        dispatcher: EventDispatcher,
        config: ClientConfig | None = None,
        on_connected: Callable[[], None] | None = None,
    ):
        config = config or ClientConfig()
        self._channel = channel
        self._token_provider = token_provider
        self._dispatcher = dispatcher
        self._on_connected = on_connected
        self._backoff = Backoff(
            initial=config.reconnect_delay,
            maximum=config.max_reconnect_delay,
            factor=config.reconnect_backoff,
            max_attempts=config.max_reconnect_attempts,
        )
        self._state = ConnectionState.DISCONNECTED
        self._timer: asyncio.TimerHandle | None = None
        self._recovering = False
        self._closed = False
        self._transitions = 0
        self._last_error: Exception | None = None
        self._connected = asyncio.Event()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return _STATUS[self._state]

    @property
    def attempts(self) -> int:
        """Failed attempts since the last successful open or manual connect."""
        return self._backoff.attempts

    @property
    def current_delay(self) -> float:
        """Delay the next scheduled retry will use."""
        return self._backoff.delay

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    @property
    def closed(self) -> bool:
        return self._closed

    def connect(self) -> bool:
        """Start connecting, resetting the retry budget.

        A missing token is not an error: nothing happens until one exists.

        Returns:
            True if an open was started

        Raises:
            ShutdownError: If the supervisor was closed
        """
        if self._closed:
            raise ShutdownError("Client is closed")
        if self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return False

        token = self._token_provider()
        if not token:
            logger.info("No auth token found, connection skipped")
            return False

        self._cancel_timer()
        self._backoff.reset()
        self._open(token)
        return True

    def ensure_connecting(self) -> bool:
        """Start a connection unless one is already established or underway."""
        if self._closed:
            return False
        if self._state in (ConnectionState.DISCONNECTED, ConnectionState.PERMANENTLY_FAILED):
            return self.connect()
        return False

    async def wait_connected(self, timeout: float | None = None) -> None:
        """Wait until the channel is open.

        Raises:
            TimeoutError: If the channel did not open in time
        """
        await asyncio.wait_for(self._connected.wait(), timeout=timeout)

    def shutdown(
        self,
        reason: str = "client disconnect",
        *,
        final: bool = False,
        settle: Callable[[], None] | None = None,
    ) -> None:
        """Close the channel and stop reconnecting.

        Args:
            reason: Reason carried by the ``disconnect`` event
            final: Mark the supervisor closed before anything is published
            settle: Runs once the state is DISCONNECTED, before subscribers
                hear about it
        """
        self._cancel_timer()
        if final:
            self._closed = True
        was_connected = self._state is ConnectionState.CONNECTED
        if self._state is not ConnectionState.DISCONNECTED or self._channel.is_open:
            self._channel.close()
        self._set_state(ConnectionState.DISCONNECTED)
        self._recovering = False
        if settle is not None:
            settle()
        if was_connected:
            logger.info(f"Disconnected: {reason}")
            self._dispatcher.publish(LifecycleEvent.DISCONNECT, {"reason": reason})

    def close(self) -> None:
        """Shut down for good. Further connect() calls raise ShutdownError."""
        self.shutdown("client closed", final=True)

    # Channel events

    def on_open(self) -> None:
        if self._state is not ConnectionState.CONNECTING:
            logger.debug(f"Ignoring channel open in state {self._state.value}")
            return
        recovered = self._recovering
        self._recovering = False
        self._last_error = None
        self._backoff.reset()
        self._set_state(ConnectionState.CONNECTED)
        logger.info("Connected" if not recovered else "Reconnected")
        if self._on_connected:
            self._on_connected()
        self._dispatcher.publish(
            LifecycleEvent.RECONNECT if recovered else LifecycleEvent.CONNECT, {}
        )

    def on_close(self, reason: str) -> None:
        if not self._is_live():
            logger.debug(f"Ignoring channel close in state {self._state.value}: {reason}")
            return
        self._handle_failure(TransportError(reason or "connection closed"))

    def on_error(self, error: Exception) -> None:
        if not self._is_live():
            logger.debug(f"Ignoring channel error in state {self._state.value}: {error}")
            return
        self._handle_failure(error)

    # Internals

    def _is_live(self) -> bool:
        return self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED)

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        logger.debug(f"Connection state {self._state.value} -> {state.value}")
        self._state = state
        self._transitions += 1
        if state is ConnectionState.CONNECTED:
            self._connected.set()
        else:
            self._connected.clear()

    def _open(self, token: str) -> None:
        if self._closed:
            return
        self._set_state(ConnectionState.CONNECTING)
        try:
            self._channel.open(token)
        except Exception as e:
            logger.warning(f"Channel open failed immediately: {e}")
            self._handle_failure(e)

    def _handle_failure(self, error: Exception) -> None:
        was_connected = self._state is ConnectionState.CONNECTED
        self._last_error = error
        self._recovering = True
        self._channel.close()

        delay = self._backoff.next_delay()
        attempt = self._backoff.attempts
        if delay is None:
            self._set_state(ConnectionState.PERMANENTLY_FAILED)
        else:
            self._set_state(ConnectionState.RECONNECT_SCHEDULED)
            self._timer = asyncio.get_running_loop().call_later(delay, self._retry)
        transitions = self._transitions

        if was_connected:
            logger.warning(f"Disconnected: {error}")
            self._dispatcher.publish(LifecycleEvent.DISCONNECT, {"reason": str(error)})
            # A subscriber already moved the connection on
            if self._closed or self._transitions != transitions:
                return

        if delay is None:
            self._give_up(error, attempt)
            return

        logger.warning(
            f"Connection failed ({error}); reconnect attempt "
            f"{attempt}/{self._backoff.max_attempts} in {delay:g}s"
        )
        self._dispatcher.publish(LifecycleEvent.RECONNECTING, {"attempt": attempt, "delay": delay})

    def _give_up(self, error: Exception, attempts: int) -> None:
        if isinstance(error, AuthenticationError):
            logger.error(f"Authentication failed after {attempts} reconnect attempt(s): {error}")
            self._dispatcher.publish(
                LifecycleEvent.AUTH_ERROR,
                {"message": str(error) or "Authentication failed", "reconnect_attempts": attempts},
            )
        else:
            logger.error(f"Max reconnection attempts reached ({attempts})")
            self._dispatcher.publish(
                LifecycleEvent.CONNECTION_LOST, {"reconnect_attempts": attempts}
            )

    def _retry(self) -> None:
        self._timer = None
        if self._closed or self._state is not ConnectionState.RECONNECT_SCHEDULED:
            return
        token = self._token_provider()
        if not token:
            logger.info("Auth token gone, reconnect abandoned")
            self._recovering = False
            self._set_state(ConnectionState.DISCONNECTED)
            return
        logger.info(
            f"Attempting to reconnect ({self._backoff.attempts}/{self._backoff.max_attempts})..."
        )
        self._open(token)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

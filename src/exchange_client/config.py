"""Client configuration and token providers."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass

TokenProvider = Callable[[], str | None]

DEFAULT_URL = "ws://localhost:3001"
TOKEN_ENV_VAR = "EXCHANGE_TOKEN"


@dataclass
class ClientConfig:
    """Configuration for the exchange client.

    Timings are in seconds. The reconnect policy doubles the delay after
    every failed attempt, starting at ``reconnect_delay`` and never going
    above ``max_reconnect_delay``.
    """

    url: str = DEFAULT_URL

    # Requests
    request_timeout: float = 30.0

    # Reconnection
    reconnect_delay: float = 1.0
    max_reconnect_delay: float = 30.0
    reconnect_backoff: float = 2.0
    max_reconnect_attempts: int = 5

    # WebSocket channel
    open_timeout: float = 10.0
    ping_interval: float | None = 30.0
    ping_timeout: float | None = 10.0

    def validate(self) -> ClientConfig:
        """Reject settings the supervisor and correlator cannot work with."""
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.reconnect_delay <= 0:
            raise ValueError("reconnect_delay must be positive")
        if self.max_reconnect_delay < self.reconnect_delay:
            raise ValueError("max_reconnect_delay must be >= reconnect_delay")
        if self.reconnect_backoff < 1:
            raise ValueError("reconnect_backoff must be >= 1")
        if self.max_reconnect_attempts < 0:
            raise ValueError("max_reconnect_attempts must be >= 0")
        return self

    @classmethod
    def from_env(cls, **overrides: object) -> ClientConfig:
        """Build a config from ``EXCHANGE_*`` environment variables.

        Explicit keyword overrides win over the environment.
        """
        values: dict[str, object] = {}
        if url := os.getenv("EXCHANGE_URL"):
            values["url"] = url
        if timeout := os.getenv("EXCHANGE_REQUEST_TIMEOUT"):
            values["request_timeout"] = float(timeout)
        if delay := os.getenv("EXCHANGE_RECONNECT_DELAY"):
            values["reconnect_delay"] = float(delay)
        if max_delay := os.getenv("EXCHANGE_MAX_RECONNECT_DELAY"):
            values["max_reconnect_delay"] = float(max_delay)
        if attempts := os.getenv("EXCHANGE_MAX_RECONNECT_ATTEMPTS"):
            values["max_reconnect_attempts"] = int(attempts)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values).validate()  # type: ignore[arg-type]


def static_token(token: str | None) -> TokenProvider:
    """Token provider that always returns the same value."""

    def provider() -> str | None:
        return token

    return provider


def env_token(var: str = TOKEN_ENV_VAR) -> TokenProvider:
    """Token provider that reads the environment on every connect."""

    def provider() -> str | None:
        return os.getenv(var)

    return provider

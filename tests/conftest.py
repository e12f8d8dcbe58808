"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from exchange_client import ClientConfig, ExchangeClient, MockChannel, static_token


@pytest.fixture
def config() -> ClientConfig:
    """Fast timings: retries every few milliseconds, generous request deadline."""
    return ClientConfig(
        url="ws://exchange.test",
        request_timeout=1.0,
        reconnect_delay=0.001,
        max_reconnect_delay=0.03,
        max_reconnect_attempts=5,
    )


@pytest.fixture
def channel() -> MockChannel:
    """Mock channel that opens on the next loop iteration."""
    return MockChannel()


@pytest.fixture
def client(config: ClientConfig, channel: MockChannel) -> ExchangeClient:
    """Client wired to the mock channel with a valid token."""
    return ExchangeClient(config, channel=channel, token_provider=static_token("tok_123"))

"""Unit tests for ExchangeClient request flow over a mock channel."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from exchange_client import (
    ActionType,
    ClientConfig,
    ConnectionState,
    ConnectionStatus,
    ExchangeClient,
    LifecycleEvent,
    MockChannel,
    PushEvent,
    RequestTimeoutError,
    ServerRejectionError,
    ShutdownError,
    static_token,
)

# =============================================================================
# Requests
# =============================================================================


class TestInvoke:
    """Tests for sending requests and settling their futures."""

    @pytest.mark.asyncio
    async def test_queued_until_connected(self, client: ExchangeClient, channel: MockChannel) -> None:
        """A request made while disconnected is sent once the channel opens."""
        future = client.invoke("user.balances")

        assert client.queued_count == 1
        assert channel.sent == []
        assert client.get_connection_status() is ConnectionStatus.CONNECTING

        await client.wait_connected(1.0)

        assert client.queued_count == 0
        assert client.pending_count == 1
        frame = channel.sent[0]
        assert frame.action == "user.balances"

        channel.respond(frame.id, {"balance": 100})

        assert await future == {"balance": 100}
        assert client.pending_count == 0

    @pytest.mark.asyncio
    async def test_sent_immediately_when_connected(
        self, client: ExchangeClient, channel: MockChannel
    ) -> None:
        client.connect()
        await client.wait_connected(1.0)

        future = client.invoke(ActionType.USER_BUY, {"amount": 500})

        assert client.queued_count == 0
        assert channel.sent[0].action == "user.buy"
        assert channel.sent[0].payload == {"amount": 500}
        channel.respond(channel.sent[0].id, {"ok": True})
        assert await future == {"ok": True}

    @pytest.mark.asyncio
    async def test_queue_drains_in_order(self, client: ExchangeClient, channel: MockChannel) -> None:
        """Queued requests are sent in invocation order."""
        futures = [client.invoke(f"public.{name}") for name in ("bitcoin-price", "market-data", "server-time")]

        await client.wait_connected(1.0)

        assert [f.action for f in channel.sent] == [
            "public.bitcoin-price",
            "public.market-data",
            "public.server-time",
        ]
        for index, frame in enumerate(channel.sent):
            channel.respond(frame.id, index)
        assert await asyncio.gather(*futures) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_responses_out_of_order(self, client: ExchangeClient, channel: MockChannel) -> None:
        """Each response settles its own request regardless of arrival order."""
        client.connect()
        await client.wait_connected(1.0)
        first = client.invoke("user.balances")
        second = client.invoke("user.prices")

        channel.respond(channel.sent[1].id, "prices")
        channel.respond(channel.sent[0].id, "balances")

        assert await first == "balances"
        assert await second == "prices"

    @pytest.mark.asyncio
    async def test_server_rejection(self, client: ExchangeClient, channel: MockChannel) -> None:
        client.connect()
        await client.wait_connected(1.0)
        future = client.invoke("user.sell", {"amount": 1})

        channel.reject(channel.sent[0].id, "Insufficient BTC balance")

        with pytest.raises(ServerRejectionError, match="Insufficient BTC balance"):
            await future

    @pytest.mark.asyncio
    async def test_server_rejection_without_message(
        self, client: ExchangeClient, channel: MockChannel
    ) -> None:
        client.connect()
        await client.wait_connected(1.0)
        future = client.invoke("user.sell")

        channel.reject(channel.sent[0].id)

        with pytest.raises(ServerRejectionError, match="Unknown error"):
            await future

    @pytest.mark.asyncio
    async def test_timeout_then_late_response(self, channel: MockChannel) -> None:
        """A request times out and its late response is dropped."""
        config = ClientConfig(request_timeout=0.02, reconnect_delay=0.001)
        client = ExchangeClient(config, channel=channel, token_provider=static_token("tok"))
        client.connect()
        await client.wait_connected(1.0)
        future = client.invoke("user.dashboard")

        with pytest.raises(RequestTimeoutError):
            await future

        channel.respond(channel.sent[0].id, {"late": True})
        assert client.pending_count == 0

    @pytest.mark.asyncio
    async def test_pending_survives_reconnect(self, client: ExchangeClient, channel: MockChannel) -> None:
        """A response arriving after a reconnect still settles its request."""
        client.connect()
        await client.wait_connected(1.0)
        future = client.invoke("user.portfolio")
        request_id = channel.sent[0].id

        channel.drop()
        reconnected = asyncio.Event()
        client.subscribe(LifecycleEvent.RECONNECT, lambda _: reconnected.set())
        await asyncio.wait_for(reconnected.wait(), timeout=1.0)

        channel.respond(request_id, {"btc": 0.5})
        assert await future == {"btc": 0.5}

    @pytest.mark.asyncio
    async def test_send_failure_requeues(self, client: ExchangeClient, channel: MockChannel) -> None:
        """A request the channel refuses is queued instead of failed."""
        client.connect()
        await client.wait_connected(1.0)
        channel.fail_sends()

        future = client.invoke("user.balances")

        assert client.queued_count == 1
        assert not future.done()

    @pytest.mark.asyncio
    async def test_queued_without_token(self, config: ClientConfig, channel: MockChannel) -> None:
        """Without a token, requests wait in the queue and nothing is opened."""
        client = ExchangeClient(config, channel=channel, token_provider=static_token(None))

        future = client.invoke("auth.profile")

        assert client.queued_count == 1
        assert channel.open_calls == 0
        assert client.state is ConnectionState.DISCONNECTED
        assert not future.done()


# =============================================================================
# Shutdown
# =============================================================================


class TestShutdown:
    """Tests for disconnect and close."""

    @pytest.mark.asyncio
    async def test_disconnect_rejects_pending(self, client: ExchangeClient, channel: MockChannel) -> None:
        client.connect()
        await client.wait_connected(1.0)
        future = client.invoke("user.balances")

        client.disconnect()

        with pytest.raises(ShutdownError, match="Client disconnected"):
            await future
        assert client.pending_count == 0
        assert client.get_connection_status() is ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_disconnect_rejects_queued(self, config: ClientConfig, channel: MockChannel) -> None:
        client = ExchangeClient(config, channel=channel, token_provider=static_token(None))
        future = client.invoke("user.balances")

        client.disconnect()

        with pytest.raises(ShutdownError):
            await future
        assert client.queued_count == 0

    @pytest.mark.asyncio
    async def test_reconnect_after_disconnect(self, client: ExchangeClient, channel: MockChannel) -> None:
        """disconnect() leaves the client usable."""
        client.connect()
        await client.wait_connected(1.0)
        client.disconnect()

        future = client.invoke("public.server-time")
        await client.wait_connected(1.0)
        channel.respond(channel.sent[-1].id, {"time": 1})

        assert await future == {"time": 1}

    @pytest.mark.asyncio
    async def test_invoke_after_close(self, client: ExchangeClient, channel: MockChannel) -> None:
        client.close()

        future = client.invoke("user.balances")

        with pytest.raises(ShutdownError, match="closed"):
            await future
        assert channel.open_calls == 0
        assert client.closed

    @pytest.mark.asyncio
    async def test_close_idempotent(self, client: ExchangeClient) -> None:
        client.close()
        client.close()
        assert client.closed

    @pytest.mark.asyncio
    async def test_context_manager(self, client: ExchangeClient) -> None:
        async with client:
            await client.wait_connected(1.0)
            assert client.is_connected
        assert client.closed


# =============================================================================
# Push events
# =============================================================================


class TestPush:
    """Tests for server push delivery."""

    @pytest.mark.asyncio
    async def test_push_delivered(self, client: ExchangeClient, channel: MockChannel) -> None:
        received: list[Any] = []
        client.subscribe(PushEvent.PRICE_UPDATE, received.append)
        client.connect()
        await client.wait_connected(1.0)

        channel.push("price_update", {"price": 65000})

        assert received == [{"price": 65000}]

    @pytest.mark.asyncio
    async def test_unknown_push_without_subscribers(self, client: ExchangeClient, channel: MockChannel) -> None:
        client.connect()
        await client.wait_connected(1.0)
        channel.push("brand_new_event", {})

    @pytest.mark.asyncio
    async def test_push_ignored_after_close(self, client: ExchangeClient, channel: MockChannel) -> None:
        received: list[Any] = []
        client.subscribe("balance_update", received.append)
        client.close()

        channel.push("balance_update", {"inr": 1})

        assert received == []

    @pytest.mark.asyncio
    async def test_unsubscribe(self, client: ExchangeClient, channel: MockChannel) -> None:
        received: list[Any] = []
        client.subscribe("balance_update", received.append)
        client.unsubscribe("balance_update", received.append)

        channel.push("balance_update", {"inr": 1})

        assert received == []

    @pytest.mark.asyncio
    async def test_subscriber_can_invoke(self, client: ExchangeClient, channel: MockChannel) -> None:
        """Callbacks may issue requests of their own."""
        futures: list[asyncio.Future[Any]] = []
        client.subscribe(
            PushEvent.TRANSACTION_NOTIFICATION,
            lambda _: futures.append(client.invoke("user.balances")),
        )
        client.connect()
        await client.wait_connected(1.0)

        channel.push("transaction_notification", {"type": "buy"})

        assert len(futures) == 1
        assert channel.sent[0].action == "user.balances"


class TestShutdownSubscribers:
    """Shutdown settles outstanding work before announcing disconnect."""

    @pytest.mark.asyncio
    async def test_work_settled_before_disconnect_published(
        self, client: ExchangeClient, channel: MockChannel
    ) -> None:
        client.connect()
        await client.wait_connected(1.0)
        future = client.invoke("user.balances")
        snapshots: list[tuple[Any, ...]] = []
        client.subscribe(
            LifecycleEvent.DISCONNECT,
            lambda _: snapshots.append(
                (client.state, client.pending_count, client.queued_count, future.done())
            ),
        )

        client.disconnect()

        assert snapshots == [(ConnectionState.DISCONNECTED, 0, 0, True)]
        with pytest.raises(ShutdownError):
            await future

    @pytest.mark.asyncio
    async def test_invoke_on_disconnect_is_served(
        self, client: ExchangeClient, channel: MockChannel
    ) -> None:
        """A request made after disconnect is new work, not swept up by it."""
        client.connect()
        await client.wait_connected(1.0)
        futures: list[asyncio.Future[Any]] = []
        client.subscribe(
            LifecycleEvent.DISCONNECT, lambda _: futures.append(client.invoke("user.balances"))
        )

        client.disconnect()

        assert len(futures) == 1
        assert not futures[0].done()
        await client.wait_connected(1.0)
        channel.respond(channel.sent[-1].id, {"balance": 100})
        assert await futures[0] == {"balance": 100}

    @pytest.mark.asyncio
    async def test_invoke_on_close_is_rejected(
        self, client: ExchangeClient, channel: MockChannel
    ) -> None:
        client.connect()
        await client.wait_connected(1.0)
        futures: list[asyncio.Future[Any]] = []
        client.subscribe(
            LifecycleEvent.DISCONNECT, lambda _: futures.append(client.invoke("user.balances"))
        )

        client.close()
        await asyncio.sleep(0.05)

        with pytest.raises(ShutdownError, match="closed"):
            await futures[0]
        assert client.state is ConnectionState.DISCONNECTED
        assert channel.open_calls == 1
        assert channel.sent == []

    @pytest.mark.asyncio
    async def test_connect_on_close_refused(self, client: ExchangeClient) -> None:
        client.connect()
        await client.wait_connected(1.0)
        errors: list[Exception] = []

        def reconnect(_: Any) -> None:
            try:
                client.connect()
            except ShutdownError as e:
                errors.append(e)

        client.subscribe(LifecycleEvent.DISCONNECT, reconnect)

        client.close()

        assert len(errors) == 1
        assert client.state is ConnectionState.DISCONNECTED

    def test_subscribe_returns_unsubscribe(self, client: ExchangeClient) -> None:
        received: list[Any] = []
        unsubscribe = client.subscribe(PushEvent.PRICE_UPDATE, received.append)

        unsubscribe()
        client.on_channel_push("price_update", {"price": 1})

        assert received == []

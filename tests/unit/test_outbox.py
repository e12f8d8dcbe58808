"""Unit tests for the outbox of not-yet-sent requests."""

from __future__ import annotations

import asyncio

import pytest

from exchange_client.errors import ShutdownError, TransportError
from exchange_client.outbox import Outbox, QueuedRequest


def make_request(loop: asyncio.AbstractEventLoop, request_id: str) -> QueuedRequest:
    return QueuedRequest(id=request_id, action="user.balances", payload={}, future=loop.create_future())


class TestOutbox:
    """Tests for FIFO buffering and draining."""

    @pytest.mark.asyncio
    async def test_drain_fifo(self) -> None:
        """Requests leave in the order they were queued."""
        loop = asyncio.get_running_loop()
        outbox = Outbox()
        for request_id in ("a", "b", "c"):
            outbox.enqueue(make_request(loop, request_id))

        sent: list[str] = []
        count = outbox.drain(lambda r: sent.append(r.id))

        assert count == 3
        assert sent == ["a", "b", "c"]
        assert len(outbox) == 0

    @pytest.mark.asyncio
    async def test_drain_stops_on_transport_error(self) -> None:
        """A failed transmit goes back to the head and later requests stay queued."""
        loop = asyncio.get_running_loop()
        outbox = Outbox()
        for request_id in ("a", "b", "c"):
            outbox.enqueue(make_request(loop, request_id))

        sent: list[str] = []

        def transmit(request: QueuedRequest) -> None:
            if request.id == "b":
                raise TransportError("Channel not open")
            sent.append(request.id)

        assert outbox.drain(transmit) == 1
        assert sent == ["a"]
        assert [r.id for r in outbox] == ["b", "c"]

    @pytest.mark.asyncio
    async def test_drain_skips_cancelled(self) -> None:
        """Requests whose caller gave up are not sent."""
        loop = asyncio.get_running_loop()
        outbox = Outbox()
        cancelled = make_request(loop, "a")
        cancelled.future.cancel()
        outbox.enqueue(cancelled)
        outbox.enqueue(make_request(loop, "b"))

        sent: list[str] = []
        outbox.drain(lambda r: sent.append(r.id))

        assert sent == ["b"]

    @pytest.mark.asyncio
    async def test_push_front(self) -> None:
        loop = asyncio.get_running_loop()
        outbox = Outbox()
        outbox.enqueue(make_request(loop, "b"))
        outbox.push_front(make_request(loop, "a"))

        assert [r.id for r in outbox] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_clear_rejects_all(self) -> None:
        """Clearing fails every queued future with ShutdownError."""
        loop = asyncio.get_running_loop()
        outbox = Outbox()
        requests = [make_request(loop, request_id) for request_id in ("a", "b")]
        for request in requests:
            outbox.enqueue(request)

        assert outbox.clear("Client disconnected") == 2
        assert len(outbox) == 0
        for request in requests:
            with pytest.raises(ShutdownError, match="Client disconnected"):
                await request.future

"""WebSocket channel implementation.

Full-duplex channel to the trading server over the ``websockets`` asyncio
client. The auth token travels as a bearer header on the handshake.

Wire format (JSON text frames):
- Client -> Server: {"event": "request", "data": {id, action, payload}}
- Server -> Client: {"event": "response", "data": {id, success, data?, error?}}
- Server -> Client: {"event": "<push name>", "data": <payload>}
"""

from __future__ import annotations

import asyncio
import logging

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidStatus, WebSocketException

from ..config import ClientConfig
from ..errors import AuthenticationError, TransportError
from ..protocol.frames import PushFrame, RequestFrame, decode_message, encode_request
from .base import Channel

logger = logging.getLogger(__name__)

AUTH_STATUS_CODES = {401, 403}


def classify_open_error(error: Exception) -> TransportError:
    """Map a handshake failure onto the client error taxonomy."""
    if isinstance(error, TransportError):
        return error
    if isinstance(error, InvalidStatus):
        status = error.response.status_code
        if status in AUTH_STATUS_CODES:
            return AuthenticationError(f"Server rejected token (HTTP {status})")
        return TransportError(f"Handshake failed (HTTP {status})")
    if isinstance(error, (OSError, TimeoutError, WebSocketException)):
        return TransportError(f"Failed to connect: {error}")
    return TransportError(f"Unexpected connection failure: {error!r}")


class WebSocketChannel(Channel):
    """Channel over a single WebSocket connection.

    One background task per connection performs the handshake and then
    reads frames until the socket closes. Outbound frames are written by
    short-lived tasks so ``send`` never blocks the caller.
    """

    def __init__(self, config: ClientConfig | None = None):
        super().__init__()
        self.config = config or ClientConfig()
        self._ws: ClientConnection | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._send_tasks: set[asyncio.Task[None]] = set()
        self._closing = False

    def open(self, token: str) -> None:
        """Start the handshake in the background."""
        if self._reader_task and not self._reader_task.done():
            return
        self._closing = False
        self._reader_task = asyncio.get_running_loop().create_task(
            self._run(token), name="exchange-ws-reader"
        )

    def close(self) -> None:
        """Stop the reader and close the socket without notifying the listener."""
        self._closing = True
        self._open = False
        if self._reader_task and not self._reader_task.done():
            self._reader_task.cancel()
        self._reader_task = None
        for task in list(self._send_tasks):
            task.cancel()
        ws = self._ws
        self._ws = None
        if ws is not None:
            closer = asyncio.get_running_loop().create_task(ws.close())
            self._send_tasks.add(closer)
            closer.add_done_callback(self._send_tasks.discard)
        logger.info("WebSocket channel closed")

    def _do_send(self, frame: RequestFrame) -> None:
        if self._ws is None:
            raise TransportError("WebSocket not connected")
        message = encode_request(frame)
        logger.debug(f"WebSocket send: {message}")
        task = asyncio.get_running_loop().create_task(self._write(self._ws, message))
        self._send_tasks.add(task)
        task.add_done_callback(self._send_tasks.discard)

    async def _write(self, ws: ClientConnection, message: str) -> None:
        try:
            await ws.send(message)
        except asyncio.CancelledError:
            raise
        except ConnectionClosed:
            # The reader task reports the close
            logger.debug("Send on closed WebSocket dropped")
        except Exception as e:
            logger.warning(f"WebSocket send failed: {e}")
            self._notify_error(TransportError(f"Send failed: {e}"))

    async def _run(self, token: str) -> None:
        try:
            ws = await connect(
                self.config.url,
                additional_headers={"Authorization": f"Bearer {token}"},
                open_timeout=self.config.open_timeout,
                ping_interval=self.config.ping_interval,
                ping_timeout=self.config.ping_timeout,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = classify_open_error(e)
            logger.warning(f"WebSocket connect to {self.config.url} failed: {error}")
            self._notify_error(error)
            return

        if self._closing:
            await ws.close()
            return

        self._ws = ws
        self._open = True
        logger.info(f"WebSocket connected to {self.config.url}")
        if self._listener:
            self._listener.on_channel_open()

        reason = "connection closed"
        try:
            async for raw in ws:
                self._handle_message(raw)
        except asyncio.CancelledError:
            raise
        except ConnectionClosed as e:
            reason = str(e) or reason
        except Exception as e:
            logger.error(f"WebSocket receive error: {e}")
            self._open = False
            self._ws = None
            self._notify_error(TransportError(f"Receive failed: {e}"))
            return
        else:
            close_reason = getattr(ws, "close_reason", None)
            if close_reason:
                reason = close_reason

        self._open = False
        self._ws = None
        if not self._closing and self._listener:
            logger.info(f"WebSocket disconnected: {reason}")
            self._listener.on_channel_close(reason)

    def _handle_message(self, raw: str | bytes) -> None:
        logger.debug(f"WebSocket receive: {raw!r}")
        try:
            frame = decode_message(raw)
        except ValueError as e:
            # pydantic ValidationError is a ValueError too
            logger.warning(f"Invalid WebSocket message: {e}")
            return
        if not self._listener:
            return
        if isinstance(frame, PushFrame):
            self._listener.on_channel_push(frame.event, frame.data)
        else:
            self._listener.on_channel_frame(frame)

    def _notify_error(self, error: Exception) -> None:
        if self._closing or not self._listener:
            return
        self._listener.on_channel_error(error)


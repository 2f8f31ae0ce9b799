"""
Live event transport.

The backend pushes notification events over Socket.IO. The transport only
opens, closes and forwards; retries and state live in NotificationChannel.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol

import socketio

from utils.logger import get_logger

_logger = get_logger(__name__)

EVENT_NEW = "new_notification"
EVENT_READ = "notification_read"
EVENT_ALL_READ = "all_notifications_read"
EVENTS = (EVENT_NEW, EVENT_READ, EVENT_ALL_READ)

EventSink = Callable[[str, Any], None]
DropSink = Callable[[str], None]


class TransportError(Exception):
    """The live channel could not be opened or was lost."""


class TransportAuthError(TransportError):
    """The server refused the session credential; retrying will not help."""


class Transport(Protocol):
    async def open(self, url: str, token: str) -> None: ...

    async def close(self) -> None: ...


TransportFactory = Callable[[EventSink, DropSink], Transport]


def _looks_like_auth_refusal(data: Any) -> bool:
    text = str(data.get("message", data) if isinstance(data, dict) else data).lower()
    return "auth" in text or "unauthor" in text or "token" in text


class SocketIOTransport:
    """
    python-socketio asyncio client with its own reconnection switched off.

    on_event(name, payload) receives every notification event; on_drop(reason)
    fires when an open connection is lost without close() being called.
    """

    def __init__(
        self,
        on_event: EventSink,
        on_drop: DropSink,
        timeout: float = 20.0,
    ) -> None:
        self._on_event = on_event
        self._on_drop = on_drop
        self._timeout = timeout
        self._closing = False
        self._refusal: Optional[Any] = None

        self._sio = socketio.AsyncClient(reconnection=False, logger=False, engineio_logger=False)
        for name in EVENTS:
            self._sio.on(name, self._forwarder(name))
        self._sio.on("connect_error", self._handle_connect_error)
        self._sio.on("disconnect", self._handle_disconnect)

    def _forwarder(self, name: str):
        async def forward(payload=None):
            self._on_event(name, payload)

        return forward

    async def _handle_connect_error(self, data=None):
        self._refusal = data
        _logger.debug(f"Socket.IO connect_error: {data}")

    async def _handle_disconnect(self, *args):
        reason = str(args[0]) if args else "transport closed"
        if self._closing:
            return
        _logger.info(f"Live channel dropped: {reason}")
        self._on_drop(reason)

    @property
    def connected(self) -> bool:
        return self._sio.connected

    async def open(self, url: str, token: str) -> None:
        self._closing = False
        self._refusal = None
        try:
            await self._sio.connect(
                url,
                auth={"token": token},
                transports=["websocket", "polling"],
                wait_timeout=self._timeout,
            )
        except socketio.exceptions.ConnectionError as e:
            if self._refusal is not None and _looks_like_auth_refusal(self._refusal):
                raise TransportAuthError(str(self._refusal)) from e
            raise TransportError(str(e)) from e

    async def close(self) -> None:
        self._closing = True
        if self._sio.connected:
            await self._sio.disconnect()

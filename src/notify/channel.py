"""
Notification Channel.

One instance per authenticated session. It owns the live subscription, the
reconnect loop and the notification cache; consumers read through its
properties and mutate only through its methods.

Inbound events are queued and applied by a single dispatcher task. Every
user-initiated operation first applies whatever is already queued, so an
event that arrived before the call is covered by it.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol, Tuple

from api.client import ApiError
from api.models import Notification, NotificationPage
from api.notifications import NotificationsApi
from notify.alerts import Alert, alert_for
from notify.cache import NotificationCache
from notify.transport import (
    EVENT_ALL_READ,
    EVENT_NEW,
    EVENT_READ,
    SocketIOTransport,
    Transport,
    TransportAuthError,
    TransportError,
    TransportFactory,
)
from utils.config import get_settings
from utils.logger import get_logger

_logger = get_logger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class ChannelEvent:
    name: str
    payload: Any = None


class NotificationRest(Protocol):
    async def list(self, limit: int) -> NotificationPage: ...

    async def mark_read(self, notification_id: str) -> None: ...

    async def mark_all_read(self) -> None: ...

    async def delete(self, notification_id: str) -> None: ...


def _default_transport(on_event, on_drop) -> Transport:
    return SocketIOTransport(on_event, on_drop, timeout=get_settings().api_timeout)


def _event_id(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        payload = payload.get("id", payload.get("notificationId"))
    return None if payload is None else str(payload)


class NotificationChannel:
    def __init__(
        self,
        url: Optional[str] = None,
        transport_factory: Optional[TransportFactory] = None,
        rest_factory: Optional[Callable[[str], NotificationRest]] = None,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        fetch_limit: Optional[int] = None,
        on_change: Optional[Callable[[], None]] = None,
        on_alert: Optional[Callable[[Alert], None]] = None,
        on_state: Optional[Callable[[ConnectionState], None]] = None,
    ) -> None:
        settings = get_settings()
        self.url = url or settings.api_url
        self.max_attempts = settings.reconnect_attempts if max_attempts is None else max_attempts
        self.base_delay = settings.reconnect_delay if base_delay is None else base_delay
        self.max_delay = settings.reconnect_delay_max if max_delay is None else max_delay
        self.fetch_limit = fetch_limit or settings.notification_limit

        self._transport_factory = transport_factory or _default_transport
        self._rest_factory = rest_factory or NotificationsApi
        self._on_change = on_change
        self._on_alert = on_alert
        self._on_state = on_state

        self._cache = NotificationCache()
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._state = ConnectionState.DISCONNECTED
        self._alive = False
        self._token: Optional[str] = None
        self._rest: Optional[NotificationRest] = None
        self._transport: Optional[Transport] = None
        self._connector: Optional[asyncio.Task] = None
        self._dispatcher: Optional[asyncio.Task] = None

        # total unread on the server, may exceed what the fetched page holds
        self.server_unread_count: Optional[int] = None

    # -------------------- read side --------------------

    @property
    def connection_state(self) -> ConnectionState:
        return self._state

    @property
    def notifications(self) -> Tuple[Notification, ...]:
        return self._cache.notifications

    @property
    def unread_count(self) -> int:
        return self._cache.unread_count

    @property
    def is_stale(self) -> bool:
        """True while live updates are not flowing; the list may lag the server."""
        return self._state is not ConnectionState.CONNECTED

    def backoff_delay(self, failures: int) -> float:
        """1st retry waits base_delay, doubling per failure up to max_delay."""
        return min(self.base_delay * (2 ** max(failures - 1, 0)), self.max_delay)

    # -------------------- session lifecycle --------------------

    def init(self, session_token: Optional[str]) -> Optional[asyncio.Task]:
        """Start the session's channel. Same as connect(); teardown() undoes it."""
        return self.connect(session_token)

    def connect(self, session_token: Optional[str] = None) -> Optional[asyncio.Task]:
        """
        Open the live channel in the background and return the connecting task.

        Without a token nothing is opened. While connecting or connected this
        is a no-op returning the task already in flight (if any).
        """
        token = session_token or self._token
        if not token:
            _logger.info("No session token; live notifications disabled")
            return None
        if self._state is not ConnectionState.DISCONNECTED:
            return self._connector

        if token != self._token or self._rest is None:
            self._rest = self._rest_factory(token)
        self._token = token
        self._alive = True
        if self._transport is None:
            self._transport = self._transport_factory(self.post, self._handle_drop)
        self._start_dispatcher()

        self._set_state(ConnectionState.CONNECTING)
        self._connector = asyncio.create_task(self._connect_loop())
        return self._connector

    async def wait_until_settled(self) -> ConnectionState:
        """Wait for the connect / reconnect sequence in flight, if any."""
        if self._connector is not None and not self._connector.done():
            with contextlib.suppress(asyncio.CancelledError):
                await self._connector
        return self._state

    async def disconnect(self) -> None:
        """Explicit disconnect: no retry, pending reconnects cancelled, cache kept."""
        self._alive = False
        connector, self._connector = self._connector, None
        if connector is not None and not connector.done():
            connector.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await connector
        if self._transport is not None:
            try:
                await self._transport.close()
            except TransportError as e:
                _logger.warning(f"Error closing live channel: {e}")
        self._set_state(ConnectionState.DISCONNECTED)

    async def teardown(self) -> None:
        """End of session: disconnect, stop the dispatcher and forget everything."""
        await self.disconnect()
        dispatcher, self._dispatcher = self._dispatcher, None
        if dispatcher is not None and not dispatcher.done():
            dispatcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await dispatcher
        while not self._inbox.empty():
            self._inbox.get_nowait()
        self._cache.clear()
        self.server_unread_count = None
        self._token = None
        self._rest = None
        self._changed()

    # -------------------- connection internals --------------------

    async def _connect_loop(self, initial_delay: float = 0.0) -> bool:
        if initial_delay:
            await asyncio.sleep(initial_delay)
        failures = 0
        while self._alive:
            self._set_state(ConnectionState.CONNECTING)
            try:
                await self._transport.open(self.url, self._token)
            except TransportAuthError as e:
                _logger.error(f"Live channel refused the session: {e}")
                self._set_state(ConnectionState.DISCONNECTED)
                return False
            except TransportError as e:
                failures += 1
                if failures > self.max_attempts:
                    _logger.warning(f"Live channel gave up after {failures} attempts: {e}")
                    self._set_state(ConnectionState.DISCONNECTED)
                    return False
                delay = self.backoff_delay(failures)
                _logger.info(f"Live channel attempt {failures} failed ({e}); retry in {delay:.1f}s")
                await asyncio.sleep(delay)
                continue

            if not self._alive:
                # torn down while the handshake was in flight
                await self._transport.close()
                return False
            self._set_state(ConnectionState.CONNECTED)
            _logger.info("Live channel connected")
            await self.fetch_backlog()
            return True
        return False

    def _handle_drop(self, reason: str) -> None:
        if not self._alive or self._state is not ConnectionState.CONNECTED:
            return
        _logger.warning(f"Live channel lost ({reason}); reconnecting")
        self._set_state(ConnectionState.CONNECTING)
        self._connector = asyncio.get_running_loop().create_task(
            self._connect_loop(initial_delay=self.backoff_delay(1))
        )

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        _logger.debug(f"Connection state {self._state.value} -> {state.value}")
        self._state = state
        if self._on_state is not None:
            self._on_state(state)

    # -------------------- event delivery --------------------

    def post(self, name: str, payload: Any = None) -> None:
        """Transport entry point: queue an event for the dispatcher."""
        if not self._alive:
            _logger.debug(f"Dropping {name} received after disconnect")
            return
        self._inbox.put_nowait(ChannelEvent(name, payload))

    def _start_dispatcher(self) -> None:
        if self._dispatcher is None or self._dispatcher.done():
            self._dispatcher = asyncio.create_task(self._dispatch_loop())

    async def _dispatch_loop(self) -> None:
        while True:
            event = await self._inbox.get()
            try:
                self.on_event(event)
            except Exception:
                # a failing consumer callback must not stop delivery
                _logger.exception(f"Error applying {event.name} event")

    def flush(self) -> int:
        """Apply every queued event now. Returns how many were applied."""
        applied = 0
        while not self._inbox.empty():
            self.on_event(self._inbox.get_nowait())
            applied += 1
        return applied

    def on_event(self, event: ChannelEvent) -> bool:
        """Apply one event to the cache. Returns True if anything changed."""
        if event.name == EVENT_NEW:
            notification = self._coerce(event.payload)
            if notification is None:
                return False
            if not self._cache.add(notification):
                _logger.debug(f"Duplicate notification {notification.id} ignored")
                return False
            self._changed()
            if self._on_alert is not None:
                self._on_alert(alert_for(notification))
            return True

        if event.name == EVENT_READ:
            notification_id = _event_id(event.payload)
            if notification_id is None or not self._cache.mark_read(notification_id):
                return False
        elif event.name == EVENT_ALL_READ:
            if not self._cache.mark_all_read():
                return False
        else:
            _logger.debug(f"Ignoring unknown event {event.name!r}")
            return False

        self._changed()
        return True

    @staticmethod
    def _coerce(payload: Any) -> Optional[Notification]:
        if isinstance(payload, Notification):
            return payload
        try:
            return Notification.from_json(payload)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            _logger.warning(f"Malformed notification payload {payload!r}: {e}")
            return None

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    # -------------------- REST-backed operations --------------------

    async def fetch_backlog(self, limit: Optional[int] = None) -> bool:
        """
        Replace the cache with the server's latest notifications.

        This is where drift from missed push events gets corrected. On failure
        the cache is left exactly as it was.
        """
        if self._rest is None:
            return False
        try:
            page = await self._rest.list(limit or self.fetch_limit)
        except (ApiError, ValueError, KeyError, TypeError, AttributeError) as e:
            _logger.warning(f"Could not fetch notification backlog: {e!r}")
            return False
        if self._rest is None:
            # session ended while the request was in flight
            return False

        self._cache.replace(page.notifications)
        self.server_unread_count = page.unread_count
        if page.unread_count != self._cache.unread_count:
            _logger.debug(
                f"Server reports {page.unread_count} unread, "
                f"{self._cache.unread_count} in the fetched page"
            )
        self._changed()
        return True

    async def mark_as_read(self, notification_id: str) -> bool:
        """
        Flip locally, then tell the server. A failed request is logged and
        the local flip stays (no rollback).
        """
        self.flush()
        if self._cache.mark_read(notification_id):
            self._changed()
        if self._rest is None:
            return False
        try:
            await self._rest.mark_read(notification_id)
        except (ApiError, ValueError) as e:
            _logger.warning(f"Marking notification {notification_id} read failed: {e}")
            return False
        return True

    async def mark_all_as_read(self) -> bool:
        self.flush()
        if self._cache.mark_all_read():
            self._changed()
        if self._rest is None:
            return False
        try:
            await self._rest.mark_all_read()
        except (ApiError, ValueError) as e:
            _logger.warning(f"Marking all notifications read failed: {e}")
            return False
        if self.server_unread_count is not None:
            self.server_unread_count = 0
        return True

    async def delete_notification(self, notification_id: str) -> bool:
        self.flush()
        if self._cache.remove(notification_id) is not None:
            self._changed()
        if self._rest is None:
            return False
        try:
            await self._rest.delete(notification_id)
        except (ApiError, ValueError) as e:
            _logger.warning(f"Deleting notification {notification_id} failed: {e}")
            return False
        return True

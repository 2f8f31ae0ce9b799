import importlib.util
import unittest
from unittest import mock

import socketio

from notify.transport import (
    EVENT_ALL_READ,
    EVENT_NEW,
    EVENT_READ,
    SocketIOTransport,
    TransportAuthError,
    TransportError,
    _looks_like_auth_refusal,
)


class AuthRefusalTestCase(unittest.TestCase):
    def test_auth_messages(self):
        self.assertTrue(_looks_like_auth_refusal({"message": "Authentication error"}))
        self.assertTrue(_looks_like_auth_refusal({"message": "Unauthorized"}))
        self.assertTrue(_looks_like_auth_refusal("invalid token"))

    def test_other_refusals(self):
        self.assertFalse(_looks_like_auth_refusal({"message": "Server busy"}))
        self.assertFalse(_looks_like_auth_refusal("Connection refused by the server"))
        self.assertFalse(_looks_like_auth_refusal(None))


class SocketIOTransportTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.events = []
        self.drops = []
        self.transport = SocketIOTransport(
            lambda name, payload: self.events.append((name, payload)),
            self.drops.append,
            timeout=1.0,
        )
        self.handlers = self.transport._sio.handlers["/"]

    def test_websocket_client_installed(self):
        # socketio.AsyncClient opens websockets and long-polling through aiohttp
        self.assertIsNotNone(importlib.util.find_spec("aiohttp"))

    async def test_forwards_notification_events(self):
        await self.handlers[EVENT_NEW]({"id": "n-1"})
        await self.handlers[EVENT_READ]("n-1")
        await self.handlers[EVENT_ALL_READ]()
        self.assertEqual(
            self.events,
            [(EVENT_NEW, {"id": "n-1"}), (EVENT_READ, "n-1"), (EVENT_ALL_READ, None)],
        )

    async def test_open_passes_token(self):
        with mock.patch.object(self.transport._sio, "connect", mock.AsyncMock()) as connect:
            await self.transport.open("http://shop.test", "jwt-abc")
        args, kwargs = connect.call_args
        self.assertEqual(args, ("http://shop.test",))
        self.assertEqual(kwargs["auth"], {"token": "jwt-abc"})
        self.assertEqual(kwargs["wait_timeout"], 1.0)

    async def test_refused_credential_is_auth_error(self):
        async def refuse(*args, **kwargs):
            await self.handlers["connect_error"]({"message": "Authentication error: invalid token"})
            raise socketio.exceptions.ConnectionError("One or more namespaces failed to connect")

        with mock.patch.object(self.transport._sio, "connect", refuse):
            with self.assertRaises(TransportAuthError):
                await self.transport.open("http://shop.test", "expired")

    async def test_unreachable_server_is_retryable(self):
        unreachable = socketio.exceptions.ConnectionError("Connection refused by the server")
        with mock.patch.object(
            self.transport._sio, "connect", mock.AsyncMock(side_effect=unreachable)
        ):
            with self.assertRaises(TransportError) as ctx:
                await self.transport.open("http://shop.test", "tok")
        self.assertNotIsInstance(ctx.exception, TransportAuthError)

    async def test_stale_refusal_is_forgotten_on_next_open(self):
        await self.handlers["connect_error"]({"message": "Unauthorized"})
        unreachable = socketio.exceptions.ConnectionError("Connection refused by the server")
        with mock.patch.object(
            self.transport._sio, "connect", mock.AsyncMock(side_effect=unreachable)
        ):
            with self.assertRaises(TransportError) as ctx:
                await self.transport.open("http://shop.test", "tok")
        self.assertNotIsInstance(ctx.exception, TransportAuthError)

    async def test_lost_connection_is_reported(self):
        await self.handlers["disconnect"]("transport close")
        await self.handlers["disconnect"]()
        self.assertEqual(self.drops, ["transport close", "transport closed"])

    async def test_close_is_not_reported_as_drop(self):
        sio = self.transport._sio

        async def disconnect():
            sio.connected = False
            await self.handlers["disconnect"]("client disconnect")

        sio.connected = True
        with mock.patch.object(sio, "disconnect", disconnect):
            await self.transport.close()
        self.assertEqual(self.drops, [])
        self.assertFalse(self.transport.connected)

    async def test_close_when_never_opened(self):
        with mock.patch.object(self.transport._sio, "disconnect", mock.AsyncMock()) as disconnect:
            await self.transport.close()
        disconnect.assert_not_called()

    async def test_reopen_reports_drops_again(self):
        await self.transport.close()
        with mock.patch.object(self.transport._sio, "connect", mock.AsyncMock()):
            await self.transport.open("http://shop.test", "tok")
        await self.handlers["disconnect"]("ping timeout")
        self.assertEqual(self.drops, ["ping timeout"])

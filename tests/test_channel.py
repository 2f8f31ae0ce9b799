import asyncio
import unittest
from datetime import datetime, timedelta, timezone
from typing import List

from api.client import ApiError, ApiUnavailable
from api.models import Notification, NotificationPage, User
from notify.channel import ConnectionState, NotificationChannel
from notify.transport import (
    EVENT_ALL_READ,
    EVENT_NEW,
    EVENT_READ,
    TransportAuthError,
    TransportError,
)
from utils.state import GlobalState

T0 = datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc)


def payload(i: int, is_read=False, **extra) -> dict:
    data = {
        "id": f"n-{i}",
        "type": "ORDER_STATUS_CHANGE",
        "priority": "NORMAL",
        "title": f"Order update {i}",
        "message": f"Order WH-{i} changed",
        "data": {"orderId": f"o-{i}"},
        "isRead": is_read,
        "createdAt": (T0 + timedelta(minutes=i)).isoformat(),
    }
    data.update(extra)
    return data


class FakeTransport:
    """Scripted open() outcomes; None means success."""

    def __init__(self, on_event, on_drop, outcomes=None):
        self.on_event = on_event
        self.on_drop = on_drop
        self.outcomes = list(outcomes or [])
        self.opens = 0
        self.closes = 0

    async def open(self, url, token):
        self.opens += 1
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if outcome is not None:
            raise outcome

    async def close(self):
        self.closes += 1


class FakeRest:
    def __init__(self, backlog: List[dict] = (), unread_total=None):
        self.backlog = list(backlog)
        self.unread_total = unread_total
        self.fail_with = None
        # body handed to the real page parser instead of the backlog
        self.raw_page = None
        self.calls = []

    async def list(self, limit):
        self.calls.append(("list", limit))
        if self.fail_with is not None:
            raise self.fail_with
        if self.raw_page is not None:
            return NotificationPage.from_json(self.raw_page)
        items = [Notification.from_json(p) for p in self.backlog[:limit]]
        unread = self.unread_total
        if unread is None:
            unread = sum(1 for n in items if not n.is_read)
        return NotificationPage(items, unread)

    async def mark_read(self, notification_id):
        self.calls.append(("mark_read", notification_id))
        if self.fail_with is not None:
            raise self.fail_with

    async def mark_all_read(self):
        self.calls.append(("mark_all_read",))
        if self.fail_with is not None:
            raise self.fail_with

    async def delete(self, notification_id):
        self.calls.append(("delete", notification_id))
        if self.fail_with is not None:
            raise self.fail_with


class ChannelTestCase(unittest.IsolatedAsyncioTestCase):
    def make_channel(self, outcomes=None, backlog=(), **kwargs):
        self.rest = FakeRest(backlog)
        self.transports: List[FakeTransport] = []
        self.states: List[ConnectionState] = []
        self.alerts = []
        self.changes = 0
        self.fail_next_change = None

        def transport_factory(on_event, on_drop):
            t = FakeTransport(on_event, on_drop, outcomes)
            self.transports.append(t)
            return t

        def on_change():
            self.changes += 1
            if self.fail_next_change is not None:
                error, self.fail_next_change = self.fail_next_change, None
                raise error

        kwargs.setdefault("base_delay", 0.0)
        kwargs.setdefault("max_delay", 0.0)
        self.channel = NotificationChannel(
            url="http://test",
            transport_factory=transport_factory,
            rest_factory=lambda token: self.rest,
            on_change=on_change,
            on_alert=self.alerts.append,
            on_state=self.states.append,
            **kwargs,
        )
        return self.channel

    async def asyncTearDown(self):
        await self.channel.teardown()

    def assertCountMatches(self):
        self.assertEqual(
            self.channel.unread_count,
            sum(1 for n in self.channel.notifications if not n.is_read),
        )

    # ---------- connection ----------

    async def test_connect_fetches_backlog(self):
        channel = self.make_channel(backlog=[payload(1), payload(2, is_read=True)])
        channel.init("tok")
        self.assertIs(await channel.wait_until_settled(), ConnectionState.CONNECTED)

        self.assertEqual(self.states, [ConnectionState.CONNECTING, ConnectionState.CONNECTED])
        self.assertEqual([n.id for n in channel.notifications], ["n-2", "n-1"])
        self.assertEqual(channel.unread_count, 1)
        self.assertEqual(channel.server_unread_count, 1)
        self.assertFalse(channel.is_stale)

    async def test_server_total_kept_apart_from_recount(self):
        channel = self.make_channel(backlog=[payload(1)])
        self.rest.unread_total = 37
        channel.connect("tok")
        await channel.wait_until_settled()
        self.assertEqual(channel.server_unread_count, 37)
        self.assertEqual(channel.unread_count, 1)

    async def test_no_token_does_nothing(self):
        channel = self.make_channel()
        self.assertIsNone(channel.connect(None))
        self.assertIs(channel.connection_state, ConnectionState.DISCONNECTED)
        self.assertEqual(self.transports, [])

    async def test_connect_is_idempotent(self):
        channel = self.make_channel()
        first = channel.connect("tok")
        second = channel.connect("tok")
        self.assertIs(first, second)
        await channel.wait_until_settled()
        self.assertIs(channel.connect("tok"), first)
        self.assertEqual(self.transports[0].opens, 1)

    async def test_gives_up_after_max_attempts(self):
        channel = self.make_channel(
            outcomes=[TransportError("refused")] * 10, max_attempts=3
        )
        channel.connect("tok")
        self.assertIs(await channel.wait_until_settled(), ConnectionState.DISCONNECTED)
        self.assertEqual(self.transports[0].opens, 4)
        self.assertTrue(channel.is_stale)

    async def test_recovers_within_attempts(self):
        channel = self.make_channel(outcomes=[TransportError("x"), TransportError("y")])
        channel.connect("tok")
        self.assertIs(await channel.wait_until_settled(), ConnectionState.CONNECTED)
        self.assertEqual(self.transports[0].opens, 3)

    async def test_auth_refusal_is_not_retried(self):
        channel = self.make_channel(outcomes=[TransportAuthError("invalid token")])
        channel.connect("tok")
        self.assertIs(await channel.wait_until_settled(), ConnectionState.DISCONNECTED)
        self.assertEqual(self.transports[0].opens, 1)
        self.assertNotIn(("list", 20), self.rest.calls)

    async def test_backoff_doubles_up_to_cap(self):
        channel = self.make_channel(base_delay=1.0, max_delay=5.0)
        self.assertEqual(
            [channel.backoff_delay(n) for n in range(1, 6)], [1.0, 2.0, 4.0, 5.0, 5.0]
        )

    async def test_drop_reconnects_and_refetches(self):
        channel = self.make_channel(backlog=[payload(1)])
        channel.connect("tok")
        await channel.wait_until_settled()

        self.transports[0].on_drop("transport error")
        self.assertIs(channel.connection_state, ConnectionState.CONNECTING)
        self.assertIs(await channel.wait_until_settled(), ConnectionState.CONNECTED)
        self.assertEqual(self.transports[0].opens, 2)
        self.assertEqual(sum(1 for c in self.rest.calls if c[0] == "list"), 2)

    async def test_teardown_cancels_pending_reconnect(self):
        channel = self.make_channel(base_delay=30.0, max_delay=30.0, backlog=[payload(1)])
        channel.connect("tok")
        await channel.wait_until_settled()

        self.transports[0].on_drop("transport error")
        await channel.teardown()
        await asyncio.sleep(0)

        self.assertIs(channel.connection_state, ConnectionState.DISCONNECTED)
        self.assertEqual(self.transports[0].opens, 1)
        self.assertEqual(channel.notifications, ())

        # a late event after teardown is ignored
        self.transports[0].on_event(EVENT_NEW, payload(5))
        self.assertEqual(channel.flush(), 0)
        self.assertEqual(channel.unread_count, 0)

    async def test_disconnect_keeps_cache(self):
        channel = self.make_channel(backlog=[payload(1)])
        channel.connect("tok")
        await channel.wait_until_settled()
        await channel.disconnect()
        self.assertIs(channel.connection_state, ConnectionState.DISCONNECTED)
        self.assertEqual(len(channel.notifications), 1)
        self.assertEqual(self.transports[0].closes, 1)

    # ---------- events ----------

    async def connected(self, backlog=()):
        channel = self.make_channel(backlog=backlog)
        channel.connect("tok")
        await channel.wait_until_settled()
        return channel

    async def test_duplicate_push_counts_once(self):
        channel = await self.connected()
        channel.post(EVENT_NEW, payload(7))
        channel.post(EVENT_NEW, payload(7))
        channel.flush()
        await asyncio.sleep(0)

        self.assertEqual([n.id for n in channel.notifications], ["n-7"])
        self.assertEqual(channel.unread_count, 1)
        self.assertEqual(len(self.alerts), 1)
        self.assertEqual(self.alerts[0].order_id, "o-7")

    async def test_dispatcher_applies_events_in_background(self):
        channel = await self.connected()
        channel.post(EVENT_NEW, payload(3))
        for _ in range(5):
            await asyncio.sleep(0)
        self.assertEqual(channel.unread_count, 1)

    async def test_dispatcher_survives_failing_callback(self):
        channel = await self.connected()
        self.fail_next_change = RuntimeError("screen went away")
        with self.assertLogs("notify.channel", level="ERROR"):
            channel.post(EVENT_NEW, payload(1))
            for _ in range(5):
                await asyncio.sleep(0)

        channel.post(EVENT_NEW, payload(2))
        for _ in range(5):
            await asyncio.sleep(0)
        self.assertEqual([n.id for n in channel.notifications], ["n-2", "n-1"])
        self.assertEqual(channel.unread_count, 2)
        self.assertEqual([a.order_id for a in self.alerts], ["o-2"])

    async def test_malformed_push_is_ignored(self):
        channel = await self.connected()
        channel.post(EVENT_NEW, {"title": "no id"})
        channel.post(EVENT_NEW, "garbage")
        channel.flush()
        self.assertEqual(channel.notifications, ())
        self.assertEqual(self.alerts, [])

    async def test_server_read_events(self):
        channel = await self.connected(backlog=[payload(1), payload(2), payload(3)])
        channel.post(EVENT_READ, {"id": "n-2"})
        channel.post(EVENT_READ, "n-missing")
        channel.flush()
        self.assertEqual(channel.unread_count, 2)
        self.assertCountMatches()

        channel.post(EVENT_ALL_READ)
        channel.flush()
        self.assertEqual(channel.unread_count, 0)
        self.assertCountMatches()

    async def test_mark_all_right_after_push(self):
        channel = await self.connected(backlog=[payload(1)])
        channel.post(EVENT_NEW, payload(9))
        await channel.mark_all_as_read()

        self.assertEqual(channel.unread_count, 0)
        self.assertTrue(all(n.is_read for n in channel.notifications))
        self.assertIn("n-9", [n.id for n in channel.notifications])
        self.assertEqual(channel.server_unread_count, 0)

    # ---------- user operations ----------

    async def test_mark_as_read(self):
        channel = await self.connected(backlog=[payload(1), payload(2)])
        self.assertTrue(await channel.mark_as_read("n-1"))
        self.assertEqual(channel.unread_count, 1)
        self.assertIn(("mark_read", "n-1"), self.rest.calls)

    async def test_failed_mark_read_keeps_local_flip(self):
        channel = await self.connected(backlog=[payload(1)])
        self.rest.fail_with = ApiUnavailable("offline")
        self.assertFalse(await channel.mark_as_read("n-1"))
        self.assertEqual(channel.unread_count, 0)
        self.assertCountMatches()

    async def test_delete_unread_entry(self):
        channel = await self.connected(backlog=[payload(1), payload(2)])
        self.assertTrue(await channel.delete_notification("n-2"))
        self.assertEqual([n.id for n in channel.notifications], ["n-1"])
        self.assertEqual(channel.unread_count, 1)
        self.assertIn(("delete", "n-2"), self.rest.calls)

    async def test_failed_backlog_leaves_cache_alone(self):
        channel = await self.connected(backlog=[payload(1), payload(2, is_read=True)])
        before = channel.notifications
        changes = self.changes

        self.rest.fail_with = ApiError("boom", status_code=500)
        self.assertFalse(await channel.fetch_backlog())
        self.assertEqual(channel.notifications, before)
        self.assertEqual(self.changes, changes)

        self.rest.fail_with = ApiUnavailable("offline")
        self.assertFalse(await channel.fetch_backlog())
        self.assertEqual(channel.notifications, before)

    async def test_malformed_backlog_leaves_cache_alone(self):
        channel = await self.connected(backlog=[payload(1), payload(2, is_read=True)])
        before = channel.notifications
        changes = self.changes

        self.rest.raw_page = {"notifications": [{"title": "no id"}]}
        self.assertFalse(await channel.fetch_backlog())
        self.rest.raw_page = ["unexpected"]
        self.assertFalse(await channel.fetch_backlog())
        self.rest.raw_page = {"notifications": "nope", "unreadCount": 3}
        self.assertFalse(await channel.fetch_backlog())

        self.rest.raw_page = None
        self.rest.fail_with = KeyError("id")
        self.assertFalse(await channel.fetch_backlog())

        self.assertEqual(channel.notifications, before)
        self.assertEqual(channel.server_unread_count, 1)
        self.assertEqual(self.changes, changes)

    async def test_undecodable_write_responses_are_logged_failures(self):
        channel = await self.connected(backlog=[payload(1), payload(2)])
        self.rest.fail_with = ValueError("Expecting value: line 1 column 1")

        self.assertFalse(await channel.mark_as_read("n-1"))
        self.assertFalse(await channel.delete_notification("n-2"))
        self.assertFalse(await channel.mark_all_as_read())

        self.assertEqual([n.id for n in channel.notifications], ["n-1"])
        self.assertEqual(channel.unread_count, 0)
        self.assertCountMatches()

    async def test_count_matches_after_mixed_operations(self):
        channel = await self.connected(backlog=[payload(i) for i in range(5)])
        channel.post(EVENT_NEW, payload(10))
        await channel.mark_as_read("n-3")
        channel.post(EVENT_NEW, payload(11))
        channel.post(EVENT_READ, "n-10")
        await channel.delete_notification("n-0")
        self.assertCountMatches()
        channel.post(EVENT_NEW, payload(12))
        channel.flush()
        self.assertCountMatches()
        self.assertEqual(channel.unread_count, 5)


class SessionStateTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_session_owns_the_channel(self):
        rest = FakeRest([payload(1)])
        made = []

        def factory():
            channel = NotificationChannel(
                url="http://test",
                transport_factory=lambda on_event, on_drop: FakeTransport(on_event, on_drop),
                rest_factory=lambda token: rest,
            )
            made.append(channel)
            return channel

        state = GlobalState()
        user = User(id="1", email="buyer@example.com", name="Sharma Traders", role="BUYER")
        channel = state.start_session("tok", user, factory)
        self.assertEqual(state.role, "buyer")
        self.assertIs(await channel.wait_until_settled(), ConnectionState.CONNECTED)
        self.assertEqual(channel.unread_count, 1)

        await state.end_session()
        self.assertIsNone(state.channel)
        self.assertIsNone(state.role)
        self.assertEqual(made[0].notifications, ())
        self.assertIs(made[0].connection_state, ConnectionState.DISCONNECTED)

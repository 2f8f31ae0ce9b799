import random
import unittest
from datetime import datetime, timedelta, timezone

from api.models import Notification, NotificationType, Priority
from notify.alerts import LONG_TIMEOUT, SHORT_TIMEOUT, alert_for
from notify.cache import NotificationCache

T0 = datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc)


def make_notification(i: int, is_read=False, priority=Priority.NORMAL, **kwargs) -> Notification:
    return Notification(
        id=f"n-{i}",
        type=kwargs.pop("type", NotificationType.GENERIC),
        priority=priority,
        title=f"Title {i}",
        message=f"Message {i}",
        is_read=is_read,
        created_at=T0 + timedelta(minutes=i),
        **kwargs,
    )


class NotificationCacheTestCase(unittest.TestCase):
    def assertCountMatches(self, cache: NotificationCache):
        self.assertEqual(cache.unread_count, sum(1 for n in cache if not n.is_read))

    def test_replace_sorts_newest_first_and_dedupes(self):
        cache = NotificationCache(
            [make_notification(1), make_notification(3), make_notification(2), make_notification(3)]
        )
        self.assertEqual([n.id for n in cache], ["n-3", "n-2", "n-1"])
        self.assertEqual(cache.unread_count, 3)

    def test_add_prepends_and_ignores_duplicates(self):
        cache = NotificationCache([make_notification(1)])
        self.assertTrue(cache.add(make_notification(2)))
        self.assertFalse(cache.add(make_notification(2)))
        self.assertEqual([n.id for n in cache], ["n-2", "n-1"])
        self.assertEqual(cache.unread_count, 2)

    def test_mark_read_flips_once(self):
        cache = NotificationCache([make_notification(1)])
        self.assertTrue(cache.mark_read("n-1"))
        self.assertFalse(cache.mark_read("n-1"))
        self.assertFalse(cache.mark_read("missing"))
        self.assertIsNotNone(cache.get("n-1").read_at)
        self.assertEqual(cache.unread_count, 0)

    def test_mark_all_read_reports_flips(self):
        cache = NotificationCache(
            [make_notification(1), make_notification(2, is_read=True), make_notification(3)]
        )
        self.assertEqual(cache.mark_all_read(), 2)
        self.assertEqual(cache.mark_all_read(), 0)
        self.assertEqual(cache.unread_count, 0)

    def test_remove(self):
        cache = NotificationCache([make_notification(1), make_notification(2)])
        self.assertEqual(cache.remove("n-1").id, "n-1")
        self.assertIsNone(cache.remove("n-1"))
        self.assertNotIn("n-1", cache)
        self.assertEqual(len(cache), 1)

    def test_notifications_is_a_snapshot(self):
        cache = NotificationCache([make_notification(1)])
        snapshot = cache.notifications
        cache.add(make_notification(2))
        self.assertEqual(len(snapshot), 1)

    def test_unread_count_holds_after_any_sequence(self):
        rng = random.Random(42)
        cache = NotificationCache()
        for step in range(500):
            i = rng.randrange(20)
            op = rng.choice(["add", "read", "read_all", "remove"])
            if op == "add":
                cache.add(make_notification(i, is_read=rng.random() < 0.3))
            elif op == "read":
                cache.mark_read(f"n-{i}")
            elif op == "read_all" and rng.random() < 0.1:
                cache.mark_all_read()
            elif op == "remove":
                cache.remove(f"n-{i}")
            self.assertCountMatches(cache)
            self.assertEqual(len({n.id for n in cache}), len(cache), step)


class AlertTestCase(unittest.TestCase):
    def test_loud_priorities_stay_longer(self):
        for priority in (Priority.URGENT, Priority.HIGH):
            self.assertEqual(alert_for(make_notification(1, priority=priority)).timeout, LONG_TIMEOUT)
        for priority in (Priority.NORMAL, Priority.LOW):
            self.assertEqual(alert_for(make_notification(1, priority=priority)).timeout, SHORT_TIMEOUT)
        self.assertGreater(LONG_TIMEOUT, SHORT_TIMEOUT)

    def test_tone_follows_type(self):
        rejected = alert_for(make_notification(1, type=NotificationType.PAYMENT_REJECTED))
        self.assertEqual(rejected.tone, "error")
        self.assertEqual(rejected.severity, "error")

        confirmed = alert_for(make_notification(1, type=NotificationType.PAYMENT_CONFIRMATION))
        self.assertEqual(confirmed.tone, "success")
        self.assertEqual(confirmed.severity, "information")

        urgent = alert_for(make_notification(1, priority=Priority.URGENT))
        self.assertEqual(urgent.tone, "info")
        self.assertEqual(urgent.severity, "warning")

    def test_order_change_carries_order_id(self):
        n = make_notification(
            1, type=NotificationType.ORDER_STATUS_CHANGE, data={"orderId": "o-9"}
        )
        self.assertEqual(alert_for(n).order_id, "o-9")
        self.assertIsNone(alert_for(make_notification(2, data={"orderId": "o-9"})).order_id)

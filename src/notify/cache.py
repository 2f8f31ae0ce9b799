from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Optional, Tuple

from api.models import Notification


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _newest_first_key(n: Notification) -> float:
    # undated entries sink to the bottom
    return n.created_at.timestamp() if n.created_at else float("-inf")


class NotificationCache:
    """
    Client-side mirror of the session's notifications.

    Newest first, unique by id. unread_count is always recounted from the
    entries, never tracked alongside them.
    """

    def __init__(self, items: Iterable[Notification] = ()) -> None:
        self._items: List[Notification] = []
        self.replace(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Notification]:
        return iter(tuple(self._items))

    def __contains__(self, notification_id: object) -> bool:
        return self.get(str(notification_id)) is not None

    @property
    def notifications(self) -> Tuple[Notification, ...]:
        return tuple(self._items)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._items if not n.is_read)

    def get(self, notification_id: str) -> Optional[Notification]:
        for n in self._items:
            if n.id == notification_id:
                return n
        return None

    def _index(self, notification_id: str) -> int:
        for i, n in enumerate(self._items):
            if n.id == notification_id:
                return i
        return -1

    def add(self, notification: Notification) -> bool:
        """Prepend a pushed notification. Returns False if the id is already cached."""
        if self._index(notification.id) >= 0:
            return False
        self._items.insert(0, notification)
        return True

    def mark_read(self, notification_id: str, when: Optional[datetime] = None) -> bool:
        """Returns True if an unread entry was flipped."""
        i = self._index(notification_id)
        if i < 0 or self._items[i].is_read:
            return False
        self._items[i] = replace(self._items[i], is_read=True, read_at=when or _now())
        return True

    def mark_all_read(self, when: Optional[datetime] = None) -> int:
        when = when or _now()
        flipped = 0
        for i, n in enumerate(self._items):
            if not n.is_read:
                self._items[i] = replace(n, is_read=True, read_at=when)
                flipped += 1
        return flipped

    def remove(self, notification_id: str) -> Optional[Notification]:
        i = self._index(notification_id)
        if i < 0:
            return None
        return self._items.pop(i)

    def replace(self, items: Iterable[Notification]) -> None:
        """Swap in a fresh backlog wholesale; duplicates keep their first occurrence."""
        seen = set()
        fresh: List[Notification] = []
        for n in items:
            if n.id in seen:
                continue
            seen.add(n.id)
            fresh.append(n)
        fresh.sort(key=_newest_first_key, reverse=True)
        self._items = fresh

    def clear(self) -> None:
        self._items = []

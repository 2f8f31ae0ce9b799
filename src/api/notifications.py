from __future__ import annotations

from api.client import ApiError, request
from api.models import NotificationPage


async def list_notifications(token: str, limit: int = 20) -> NotificationPage:
    """Most recent `limit` notifications plus the server's total unread count."""
    data = await request("GET", "/notifications", token, params={"limit": limit})
    return NotificationPage.from_json(data or {})


async def mark_read(token: str, notification_id: str) -> None:
    # already-read is a no-op success on the server
    await request("PATCH", f"/notifications/{notification_id}/read", token)


async def mark_all_read(token: str) -> None:
    await request("PATCH", "/notifications/read-all", token)


async def delete_notification(token: str, notification_id: str) -> None:
    """Deleting something already gone counts as success."""
    try:
        await request("DELETE", f"/notifications/{notification_id}", token)
    except ApiError as e:
        if not e.is_not_found:
            raise


class NotificationsApi:
    """The notification endpoints bound to one session token."""

    def __init__(self, token: str) -> None:
        self.token = token

    async def list(self, limit: int) -> NotificationPage:
        return await list_notifications(self.token, limit)

    async def mark_read(self, notification_id: str) -> None:
        await mark_read(self.token, notification_id)

    async def mark_all_read(self) -> None:
        await mark_all_read(self.token)

    async def delete(self, notification_id: str) -> None:
        await delete_notification(self.token, notification_id)

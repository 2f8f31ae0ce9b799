from typing import Optional

from rich.text import Text
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, Label, ListItem, ListView

from api.models import Notification
from notify.alerts import notification_style
from utils.messages import ModeSwitchedMessage, NotificationsChangedMessage
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.render import render_notification_line


class NotificationItem(ListItem):
    def __init__(self, notification: Notification):
        super().__init__(
            Label(
                Text(
                    render_notification_line(notification),
                    style=notification_style(notification),
                )
            ),
            id="notif-" + notification.id,
        )
        self.notification = notification


class NotificationsScreen(BaseScreen):
    """
    The session's recent notifications, newest first.

    Reads straight from the notification channel; every change the channel
    reports re-renders the list. Selecting an order notification marks it
    read and opens that order.
    """

    BINDINGS = [
        Binding("enter", "noop", "Open", show=True, key_display="⏎"),
        Binding("m", "mark_read", "Mark Read", show=True),
        Binding("a", "mark_all_read", "Mark All Read", show=True),
        Binding("d", "delete", "Delete", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Label("", id="label-notif-summary")
            yield ListView(id="list-notifications")
        with Horizontal(id="hort-notif-control"):
            yield Button("Refresh", id="btn-notif-refresh")
            yield Button("Mark Read", id="btn-mark-read")
            yield Button("Mark All Read", id="btn-mark-all", variant="primary")
            yield Button("Delete", id="btn-delete", variant="error")

    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NotificationsChangedMessage)
    async def handle_changed(self) -> None:
        await self._render_list()

    async def _render_list(self) -> None:
        channel = self.app.state.channel
        items = channel.notifications if channel else ()

        list_view = self.query_one("#list-notifications", ListView)
        keep = list_view.index
        await list_view.clear()
        await list_view.extend([NotificationItem(n) for n in items])
        if items:
            list_view.index = min(keep or 0, len(items) - 1)

        unread = channel.unread_count if channel else 0
        summary = f"{len(items)} notifications, {unread} unread"
        if channel is not None and channel.server_unread_count is not None:
            if channel.server_unread_count > unread:
                summary += f" ({channel.server_unread_count} unread in total)"
        if channel is None or channel.is_stale:
            summary += " · offline, list may be out of date"
        self.query_one("#label-notif-summary", Label).update(summary)

    def _highlighted(self) -> Optional[Notification]:
        item = self.query_one("#list-notifications", ListView).highlighted_child
        return item.notification if isinstance(item, NotificationItem) else None

    @on(Button.Pressed, "#btn-notif-refresh")
    @work(exclusive=True, group="notif-refresh")
    async def handle_refresh(self) -> None:
        channel = self.app.state.channel
        if channel is None:
            return
        if not await channel.fetch_backlog():
            self.notify("Could not refresh notifications.", severity="error")

    @on(Button.Pressed, "#btn-mark-read")
    def action_mark_read(self) -> None:
        notification = self._highlighted()
        if notification is not None and not notification.is_read:
            self._mark_read(notification.id)

    @on(Button.Pressed, "#btn-mark-all")
    @work(group="notif-ops")
    async def action_mark_all_read(self) -> None:
        channel = self.app.state.channel
        if channel is not None:
            await channel.mark_all_as_read()

    @on(Button.Pressed, "#btn-delete")
    @work(group="notif-ops")
    async def action_delete(self) -> None:
        notification = self._highlighted()
        channel = self.app.state.channel
        if notification is None or channel is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                "Delete this notification?",
                primary_text="Delete",
                secondary_text="Keep",
                tone="error",
            )
        ):
            return
        await channel.delete_notification(notification.id)

    @work(group="notif-ops")
    async def _mark_read(self, notification_id: str) -> None:
        channel = self.app.state.channel
        if channel is not None:
            await channel.mark_as_read(notification_id)

    @on(ListView.Selected, "#list-notifications")
    async def handle_selected(self, event: ListView.Selected) -> None:
        if not isinstance(event.item, NotificationItem):
            return
        notification = event.item.notification
        if not notification.is_read:
            self._mark_read(notification.id)

        order_id = notification.order_id
        if order_id is None:
            return
        mode = "admin_orders" if self.app.state.role == "admin" else "orders"
        self.app.state.pending_order_id = order_id
        self.post_message(ModeSwitchedMessage(self.app.current_mode, mode))
        await self.app.switch_mode(mode)

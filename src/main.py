from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from notify.alerts import Alert
from notify.channel import ConnectionState, NotificationChannel
from utils.logger import get_logger
from utils.messages import (
    ConnectionStateMessage,
    ModeSwitchedMessage,
    NotificationsChangedMessage,
    OrdersChangedMessage,
    QuitRequestedMessage,
    UserLogoutMessage,
)
from utils.state import GlobalState
from views.scr_admin_orders import AdminOrdersScreen
from views.scr_admin_users import AdminUsersScreen
from views.scr_login import LoginScreen
from views.scr_notifications import NotificationsScreen
from views.scr_orders import OrdersScreen

_logger = get_logger(__name__)


class WholesaleApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "orders": OrdersScreen,
        "admin_orders": AdminOrdersScreen,
        "admin_users": AdminUsersScreen,
        "notifications": NotificationsScreen,
    }

    ADMIN_MODES = {
        "admin_orders": "Manage Orders",
        "admin_users": "Buyer Approvals",
        "notifications": "Notifications",
    }
    BUYER_MODES = {"orders": "My Orders", "notifications": "Notifications"}

    CSS_PATH = [
        "styles/index.tcss",
        "styles/login.tcss",
        "styles/orders.tcss",
        "styles/notifications.tcss",
    ]

    state: GlobalState

    def __init__(self):
        super().__init__()
        self.state = GlobalState()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def make_channel(self) -> NotificationChannel:
        """The session's channel, wired to post into whatever screen is showing."""
        return NotificationChannel(
            on_change=self._on_notifications_changed,
            on_alert=self._on_alert,
            on_state=self._on_connection_state,
        )

    def _on_notifications_changed(self) -> None:
        self.screen.post_message(NotificationsChangedMessage())

    def _on_alert(self, alert: Alert) -> None:
        self.notify(
            f"{alert.icon} {alert.title}\n{alert.message}",
            severity=alert.severity,
            timeout=alert.timeout,
        )
        if alert.order_id is not None:
            # the order list on screen is out of date
            self.screen.post_message(OrdersChangedMessage(alert.order_id))

    def _on_connection_state(self, state: ConnectionState) -> None:
        self.screen.post_message(ConnectionStateMessage(state.value))

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.end_session()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        if self.state.user is not None:
            await self.state.end_session()
        self.exit()

    @work
    async def main_flow(self):
        await self.push_screen_wait(LoginScreen())
        mode = "admin_orders" if self.state.role == "admin" else "orders"
        _logger.debug(f"Entering {mode} for role {self.state.role}")
        self.post_message(ModeSwitchedMessage(self.current_mode, mode))
        await self.switch_mode(mode)


if __name__ == "__main__":
    app = WholesaleApp()
    app.run()

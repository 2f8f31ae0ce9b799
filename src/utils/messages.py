from typing import Optional

from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired when user logged in, so the screen can refresh
    """

    bubble = True


class NotificationsChangedMessage(Message):
    """
    Fired by the app whenever the notification channel's cache changed.
    Sidebar badge and notifications screen listen to it.

    Must be posted at App level.
    """

    bubble = True


class ConnectionStateMessage(Message):
    """
    Fired when the live channel connects, drops or gives up.
    """

    bubble = True

    def __init__(self, state: str) -> None:
        super().__init__()
        self.state = state


class OrdersChangedMessage(Message):
    """
    Fired after an admin action or an order status notification,
    so order screens reload their snapshot.
    """

    bubble = True

    def __init__(self, order_id: Optional[str] = None) -> None:
        super().__init__()
        self.order_id = order_id


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from api.models import User
from notify.channel import NotificationChannel
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass
class GlobalState:
    """
    Session state shared by screens.

    Fields:
      - token: session credential returned by login
      - user: the logged-in user
      - channel: this session's notification channel, owned here and
        handed to screens; None while logged out
      - pending_order_id: order a screen was asked to open (e.g. from a notification)
    """

    token: Optional[str] = None
    user: Optional[User] = None
    channel: Optional[NotificationChannel] = None
    pending_order_id: Optional[str] = None

    @property
    def role(self) -> Optional[str]:
        """'admin' | 'buyer' | None while logged out"""
        if self.user is None:
            return None
        return "admin" if self.user.is_admin else "buyer"

    def start_session(
        self,
        token: str,
        user: User,
        channel_factory: Callable[[], NotificationChannel] = NotificationChannel,
    ) -> NotificationChannel:
        """Remember the credential and open this session's notification channel."""
        self.token = token
        self.user = user
        self.channel = channel_factory()
        self.channel.init(token)
        _logger.info(f"Session started for {user.email} ({self.role})")
        return self.channel

    async def end_session(self) -> None:
        """
        Tear the channel down and forget the session.
        This is called upon logging out and on quit.
        """
        if self.channel is not None:
            await self.channel.teardown()
        if self.user is not None:
            _logger.info(f"Session ended for {self.user.email}")
        self.channel = None
        self.token = None
        self.user = None
        self.pending_order_id = None

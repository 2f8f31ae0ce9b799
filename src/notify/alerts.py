from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from api.models import Notification, NotificationType, Priority

Tone = Literal["success", "error", "info"]
Severity = Literal["information", "warning", "error"]

LONG_TIMEOUT = 6.0
SHORT_TIMEOUT = 4.0

_SUCCESS_TYPES = {
    NotificationType.PAYMENT_CONFIRMATION,
    NotificationType.ACCOUNT_APPROVED,
    NotificationType.ORDER_STATUS_CHANGE,
}
_ERROR_TYPES = {NotificationType.PAYMENT_REJECTED, NotificationType.ACCOUNT_REJECTED}
_LOUD = {Priority.URGENT, Priority.HIGH}


@dataclass(frozen=True)
class Alert:
    """A transient toast for a freshly pushed notification."""

    title: str
    message: str
    tone: Tone
    severity: Severity  # textual notify severity
    timeout: float
    icon: str
    order_id: Optional[str] = None  # set for order status changes


def alert_for(notification: Notification) -> Alert:
    loud = notification.priority in _LOUD
    if notification.type in _SUCCESS_TYPES:
        tone, icon = "success", "✅"
    elif notification.type in _ERROR_TYPES:
        tone, icon = "error", "❌"
    else:
        tone, icon = "info", "🔔"

    if tone == "error":
        severity = "error"
    elif loud:
        severity = "warning"
    else:
        severity = "information"

    return Alert(
        title=notification.title,
        message=notification.message,
        tone=tone,
        severity=severity,
        timeout=LONG_TIMEOUT if loud else SHORT_TIMEOUT,
        icon=icon,
        order_id=notification.order_id,
    )


def notification_icon(notification: Notification) -> str:
    if notification.type in (NotificationType.PAYMENT_CONFIRMATION, NotificationType.ACCOUNT_APPROVED):
        return "✅"
    if notification.type in _ERROR_TYPES:
        return "❌"
    if notification.type is NotificationType.ORDER_STATUS_CHANGE:
        return "ℹ️"
    if notification.priority in _LOUD:
        return "⚠️"
    return "•"


def notification_style(notification: Notification) -> str:
    """Rich style for a list row: plain once read, tinted by priority while unread."""
    if notification.is_read:
        return ""
    if notification.priority is Priority.URGENT:
        return "bold red"
    if notification.priority is Priority.HIGH:
        return "bold dark_orange"
    return "bold"

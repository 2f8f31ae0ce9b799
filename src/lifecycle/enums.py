"""
Order enumerations and their lenient parsers.

Wire values are what the storefront backend sends; the parsers never raise,
unknown input falls back to the closest reasonable member.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from utils.logger import get_logger

_logger = get_logger(__name__)


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PAID = "PAID"
    DISPATCHED = "DISPATCHED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

    @classmethod
    def parse(cls, raw: Union[str, "OrderStatus", None]) -> "OrderStatus":
        """Unknown or missing status is treated as the earliest in-progress state."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).upper())
        except ValueError:
            _logger.warning(f"Unknown order status {raw!r}, treating as PENDING_PAYMENT")
            return cls.PENDING_PAYMENT


# canonical forward progression; CANCELLED sits outside it
STATUS_PROGRESSION = (
    OrderStatus.PENDING_PAYMENT,
    OrderStatus.PAID,
    OrderStatus.DISPATCHED,
    OrderStatus.DELIVERED,
)


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"

    @classmethod
    def parse(cls, raw: Union[str, "PaymentStatus", None]) -> "PaymentStatus":
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).upper())
        except ValueError:
            _logger.warning(f"Unknown payment status {raw!r}, treating as PENDING")
            return cls.PENDING


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "OFFLINE_CASH"
    BANK_TRANSFER = "OFFLINE_BANK_TRANSFER"
    CHEQUE = "OFFLINE_CHEQUE"

    @classmethod
    def parse(cls, raw: Union[str, "PaymentMethod", None]) -> Optional["PaymentMethod"]:
        """
        Accepts wire values (OFFLINE_CASH) as well as member names (CASH_ON_DELIVERY).
        Returns None for anything else; callers keep the raw value around.
        """
        if isinstance(raw, cls):
            return raw
        if raw is None:
            return None
        text = str(raw).upper()
        try:
            return cls(text)
        except ValueError:
            pass
        try:
            return cls[text]
        except KeyError:
            return None


class MethodClass(str, Enum):
    """The only distinction the lifecycle cares about."""

    CASH_ON_DELIVERY = "cod"
    PREPAID = "prepaid"

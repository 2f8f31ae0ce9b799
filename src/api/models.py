# dataclass models for the storefront backend's JSON payloads

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from lifecycle.enums import OrderStatus, PaymentMethod, PaymentStatus
from utils.logger import get_logger

_logger = get_logger(__name__)


def parse_timestamp(val: Any) -> Optional[datetime]:
    """ISO-8601 string (trailing Z allowed) or datetime -> datetime; anything else -> None."""
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        return val
    text = str(val)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        _logger.warning(f"Unparseable timestamp {val!r}")
        return None


def _to_float(val: Any, default: float = 0.0) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def _to_int(val: Any, default: int = 0) -> int:
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


def _format_address(addr: Any) -> str:
    if not addr:
        return ""
    if isinstance(addr, str):
        return addr
    parts = [addr.get(k) for k in ("street", "city", "state", "pincode")]
    return ", ".join(str(p) for p in parts if p)


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str
    role: str  # "ADMIN" or "BUYER"
    is_approved: bool = True
    # account review: PENDING, APPROVED, REJECTED or BLOCKED (suspended)
    status: str = "APPROVED"
    contact_name: str = ""
    phone: str = ""
    gstin: str = ""
    address: str = ""
    created_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "User":
        status = data.get("status")
        is_approved = data.get("isApproved")
        if is_approved is None:
            is_approved = status in (None, "", "APPROVED")
        if not status:
            status = "APPROVED" if is_approved else "PENDING"
        return cls(
            id=str(data.get("id", "")),
            email=data.get("email", ""),
            name=data.get("businessName")
            or data.get("primaryContactName")
            or data.get("name")
            or data.get("email", ""),
            role=str(data.get("role", "BUYER")).upper(),
            is_approved=bool(is_approved),
            status=str(status).upper(),
            contact_name=data.get("primaryContactName") or "",
            phone=data.get("phone") or "",
            gstin=data.get("gstin") or data.get("gstNumber") or "",
            address=_format_address(data.get("address")),
            created_at=parse_timestamp(data.get("createdAt")),
            rejection_reason=data.get("rejectionReason") or data.get("blockReason"),
        )


@dataclass(frozen=True)
class OrderItem:
    product_id: str
    name: str
    quantity: int
    unit_price: float

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "OrderItem":
        product = data.get("product") or {}
        return cls(
            product_id=str(data.get("productId") or product.get("id", "")),
            name=data.get("name") or product.get("name") or "Unknown product",
            quantity=_to_int(data.get("quantity")),
            unit_price=_to_float(data.get("unitPrice")),
        )


@dataclass(frozen=True)
class Order:
    """
    Read-only snapshot of an order as the server last reported it.

    payment_method stays a plain string when the server sends a method this
    client does not know; the lifecycle engine classifies it as prepaid.
    """

    id: str
    order_number: str
    status: OrderStatus
    payment_method: Union[PaymentMethod, str]
    payment_status: PaymentStatus = PaymentStatus.PENDING
    items: Tuple[OrderItem, ...] = ()
    total: float = 0.0
    payment_proof_url: Optional[str] = None
    created_at: Optional[datetime] = None
    payment_received_at: Optional[datetime] = None
    dispatched_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    tracking_number: Optional[str] = None
    courier: Optional[str] = None
    cancellation_reason: Optional[str] = None
    shipping_address: str = ""
    customer_name: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def has_payment_proof(self) -> bool:
        return bool(self.payment_proof_url)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Order":
        items = tuple(OrderItem.from_json(i) for i in data.get("items") or [])
        total = data.get("total")
        if total is None:
            total = sum(i.line_total for i in items)

        raw_method = data.get("paymentMethod")
        method = PaymentMethod.parse(raw_method)
        if method is None:
            _logger.warning(f"Unknown payment method {raw_method!r} on order {data.get('id')}")

        user = data.get("user") or {}
        return cls(
            id=str(data.get("id", "")),
            order_number=str(data.get("orderNumber") or data.get("id", "")),
            status=OrderStatus.parse(data.get("status")),
            payment_method=method if method is not None else str(raw_method or ""),
            payment_status=PaymentStatus.parse(data.get("paymentStatus")),
            items=items,
            total=_to_float(total),
            payment_proof_url=data.get("paymentProofUrl") or None,
            created_at=parse_timestamp(data.get("createdAt")),
            payment_received_at=parse_timestamp(data.get("paymentReceivedAt")),
            dispatched_at=parse_timestamp(data.get("dispatchedAt")),
            delivered_at=parse_timestamp(data.get("deliveredAt")),
            cancelled_at=parse_timestamp(data.get("cancelledAt")),
            tracking_number=data.get("trackingNumber") or None,
            courier=data.get("courier") or None,
            cancellation_reason=data.get("cancellationReason") or None,
            shipping_address=_format_address(data.get("shippingAddress")),
            customer_name=user.get("businessName") or user.get("email") or "",
        )


class NotificationType(str, Enum):
    PAYMENT_CONFIRMATION = "PAYMENT_CONFIRMATION"
    PAYMENT_REJECTED = "PAYMENT_REJECTED"
    ACCOUNT_APPROVED = "ACCOUNT_APPROVED"
    ACCOUNT_REJECTED = "ACCOUNT_REJECTED"
    ORDER_STATUS_CHANGE = "ORDER_STATUS_CHANGE"
    GENERIC = "GENERIC"

    @classmethod
    def parse(cls, raw: Any) -> "NotificationType":
        try:
            return cls(str(raw).upper())
        except ValueError:
            return cls.GENERIC


class Priority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @classmethod
    def parse(cls, raw: Any) -> "Priority":
        try:
            return cls(str(raw).upper())
        except ValueError:
            return cls.NORMAL


@dataclass(frozen=True)
class Notification:
    id: str
    type: NotificationType
    priority: Priority
    title: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    is_read: bool = False
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None

    @property
    def order_id(self) -> Optional[str]:
        """Order to open when this notification is selected, if any."""
        if self.type is not NotificationType.ORDER_STATUS_CHANGE:
            return None
        order_id = (self.data or {}).get("orderId")
        return str(order_id) if order_id else None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Notification":
        is_read = bool(data.get("isRead", False))
        read_at = parse_timestamp(data.get("readAt")) if is_read else None
        return cls(
            id=str(data["id"]),
            type=NotificationType.parse(data.get("type")),
            priority=Priority.parse(data.get("priority")),
            title=data.get("title", ""),
            message=data.get("message", ""),
            data=dict(data.get("data") or {}),
            is_read=is_read,
            created_at=parse_timestamp(data.get("createdAt")),
            read_at=read_at,
        )


@dataclass(frozen=True)
class NotificationPage:
    notifications: List[Notification]
    unread_count: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "NotificationPage":
        """Raises ValueError when the body is not a notification page."""
        try:
            items = [Notification.from_json(n) for n in data.get("notifications") or []]
            unread = data.get("unreadCount")
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"malformed notification page: {e!r}") from e
        if unread is None:
            unread = sum(1 for n in items if not n.is_read)
        return cls(notifications=items, unread_count=_to_int(unread))

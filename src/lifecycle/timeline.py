from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable, FrozenSet, List, Optional, Tuple

from lifecycle.enums import STATUS_PROGRESSION, OrderStatus, PaymentStatus
from lifecycle.payment import classify_payment_method

if TYPE_CHECKING:
    from api.models import Order


def _from(status: OrderStatus) -> FrozenSet[OrderStatus]:
    """Statuses at or after `status` in the canonical progression."""
    return frozenset(STATUS_PROGRESSION[STATUS_PROGRESSION.index(status):])


@dataclass(frozen=True)
class StepDef:
    id: str
    label: str
    icon: str
    description: str
    completed_when: FrozenSet[OrderStatus]
    timestamp: Callable[["Order"], Optional[datetime]]
    highlight: bool = False
    shows_tracking: bool = False
    warns_while_pending: bool = False


@dataclass(frozen=True)
class TimelineStep:
    id: str
    label: str
    icon: str
    description: str
    completed: bool
    current: bool
    timestamp: Optional[datetime] = None
    tracking: Optional[Tuple[Optional[str], str]] = None  # (courier, tracking number)
    highlight: bool = False
    warning: bool = False


def _no_timestamp(order: "Order") -> Optional[datetime]:
    return None


def _cod_confirmed_at(order: "Order") -> Optional[datetime]:
    if PaymentStatus.parse(order.payment_status) is PaymentStatus.PAID:
        return order.payment_received_at
    return None


_PLACED = StepDef(
    "placed", "Order Placed", "📝", "Your order has been received",
    _from(OrderStatus.PENDING_PAYMENT), lambda o: o.created_at,
)
_PROCESSING = StepDef(
    "processing", "Processing", "📦", "Preparing your order for shipment",
    _from(OrderStatus.DISPATCHED), _no_timestamp,
)
_DISPATCHED = StepDef(
    "dispatched", "Dispatched", "🚚", "Order is on its way",
    _from(OrderStatus.DISPATCHED), lambda o: o.dispatched_at, shows_tracking=True,
)
_DELIVERED = StepDef(
    "delivered", "Delivered", "🎉", "Order successfully delivered",
    _from(OrderStatus.DELIVERED), lambda o: o.delivered_at,
)

COD_STEPS: Tuple[StepDef, ...] = (
    _PLACED,
    StepDef(
        "confirmed", "Order Confirmed", "✓", "Order verified and ready for processing",
        _from(OrderStatus.PAID), _cod_confirmed_at,
    ),
    _PROCESSING,
    _DISPATCHED,
    StepDef(
        "payment_delivery", "Payment on Delivery", "💵", "Pay when you receive your order",
        _from(OrderStatus.DELIVERED), lambda o: o.delivered_at, highlight=True,
    ),
    _DELIVERED,
)

PREPAID_STEPS: Tuple[StepDef, ...] = (
    _PLACED,
    StepDef(
        "payment_pending", "Payment Pending", "⏳", "Awaiting payment proof upload",
        _from(OrderStatus.PAID), _no_timestamp, warns_while_pending=True,
    ),
    StepDef(
        "payment_confirmed", "Payment Confirmed", "💳", "Payment verified successfully",
        _from(OrderStatus.PAID), lambda o: o.payment_received_at,
    ),
    _PROCESSING,
    _DISPATCHED,
    _DELIVERED,
)


def timeline_steps_for(order: "Order") -> Tuple[StepDef, ...]:
    if classify_payment_method(order.payment_method).is_cash_on_delivery:
        return COD_STEPS
    return PREPAID_STEPS


def build_timeline(order: "Order") -> Tuple[TimelineStep, ...]:
    """
    Ordered steps for the order's payment method.

    The current step is the last completed one. Terminal orders have no
    current step: a delivered order has every step completed, a cancelled one
    none (it is shown by cancellation_banner instead).
    """
    status = OrderStatus.parse(order.status)
    defs = timeline_steps_for(order)
    completed = [status in d.completed_when for d in defs]

    steps: List[TimelineStep] = []
    for i, d in enumerate(defs):
        next_completed = completed[i + 1] if i + 1 < len(defs) else False
        tracking = None
        if d.shows_tracking and order.tracking_number:
            tracking = (order.courier, order.tracking_number)
        steps.append(
            TimelineStep(
                id=d.id,
                label=d.label,
                icon=d.icon,
                description=d.description,
                completed=completed[i],
                current=completed[i] and not next_completed and not status.is_terminal,
                timestamp=d.timestamp(order),
                tracking=tracking,
                highlight=d.highlight,
                warning=(
                    d.warns_while_pending
                    and status is OrderStatus.PENDING_PAYMENT
                    and not order.payment_proof_url
                ),
            )
        )
    return tuple(steps)


@dataclass(frozen=True)
class CancellationBanner:
    title: str
    message: str
    cancelled_at: Optional[datetime]
    reason: Optional[str]


def cancellation_banner(order: "Order") -> Optional[CancellationBanner]:
    if OrderStatus.parse(order.status) is not OrderStatus.CANCELLED:
        return None
    return CancellationBanner(
        title="Order Cancelled",
        message="This order has been cancelled",
        cancelled_at=order.cancelled_at,
        reason=order.cancellation_reason,
    )

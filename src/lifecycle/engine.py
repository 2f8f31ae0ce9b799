"""
Order Lifecycle Engine.

Pure functions turning an order snapshot into what the storefront shows:
status label, buyer's next action, progress, admin actions. No I/O and no
exceptions for any enumerated status or payment method.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import timedelta
from typing import TYPE_CHECKING, Optional, Tuple, Union

from lifecycle.enums import OrderStatus, PaymentStatus
from lifecycle.payment import MethodLike, classify_payment_method, method_class_of
from lifecycle.table import (
    NO_ACTION,
    CustomerAction,
    NextAction,
    Stage,
    StatusInfo,
    lookup_stage,
)
from utils.pure import format_date, format_short_date

if TYPE_CHECKING:
    from api.models import Order

FALLBACK_PROGRESS = 20


def describe_status(status: Union[OrderStatus, str, None], method: MethodLike) -> StatusInfo:
    """Label, colour, icon and description of a status, as read by this payment method."""
    stage = lookup_stage(OrderStatus.parse(status), method_class_of(method), False)
    return stage.info


def _stage_of(order: "Order") -> Optional[Stage]:
    return lookup_stage(
        OrderStatus.parse(order.status),
        method_class_of(order.payment_method),
        bool(order.payment_proof_url),
    )


def next_customer_action(order: "Order") -> CustomerAction:
    """
    What the buyer should do now.

    Cash on delivery never asks for payment proof; a dispatched COD order
    carries the amount to keep ready.
    """
    stage = _stage_of(order)
    if stage is None:
        return NO_ACTION
    action = stage.action
    if action.action is NextAction.PREPARE_PAYMENT:
        return replace(action, amount=order.total)
    return action


def progress_percent(order: "Order") -> int:
    stage = _stage_of(order)
    progress = stage.progress if stage is not None else FALLBACK_PROGRESS
    return max(0, min(100, progress))


@dataclass(frozen=True)
class AdminAction:
    # orders: mark_paid | dispatch | deliver | cancel
    # accounts: approve | reject | suspend | activate
    key: str
    label: str
    confirm: str
    input_prompt: Optional[str] = None
    input_required: bool = False


def admin_actions(order: "Order") -> Tuple[AdminAction, ...]:
    """
    Fulfilment actions staff may take on this order.

    Prepaid orders are dispatched only once payment is verified; COD orders
    can be dispatched straight from PENDING_PAYMENT. Terminal orders offer
    nothing.
    """
    status = OrderStatus.parse(order.status)
    if status.is_terminal:
        return ()

    cls = classify_payment_method(order.payment_method)
    actions = []

    if (
        cls.is_prepaid
        and PaymentStatus.parse(order.payment_status) is PaymentStatus.PENDING
        and order.payment_proof_url
    ):
        actions.append(
            AdminAction("mark_paid", "✓ Mark as Paid", "Mark this order's payment as verified?")
        )

    if (cls.is_cash_on_delivery and status is OrderStatus.PENDING_PAYMENT) or (
        status is OrderStatus.PAID
    ):
        actions.append(
            AdminAction(
                "dispatch",
                "🚚 Mark as Dispatched",
                "Dispatch this order?",
                input_prompt="Tracking number (optional)",
            )
        )

    if status is OrderStatus.DISPATCHED:
        label = (
            "✓ Mark Delivered & Payment Received"
            if cls.is_cash_on_delivery
            else "✓ Mark as Delivered"
        )
        actions.append(AdminAction("deliver", label, "Mark this order as delivered?"))

    actions.append(
        AdminAction(
            "cancel",
            "✕ Cancel Order",
            "Cancel this order? This cannot be undone.",
            input_prompt="Reason for cancellation",
            input_required=True,
        )
    )
    return tuple(actions)


def estimated_delivery(order: "Order") -> str:
    status = OrderStatus.parse(order.status)
    if status is OrderStatus.DELIVERED:
        return format_date(order.delivered_at)
    if status is OrderStatus.DISPATCHED and order.dispatched_at:
        earliest = order.dispatched_at + timedelta(days=3)
        latest = order.dispatched_at + timedelta(days=5)
        return f"{format_short_date(earliest)} - {format_short_date(latest, with_year=True)}"
    return "Will be updated after dispatch"

"""
Single source for everything that depends on (status, payment method class).

Status presentation, progress weight and the buyer's next action are all read
from LIFECYCLE_TABLE, keyed by (status, method class, payment proof present).
Rows that do not care about the proof are expanded to both keys, so the three
derivations can never disagree with each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from lifecycle.enums import MethodClass, OrderStatus


class NextAction(str, Enum):
    WAIT = "wait"
    UPLOAD_PROOF = "upload_proof"
    PREPARE_PAYMENT = "prepare_payment"
    TRACK = "track"
    REORDER = "reorder"


@dataclass(frozen=True)
class StatusInfo:
    label: str
    color_class: str  # rich style name
    icon: str
    description: str
    hint: Optional[str] = None


@dataclass(frozen=True)
class CustomerAction:
    action: Optional[NextAction]
    message: str
    urgent: bool = False
    amount: Optional[float] = None


@dataclass(frozen=True)
class Stage:
    info: StatusInfo
    progress: int
    action: CustomerAction


StageKey = Tuple[OrderStatus, MethodClass, bool]

COD = MethodClass.CASH_ON_DELIVERY
PREPAID = MethodClass.PREPAID
ANY_PROOF = None

_PENDING_PREPAID = StatusInfo(
    "Pending Payment",
    "yellow",
    "⏳",
    "Awaiting payment confirmation",
    hint="Upload payment proof to proceed",
)

_PREPARING = "Order is being prepared for shipment"

# (status, method class, proof present or ANY_PROOF, info, progress, action)
_ROWS = [
    (
        OrderStatus.PENDING_PAYMENT, COD, ANY_PROOF,
        StatusInfo("Order Confirmed", "blue", "✓", "Order confirmed and ready for processing"),
        40,
        CustomerAction(NextAction.WAIT, "Order confirmed. We will dispatch soon"),
    ),
    (
        OrderStatus.PENDING_PAYMENT, PREPAID, False,
        _PENDING_PREPAID,
        20,
        CustomerAction(NextAction.UPLOAD_PROOF, "Upload payment proof to proceed", urgent=True),
    ),
    (
        OrderStatus.PENDING_PAYMENT, PREPAID, True,
        _PENDING_PREPAID,
        30,
        CustomerAction(NextAction.WAIT, "Payment proof uploaded. Awaiting verification"),
    ),
    (
        OrderStatus.PAID, COD, ANY_PROOF,
        StatusInfo("Processing", "green", "📦", "Order being prepared for shipment"),
        40,
        CustomerAction(NextAction.WAIT, _PREPARING),
    ),
    (
        OrderStatus.PAID, PREPAID, ANY_PROOF,
        StatusInfo("Payment Confirmed", "green", "💳", "Payment verified, preparing for shipment"),
        50,
        CustomerAction(NextAction.WAIT, _PREPARING),
    ),
    (
        OrderStatus.DISPATCHED, COD, ANY_PROOF,
        StatusInfo("Dispatched", "magenta", "🚚", "On the way - Payment due on delivery"),
        70,
        CustomerAction(NextAction.PREPARE_PAYMENT, "Keep exact amount ready for delivery"),
    ),
    (
        OrderStatus.DISPATCHED, PREPAID, ANY_PROOF,
        StatusInfo("Dispatched", "magenta", "🚚", "Order shipped and on its way"),
        75,
        CustomerAction(NextAction.TRACK, "Track your order delivery"),
    ),
    (
        OrderStatus.DELIVERED, COD, ANY_PROOF,
        StatusInfo("Delivered", "green", "✓", "Order delivered and payment collected"),
        100,
        CustomerAction(NextAction.REORDER, "Order completed. Want to order again?"),
    ),
    (
        OrderStatus.DELIVERED, PREPAID, ANY_PROOF,
        StatusInfo("Delivered", "green", "✓", "Order delivered successfully"),
        100,
        CustomerAction(NextAction.REORDER, "Order completed. Want to order again?"),
    ),
    (
        OrderStatus.CANCELLED, COD, ANY_PROOF,
        StatusInfo("Cancelled", "red", "✕", "Order has been cancelled"),
        0,
        CustomerAction(None, "Order has been cancelled"),
    ),
    (
        OrderStatus.CANCELLED, PREPAID, ANY_PROOF,
        StatusInfo("Cancelled", "red", "✕", "Order has been cancelled"),
        0,
        CustomerAction(None, "Order has been cancelled"),
    ),
]


def _expand(rows: Iterable[tuple]) -> Dict[StageKey, Stage]:
    table: Dict[StageKey, Stage] = {}
    for status, method_class, proof, info, progress, action in rows:
        proofs = (False, True) if proof is ANY_PROOF else (proof,)
        for has_proof in proofs:
            key = (status, method_class, has_proof)
            if key in table:
                raise ValueError(f"duplicate lifecycle row for {key}")
            table[key] = Stage(info, progress, action)
    return table


LIFECYCLE_TABLE: Dict[StageKey, Stage] = _expand(_ROWS)

NO_ACTION = CustomerAction(None, "")


def lookup_stage(
    status: OrderStatus, method_class: MethodClass, has_proof: bool
) -> Optional[Stage]:
    return LIFECYCLE_TABLE.get((status, method_class, bool(has_proof)))

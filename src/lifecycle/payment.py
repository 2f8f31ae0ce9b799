from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Union

from lifecycle.enums import MethodClass, PaymentMethod, PaymentStatus

MethodLike = Union[PaymentMethod, str, None]


@dataclass(frozen=True)
class PaymentClassification:
    is_cash_on_delivery: bool
    is_prepaid: bool

    @property
    def method_class(self) -> MethodClass:
        return MethodClass.CASH_ON_DELIVERY if self.is_cash_on_delivery else MethodClass.PREPAID


_COD = PaymentClassification(is_cash_on_delivery=True, is_prepaid=False)
_PREPAID = PaymentClassification(is_cash_on_delivery=False, is_prepaid=True)


def classify_payment_method(method: MethodLike) -> PaymentClassification:
    """
    Cash on delivery vs prepaid (bank transfer, cheque).

    An unrecognised method is rendered through the prepaid path, which asks the
    buyer for nothing they cannot do and never claims payment is collected later.
    """
    if PaymentMethod.parse(method) is PaymentMethod.CASH_ON_DELIVERY:
        return _COD
    return _PREPAID


def method_class_of(method: MethodLike) -> MethodClass:
    return classify_payment_method(method).method_class


_METHOD_NAMES: Dict[PaymentMethod, str] = {
    PaymentMethod.CASH_ON_DELIVERY: "Cash on Delivery",
    PaymentMethod.BANK_TRANSFER: "Bank Transfer",
    PaymentMethod.CHEQUE: "Cheque Payment",
}

_METHOD_ICONS: Dict[PaymentMethod, str] = {
    PaymentMethod.CASH_ON_DELIVERY: "💵",
    PaymentMethod.BANK_TRANSFER: "🏦",
    PaymentMethod.CHEQUE: "📝",
}


def payment_method_name(method: MethodLike) -> str:
    parsed = PaymentMethod.parse(method)
    if parsed is None:
        return str(method) if method else "Unknown"
    return _METHOD_NAMES[parsed]


def payment_method_icon(method: MethodLike) -> str:
    parsed = PaymentMethod.parse(method)
    return _METHOD_ICONS.get(parsed, "💳") if parsed else "💳"


@dataclass(frozen=True)
class PaymentStatusInfo:
    label: str
    color_class: str
    icon: str
    description: str


_PAYMENT_STATUS_TABLE: Dict[tuple, PaymentStatusInfo] = {
    (MethodClass.CASH_ON_DELIVERY, PaymentStatus.PENDING): PaymentStatusInfo(
        "Pay on Delivery", "dark_orange", "💵", "Payment will be collected upon delivery"
    ),
    (MethodClass.CASH_ON_DELIVERY, PaymentStatus.PAID): PaymentStatusInfo(
        "Payment Collected", "green", "✓", "Payment received on delivery"
    ),
    (MethodClass.CASH_ON_DELIVERY, PaymentStatus.FAILED): PaymentStatusInfo(
        "Payment Failed", "red", "✕", "Payment not collected"
    ),
    (MethodClass.PREPAID, PaymentStatus.PENDING): PaymentStatusInfo(
        "Payment Pending", "yellow", "⏳", "Awaiting payment proof upload"
    ),
    (MethodClass.PREPAID, PaymentStatus.PAID): PaymentStatusInfo(
        "Payment Verified", "green", "✓", "Payment confirmed by admin"
    ),
    (MethodClass.PREPAID, PaymentStatus.FAILED): PaymentStatusInfo(
        "Payment Verification Failed", "red", "✕", "Payment proof rejected"
    ),
}


def describe_payment_status(
    payment_status: Union[PaymentStatus, str, None], method: MethodLike
) -> PaymentStatusInfo:
    key = (method_class_of(method), PaymentStatus.parse(payment_status))
    return _PAYMENT_STATUS_TABLE[key]


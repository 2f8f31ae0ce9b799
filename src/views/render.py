"""
Markdown for the order, account and notification screens.

Kept free of textual imports so it can be exercised without a running app.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Tuple

from api.models import Notification, Order, User
from lifecycle.engine import (
    AdminAction,
    admin_actions,
    describe_status,
    estimated_delivery,
    next_customer_action,
    progress_percent,
)
from lifecycle.payment import describe_payment_status, payment_method_icon, payment_method_name
from lifecycle.table import NextAction
from lifecycle.timeline import build_timeline, cancellation_banner
from notify.alerts import notification_icon
from utils.pure import format_amount, format_date, generate_markdown_table, time_ago

EMPTY_ORDER_MD = "### Select an order to view its details."
EMPTY_USER_MD = "### Select an account to review it."

ACCOUNT_STATUS_LABELS = {
    "PENDING": "⏳ Pending review",
    "APPROVED": "✅ Approved",
    "REJECTED": "❌ Rejected",
    "BLOCKED": "⏸ Suspended",
}


def _items_table(order: Order) -> str:
    if not order.items:
        return "_No line items._"
    rows = [
        [item.name, item.quantity, format_amount(item.unit_price), format_amount(item.line_total)]
        for item in order.items
    ]
    return generate_markdown_table(
        ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
    )


def render_timeline(order: Order) -> str:
    lines = []
    for step in build_timeline(order):
        mark = "✅" if step.completed else step.icon
        label = f"**{step.label}**" if step.current else step.label
        line = f"- {mark} {label}"
        if step.current:
            line += " ← _current_"
        line += f"  \n  {step.description}"
        if step.timestamp:
            line += f"  \n  🕐 {format_date(step.timestamp)}"
        if step.tracking:
            courier, number = step.tracking
            line += f"  \n  Tracking: {courier + ' - ' if courier else ''}{number}"
        if step.highlight and step.current:
            line += "  \n  💡 Keep exact amount ready for faster delivery"
        if step.warning:
            line += "  \n  ⚠️ Please upload payment proof to proceed"
        lines.append(line)

    banner = cancellation_banner(order)
    if banner is not None:
        text = banner.message
        if banner.cancelled_at:
            text += f" on {format_date(banner.cancelled_at)}"
        if banner.reason:
            text += f"  \nReason: {banner.reason}"
        lines.append(f"\n> ✕ **{banner.title}**  \n> {text}")
    return "\n".join(lines)


def render_next_action(order: Order) -> str:
    action = next_customer_action(order)
    if action.action is None:
        return f"_{action.message}_" if action.message else ""
    text = action.message
    if action.action is NextAction.PREPARE_PAYMENT and action.amount is not None:
        text += f": **{format_amount(action.amount)}**"
    if action.urgent:
        return f"**⚠️ {text}**"
    return text


def render_order_detail(order: Optional[Order]) -> str:
    """Buyer's view: status, payment, progress, timeline, next step, items."""
    if order is None:
        return EMPTY_ORDER_MD

    info = describe_status(order.status, order.payment_method)
    pay = describe_payment_status(order.payment_status, order.payment_method)
    parts = [
        f"### Order #{order.order_number}",
        f"{info.icon} **{info.label}**: {info.description}  ",
        f"{payment_method_icon(order.payment_method)} {payment_method_name(order.payment_method)}"
        f" · {pay.icon} {pay.label} ({pay.description})  ",
        f"Placed: {format_date(order.created_at)}  ",
        f"Progress: {progress_percent(order)}%  ",
        f"Estimated delivery: {estimated_delivery(order)}  ",
    ]
    if info.hint and not order.payment_proof_url:
        parts.append(f"_{info.hint}_  ")
    if order.shipping_address:
        parts.append(f"Ship to: {order.shipping_address}")

    next_step = render_next_action(order)
    if next_step:
        parts += ["", "#### Next step", next_step]

    parts += ["", "#### Timeline", render_timeline(order)]
    parts += ["", "#### Items", _items_table(order), "", f"**Total:** {format_amount(order.total)}"]
    return "\n".join(parts)


def render_admin_detail(order: Optional[Order]) -> str:
    """Staff view: who, how paid, what can be done next."""
    if order is None:
        return EMPTY_ORDER_MD

    info = describe_status(order.status, order.payment_method)
    pay = describe_payment_status(order.payment_status, order.payment_method)
    rows = [
        ["Customer", order.customer_name or "Unknown"],
        ["Status", f"{info.icon} {info.label}"],
        ["Payment", f"{payment_method_name(order.payment_method)} · {pay.label}"],
        ["Payment proof", order.payment_proof_url or "-"],
        ["Tracking", order.tracking_number or "-"],
        ["Placed", format_date(order.created_at)],
        ["Total", format_amount(order.total)],
    ]
    if order.cancellation_reason:
        rows.append(["Cancel reason", order.cancellation_reason])

    actions = admin_actions(order)
    action_md = (
        "\n".join(f"- {a.label}" for a in actions) if actions else "_No actions available._"
    )
    return "\n".join(
        [
            f"### Order #{order.order_number}",
            generate_markdown_table(None, [["Field", "Value"], *rows], ["l", "l"]),
            "",
            "#### Available actions",
            action_md,
            "",
            "#### Items",
            _items_table(order),
        ]
    )


def render_notification_line(n: Notification, now: Optional[datetime] = None) -> str:
    """One list row: icon, unread dot, title, message and age."""
    dot = "● " if not n.is_read else "  "
    age = time_ago(n.created_at, now)
    tail = f"  ({age})" if age else ""
    return f"{dot}{notification_icon(n)} {n.title}: {n.message}{tail}"


def account_status_label(status: str) -> str:
    return ACCOUNT_STATUS_LABELS.get(status, status.title())


def account_actions(user: User) -> Tuple[AdminAction, ...]:
    """Review actions for a buyer account; staff accounts offer none."""
    if user.is_admin:
        return ()
    if user.status == "PENDING":
        return (
            AdminAction(
                "approve", "✓ Approve", f"Approve {user.name}? They will be able to order."
            ),
            AdminAction(
                "reject",
                "✕ Reject",
                f"Reject {user.name}'s application.",
                input_prompt="Reason for rejection",
                input_required=True,
            ),
        )
    if user.status == "APPROVED":
        return (
            AdminAction(
                "suspend",
                "⏸ Suspend",
                f"Suspend {user.name}.",
                input_prompt="Reason for suspension",
                input_required=True,
            ),
        )
    if user.status == "BLOCKED":
        return (AdminAction("activate", "▶ Activate", f"Re-activate {user.name}?"),)
    return ()


def render_user_detail(user: Optional[User]) -> str:
    """Staff view of one registration: business, contact, review state."""
    if user is None:
        return EMPTY_USER_MD

    rows = [
        ["Business", user.name],
        ["Contact", user.contact_name or "-"],
        ["Email", user.email or "-"],
        ["Phone", user.phone or "-"],
        ["GSTIN", user.gstin or "-"],
        ["Address", user.address or "-"],
        ["Status", account_status_label(user.status)],
        ["Registered", format_date(user.created_at)],
    ]
    if user.rejection_reason:
        rows.append(["Reason", user.rejection_reason])

    actions = account_actions(user)
    action_md = (
        "\n".join(f"- {a.label}" for a in actions) if actions else "_No actions available._"
    )
    return "\n".join(
        [
            f"### {user.name}",
            generate_markdown_table(None, [["Field", "Value"], *rows], ["l", "l"]),
            "",
            "#### Available actions",
            action_md,
        ]
    )

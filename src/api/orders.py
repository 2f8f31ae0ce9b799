# src/api/orders.py
from __future__ import annotations

from typing import List, Optional

from api.client import request
from api.models import Order

# ---------------------------
# Buyer
# ---------------------------


async def list_orders(token: str) -> List[Order]:
    """Orders belonging to the current session's buyer, newest first."""
    data = await request("GET", "/orders", token)
    return _sorted(data)


async def get_order(token: str, order_id: str) -> Optional[Order]:
    data = await request("GET", f"/orders/{order_id}", token)
    if not data:
        return None
    # some deployments wrap the record
    if isinstance(data, dict) and "order" in data and isinstance(data["order"], dict):
        data = data["order"]
    return Order.from_json(data)


# ---------------------------
# Admin fulfilment
# ---------------------------


async def admin_list_orders(token: str) -> List[Order]:
    data = await request("GET", "/admin/orders", token)
    return _sorted(data)


async def mark_paid(token: str, order_id: str) -> None:
    await request("PATCH", f"/admin/orders/{order_id}/mark-paid", token)


async def dispatch(token: str, order_id: str, tracking_number: Optional[str] = None) -> None:
    """Tracking number is optional and may be added later."""
    payload = {}
    if tracking_number and tracking_number.strip():
        payload["trackingNumber"] = tracking_number.strip()
    await request("PATCH", f"/admin/orders/{order_id}/dispatch", token, json=payload)


async def deliver(token: str, order_id: str) -> None:
    await request("PATCH", f"/admin/orders/{order_id}/deliver", token)


async def cancel(token: str, order_id: str, reason: str) -> None:
    if not reason or not reason.strip():
        raise ValueError("a cancellation reason is required")
    await request(
        "PATCH", f"/admin/orders/{order_id}/cancel", token, json={"reason": reason.strip()}
    )


# ---------------------------
# Helpers
# ---------------------------


def _sorted(data) -> List[Order]:
    if isinstance(data, dict):
        data = data.get("orders") or []
    orders = [Order.from_json(o) for o in data or []]
    orders.sort(key=lambda o: o.created_at.timestamp() if o.created_at else 0.0, reverse=True)
    return orders

# src/api/users.py
from __future__ import annotations

from typing import List

from api.client import request
from api.models import User

# ---------------------------
# Admin account review
# ---------------------------


async def admin_list_users(token: str) -> List[User]:
    """Every registered account, newest registration first."""
    data = await request("GET", "/admin/users", token)
    if isinstance(data, dict):
        data = data.get("users") or []
    users = [User.from_json(u) for u in data or []]
    users.sort(key=lambda u: u.created_at.timestamp() if u.created_at else 0.0, reverse=True)
    return users


async def approve_user(token: str, user_id: str) -> None:
    await request("PATCH", f"/admin/users/{user_id}/approve", token)


async def reject_user(token: str, user_id: str, reason: str) -> None:
    """The reason is shown to the applicant, so it is required."""
    payload = {"reason": _required(reason, "rejection")}
    await request("PATCH", f"/admin/users/{user_id}/reject", token, json=payload)


async def suspend_user(token: str, user_id: str, reason: str) -> None:
    payload = {"reason": _required(reason, "suspension")}
    await request("PATCH", f"/admin/users/{user_id}/suspend", token, json=payload)


async def activate_user(token: str, user_id: str) -> None:
    await request("PATCH", f"/admin/users/{user_id}/activate", token)


# ---------------------------
# Helpers
# ---------------------------


def _required(reason: str, what: str) -> str:
    if not reason or not reason.strip():
        raise ValueError(f"a {what} reason is required")
    return reason.strip()

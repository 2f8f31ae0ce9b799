from __future__ import annotations

from typing import Tuple

from api.client import ApiError, request
from api.models import User


async def login(email: str, password: str) -> Tuple[str, User]:
    """Return (session token, user) for valid credentials; raises ApiError otherwise."""
    data = await request(
        "POST",
        "/auth/login",
        json={"email": email.strip().lower(), "password": password},
    )
    if not data or not data.get("token"):
        raise ApiError("Login response carried no session token")
    return data["token"], User.from_json(data.get("user") or {})

# manages the http connection to the storefront backend, helpers internal to api package
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from utils.config import get_settings
from utils.logger import get_logger

_logger = get_logger(__name__)

# tests swap in an httpx.MockTransport here
TRANSPORT: Optional[httpx.AsyncBaseTransport] = None


class ApiError(Exception):
    """Error response from the storefront backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class ApiUnavailable(ApiError):
    """The backend could not be reached."""


@asynccontextmanager
async def connect(token: Optional[str] = None) -> AsyncIterator[httpx.AsyncClient]:
    """Async context manager yielding an httpx client for the backend's /api root.

    Adds the bearer token when one is given.
    """
    settings = get_settings()
    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    client = httpx.AsyncClient(
        base_url=f"{settings.api_url}/api",
        timeout=settings.api_timeout,
        headers=headers,
        transport=TRANSPORT,
    )
    try:
        yield client
    finally:
        await client.aclose()


def handle_response(response: httpx.Response) -> Any:
    if response.is_success:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                f"Malformed response body ({response.status_code})",
                status_code=response.status_code,
            ) from e

    try:
        data = response.json()
        message = data.get("message") or data.get("error") or response.reason_phrase
    except (ValueError, AttributeError):
        message = response.text or response.reason_phrase
    raise ApiError(message, status_code=response.status_code)


async def request(method: str, path: str, token: Optional[str] = None, **kwargs) -> Any:
    """One request, one client. Raises ApiUnavailable on network failure, ApiError on non-2xx."""
    async with connect(token) as client:
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            _logger.warning(f"{method} {path} failed: {e}")
            raise ApiUnavailable(str(e) or type(e).__name__) from e
    _logger.debug(f"{method} {path} -> {response.status_code}")
    return handle_response(response)

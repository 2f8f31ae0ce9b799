import logging
import os
from dataclasses import dataclass
from functools import lru_cache

# config is read before any rich logger exists, so plain logging here
_logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        _logger.warning(f"Invalid integer for {name}: {raw!r}, using {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        _logger.warning(f"Invalid number for {name}: {raw!r}, using {default}")
        return default


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings, read once from the environment.

    Fields:
      - api_url: base url of the storefront backend (REST + Socket.IO)
      - api_timeout: seconds before a REST request or socket handshake gives up
      - notification_limit: how many notifications a backlog fetch pulls
      - reconnect_attempts: live channel retries before giving up
      - reconnect_delay / reconnect_delay_max: backoff start and cap, seconds
      - debug: verbose logging
    """

    api_url: str = "http://localhost:5000"
    api_timeout: float = 20.0
    notification_limit: int = 20
    reconnect_attempts: int = 5
    reconnect_delay: float = 1.0
    reconnect_delay_max: float = 5.0
    debug: bool = False


def load_settings() -> Settings:
    return Settings(
        api_url=os.getenv("WHOLESALE_API_URL", Settings.api_url).rstrip("/"),
        api_timeout=_env_float("WHOLESALE_API_TIMEOUT", Settings.api_timeout),
        notification_limit=_env_int(
            "WHOLESALE_NOTIFICATION_LIMIT", Settings.notification_limit
        ),
        reconnect_attempts=_env_int(
            "WHOLESALE_RECONNECT_ATTEMPTS", Settings.reconnect_attempts
        ),
        reconnect_delay=_env_float("WHOLESALE_RECONNECT_DELAY", Settings.reconnect_delay),
        reconnect_delay_max=_env_float(
            "WHOLESALE_RECONNECT_DELAY_MAX", Settings.reconnect_delay_max
        ),
        debug=bool(os.getenv("DEBUG")),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings for this process. Call get_settings.cache_clear() after changing env."""
    return load_settings()

"""Rate limiting configuration (slowapi).

Counters live in ``RATE_LIMIT_STORAGE_URI`` (e.g. a Redis URL) when configured,
otherwise in memory per process.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.auth_service.core.config import get_settings
from src.auth_service.core.logging import get_logger

logger = get_logger(__name__)

LOGIN_LIMIT = "5 per 15 minutes"
SIGNUP_LIMIT = "3 per hour"
SESSION_LIMIT = "30 per minute"
DEFAULT_AUTH_LIMIT = "10 per minute"
API_LIMIT = "100 per minute"


def get_rate_limit_key(request: Request) -> str:
    """Generate rate limit key from client IP only.

    Never include user-controlled headers in the key: rotating them would
    create unlimited fresh buckets.
    """
    return get_remote_address(request) or "unknown"


def create_limiter() -> Limiter:
    """Create rate limiter with the configured storage backend.

    Disabled in testing environment.
    """
    settings = get_settings()

    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    if settings.rate_limit_storage_uri:
        logger.info("Rate limiter using shared storage backend")
        return Limiter(key_func=get_rate_limit_key, storage_uri=settings.rate_limit_storage_uri)

    logger.info("Rate limiter using in-memory backend (not distributed)")
    return Limiter(key_func=get_rate_limit_key)


# Reads settings at import time; reconfiguration needs a restart
limiter = create_limiter()

"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-specific fixtures are in tests/integration/conftest.py.
"""

import os

# Set APP_ENV to testing before any app imports to disable rate limiting
os.environ.setdefault("APP_ENV", "testing")
# Replaced by a per-test SQLite engine in tests/integration/conftest.py
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-oauth-state-tokens-0123456789")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
# Cheap Argon2 parameters keep hashing fast in tests
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import Generator
from unittest.mock import patch

import pytest

from src.auth_service.core.config import get_settings
from tests.helpers import Outbox, SentEmail

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture
def outbox() -> Generator[Outbox]:
    """Capture outgoing verification and reset emails instead of sending them."""
    sent = Outbox()

    def _recorder(kind: str):
        async def _send(to: str, token: str, user_name: str, domain: str) -> bool:
            sent.append(SentEmail(kind, to, token, user_name, domain))
            return True

        return _send

    with (
        patch(
            "src.auth_service.services.account_service.send_verification_email",
            side_effect=_recorder("verification"),
        ),
        patch(
            "src.auth_service.services.account_service.send_password_reset_email",
            side_effect=_recorder("password_reset"),
        ),
    ):
        yield sent

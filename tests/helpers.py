"""Test helper functions for common request and data creation patterns."""

import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Any

from httpx import AsyncClient, Response
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth_service.api.dependencies.csrf import CSRF_HEADER
from src.auth_service.models.tenant import User
from tests.factories import DEFAULT_TEST_PASSWORD, UserFactory

WEBHOOK_SECRET = "whsec_test_secret"


@dataclass
class SentEmail:
    kind: str
    to: str
    token: str
    user_name: str
    domain: str


class Outbox(list[SentEmail]):
    """Emails the account service tried to send, newest last."""

    def last_token(self, kind: str) -> str:
        return next(email.token for email in reversed(self) if email.kind == kind)


def bearer(token: str) -> dict[str, str]:
    """Authorization header for a session token."""
    return {"Authorization": f"Bearer {token}"}


async def create_user(session: AsyncSession, **user_kwargs) -> User:
    """Create and commit a user.

    Args:
        session: Tenant-bound database session
        **user_kwargs: Additional args passed to UserFactory

    Returns:
        The committed user
    """
    user = UserFactory.build(**user_kwargs)
    session.add(user)
    await session.commit()
    return user


async def fetch_csrf_token(client: AsyncClient, session_token: str | None = None) -> str:
    """Get a CSRF token for the client's anonymous cookie or its session."""
    headers = bearer(session_token) if session_token else {}
    response = await client.get("/auth/csrf-token", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["csrf_token"]


async def post_with_csrf(
    client: AsyncClient,
    url: str,
    payload: dict[str, Any],
    session_token: str | None = None,
) -> Response:
    """POST with a freshly issued CSRF token for the caller's context."""
    csrf_token = await fetch_csrf_token(client, session_token)
    headers = {CSRF_HEADER: csrf_token}
    if session_token:
        headers.update(bearer(session_token))
    return await client.post(url, json=payload, headers=headers)


async def signup(
    client: AsyncClient,
    email: str,
    password: str = DEFAULT_TEST_PASSWORD,
    **extra: str,
) -> dict[str, Any]:
    """Sign up through the API and return the response body."""
    response = await post_with_csrf(
        client, "/auth/signup", {"email": email, "password": password, **extra}
    )
    assert response.status_code == 201, response.text
    return response.json()


async def login(
    client: AsyncClient, email: str, password: str = DEFAULT_TEST_PASSWORD
) -> Response:
    return await post_with_csrf(client, "/auth/login", {"email": email, "password": password})


def stripe_event(event_id: str, event_type: str, data_object: dict[str, Any]) -> bytes:
    """Serialize a billing provider event the way it arrives on the webhook."""
    return json.dumps(
        {"id": event_id, "type": event_type, "data": {"object": data_object}}
    ).encode()


def sign_webhook_payload(payload: bytes, secret: str, timestamp: int) -> str:
    """Build a ``Stripe-Signature`` header value the way the provider does."""
    digest = hmac.new(secret.encode(), f"{timestamp}.".encode() + payload, hashlib.sha256)
    return f"t={timestamp},v1={digest.hexdigest()}"


def stripe_signature(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None):
    """Signature header for a webhook payload."""
    return sign_webhook_payload(payload, secret, timestamp or int(time.time()))


def forged_signature(payload: bytes, timestamp: int | None = None) -> str:
    """Well-formed signature made with the wrong secret."""
    return sign_webhook_payload(payload, "not-the-secret", timestamp or int(time.time()))

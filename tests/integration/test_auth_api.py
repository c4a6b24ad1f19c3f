"""End-to-end tests of the account endpoints over HTTP."""

from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from src.auth_service.core.config import get_settings
from src.auth_service.core.db import get_session, get_tenant_session
from src.auth_service.models import Tenant, User
from src.auth_service.repositories import UserRepository
from tests.factories import DEFAULT_TEST_PASSWORD, TenantFactory
from tests.helpers import Outbox, bearer, login, post_with_csrf, signup

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]

NEW_PASSWORD = "another-long-passphrase"


class TestSignup:
    async def test_signup_session_logout_flow(self, client: AsyncClient, outbox: Outbox):
        body = await signup(client, "New.User@Example.com", first_name="New")

        assert body["user"]["email"] == "new.user@example.com"
        assert body["user"]["email_verified"] is False
        assert body["token_type"] == "bearer"
        assert body["email_sent"] is True
        assert outbox[0].kind == "verification"
        assert outbox[0].to == "new.user@example.com"
        assert outbox[0].domain == "alpha.example.com"

        token = body["session_token"]
        session = await client.get("/auth/session", headers=bearer(token))
        assert session.status_code == 200
        assert session.json()["user"]["id"] == body["user"]["id"]

        logout = await post_with_csrf(client, "/auth/logout", {}, token)
        assert logout.status_code == 200

        after = await client.get("/auth/session", headers=bearer(token))
        assert after.status_code == 401
        assert after.json()["code"] == "session_not_found"

    async def test_duplicate_email(self, client: AsyncClient, outbox: Outbox, user: User):
        response = await post_with_csrf(
            client,
            "/auth/signup",
            {"email": user.email.upper(), "password": DEFAULT_TEST_PASSWORD},
        )

        assert response.status_code == 409
        assert response.json()["code"] == "email_exists"

    async def test_weak_password(self, client: AsyncClient, outbox: Outbox):
        response = await post_with_csrf(
            client, "/auth/signup", {"email": "weak@example.com", "password": "short"}
        )

        assert response.status_code == 422
        assert response.json()["code"] == "weak_password"
        assert outbox == []

    async def test_notifier_failure_keeps_account(self, client: AsyncClient, tenant: Tenant):
        with patch(
            "src.auth_service.services.account_service.send_verification_email",
            return_value=False,
        ):
            body = await signup(client, "offline@example.com")

        assert body["email_sent"] is False
        async with get_tenant_session(tenant.schema_name) as session:
            assert await UserRepository(session).get_by_email("offline@example.com")

    async def test_csrf_token_required(self, client: AsyncClient):
        response = await client.post(
            "/auth/signup", json={"email": "x@example.com", "password": DEFAULT_TEST_PASSWORD}
        )
        assert response.status_code == 403


class TestLogin:
    async def test_login_returns_session(self, client: AsyncClient, user: User):
        response = await login(client, user.email)

        assert response.status_code == 200
        token = response.json()["session_token"]
        assert (await client.get("/auth/session", headers=bearer(token))).status_code == 200

    async def test_wrong_password_and_unknown_email_look_alike(
        self, client: AsyncClient, user: User
    ):
        wrong = await login(client, user.email, "not-the-password")
        unknown = await login(client, "nobody@example.com", "not-the-password")

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json()["detail"] == unknown.json()["detail"]
        assert wrong.json()["code"] == unknown.json()["code"] == "invalid_credentials"

    async def test_lockout_after_repeated_failures(self, client: AsyncClient, user: User):
        limit = get_settings().max_failed_login_attempts
        responses = [await login(client, user.email, "not-the-password") for _ in range(limit)]

        assert [r.json()["code"] for r in responses[:-1]] == ["invalid_credentials"] * (limit - 1)
        assert responses[-1].json()["code"] == "account_locked"

        # Correct password is refused while the lock holds
        locked = await login(client, user.email)
        assert locked.status_code == 401
        assert locked.json()["code"] == "account_locked"

    async def test_session_requires_bearer(self, client: AsyncClient):
        response = await client.get("/auth/session")

        assert response.status_code == 401

    async def test_malformed_bearer(self, client: AsyncClient):
        response = await client.get("/auth/session", headers=bearer("garbage"))

        assert response.status_code == 401
        assert response.json()["code"] == "invalid_format"


class TestRefresh:
    async def test_refresh_rotates_session(self, client: AsyncClient, user: User):
        old_token = (await login(client, user.email)).json()["session_token"]

        response = await post_with_csrf(client, "/auth/refresh", {}, old_token)

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == str(user.id)
        new_token = body["session_token"]
        assert new_token != old_token
        assert (await client.get("/auth/session", headers=bearer(new_token))).status_code == 200

        stale = await client.get("/auth/session", headers=bearer(old_token))
        assert stale.status_code == 401
        assert stale.json()["code"] == "session_not_found"

    async def test_refresh_needs_session_csrf_token(self, client: AsyncClient, user: User):
        token = (await login(client, user.email)).json()["session_token"]

        response = await client.post("/auth/refresh", json={}, headers=bearer(token))

        assert response.status_code == 403

    async def test_refresh_without_session(self, client: AsyncClient):
        response = await post_with_csrf(client, "/auth/refresh", {})

        assert response.status_code == 401


class TestPasswordReset:
    async def test_response_does_not_reveal_account(
        self, client: AsyncClient, outbox: Outbox, user: User
    ):
        known = await post_with_csrf(client, "/auth/password-reset", {"email": user.email})
        unknown = await post_with_csrf(
            client, "/auth/password-reset", {"email": "nobody@example.com"}
        )

        assert known.status_code == unknown.status_code == 202
        assert known.json() == unknown.json()
        assert [email.to for email in outbox] == [user.email]

    async def test_confirm_sets_password_and_revokes_sessions(
        self, client: AsyncClient, outbox: Outbox, user: User
    ):
        old_token = (await login(client, user.email)).json()["session_token"]
        await post_with_csrf(client, "/auth/password-reset", {"email": user.email})
        reset_token = outbox.last_token("password_reset")

        response = await post_with_csrf(
            client,
            "/auth/password-reset/confirm",
            {"token": reset_token, "new_password": NEW_PASSWORD},
        )

        assert response.status_code == 200
        assert (await client.get("/auth/session", headers=bearer(old_token))).status_code == 401
        assert (await login(client, user.email)).status_code == 401
        assert (await login(client, user.email, NEW_PASSWORD)).status_code == 200

        reused = await post_with_csrf(
            client,
            "/auth/password-reset/confirm",
            {"token": reset_token, "new_password": "yet-another-passphrase"},
        )
        assert reused.status_code == 409
        assert reused.json()["code"] == "already_used"

    async def test_confirm_clears_lockout(
        self, client: AsyncClient, outbox: Outbox, user: User
    ):
        for _ in range(get_settings().max_failed_login_attempts):
            await login(client, user.email, "not-the-password")
        await post_with_csrf(client, "/auth/password-reset", {"email": user.email})

        await post_with_csrf(
            client,
            "/auth/password-reset/confirm",
            {"token": outbox.last_token("password_reset"), "new_password": NEW_PASSWORD},
        )

        assert (await login(client, user.email, NEW_PASSWORD)).status_code == 200

    async def test_weak_new_password_keeps_token(
        self, client: AsyncClient, outbox: Outbox, user: User
    ):
        await post_with_csrf(client, "/auth/password-reset", {"email": user.email})
        reset_token = outbox.last_token("password_reset")

        weak = await post_with_csrf(
            client,
            "/auth/password-reset/confirm",
            {"token": reset_token, "new_password": "short"},
        )
        retry = await post_with_csrf(
            client,
            "/auth/password-reset/confirm",
            {"token": reset_token, "new_password": NEW_PASSWORD},
        )

        assert weak.status_code == 422
        assert retry.status_code == 200

    async def test_unknown_token(self, client: AsyncClient):
        response = await post_with_csrf(
            client,
            "/auth/password-reset/confirm",
            {"token": "x" * 32, "new_password": NEW_PASSWORD},
        )

        assert response.status_code == 404


class TestEmailVerification:
    async def test_verify_then_reuse(self, client: AsyncClient, outbox: Outbox):
        await signup(client, "verify@example.com")
        token = outbox.last_token("verification")

        response = await post_with_csrf(client, "/auth/email/verify", {"token": token})

        assert response.status_code == 200
        assert response.json()["verified"] is True
        assert response.json()["user"]["email_verified"] is True

        reused = await post_with_csrf(client, "/auth/email/verify", {"token": token})
        assert reused.status_code == 409

    async def test_resend_only_for_unverified(
        self, client: AsyncClient, outbox: Outbox, user: User
    ):
        await signup(client, "pending@example.com")
        outbox.clear()

        pending = await post_with_csrf(
            client, "/auth/email/resend-verification", {"email": "pending@example.com"}
        )
        verified = await post_with_csrf(
            client, "/auth/email/resend-verification", {"email": user.email}
        )
        unknown = await post_with_csrf(
            client, "/auth/email/resend-verification", {"email": "nobody@example.com"}
        )

        assert pending.status_code == verified.status_code == unknown.status_code == 202
        assert pending.json() == verified.json() == unknown.json()
        assert [email.to for email in outbox] == ["pending@example.com"]


class TestTenantIsolation:
    async def test_same_email_in_two_tenants(
        self, client: AsyncClient, other_client: AsyncClient, outbox: Outbox
    ):
        alpha = await signup(client, "shared@example.com")
        beta = await signup(other_client, "shared@example.com", password="beta-only-passphrase")

        assert alpha["user"]["id"] != beta["user"]["id"]
        assert (await login(client, "shared@example.com")).status_code == 200
        assert (await login(other_client, "shared@example.com")).status_code == 401

    async def test_session_token_bound_to_tenant(
        self, client: AsyncClient, other_client: AsyncClient, outbox: Outbox
    ):
        token = (await signup(client, "roamer@example.com"))["session_token"]

        response = await other_client.get("/auth/session", headers=bearer(token))

        assert response.status_code == 401

    async def test_reset_token_bound_to_tenant(
        self, client: AsyncClient, other_client: AsyncClient, outbox: Outbox
    ):
        await signup(client, "reset@example.com")
        await signup(other_client, "reset@example.com")
        await post_with_csrf(client, "/auth/password-reset", {"email": "reset@example.com"})

        response = await post_with_csrf(
            other_client,
            "/auth/password-reset/confirm",
            {"token": outbox.last_token("password_reset"), "new_password": NEW_PASSWORD},
        )

        assert response.status_code == 404


class TestTenantResolution:
    async def _add_tenant(self, engine: AsyncEngine, tenant: Tenant) -> None:
        async with get_session(engine=engine) as session:
            session.add(tenant)
            await session.commit()

    async def test_unknown_domain(self, client: AsyncClient):
        response = await client.get("/auth/session", headers={"host": "unknown.example.org"})

        assert response.status_code == 404
        assert "request_id" in response.json()

    async def test_invalid_host(self, client: AsyncClient):
        response = await client.get("/auth/session", headers={"host": "bad_host!"})

        assert response.status_code == 400

    async def test_inactive_tenant(self, client: AsyncClient, engine: AsyncEngine):
        await self._add_tenant(engine, TenantFactory.inactive(domain="gone.example.com"))

        response = await client.get("/auth/session", headers={"host": "gone.example.com"})

        assert response.status_code == 403

    async def test_provisioning_tenant(self, client: AsyncClient, engine: AsyncEngine):
        await self._add_tenant(engine, TenantFactory.provisioning(domain="soon.example.com"))

        response = await client.get("/auth/session", headers={"host": "soon.example.com"})

        assert response.status_code == 503

    async def test_host_port_and_case_ignored(self, client: AsyncClient, user: User):
        token = (await login(client, user.email)).json()["session_token"]

        response = await client.get(
            "/auth/session", headers={**bearer(token), "host": "ALPHA.example.com:443"}
        )

        assert response.status_code == 200

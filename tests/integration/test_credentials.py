"""Integration tests for password verification and account lockout."""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth_service.core.db import get_tenant_session
from src.auth_service.core.exceptions import AuthenticationError, ValidationError
from src.auth_service.models import Tenant, User
from src.auth_service.repositories import UserRepository
from src.auth_service.services import CredentialService
from src.auth_service.services import credential_service as credential_module
from src.auth_service.services.credential_service import (
    ACCOUNT_LOCKED_MESSAGE,
    INVALID_CREDENTIALS_MESSAGE,
)
from tests.factories import DEFAULT_TEST_PASSWORD, utc_now
from tests.helpers import create_user

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]

MAX_ATTEMPTS = 5  # max_failed_login_attempts default


async def _reload(tenant: Tenant, user_id) -> User:
    async with get_tenant_session(tenant.schema_name) as session:
        user = await UserRepository(session).get_by_id(user_id)
        assert user is not None
        return user


async def _fail(service: CredentialService, email: str) -> AuthenticationError:
    with pytest.raises(AuthenticationError) as exc_info:
        await service.verify(email, "wrong-password")
    return exc_info.value


class TestVerify:
    async def test_correct_password(self, credential_service: CredentialService, user: User):
        verified = await credential_service.verify(user.email, DEFAULT_TEST_PASSWORD)
        assert verified.id == user.id

    async def test_email_is_normalized(self, credential_service: CredentialService, user: User):
        verified = await credential_service.verify(
            f"  {user.email.upper()} ", DEFAULT_TEST_PASSWORD
        )
        assert verified.id == user.id

    async def test_unknown_email_and_wrong_password_look_the_same(
        self, credential_service: CredentialService, user: User
    ):
        unknown = await _fail(credential_service, "nobody@example.com")
        wrong = await _fail(credential_service, user.email)

        assert unknown.message == wrong.message == INVALID_CREDENTIALS_MESSAGE
        assert unknown.reason == wrong.reason == "invalid_credentials"
        assert unknown.status_code == wrong.status_code == 401

    async def test_unknown_email_still_runs_a_hash(self, credential_service: CredentialService):
        with patch.object(
            credential_module, "verify_password", wraps=credential_module.verify_password
        ) as spy:
            await _fail(credential_service, "nobody@example.com")
        spy.assert_called_once()

    async def test_account_without_password(
        self, credential_service: CredentialService, db_session: AsyncSession
    ):
        oauth_user = await create_user(db_session, password_hash=None)
        error = await _fail(credential_service, oauth_user.email)
        assert error.reason == "invalid_credentials"

    async def test_success_resets_failure_count(
        self, credential_service: CredentialService, tenant: Tenant, user: User
    ):
        for _ in range(MAX_ATTEMPTS - 1):
            await _fail(credential_service, user.email)
        assert (await _reload(tenant, user.id)).failed_login_attempts == MAX_ATTEMPTS - 1

        await credential_service.verify(user.email, DEFAULT_TEST_PASSWORD)

        reloaded = await _reload(tenant, user.id)
        assert reloaded.failed_login_attempts == 0
        assert reloaded.lockout_until is None


class TestLockout:
    async def test_locks_after_max_attempts(
        self, credential_service: CredentialService, tenant: Tenant, user: User
    ):
        errors = [await _fail(credential_service, user.email) for _ in range(MAX_ATTEMPTS)]

        assert all(e.reason == "invalid_credentials" for e in errors[:-1])
        # The attempt that trips the lock already reports it
        assert errors[-1].reason == "account_locked"
        assert errors[-1].message == ACCOUNT_LOCKED_MESSAGE

        reloaded = await _reload(tenant, user.id)
        assert reloaded.failed_login_attempts == MAX_ATTEMPTS
        assert reloaded.lockout_until is not None
        assert reloaded.lockout_until > utc_now() + timedelta(minutes=14)

    async def test_locked_account_rejects_correct_password(
        self, credential_service: CredentialService, db_session: AsyncSession
    ):
        locked = await create_user(db_session, lockout_until=utc_now() + timedelta(minutes=10))

        with pytest.raises(AuthenticationError) as exc_info:
            await credential_service.verify(locked.email, DEFAULT_TEST_PASSWORD)
        assert exc_info.value.reason == "account_locked"

    async def test_failures_while_locked_do_not_extend_lock(
        self, credential_service: CredentialService, db_session: AsyncSession, tenant: Tenant
    ):
        lockout_until = utc_now() + timedelta(minutes=10)
        locked = await create_user(
            db_session, failed_login_attempts=MAX_ATTEMPTS, lockout_until=lockout_until
        )

        error = await _fail(credential_service, locked.email)

        assert error.reason == "account_locked"
        reloaded = await _reload(tenant, locked.id)
        assert reloaded.failed_login_attempts == MAX_ATTEMPTS
        assert reloaded.lockout_until == lockout_until

    async def test_elapsed_lock_allows_login(
        self, credential_service: CredentialService, db_session: AsyncSession, tenant: Tenant
    ):
        expired_lock = await create_user(
            db_session,
            failed_login_attempts=MAX_ATTEMPTS,
            lockout_until=utc_now() - timedelta(seconds=1),
        )

        await credential_service.verify(expired_lock.email, DEFAULT_TEST_PASSWORD)

        reloaded = await _reload(tenant, expired_lock.id)
        assert reloaded.failed_login_attempts == 0
        assert reloaded.lockout_until is None

    async def test_failure_after_elapsed_lock_restarts_count(
        self, credential_service: CredentialService, db_session: AsyncSession, tenant: Tenant
    ):
        expired_lock = await create_user(
            db_session,
            failed_login_attempts=MAX_ATTEMPTS,
            lockout_until=utc_now() - timedelta(seconds=1),
        )

        error = await _fail(credential_service, expired_lock.email)

        assert error.reason == "invalid_credentials"
        reloaded = await _reload(tenant, expired_lock.id)
        assert reloaded.failed_login_attempts == 1
        assert reloaded.lockout_until is None

    async def test_concurrent_failure_is_not_lost(self, tenant: Tenant, user: User):
        """A failure recorded by another worker between read and write is retried, not lost."""

        class RacingUserRepository(UserRepository):
            raced = False

            async def compare_and_set_lockout(self, user_id, **kwargs):
                if not self.raced:
                    self.raced = True
                    # Another worker records a failure first
                    async with get_tenant_session(tenant.schema_name) as other:
                        other_repo = UserRepository(other)
                        won = await other_repo.compare_and_set_lockout(
                            user_id,
                            expected_attempts=0,
                            expected_lockout_until=None,
                            failed_login_attempts=1,
                            lockout_until=None,
                        )
                        assert won
                        await other.commit()
                return await super().compare_and_set_lockout(user_id, **kwargs)

        async with get_tenant_session(tenant.schema_name) as session:
            service = CredentialService(RacingUserRepository(session), session)
            error = await _fail(service, user.email)

        assert error.reason == "invalid_credentials"
        assert (await _reload(tenant, user.id)).failed_login_attempts == 2

    async def test_login_loses_race_to_lockout(self, tenant: Tenant, user: User):
        """A correct password does not clear a lock set by a concurrent failure."""

        class LockingUserRepository(UserRepository):
            async def clear_failed_attempts(self, user_id, now):
                async with get_tenant_session(tenant.schema_name) as other:
                    await UserRepository(other).compare_and_set_lockout(
                        user_id,
                        expected_attempts=0,
                        expected_lockout_until=None,
                        failed_login_attempts=MAX_ATTEMPTS,
                        lockout_until=now + timedelta(minutes=15),
                    )
                    await other.commit()
                return await super().clear_failed_attempts(user_id, now)

        async with get_tenant_session(tenant.schema_name) as session:
            service = CredentialService(LockingUserRepository(session), session)
            with pytest.raises(AuthenticationError) as exc_info:
                await service.verify(user.email, DEFAULT_TEST_PASSWORD)

        assert exc_info.value.reason == "account_locked"
        assert (await _reload(tenant, user.id)).lockout_until is not None


class TestPasswordPolicy:
    def test_length_bounds(self, credential_service: CredentialService):
        with pytest.raises(ValidationError) as exc_info:
            credential_service.validate_password_strength("short")
        assert exc_info.value.reason == "weak_password"

        with pytest.raises(ValidationError):
            credential_service.validate_password_strength("x" * 129)

        credential_service.validate_password_strength("long-enough")

    @pytest.mark.parametrize("password", ["password123", "qwertyuiop", "aaaaaaaaaa"])
    def test_guessable_passwords_rejected_when_scoring_enabled(
        self, credential_service: CredentialService, password: str
    ):
        strict = MagicMock(password_min_length=8, password_max_length=128, password_min_score=3)
        with patch.object(credential_module, "get_settings", return_value=strict):
            with pytest.raises(ValidationError, match="[Ww]eak password|too weak"):
                credential_service.validate_password_strength(password)

    def test_strong_password_accepted_when_scoring_enabled(
        self, credential_service: CredentialService
    ):
        strict = MagicMock(password_min_length=8, password_max_length=128, password_min_score=3)
        with patch.object(credential_module, "get_settings", return_value=strict):
            credential_service.validate_password_strength("correct-horse-battery-staple")

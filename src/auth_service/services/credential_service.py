"""Credential service - password hashing, verification and account lockout."""

from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value
from zxcvbn import zxcvbn

from src.auth_service.core.config import get_settings
from src.auth_service.core.exceptions import AuthenticationError, ValidationError
from src.auth_service.core.logging import get_logger
from src.auth_service.core.security import (
    get_dummy_password_hash,
    hash_password,
    normalize_email,
    verify_password,
)
from src.auth_service.models.base import utc_now
from src.auth_service.models.tenant import User
from src.auth_service.repositories import UserRepository

logger = get_logger(__name__)

# Same message for unknown email and wrong password
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
ACCOUNT_LOCKED_MESSAGE = "Account temporarily locked due to too many failed login attempts"

# Attempts to win the compare-and-set on the lockout fields before giving up
MAX_LOCKOUT_WRITE_ATTEMPTS = 3


class CredentialService:
    """Verifies passwords and drives the lockout state of an account.

    Lockout fields are only written through guarded updates
    (``UserRepository.compare_and_set_lockout`` and ``clear_failed_attempts``),
    so concurrent logins on separate workers never lose a transition.
    """

    def __init__(self, user_repo: UserRepository, session: AsyncSession):
        self.user_repo = user_repo
        self.session = session

    def hash_password(self, password: str) -> str:
        return hash_password(password)

    def validate_password_strength(
        self, password: str, user_inputs: list[str] | None = None
    ) -> None:
        """Enforce the password policy.

        Raises:
            ValidationError: If the password is too short, too long or too guessable
        """
        settings = get_settings()
        if len(password) < settings.password_min_length:
            raise ValidationError(
                f"Password must be at least {settings.password_min_length} characters",
                reason="weak_password",
            )
        if len(password) > settings.password_max_length:
            raise ValidationError(
                f"Password must be at most {settings.password_max_length} characters",
                reason="weak_password",
            )
        if settings.password_min_score == 0:
            return

        result = zxcvbn(password, user_inputs=user_inputs or [])
        if result["score"] < settings.password_min_score:
            feedback = result.get("feedback", {})
            warning = feedback.get("warning", "")
            suggestions = feedback.get("suggestions", [])
            if warning:
                message = f"Weak password: {warning}"
            elif suggestions:
                message = f"Weak password: {suggestions[0]}"
            else:
                message = "Password is too weak. Use a longer password with a mix of characters."
            raise ValidationError(message, reason="weak_password")

    async def verify(self, email: str, password: str) -> User:
        """Check an email/password pair and update the lockout state.

        Returns the user on success.

        Raises:
            AuthenticationError: ``invalid_credentials`` for an unknown email or a wrong
                password, ``account_locked`` while a lock is in force (including the
                attempt that triggers it)
        """
        user = await self.user_repo.get_by_email(normalize_email(email))

        if user is None or user.password_hash is None:
            # Keep timing the same as a real verification
            verify_password(password, get_dummy_password_hash())
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        now = utc_now()
        if user.is_locked(now):
            logger.info("Login attempt on locked account", user_id=str(user.id))
            raise AuthenticationError(ACCOUNT_LOCKED_MESSAGE, reason="account_locked")

        if verify_password(password, user.password_hash):
            try:
                cleared = await self.user_repo.clear_failed_attempts(user.id, now)
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise
            if not cleared:
                # A concurrent failure locked the account between read and write
                logger.info("Login lost race to lockout", user_id=str(user.id))
                raise AuthenticationError(ACCOUNT_LOCKED_MESSAGE, reason="account_locked")
            _sync_lockout(user, 0, None)
            return user

        try:
            locked = await self._record_failure(user, now)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        if locked:
            logger.warning(
                "Account locked after failed login attempts",
                user_id=str(user.id),
                lockout_until=user.lockout_until.isoformat() if user.lockout_until else None,
            )
            raise AuthenticationError(ACCOUNT_LOCKED_MESSAGE, reason="account_locked")
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    async def _record_failure(self, user: User, now: datetime) -> bool:
        """Count one failed attempt. Returns True if the account is now locked."""
        settings = get_settings()
        for _ in range(MAX_LOCKOUT_WRITE_ATTEMPTS):
            observed_attempts = user.failed_login_attempts
            observed_lockout = user.lockout_until
            if observed_lockout is not None and observed_lockout > now:
                return True

            # An elapsed lock is cleared by this write and the count restarts
            attempts = 1 if observed_lockout is not None else observed_attempts + 1
            lockout_until = None
            if attempts >= settings.max_failed_login_attempts:
                lockout_until = now + timedelta(minutes=settings.lockout_minutes)

            if await self.user_repo.compare_and_set_lockout(
                user.id,
                expected_attempts=observed_attempts,
                expected_lockout_until=observed_lockout,
                failed_login_attempts=attempts,
                lockout_until=lockout_until,
            ):
                _sync_lockout(user, attempts, lockout_until)
                return lockout_until is not None

            await self.user_repo.refresh(user)

        logger.warning("Gave up recording failed login attempt", user_id=str(user.id))
        return user.is_locked(now)


def _sync_lockout(user: User, attempts: int, lockout_until: datetime | None) -> None:
    """Mirror a guarded write onto the loaded user without marking it dirty."""
    set_committed_value(user, "failed_login_attempts", attempts)
    set_committed_value(user, "lockout_until", lockout_until)

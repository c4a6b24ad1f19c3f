"""CSRF service - anti-forgery tokens bound to a session or anonymous context."""

from datetime import timedelta

from fastapi import status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth_service.core.config import get_settings
from src.auth_service.core.exceptions import AuthenticationError
from src.auth_service.core.logging import get_logger
from src.auth_service.core.security import constant_time_equals, generate_token, hash_token
from src.auth_service.models.base import utc_now
from src.auth_service.models.tenant import CsrfToken
from src.auth_service.repositories import CsrfTokenRepository

logger = get_logger(__name__)


def session_context_key(session_id: str) -> str:
    return f"session:{session_id}"


def anonymous_context_key(cookie_value: str) -> str:
    return f"anon:{cookie_value}"


def csrf_token_ttl() -> timedelta:
    return timedelta(minutes=get_settings().csrf_token_ttl_minutes)


def _rejected(message: str, reason: str) -> AuthenticationError:
    return AuthenticationError(message, reason=reason, status_code=status.HTTP_403_FORBIDDEN)


class CsrfService:
    """One live token per context; issuing again replaces it.

    Expired tokens of any context are deleted whenever a token is issued.
    """

    def __init__(self, csrf_repo: CsrfTokenRepository, session: AsyncSession):
        self.csrf_repo = csrf_repo
        self.session = session

    async def issue(self, context_key: str) -> str:
        token = generate_token()
        token_hash = hash_token(token)
        now = utc_now()

        try:
            await self.csrf_repo.delete_issued_before(now - csrf_token_ttl())
            if not await self.csrf_repo.replace(context_key, token_hash, now):
                self.csrf_repo.add(
                    CsrfToken(context_key=context_key, token_hash=token_hash, created_at=now)
                )
            await self.session.commit()
        except IntegrityError:
            # Concurrent first issue for the same context, overwrite theirs
            await self.session.rollback()
            try:
                await self.csrf_repo.replace(context_key, token_hash, now)
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise
        except Exception:
            await self.session.rollback()
            raise

        return token

    async def validate(self, context_key: str | None, token: str | None) -> None:
        """Check a submitted token against the last one issued for the context.

        Validation does not consume the token.

        Raises:
            AuthenticationError: 403 ``csrf_invalid`` or ``csrf_expired``
        """
        if not context_key or not token:
            raise _rejected("CSRF token missing", "csrf_invalid")

        record = await self.csrf_repo.get_by_context(context_key)
        if record is None or not constant_time_equals(hash_token(token), record.token_hash):
            logger.warning("CSRF token rejected")
            raise _rejected("CSRF token invalid", "csrf_invalid")

        if utc_now() - record.created_at > csrf_token_ttl():
            raise _rejected("CSRF token expired", "csrf_expired")

"""Single-use token service - password reset and email verification tokens."""

from collections.abc import Awaitable, Callable
from datetime import timedelta
from uuid import UUID

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth_service.core.config import get_settings
from src.auth_service.core.exceptions import ConflictError, ExpiredError, NotFoundError
from src.auth_service.core.logging import get_logger
from src.auth_service.core.security import generate_token, hash_token
from src.auth_service.models.base import utc_now
from src.auth_service.models.enums import TokenKind
from src.auth_service.models.tenant import EmailVerificationToken, PasswordResetToken
from src.auth_service.repositories import (
    EmailVerificationTokenRepository,
    PasswordResetTokenRepository,
    SingleUseTokenRepository,
)

logger = get_logger(__name__)

# Runs inside the consuming transaction; receives the token owner's id
TokenEffect = Callable[[UUID], Awaitable[None]]

# Expired tokens are kept this long so late clicks still get a clear 410
EXPIRED_TOKEN_RETENTION = timedelta(days=1)


def token_ttl(kind: TokenKind) -> timedelta:
    settings = get_settings()
    if kind == TokenKind.PASSWORD_RESET:
        return timedelta(minutes=settings.password_reset_expire_minutes)
    return timedelta(hours=settings.email_verification_expire_hours)


class TokenService:
    """Issues and consumes single-use expiring tokens.

    Consumption is a guarded ``UPDATE ... WHERE used_at IS NULL AND expires_at > now``
    committed together with the token's side effect, so a token takes effect at
    most once no matter how many requests race for it.
    """

    def __init__(
        self,
        reset_token_repo: PasswordResetTokenRepository,
        verification_token_repo: EmailVerificationTokenRepository,
        session: AsyncSession,
    ):
        self.reset_token_repo = reset_token_repo
        self.verification_token_repo = verification_token_repo
        self.session = session

    def _repo(self, kind: TokenKind) -> SingleUseTokenRepository:
        if kind == TokenKind.PASSWORD_RESET:
            return self.reset_token_repo
        return self.verification_token_repo

    async def issue(self, user_id: UUID, kind: TokenKind) -> str:
        """Create a token for a user, invalidating their outstanding ones of this kind.

        Returns the plaintext token. Only its hash is stored.
        Tokens of this kind that expired more than a day ago are deleted on the way.
        """
        repo = self._repo(kind)
        token = generate_token()
        now = utc_now()
        model = PasswordResetToken if kind == TokenKind.PASSWORD_RESET else EmailVerificationToken

        try:
            await repo.delete_expired_before(now - EXPIRED_TOKEN_RETENTION)
            await repo.invalidate_user_tokens(user_id)
            repo.add(
                model(
                    token_hash=hash_token(token),
                    user_id=user_id,
                    created_at=now,
                    expires_at=now + token_ttl(kind),
                )
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Single-use token issued", user_id=str(user_id), kind=kind.value)
        return token

    async def consume(self, token: str, kind: TokenKind, effect: TokenEffect) -> UUID:
        """Claim a token and apply its effect in the same transaction.

        Returns the id of the user the token belonged to.

        Raises:
            NotFoundError: Unknown token (``invalid``)
            ConflictError: Token already used (``already_used``)
            ExpiredError: Token past its expiry (``expired``, 410)
        """
        repo = self._repo(kind)
        token_hash = hash_token(token)

        record = await repo.get_by_hash(token_hash)
        if record is None:
            raise NotFoundError("Invalid or unknown token", reason="invalid")
        if record.used_at is not None:
            raise ConflictError("Token has already been used", reason="already_used")

        now = utc_now()
        if record.expires_at <= now:
            raise _expired()

        user_id = record.user_id
        try:
            claimed = await repo.claim(token_hash, now)
            if claimed:
                await effect(user_id)
                await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        if not claimed:
            # Another request consumed (or the clock expired) the token first
            await self.session.rollback()
            await repo.refresh(record)
            logger.info("Lost race consuming token", user_id=str(user_id), kind=kind.value)
            if record.used_at is not None:
                raise ConflictError("Token has already been used", reason="already_used")
            raise _expired()

        logger.info("Single-use token consumed", user_id=str(user_id), kind=kind.value)
        return user_id


def _expired() -> ExpiredError:
    return ExpiredError("Token has expired", reason="expired", status_code=status.HTTP_410_GONE)

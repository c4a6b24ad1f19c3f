"""Repositories for single-use password reset and email verification tokens."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, update
from sqlmodel import select

from src.auth_service.models.base import utc_now
from src.auth_service.models.tenant import (
    EmailVerificationToken,
    PasswordResetToken,
    SingleUseToken,
)
from src.auth_service.repositories.base import BaseRepository


class SingleUseTokenRepository(BaseRepository[SingleUseToken]):
    """Shared operations of both token tables. Subclasses pick the table."""

    async def get_by_hash(self, token_hash: str) -> SingleUseToken | None:
        """Get a token by its hash, whatever its state."""
        result = await self.session.execute(
            select(self.model).where(self.model.token_hash == token_hash)
        )
        return result.scalar_one_or_none()

    async def claim(self, token_hash: str, now: datetime) -> bool:
        """Atomically mark an unused, unexpired token as used.

        Exactly one concurrent caller gets True.
        """
        stmt = (
            update(self.model)
            .where(self.model.token_hash == token_hash)  # type: ignore[arg-type]
            .where(self.model.used_at.is_(None))  # type: ignore[union-attr]
            .where(self.model.expires_at > now)  # type: ignore[arg-type]
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]

    async def delete_expired_before(self, cutoff: datetime) -> int:
        """Delete tokens that expired before ``cutoff``. Returns the number removed."""
        result = await self.session.execute(
            delete(self.model).where(self.model.expires_at < cutoff)  # type: ignore[arg-type]
        )
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def invalidate_user_tokens(self, user_id: UUID) -> None:
        """Mark all outstanding tokens of a user as used."""
        await self.session.execute(
            update(self.model)
            .where(self.model.user_id == user_id)  # type: ignore[arg-type]
            .where(self.model.used_at.is_(None))  # type: ignore[union-attr]
            .values(used_at=utc_now())
            .execution_options(synchronize_session=False)
        )


class PasswordResetTokenRepository(SingleUseTokenRepository):
    model = PasswordResetToken


class EmailVerificationTokenRepository(SingleUseTokenRepository):
    model = EmailVerificationToken

"""Repository for User entity."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, update
from sqlmodel import select

from src.auth_service.models.base import utc_now
from src.auth_service.models.tenant import User
from src.auth_service.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User entity in the tenant partition.

    Lockout fields are only ever written through guarded updates so that
    concurrent logins on independent workers cannot lose a transition.
    """

    model = User

    async def get_by_email(self, email: str) -> User | None:
        """Get user by normalized email."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def compare_and_set_lockout(
        self,
        user_id: UUID,
        expected_attempts: int,
        expected_lockout_until: datetime | None,
        failed_login_attempts: int,
        lockout_until: datetime | None,
    ) -> bool:
        """Write new lockout fields only if the stored ones still match what was read.

        Returns True if this call took effect.
        """
        stmt = (
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .where(User.failed_login_attempts == expected_attempts)  # type: ignore[arg-type]
            .where(
                User.lockout_until.is_not_distinct_from(expected_lockout_until)  # type: ignore[union-attr]
            )
            .values(
                failed_login_attempts=failed_login_attempts,
                lockout_until=lockout_until,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]

    async def clear_failed_attempts(self, user_id: UUID, now: datetime) -> bool:
        """Reset the failure counter unless a lock is currently in force.

        Returns False if a live lock prevented the reset.
        """
        stmt = (
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .where(
                or_(
                    User.lockout_until.is_(None),  # type: ignore[union-attr]
                    User.lockout_until <= now,  # type: ignore[operator]
                )
            )
            .values(failed_login_attempts=0, lockout_until=None, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]

    async def set_password(self, user_id: UUID, password_hash: str) -> None:
        """Replace the password hash and clear any lockout state."""
        await self.session.execute(
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .values(
                password_hash=password_hash,
                failed_login_attempts=0,
                lockout_until=None,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )

    async def mark_email_verified(self, user_id: UUID) -> None:
        """Set the verified flag (idempotent)."""
        now = utc_now()
        await self.session.execute(
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .where(User.email_verified == False)  # type: ignore[arg-type]  # noqa: E712
            .values(email_verified=True, email_verified_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )

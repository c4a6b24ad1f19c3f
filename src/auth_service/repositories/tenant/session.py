"""Repository for AuthSession entity."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete
from sqlmodel import select

from src.auth_service.models.tenant import AuthSession
from src.auth_service.repositories.base import BaseRepository


class SessionRepository(BaseRepository[AuthSession]):
    """Repository for login sessions in the tenant partition."""

    model = AuthSession

    async def delete_by_id(self, session_id: str) -> int:
        """Delete a session. Deleting a missing session is not an error."""
        result = await self.session.execute(
            delete(AuthSession).where(AuthSession.id == session_id)  # type: ignore[arg-type]
        )
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def delete_if_unchanged(self, session_id: str, created_at: datetime) -> bool:
        """Delete the exact session row that was observed. Returns True if deleted here."""
        result = await self.session.execute(
            delete(AuthSession)
            .where(AuthSession.id == session_id)  # type: ignore[arg-type]
            .where(AuthSession.created_at == created_at)  # type: ignore[arg-type]
        )
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]

    async def list_ids_for_user(self, user_id: UUID) -> list[str]:
        result = await self.session.execute(
            select(AuthSession.id).where(AuthSession.user_id == user_id)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def delete_created_before(self, cutoff: datetime) -> int:
        """Delete sessions created before ``cutoff``. Returns the number removed."""
        result = await self.session.execute(
            delete(AuthSession).where(AuthSession.created_at < cutoff)  # type: ignore[arg-type]
        )
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def delete_all_for_user(self, user_id: UUID) -> int:
        """Delete every session of a user. Returns the number removed."""
        result = await self.session.execute(
            delete(AuthSession).where(AuthSession.user_id == user_id)  # type: ignore[arg-type]
        )
        return result.rowcount or 0  # type: ignore[attr-defined]

"""Repository for CsrfToken entity."""

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import delete, update

from src.auth_service.models.tenant import CsrfToken
from src.auth_service.repositories.base import BaseRepository


class CsrfTokenRepository(BaseRepository[CsrfToken]):
    """One row per request context; re-issuing overwrites it."""

    model = CsrfToken

    async def get_by_context(self, context_key: str) -> CsrfToken | None:
        return await self.session.get(CsrfToken, context_key)

    async def replace(self, context_key: str, token_hash: str, now: datetime) -> bool:
        """Overwrite the token of an existing context. Returns False if none exists."""
        result = await self.session.execute(
            update(CsrfToken)
            .where(CsrfToken.context_key == context_key)  # type: ignore[arg-type]
            .values(token_hash=token_hash, created_at=now)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]

    async def delete_contexts(self, context_keys: Iterable[str]) -> int:
        """Delete the tokens of the given contexts."""
        keys = list(context_keys)
        if not keys:
            return 0
        result = await self.session.execute(
            delete(CsrfToken).where(CsrfToken.context_key.in_(keys))  # type: ignore[attr-defined]
        )
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def delete_issued_before(self, cutoff: datetime) -> int:
        """Delete tokens issued before ``cutoff``. Returns the number removed."""
        result = await self.session.execute(
            delete(CsrfToken).where(CsrfToken.created_at < cutoff)  # type: ignore[arg-type]
        )
        return result.rowcount or 0  # type: ignore[attr-defined]

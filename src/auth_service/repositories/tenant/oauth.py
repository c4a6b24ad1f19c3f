"""Repositories for OAuth provider configs and linked identities."""

from sqlmodel import select

from src.auth_service.models.tenant import OAuthIdentity, OAuthProviderConfig
from src.auth_service.repositories.base import BaseRepository


class OAuthIdentityRepository(BaseRepository[OAuthIdentity]):
    model = OAuthIdentity

    async def get_by_provider_user(
        self, provider: str, provider_user_id: str
    ) -> OAuthIdentity | None:
        """Get the identity linked to an external account."""
        result = await self.session.execute(
            select(OAuthIdentity).where(
                OAuthIdentity.provider == provider,
                OAuthIdentity.provider_user_id == provider_user_id,
            )
        )
        return result.scalar_one_or_none()


class OAuthProviderConfigRepository(BaseRepository[OAuthProviderConfig]):
    model = OAuthProviderConfig

    async def list_enabled(self) -> list[OAuthProviderConfig]:
        result = await self.session.execute(
            select(OAuthProviderConfig).where(
                OAuthProviderConfig.enabled == True  # noqa: E712
            )
        )
        return list(result.scalars().all())

"""Repository for the Tenant registry."""

from sqlmodel import select

from src.auth_service.models.enums import TenantStatus
from src.auth_service.models.public import Tenant
from src.auth_service.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    """Read access to the tenant registry in the public schema."""

    model = Tenant

    async def get_by_domain(self, domain: str) -> Tenant | None:
        """Get tenant by the (normalized) domain it is served from."""
        result = await self.session.execute(select(Tenant).where(Tenant.domain == domain))
        return result.scalar_one_or_none()

    async def list_serving(self) -> list[Tenant]:
        """List active tenants whose partition is provisioned."""
        result = await self.session.execute(
            select(Tenant).where(
                Tenant.is_active == True,  # noqa: E712
                Tenant.status == TenantStatus.READY.value,
            )
        )
        return list(result.scalars().all())

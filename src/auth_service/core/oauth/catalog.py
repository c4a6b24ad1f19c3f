"""Per-tenant OAuth provider catalog, loaded once at startup and read-only afterwards."""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from src.auth_service.core.db import get_session
from src.auth_service.core.logging import get_logger
from src.auth_service.core.oauth.providers import ProviderSettings
from src.auth_service.models.tenant import OAuthProviderConfig
from src.auth_service.repositories import OAuthProviderConfigRepository, TenantRepository

logger = get_logger(__name__)


class ProviderCatalog:
    """Immutable ``tenant id -> {provider name -> settings}`` map."""

    def __init__(self, providers: Mapping[UUID, Mapping[str, ProviderSettings]] | None = None):
        self._providers: Mapping[UUID, Mapping[str, ProviderSettings]] = MappingProxyType(
            {
                tenant_id: MappingProxyType(dict(tenant_providers))
                for tenant_id, tenant_providers in (providers or {}).items()
            }
        )

    def get(self, tenant_id: UUID, provider: str) -> ProviderSettings | None:
        return self._providers.get(tenant_id, {}).get(provider)

    def for_tenant(self, tenant_id: UUID) -> Mapping[str, ProviderSettings]:
        return self._providers.get(tenant_id, MappingProxyType({}))

    def __len__(self) -> int:
        return len(self._providers)


def build_tenant_providers(
    tenant_id: UUID, records: Iterable[OAuthProviderConfig]
) -> dict[str, ProviderSettings]:
    """Validate config rows of one tenant. Invalid rows are logged and skipped."""
    providers: dict[str, ProviderSettings] = {}
    for record in records:
        if not record.enabled:
            continue
        try:
            settings = ProviderSettings.from_record(record)
        except PydanticValidationError as e:
            logger.error(
                "Invalid OAuth provider config skipped",
                tenant_id=str(tenant_id),
                provider=record.provider,
                errors=[err["msg"] for err in e.errors()],
            )
            continue
        providers[settings.provider.value] = settings
    return providers


async def load_provider_catalog(engine: AsyncEngine | None = None) -> ProviderCatalog:
    """Read every serving tenant's provider configs into a catalog."""
    async with get_session(engine=engine) as session:
        tenants = await TenantRepository(session).list_serving()

    providers: dict[UUID, dict[str, ProviderSettings]] = {}
    for tenant in tenants:
        try:
            async with get_session(tenant.schema_name, engine=engine) as session:
                records = await OAuthProviderConfigRepository(session).list_enabled()
        except (ValueError, SQLAlchemyError) as e:
            logger.error(
                "Failed to load OAuth providers for tenant",
                tenant_id=str(tenant.id),
                error=str(e),
            )
            continue
        providers[tenant.id] = build_tenant_providers(tenant.id, records)

    logger.info("OAuth provider catalog loaded", tenants=len(providers))
    return ProviderCatalog(providers)

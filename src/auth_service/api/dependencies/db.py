"""Database session dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth_service.api.dependencies.tenant import CurrentTenant
from src.auth_service.core.db import get_tenant_session


async def get_tenant_db_session(tenant: CurrentTenant) -> AsyncGenerator[AsyncSession]:
    """Get a database session bound to the resolved tenant's partition."""
    async with get_tenant_session(tenant.schema_name) as session:
        yield session


TenantDBSession = Annotated[AsyncSession, Depends(get_tenant_db_session)]

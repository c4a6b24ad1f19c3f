"""Tenant resolution from the request host."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth_service.core.db import get_public_session
from src.auth_service.core.logging import bind_tenant_context, get_logger
from src.auth_service.core.security import normalize_host
from src.auth_service.models import Tenant, TenantStatus
from src.auth_service.repositories import TenantRepository

logger = get_logger(__name__)


async def _get_session_for_tenant_resolution() -> AsyncGenerator[AsyncSession]:
    """Public-schema session used only to look up the tenant registry."""
    async with get_public_session() as session:
        yield session


async def get_request_tenant(
    request: Request,
    session: Annotated[AsyncSession, Depends(_get_session_for_tenant_resolution)],
) -> Tenant:
    """Resolve the tenant serving this request from its Host header.

    Resolved once per request (FastAPI caches dependencies per request) and
    never from anything the client can put in a body or query string.
    """
    domain = normalize_host(request.headers.get("host"))
    if domain is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid host")

    tenant = await TenantRepository(session).get_by_domain(domain)
    if tenant is None:
        logger.info("Request for unknown tenant domain", domain=domain)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")

    if not tenant.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Tenant is inactive")

    if tenant.status != TenantStatus.READY.value:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Tenant is {tenant.status}",
        )

    bind_tenant_context(tenant.id, tenant.domain)
    return tenant


CurrentTenant = Annotated[Tenant, Depends(get_request_tenant)]

"""Database session management."""

from collections.abc import AsyncGenerator
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.auth_service.core.db.engine import get_engine
from src.auth_service.core.security.validators import validate_schema_name
from src.auth_service.models.base import TENANT_SCHEMA


@asynccontextmanager
async def get_session(
    tenant_schema: str | None = None,
    engine: AsyncEngine | None = None,
) -> AsyncGenerator[AsyncSession]:
    """Create a database session, optionally bound to one tenant partition.

    Args:
        tenant_schema: If provided, every tenant-partition table is translated
                       to this schema for the lifetime of the session.
        engine: Optional engine override for testing.

    Note:
        Partition tables are declared against the ``tenant`` placeholder schema.
        A session without a tenant schema can only reach the public registry.
    """
    if engine is None:
        engine = get_engine()

    if tenant_schema is not None:
        # Validate schema name before it can reach any SQL
        validate_schema_name(tenant_schema)
        engine = engine.execution_options(schema_translate_map={TENANT_SCHEMA: tenant_schema})

    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session


def get_public_session() -> AbstractAsyncContextManager[AsyncSession]:
    """Session for the public tenant registry."""
    return get_session()


def get_tenant_session(tenant_schema: str) -> AbstractAsyncContextManager[AsyncSession]:
    """Session bound to a single tenant partition."""
    return get_session(tenant_schema)

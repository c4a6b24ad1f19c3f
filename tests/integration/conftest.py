"""Integration test fixtures for database and HTTP client operations.

Each test gets fresh SQLite files standing in for the PostgreSQL schemas:
the ``public`` tenant registry plus the ``tenant_alpha`` and ``tenant_beta``
partitions. Uses polyfactory for type-safe test data generation.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from src.auth_service.core.db import get_session, get_tenant_session, set_engine
from src.auth_service.core.oauth import load_provider_catalog
from src.auth_service.main import create_app
from src.auth_service.models import Tenant, User
from src.auth_service.repositories import (
    BillingCustomerRepository,
    CsrfTokenRepository,
    EmailVerificationTokenRepository,
    PasswordResetTokenRepository,
    SessionRepository,
    SubscriptionRepository,
    UserRepository,
    WebhookEventRepository,
)
from src.auth_service.services import (
    CredentialService,
    CsrfService,
    SessionService,
    SubscriptionService,
    TokenService,
)
from tests.factories import TenantFactory, UserFactory
from tests.utils import create_tables, create_test_engine

ALPHA_DOMAIN = "alpha.example.com"
BETA_DOMAIN = "beta.example.com"


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine]:
    """Create the test engine, its schemas, and install it as the app engine."""
    test_engine = create_test_engine(tmp_path)
    await create_tables(test_engine)
    set_engine(test_engine)
    yield test_engine
    set_engine(None)
    await test_engine.dispose()


async def _insert_tenant(engine: AsyncEngine, tenant: Tenant) -> Tenant:
    async with get_session(engine=engine) as session:
        session.add(tenant)
        await session.commit()
    return tenant


@pytest.fixture
async def tenant(engine: AsyncEngine) -> Tenant:
    """The tenant served at alpha.example.com (partition tenant_alpha)."""
    return await _insert_tenant(engine, TenantFactory.build(slug="alpha", domain=ALPHA_DOMAIN))


@pytest.fixture
async def other_tenant(engine: AsyncEngine) -> Tenant:
    """The tenant served at beta.example.com (partition tenant_beta)."""
    return await _insert_tenant(engine, TenantFactory.build(slug="beta", domain=BETA_DOMAIN))


@pytest.fixture
async def db_session(tenant: Tenant) -> AsyncGenerator[AsyncSession]:
    """Session bound to the alpha partition.

    IMPORTANT: The session does NOT auto-commit. Commit before making HTTP
    requests, since SQLite allows one writer at a time.
    """
    async with get_tenant_session(tenant.schema_name) as session:
        yield session


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    """A verified user with DEFAULT_TEST_PASSWORD in the alpha partition."""
    created = UserFactory.build()
    db_session.add(created)
    await db_session.commit()
    return created


# --- Services bound to the alpha partition ---


@pytest.fixture
def session_service(db_session: AsyncSession) -> SessionService:
    return SessionService(
        SessionRepository(db_session),
        UserRepository(db_session),
        CsrfTokenRepository(db_session),
        db_session,
    )


@pytest.fixture
def credential_service(db_session: AsyncSession) -> CredentialService:
    return CredentialService(UserRepository(db_session), db_session)


@pytest.fixture
def token_service(db_session: AsyncSession) -> TokenService:
    return TokenService(
        PasswordResetTokenRepository(db_session),
        EmailVerificationTokenRepository(db_session),
        db_session,
    )


@pytest.fixture
def csrf_service(db_session: AsyncSession) -> CsrfService:
    return CsrfService(CsrfTokenRepository(db_session), db_session)


@pytest.fixture
def subscription_service(db_session: AsyncSession) -> SubscriptionService:
    return SubscriptionService(
        SubscriptionRepository(db_session),
        BillingCustomerRepository(db_session),
        WebhookEventRepository(db_session),
        db_session,
    )


# --- HTTP ---


@pytest.fixture
async def app(engine: AsyncEngine, tenant: Tenant) -> FastAPI:
    """Application wired to the test engine.

    The ASGI transport does not run the lifespan, so the provider catalog is
    loaded here. Tests that add provider configs reload it.
    """
    application = create_app()
    application.state.provider_catalog = await load_provider_catalog(engine)
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTP client for the alpha tenant."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=f"https://{ALPHA_DOMAIN}") as ac:
        yield ac


@pytest.fixture
async def other_client(app: FastAPI, other_tenant: Tenant) -> AsyncGenerator[AsyncClient]:
    """HTTP client for the beta tenant, sharing the same application."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=f"https://{BETA_DOMAIN}") as ac:
        yield ac

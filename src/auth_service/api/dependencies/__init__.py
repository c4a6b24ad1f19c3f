"""FastAPI dependency injection definitions.

Re-exports all dependencies for convenience.
"""

# Auth
from src.auth_service.api.dependencies.auth import (
    BearerToken,
    CurrentSession,
    authenticate_session,
    get_bearer_token,
    get_session_context,
)

# CSRF
from src.auth_service.api.dependencies.csrf import (
    CsrfContext,
    CsrfProtected,
    require_csrf,
)

# Database
from src.auth_service.api.dependencies.db import TenantDBSession, get_tenant_db_session

# Collaborators
from src.auth_service.api.dependencies.integrations import (
    BillingClientDep,
    IdentityProviderDep,
    ProviderCatalogDep,
    get_billing_client,
    get_identity_provider,
    get_provider_catalog,
)

# Services
from src.auth_service.api.dependencies.services import (
    AccountServiceDep,
    CredentialServiceDep,
    CsrfServiceDep,
    OAuthServiceDep,
    SessionServiceDep,
    SubscriptionServiceDep,
    TokenServiceDep,
)

# Tenant
from src.auth_service.api.dependencies.tenant import CurrentTenant, get_request_tenant

__all__ = [
    # Auth
    "BearerToken",
    "CurrentSession",
    "authenticate_session",
    "get_bearer_token",
    "get_session_context",
    # CSRF
    "CsrfContext",
    "CsrfProtected",
    "require_csrf",
    # Database
    "TenantDBSession",
    "get_tenant_db_session",
    # Collaborators
    "BillingClientDep",
    "IdentityProviderDep",
    "ProviderCatalogDep",
    "get_billing_client",
    "get_identity_provider",
    "get_provider_catalog",
    # Services
    "AccountServiceDep",
    "CredentialServiceDep",
    "CsrfServiceDep",
    "OAuthServiceDep",
    "SessionServiceDep",
    "SubscriptionServiceDep",
    "TokenServiceDep",
    # Tenant
    "CurrentTenant",
    "get_request_tenant",
]

"""OAuth federation building blocks - provider catalog and HTTP client."""

from src.auth_service.core.oauth.catalog import (
    ProviderCatalog,
    build_tenant_providers,
    load_provider_catalog,
)
from src.auth_service.core.oauth.providers import (
    PROVIDER_ENDPOINTS,
    ExternalIdentity,
    HttpIdentityProvider,
    ProviderSettings,
    build_authorize_url,
)

__all__ = [
    "PROVIDER_ENDPOINTS",
    "ExternalIdentity",
    "HttpIdentityProvider",
    "ProviderCatalog",
    "ProviderSettings",
    "build_authorize_url",
    "build_tenant_providers",
    "load_provider_catalog",
]

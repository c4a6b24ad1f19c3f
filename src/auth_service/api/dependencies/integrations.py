"""External collaborators: OAuth providers and the billing provider.

Tests replace these through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Request

from src.auth_service.core.billing import StripeClient
from src.auth_service.core.config import get_settings
from src.auth_service.core.oauth import HttpIdentityProvider, ProviderCatalog


def get_provider_catalog(request: Request) -> ProviderCatalog:
    """Catalog loaded at startup. Empty if startup did not load one."""
    catalog: ProviderCatalog | None = getattr(request.app.state, "provider_catalog", None)
    return catalog if catalog is not None else ProviderCatalog()


def get_identity_provider() -> HttpIdentityProvider:
    return HttpIdentityProvider(timeout=get_settings().oauth_http_timeout_seconds)


def get_billing_client() -> StripeClient | None:
    """Stripe client, or None when billing is not configured."""
    settings = get_settings()
    if not settings.stripe_api_key:
        return None
    return StripeClient(
        api_key=settings.stripe_api_key,
        base_url=settings.stripe_api_base,
        timeout=settings.stripe_http_timeout_seconds,
    )


ProviderCatalogDep = Annotated[ProviderCatalog, Depends(get_provider_catalog)]
IdentityProviderDep = Annotated[HttpIdentityProvider, Depends(get_identity_provider)]
BillingClientDep = Annotated[StripeClient | None, Depends(get_billing_client)]

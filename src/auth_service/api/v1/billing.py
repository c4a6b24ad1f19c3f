"""Billing endpoints - checkout, customer portal and provider webhooks."""

from typing import Annotated

from fastapi import APIRouter, Header, status
from pydantic import AnyHttpUrl
from starlette.requests import Request

from src.auth_service.api.dependencies import (
    CsrfProtected,
    CurrentSession,
    CurrentTenant,
    SubscriptionServiceDep,
)
from src.auth_service.core.exceptions import ValidationError
from src.auth_service.core.rate_limit import DEFAULT_AUTH_LIMIT, limiter
from src.auth_service.models import Tenant
from src.auth_service.schemas.billing import (
    BillingRedirectResponse,
    CheckoutSessionRequest,
    PortalSessionRequest,
    WebhookResponse,
)

router = APIRouter(prefix="/auth/billing", tags=["billing"])


def _require_tenant_url(url: AnyHttpUrl, tenant: Tenant) -> str:
    """Redirect targets must stay on the tenant's own domain."""
    if url.host is None or url.host.lower() != tenant.domain:
        raise ValidationError("Redirect URL must point to this site", reason="invalid_redirect")
    return str(url)


@router.post(
    "/checkout-session",
    response_model=BillingRedirectResponse,
    dependencies=[CsrfProtected],
    responses={502: {"description": "Billing provider error"}},
)
@limiter.limit(DEFAULT_AUTH_LIMIT)
async def create_checkout_session(
    request: Request,
    checkout_data: CheckoutSessionRequest,
    context: CurrentSession,
    tenant: CurrentTenant,
    service: SubscriptionServiceDep,
) -> BillingRedirectResponse:
    """Start a hosted checkout for the signed-in user."""
    url = await service.create_checkout_session(
        context.user,
        checkout_data.price_id,
        _require_tenant_url(checkout_data.success_url, tenant),
        _require_tenant_url(checkout_data.cancel_url, tenant),
        tenant.domain,
    )
    return BillingRedirectResponse(url=url)


@router.post(
    "/portal-session",
    response_model=BillingRedirectResponse,
    dependencies=[CsrfProtected],
    responses={
        404: {"description": "User has no billing account yet"},
        502: {"description": "Billing provider error"},
    },
)
@limiter.limit(DEFAULT_AUTH_LIMIT)
async def create_portal_session(
    request: Request,
    portal_data: PortalSessionRequest,
    context: CurrentSession,
    tenant: CurrentTenant,
    service: SubscriptionServiceDep,
) -> BillingRedirectResponse:
    """Open the billing portal for the signed-in user."""
    url = await service.create_portal_session(
        context.user, _require_tenant_url(portal_data.return_url, tenant)
    )
    return BillingRedirectResponse(url=url)


@router.post(
    "/webhook",
    response_model=WebhookResponse,
    status_code=status.HTTP_200_OK,
    responses={422: {"description": "Signature or payload rejected"}},
)
async def billing_webhook(
    request: Request,
    service: SubscriptionServiceDep,
    stripe_signature: Annotated[str | None, Header()] = None,
) -> WebhookResponse:
    """Receive a billing provider event.

    Authenticated by signature rather than session or CSRF token. Duplicate
    deliveries are acknowledged without being applied again.
    """
    payload = await request.body()
    processed = await service.handle_webhook(payload, stripe_signature)
    return WebhookResponse(received=True, duplicate=not processed)

from pydantic import AnyHttpUrl, BaseModel, Field

from src.auth_service.schemas.auth import CsrfProtectedRequest


class CheckoutSessionRequest(CsrfProtectedRequest):
    price_id: str = Field(min_length=1, max_length=255)
    # Must point back at the tenant's own domain
    success_url: AnyHttpUrl
    cancel_url: AnyHttpUrl


class PortalSessionRequest(CsrfProtectedRequest):
    return_url: AnyHttpUrl


class BillingRedirectResponse(BaseModel):
    url: str


class WebhookResponse(BaseModel):
    received: bool = True
    duplicate: bool = False

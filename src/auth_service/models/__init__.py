"""Models package - re-exports all SQLModel tables and enums."""

from src.auth_service.models.base import PUBLIC_SCHEMA, TENANT_SCHEMA, utc_now
from src.auth_service.models.enums import (
    OAuthProviderName,
    SubscriptionStatus,
    TenantStatus,
    TokenKind,
)
from src.auth_service.models.public import Tenant
from src.auth_service.models.tenant import (
    AuthSession,
    BillingCustomer,
    CsrfToken,
    EmailVerificationToken,
    OAuthIdentity,
    OAuthProviderConfig,
    PasswordResetToken,
    SingleUseToken,
    Subscription,
    User,
    WebhookEvent,
)

__all__ = [
    # Base
    "PUBLIC_SCHEMA",
    "TENANT_SCHEMA",
    "utc_now",
    # Enums
    "OAuthProviderName",
    "SubscriptionStatus",
    "TenantStatus",
    "TokenKind",
    # Public schema
    "Tenant",
    # Tenant partition
    "AuthSession",
    "BillingCustomer",
    "CsrfToken",
    "EmailVerificationToken",
    "OAuthIdentity",
    "OAuthProviderConfig",
    "PasswordResetToken",
    "SingleUseToken",
    "Subscription",
    "User",
    "WebhookEvent",
]

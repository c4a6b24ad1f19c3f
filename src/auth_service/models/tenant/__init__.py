"""Tenant-partition models.

Every table here is declared against the ``tenant`` placeholder schema and is
bound to a concrete ``tenant_{slug}`` schema per database session.
"""

from src.auth_service.models.tenant.billing import BillingCustomer, Subscription, WebhookEvent
from src.auth_service.models.tenant.oauth import OAuthIdentity, OAuthProviderConfig
from src.auth_service.models.tenant.session import AuthSession
from src.auth_service.models.tenant.tokens import (
    CsrfToken,
    EmailVerificationToken,
    PasswordResetToken,
    SingleUseToken,
)
from src.auth_service.models.tenant.user import User

__all__ = [
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

"""Tenant-partition repositories."""

from src.auth_service.repositories.tenant.csrf import CsrfTokenRepository
from src.auth_service.repositories.tenant.oauth import (
    OAuthIdentityRepository,
    OAuthProviderConfigRepository,
)
from src.auth_service.repositories.tenant.session import SessionRepository
from src.auth_service.repositories.tenant.subscription import (
    BillingCustomerRepository,
    SubscriptionRepository,
    WebhookEventRepository,
)
from src.auth_service.repositories.tenant.token import (
    EmailVerificationTokenRepository,
    PasswordResetTokenRepository,
    SingleUseTokenRepository,
)
from src.auth_service.repositories.tenant.user import UserRepository

__all__ = [
    "BillingCustomerRepository",
    "CsrfTokenRepository",
    "EmailVerificationTokenRepository",
    "OAuthIdentityRepository",
    "OAuthProviderConfigRepository",
    "PasswordResetTokenRepository",
    "SessionRepository",
    "SingleUseTokenRepository",
    "SubscriptionRepository",
    "UserRepository",
    "WebhookEventRepository",
]

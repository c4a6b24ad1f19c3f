"""Repository layer - data access abstraction."""

from src.auth_service.repositories.base import BaseRepository
from src.auth_service.repositories.public import TenantRepository
from src.auth_service.repositories.tenant import (
    BillingCustomerRepository,
    CsrfTokenRepository,
    EmailVerificationTokenRepository,
    OAuthIdentityRepository,
    OAuthProviderConfigRepository,
    PasswordResetTokenRepository,
    SessionRepository,
    SingleUseTokenRepository,
    SubscriptionRepository,
    UserRepository,
    WebhookEventRepository,
)

__all__ = [
    # Base
    "BaseRepository",
    # Public schema
    "TenantRepository",
    # Tenant partition
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

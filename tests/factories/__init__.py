"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import UserFactory, TenantFactory, ...
"""

from tests.factories.base import BaseFactory, generate_uuid, utc_now
from tests.factories.oauth import OAuthProviderConfigFactory
from tests.factories.tenant import TenantFactory
from tests.factories.tokens import (
    AuthSessionFactory,
    EmailVerificationTokenFactory,
    PasswordResetTokenFactory,
)
from tests.factories.user import DEFAULT_TEST_PASSWORD, UserFactory

__all__ = [
    # Base
    "BaseFactory",
    "generate_uuid",
    "utc_now",
    # Tenant
    "TenantFactory",
    # User
    "UserFactory",
    "DEFAULT_TEST_PASSWORD",
    # Tokens and sessions
    "AuthSessionFactory",
    "EmailVerificationTokenFactory",
    "PasswordResetTokenFactory",
    # OAuth
    "OAuthProviderConfigFactory",
]

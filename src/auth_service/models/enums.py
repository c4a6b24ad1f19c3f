"""Shared enums for models."""

from enum import Enum


class TenantStatus(str, Enum):
    """Tenant provisioning status (owned by the deployment layer)."""

    PROVISIONING = "provisioning"
    READY = "ready"
    FAILED = "failed"


class TokenKind(str, Enum):
    """Kinds of single-use emailed tokens."""

    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFICATION = "email_verification"


class OAuthProviderName(str, Enum):
    """Supported OAuth providers."""

    GOOGLE = "google"
    GITHUB = "github"


class SubscriptionStatus(str, Enum):
    """Locally mirrored subscription status."""

    FREE = "free"
    STANDARD = "standard"
    CANCELED = "canceled"
    PAST_DUE = "past_due"

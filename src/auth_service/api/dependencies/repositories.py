"""Repository factory dependencies. All bound to the tenant partition."""

from typing import Annotated

from fastapi import Depends

from src.auth_service.api.dependencies.db import TenantDBSession
from src.auth_service.repositories import (
    BillingCustomerRepository,
    CsrfTokenRepository,
    EmailVerificationTokenRepository,
    OAuthIdentityRepository,
    PasswordResetTokenRepository,
    SessionRepository,
    SubscriptionRepository,
    UserRepository,
    WebhookEventRepository,
)


def get_user_repository(session: TenantDBSession) -> UserRepository:
    return UserRepository(session)


def get_session_repository(session: TenantDBSession) -> SessionRepository:
    return SessionRepository(session)


def get_password_reset_token_repository(session: TenantDBSession) -> PasswordResetTokenRepository:
    return PasswordResetTokenRepository(session)


def get_email_verification_token_repository(
    session: TenantDBSession,
) -> EmailVerificationTokenRepository:
    return EmailVerificationTokenRepository(session)


def get_csrf_token_repository(session: TenantDBSession) -> CsrfTokenRepository:
    return CsrfTokenRepository(session)


def get_oauth_identity_repository(session: TenantDBSession) -> OAuthIdentityRepository:
    return OAuthIdentityRepository(session)


def get_subscription_repository(session: TenantDBSession) -> SubscriptionRepository:
    return SubscriptionRepository(session)


def get_billing_customer_repository(session: TenantDBSession) -> BillingCustomerRepository:
    return BillingCustomerRepository(session)


def get_webhook_event_repository(session: TenantDBSession) -> WebhookEventRepository:
    return WebhookEventRepository(session)


UserRepo = Annotated[UserRepository, Depends(get_user_repository)]
SessionRepo = Annotated[SessionRepository, Depends(get_session_repository)]
PasswordResetTokenRepo = Annotated[
    PasswordResetTokenRepository, Depends(get_password_reset_token_repository)
]
EmailVerificationTokenRepo = Annotated[
    EmailVerificationTokenRepository, Depends(get_email_verification_token_repository)
]
CsrfTokenRepo = Annotated[CsrfTokenRepository, Depends(get_csrf_token_repository)]
OAuthIdentityRepo = Annotated[OAuthIdentityRepository, Depends(get_oauth_identity_repository)]
SubscriptionRepo = Annotated[SubscriptionRepository, Depends(get_subscription_repository)]
BillingCustomerRepo = Annotated[BillingCustomerRepository, Depends(get_billing_customer_repository)]
WebhookEventRepo = Annotated[WebhookEventRepository, Depends(get_webhook_event_repository)]

"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.auth_service.api.dependencies.db import TenantDBSession
from src.auth_service.api.dependencies.integrations import (
    BillingClientDep,
    IdentityProviderDep,
    ProviderCatalogDep,
)
from src.auth_service.api.dependencies.repositories import (
    BillingCustomerRepo,
    CsrfTokenRepo,
    EmailVerificationTokenRepo,
    OAuthIdentityRepo,
    PasswordResetTokenRepo,
    SessionRepo,
    SubscriptionRepo,
    UserRepo,
    WebhookEventRepo,
)
from src.auth_service.api.dependencies.tenant import CurrentTenant
from src.auth_service.services import (
    AccountService,
    CredentialService,
    CsrfService,
    OAuthService,
    SessionService,
    SubscriptionService,
    TokenService,
)


def get_session_service(
    session_repo: SessionRepo,
    user_repo: UserRepo,
    csrf_repo: CsrfTokenRepo,
    session: TenantDBSession,
) -> SessionService:
    return SessionService(session_repo, user_repo, csrf_repo, session)


def get_credential_service(user_repo: UserRepo, session: TenantDBSession) -> CredentialService:
    return CredentialService(user_repo, session)


def get_token_service(
    reset_token_repo: PasswordResetTokenRepo,
    verification_token_repo: EmailVerificationTokenRepo,
    session: TenantDBSession,
) -> TokenService:
    return TokenService(reset_token_repo, verification_token_repo, session)


def get_csrf_service(csrf_repo: CsrfTokenRepo, session: TenantDBSession) -> CsrfService:
    return CsrfService(csrf_repo, session)


def get_subscription_service(
    subscription_repo: SubscriptionRepo,
    customer_repo: BillingCustomerRepo,
    webhook_event_repo: WebhookEventRepo,
    session: TenantDBSession,
    billing_client: BillingClientDep,
) -> SubscriptionService:
    return SubscriptionService(
        subscription_repo, customer_repo, webhook_event_repo, session, billing_client
    )


SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]
CredentialServiceDep = Annotated[CredentialService, Depends(get_credential_service)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
CsrfServiceDep = Annotated[CsrfService, Depends(get_csrf_service)]
SubscriptionServiceDep = Annotated[SubscriptionService, Depends(get_subscription_service)]


def get_account_service(
    user_repo: UserRepo,
    session_repo: SessionRepo,
    credential_service: CredentialServiceDep,
    session_service: SessionServiceDep,
    token_service: TokenServiceDep,
    subscription_service: SubscriptionServiceDep,
    session: TenantDBSession,
    tenant: CurrentTenant,
) -> AccountService:
    """Get account service wired to the resolved tenant."""
    return AccountService(
        user_repo,
        session_repo,
        credential_service,
        session_service,
        token_service,
        subscription_service,
        session,
        tenant,
    )


def get_oauth_service(
    user_repo: UserRepo,
    identity_repo: OAuthIdentityRepo,
    session_service: SessionServiceDep,
    subscription_service: SubscriptionServiceDep,
    session: TenantDBSession,
    catalog: ProviderCatalogDep,
    identity_provider: IdentityProviderDep,
    tenant: CurrentTenant,
) -> OAuthService:
    """Get OAuth service with this tenant's providers."""
    return OAuthService(
        user_repo,
        identity_repo,
        session_service,
        subscription_service,
        session,
        catalog,
        identity_provider,
        tenant.id,
    )


AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
OAuthServiceDep = Annotated[OAuthService, Depends(get_oauth_service)]

from src.auth_service.schemas.auth import (
    CsrfProtectedRequest,
    CsrfTokenResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordResetConfirmRequest,
    PasswordResetRequest,
    ResendVerificationRequest,
    SessionResponse,
    SignupRequest,
    SignupResponse,
    VerifyEmailRequest,
    VerifyEmailResponse,
)
from src.auth_service.schemas.billing import (
    BillingRedirectResponse,
    CheckoutSessionRequest,
    PortalSessionRequest,
    WebhookResponse,
)
from src.auth_service.schemas.oauth import OAuthCallbackResponse
from src.auth_service.schemas.user import UserRead

__all__ = [
    # Auth
    "CsrfProtectedRequest",
    "CsrfTokenResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "PasswordResetConfirmRequest",
    "PasswordResetRequest",
    "ResendVerificationRequest",
    "SessionResponse",
    "SignupRequest",
    "SignupResponse",
    "VerifyEmailRequest",
    "VerifyEmailResponse",
    # Billing
    "BillingRedirectResponse",
    "CheckoutSessionRequest",
    "PortalSessionRequest",
    "WebhookResponse",
    # OAuth
    "OAuthCallbackResponse",
    # User
    "UserRead",
]

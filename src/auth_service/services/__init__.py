from src.auth_service.services.account_service import AccountService, SignupResult
from src.auth_service.services.credential_service import CredentialService
from src.auth_service.services.csrf_service import CsrfService
from src.auth_service.services.oauth_service import AuthorizationRedirect, OAuthService
from src.auth_service.services.session_service import SessionContext, SessionService
from src.auth_service.services.subscription_service import SubscriptionService
from src.auth_service.services.token_service import TokenService

__all__ = [
    "AccountService",
    "AuthorizationRedirect",
    "CredentialService",
    "CsrfService",
    "OAuthService",
    "SessionContext",
    "SessionService",
    "SignupResult",
    "SubscriptionService",
    "TokenService",
]

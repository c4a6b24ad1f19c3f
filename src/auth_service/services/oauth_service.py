"""OAuth federation service - authorize redirect, callback and identity linking."""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth_service.core.config import get_settings
from src.auth_service.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from src.auth_service.core.logging import get_logger
from src.auth_service.core.oauth import (
    ExternalIdentity,
    HttpIdentityProvider,
    ProviderCatalog,
    ProviderSettings,
    build_authorize_url,
)
from src.auth_service.core.security import (
    constant_time_equals,
    create_state_token,
    decode_state_token,
    generate_token,
    normalize_email,
)
from src.auth_service.models.base import utc_now
from src.auth_service.models.tenant import OAuthIdentity, User
from src.auth_service.repositories import OAuthIdentityRepository, UserRepository
from src.auth_service.services.session_service import SessionService
from src.auth_service.services.subscription_service import SubscriptionService

logger = get_logger(__name__)


@dataclass(frozen=True)
class AuthorizationRedirect:
    """Consent URL plus the nonce the browser must present on callback."""

    url: str
    nonce: str


class OAuthService:
    """Signs users in through the providers configured for one tenant."""

    def __init__(
        self,
        user_repo: UserRepository,
        identity_repo: OAuthIdentityRepository,
        session_service: SessionService,
        subscription_service: SubscriptionService,
        session: AsyncSession,
        catalog: ProviderCatalog,
        identity_provider: HttpIdentityProvider,
        tenant_id: UUID,
    ):
        self.user_repo = user_repo
        self.identity_repo = identity_repo
        self.session_service = session_service
        self.subscription_service = subscription_service
        self.session = session
        self.catalog = catalog
        self.identity_provider = identity_provider
        self.tenant_id = tenant_id

    def _provider_settings(self, provider: str) -> ProviderSettings:
        settings = self.catalog.get(self.tenant_id, provider)
        if settings is None:
            raise NotFoundError("OAuth provider not available", reason="provider_not_configured")
        return settings

    async def authorize(self, provider: str) -> AuthorizationRedirect:
        """Build the consent redirect with a signed state bound to this tenant."""
        provider_settings = self._provider_settings(provider)
        nonce = generate_token()
        state = create_state_token(
            {"tenant_id": str(self.tenant_id), "provider": provider, "nonce": nonce},
            get_settings().oauth_state_expire_minutes,
        )
        url = await build_authorize_url(provider_settings, state)
        return AuthorizationRedirect(url=url, nonce=nonce)

    async def callback(
        self, provider: str, code: str, state: str, nonce: str | None
    ) -> tuple[User, str]:
        """Finish a sign-in. Returns the user and a new session token.

        Raises:
            NotFoundError: Provider not configured for this tenant
            AuthenticationError: State missing, forged, expired or from another flow
            UpstreamError: The provider rejected the code or could not be reached
            ConflictError: Linking kept colliding with concurrent sign-ins
        """
        provider_settings = self._provider_settings(provider)

        claims = decode_state_token(state)
        if (
            claims is None
            or claims.get("tenant_id") != str(self.tenant_id)
            or claims.get("provider") != provider
            or not nonce
            or not constant_time_equals(str(claims.get("nonce", "")), nonce)
        ):
            logger.warning("OAuth state rejected", provider=provider)
            raise AuthenticationError("Invalid OAuth state", reason="invalid_state")

        identity = await self.identity_provider.exchange_code(provider_settings, code)
        user = await self._resolve_user(identity)
        token = await self.session_service.create(user.id)
        return user, token

    async def _resolve_user(self, identity: ExternalIdentity) -> User:
        try:
            return await self._find_or_create_user(identity)
        except IntegrityError:
            # Another request created the user or identity first
            logger.info(
                "Concurrent OAuth sign-in, resolving again", provider=identity.provider.value
            )

        try:
            return await self._find_or_create_user(identity)
        except IntegrityError as e:
            raise ConflictError(
                "Account could not be linked, please try again", reason="identity_conflict"
            ) from e

    async def _find_or_create_user(self, identity: ExternalIdentity) -> User:
        provider = identity.provider.value

        linked = await self.identity_repo.get_by_provider_user(provider, identity.provider_user_id)
        if linked is not None:
            user = await self.user_repo.get_by_id(linked.user_id)
            if user is not None:
                return user

        email = normalize_email(identity.email)
        now = utc_now()
        user = await self.user_repo.get_by_email(email)

        try:
            if user is not None:
                # Linked either way; only a provider-verified email marks the account verified
                if identity.email_verified and not user.email_verified:
                    user.email_verified = True
                    user.email_verified_at = now
                    user.updated_at = now
            else:
                user = User(
                    email=email,
                    password_hash=None,
                    first_name=identity.first_name,
                    last_name=identity.last_name,
                    email_verified=identity.email_verified,
                    email_verified_at=now if identity.email_verified else None,
                )
                self.user_repo.add(user)
                await self.session.flush()
                self.subscription_service.create_initial_subscription(user.id)
                logger.info("User created from OAuth identity", user_id=str(user.id))

            self.identity_repo.add(
                OAuthIdentity(
                    provider=provider,
                    provider_user_id=identity.provider_user_id,
                    user_id=user.id,
                )
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("OAuth identity linked", user_id=str(user.id), provider=provider)
        return user

"""Account service - signup, login, logout, password reset and email verification.

Composes the credential, session, token and subscription services for the
public auth endpoints of one tenant.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth_service.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)
from src.auth_service.core.logging import get_logger
from src.auth_service.core.notifications import (
    send_password_reset_email,
    send_verification_email,
)
from src.auth_service.core.security import normalize_email
from src.auth_service.models.enums import TokenKind
from src.auth_service.models.public import Tenant
from src.auth_service.models.tenant import User
from src.auth_service.repositories import SessionRepository, UserRepository
from src.auth_service.services.credential_service import CredentialService
from src.auth_service.services.session_service import SessionService
from src.auth_service.services.subscription_service import SubscriptionService
from src.auth_service.services.token_service import TokenService

logger = get_logger(__name__)


@dataclass(frozen=True)
class SignupResult:
    user: User
    session_token: str
    email_sent: bool


class AccountService:
    """Account lifecycle of a single tenant.

    Notifier failures never undo committed state; they only show up as
    ``email_sent=False`` or a log line.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        session_repo: SessionRepository,
        credential_service: CredentialService,
        session_service: SessionService,
        token_service: TokenService,
        subscription_service: SubscriptionService,
        session: AsyncSession,
        tenant: Tenant,
    ):
        self.user_repo = user_repo
        self.session_repo = session_repo
        self.credential_service = credential_service
        self.session_service = session_service
        self.token_service = token_service
        self.subscription_service = subscription_service
        self.session = session
        self.tenant = tenant

    async def signup(
        self, email: str, password: str, first_name: str = "", last_name: str = ""
    ) -> SignupResult:
        """Create an account with a free subscription and sign it in.

        Raises:
            ValidationError: Password policy not met
            ConflictError: Email already registered in this tenant
        """
        email = normalize_email(email)
        self.credential_service.validate_password_strength(
            password, [email, first_name, last_name]
        )

        if await self.user_repo.get_by_email(email) is not None:
            raise ConflictError("Email already registered", reason="email_exists")

        user = User(
            email=email,
            password_hash=self.credential_service.hash_password(password),
            first_name=first_name,
            last_name=last_name,
        )
        try:
            self.user_repo.add(user)
            await self.session.flush()
            self.subscription_service.create_initial_subscription(user.id)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("Email already registered", reason="email_exists") from e
        except Exception:
            await self.session.rollback()
            raise

        logger.info("User signed up", user_id=str(user.id))

        verification_token = await self.token_service.issue(user.id, TokenKind.EMAIL_VERIFICATION)
        session_token = await self.session_service.create(user.id)
        email_sent = await send_verification_email(
            user.email, verification_token, user.display_name, self.tenant.domain
        )
        if not email_sent:
            logger.warning("Verification email not sent after signup", user_id=str(user.id))

        return SignupResult(user=user, session_token=session_token, email_sent=email_sent)

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """Verify credentials and open a session."""
        user = await self.credential_service.verify(email, password)
        token = await self.session_service.create(user.id)
        logger.info("User logged in", user_id=str(user.id))
        return user, token

    async def logout(self, token: str) -> None:
        """Revoke the session behind a token. Unusable tokens are ignored."""
        try:
            context = await self.session_service.validate(token)
        except (ValidationError, NotFoundError, AuthenticationError, ExpiredError):
            return
        await self.session_service.revoke(context.session.id)

    async def request_password_reset(self, email: str) -> None:
        """Email a reset link if the account exists. Same outcome either way."""
        user = await self.user_repo.get_by_email(normalize_email(email))
        if user is None:
            logger.info("Password reset requested for unknown account")
            return

        token = await self.token_service.issue(user.id, TokenKind.PASSWORD_RESET)
        if not await send_password_reset_email(
            user.email, token, user.display_name, self.tenant.domain
        ):
            logger.warning("Password reset email not sent", user_id=str(user.id))

    async def confirm_password_reset(self, token: str, new_password: str) -> UUID:
        """Set a new password, clear any lockout and sign out every session.

        The password policy is checked before the token is spent.
        """
        self.credential_service.validate_password_strength(new_password)
        password_hash = self.credential_service.hash_password(new_password)

        async def apply_reset(user_id: UUID) -> None:
            await self.user_repo.set_password(user_id, password_hash)
            await self.session_service.discard_all(user_id)

        user_id = await self.token_service.consume(token, TokenKind.PASSWORD_RESET, apply_reset)
        logger.info("Password reset completed", user_id=str(user_id))
        return user_id

    async def verify_email(self, token: str) -> User:
        user_id = await self.token_service.consume(
            token, TokenKind.EMAIL_VERIFICATION, self.user_repo.mark_email_verified
        )
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        await self.user_repo.refresh(user)
        logger.info("Email verified", user_id=str(user_id))
        return user

    async def resend_verification(self, email: str) -> None:
        """Send a fresh verification link. Same outcome whatever the account state."""
        user = await self.user_repo.get_by_email(normalize_email(email))
        if user is None or user.email_verified:
            logger.info("Verification resend skipped")
            return

        token = await self.token_service.issue(user.id, TokenKind.EMAIL_VERIFICATION)
        if not await send_verification_email(
            user.email, token, user.display_name, self.tenant.domain
        ):
            logger.warning("Verification email not sent", user_id=str(user.id))

"""Session service - split-token sessions (``id.secret``)."""

from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.auth_service.core.config import get_settings
from src.auth_service.core.exceptions import (
    AuthenticationError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)
from src.auth_service.core.logging import get_logger
from src.auth_service.core.security import (
    SECURE_ALPHABET,
    SECURE_STRING_LENGTH,
    constant_time_equals,
    generate_secure_random_string,
    hash_token,
)
from src.auth_service.models.base import utc_now
from src.auth_service.models.tenant import AuthSession, User
from src.auth_service.repositories import CsrfTokenRepository, SessionRepository, UserRepository
from src.auth_service.services.csrf_service import session_context_key

logger = get_logger(__name__)

_ALPHABET = frozenset(SECURE_ALPHABET)


@dataclass(frozen=True)
class SessionContext:
    """A validated session and the user it belongs to."""

    session: AuthSession
    user: User


def split_session_token(token: str) -> tuple[str, str]:
    """Split a session token into (id, secret).

    Raises:
        ValidationError: If the token does not have the ``id.secret`` shape
    """
    parts = token.split(".") if token else []
    if len(parts) != 2 or not all(
        len(part) == SECURE_STRING_LENGTH and set(part) <= _ALPHABET for part in parts
    ):
        raise ValidationError("Malformed session token", reason="invalid_format")
    return parts[0], parts[1]


class SessionService:
    """Issues, validates and revokes sessions.

    The secret half of a token is only ever stored as its SHA-256, so a leaked
    sessions table cannot be replayed. Sessions past their TTL are deleted
    whenever a new one is created, and removing a session also removes the
    CSRF token bound to it.
    """

    def __init__(
        self,
        session_repo: SessionRepository,
        user_repo: UserRepository,
        csrf_repo: CsrfTokenRepository,
        session: AsyncSession,
    ):
        self.session_repo = session_repo
        self.user_repo = user_repo
        self.csrf_repo = csrf_repo
        self.session = session

    def _add_session(self, user_id: UUID) -> tuple[str, str]:
        session_id = generate_secure_random_string()
        secret = generate_secure_random_string()
        self.session_repo.add(
            AuthSession(
                id=session_id,
                user_id=user_id,
                secret_hash=hash_token(secret),
                created_at=utc_now(),
            )
        )
        return session_id, f"{session_id}.{secret}"

    async def create(self, user_id: UUID) -> str:
        """Create a session for a user and return its token."""
        try:
            await self.session_repo.delete_created_before(utc_now() - session_ttl())
            session_id, token = self._add_session(user_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Session created", user_id=str(user_id), session_id=session_id)
        return token

    async def validate(self, token: str) -> SessionContext:
        """Resolve a session token.

        Checks run in a fixed order so every failure has one reason:
        invalid_format, session_not_found, invalid_secret, expired.

        Raises:
            ValidationError: Malformed token
            NotFoundError: Unknown session, or its user no longer exists
            AuthenticationError: Secret does not match
            ExpiredError: Session older than the TTL (it is deleted)
        """
        session_id, secret = split_session_token(token)

        auth_session = await self.session_repo.get_by_id(session_id)
        if auth_session is None:
            raise NotFoundError("Session not found", reason="session_not_found")
        user = await self.user_repo.get_by_id(auth_session.user_id)
        if user is None:
            raise NotFoundError("Session not found", reason="session_not_found")

        if not constant_time_equals(hash_token(secret), auth_session.secret_hash):
            logger.warning("Session secret mismatch", session_id=session_id)
            raise AuthenticationError("Invalid session", reason="invalid_secret")

        if utc_now() - auth_session.created_at > session_ttl():
            try:
                # Keyed by created_at so a concurrent re-issue under the same id survives
                await self.session_repo.delete_if_unchanged(session_id, auth_session.created_at)
                await self.csrf_repo.delete_contexts([session_context_key(session_id)])
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise
            raise ExpiredError("Session expired", reason="expired")

        return SessionContext(session=auth_session, user=user)

    async def rotate(self, context: SessionContext) -> str:
        """Replace a validated session with a fresh one for the same user.

        The old token stops working and its CSRF token is dropped.

        Raises:
            NotFoundError: The session was revoked or rotated concurrently
        """
        old_id = context.session.id
        old_created_at = context.session.created_at
        user_id = context.session.user_id
        try:
            if not await self.session_repo.delete_if_unchanged(old_id, old_created_at):
                raise NotFoundError("Session not found", reason="session_not_found")
            await self.csrf_repo.delete_contexts([session_context_key(old_id)])
            session_id, token = self._add_session(user_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Session rotated", user_id=str(user_id), session_id=session_id)
        return token

    async def revoke(self, session_id: str) -> None:
        """Delete a session. Revoking an unknown session is a no-op."""
        try:
            await self.session_repo.delete_by_id(session_id)
            await self.csrf_repo.delete_contexts([session_context_key(session_id)])
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        logger.info("Session revoked", session_id=session_id)

    async def discard_all(self, user_id: UUID) -> int:
        """Delete a user's sessions and their CSRF tokens without committing."""
        session_ids = await self.session_repo.list_ids_for_user(user_id)
        await self.csrf_repo.delete_contexts(session_context_key(sid) for sid in session_ids)
        return await self.session_repo.delete_all_for_user(user_id)

    async def revoke_all(self, user_id: UUID) -> int:
        """Delete every session of a user. Returns the number removed."""
        try:
            count = await self.discard_all(user_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        logger.info("All sessions revoked", user_id=str(user_id), count=count)
        return count


def session_ttl() -> timedelta:
    return timedelta(hours=get_settings().session_ttl_hours)

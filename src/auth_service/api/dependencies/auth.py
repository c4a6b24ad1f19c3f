"""Session authentication dependencies."""

from typing import Annotated

from fastapi import Depends, Header

from src.auth_service.api.dependencies.services import SessionServiceDep
from src.auth_service.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from src.auth_service.core.logging import bind_user_context
from src.auth_service.services import SessionContext, SessionService


def get_bearer_token(authorization: Annotated[str | None, Header()] = None) -> str | None:
    """Session token from ``Authorization: Bearer id.secret``, if present."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


BearerToken = Annotated[str | None, Depends(get_bearer_token)]


async def authenticate_session(token: str, service: SessionService) -> SessionContext:
    """Validate a session token, reporting every failure as 401.

    The body ``code`` keeps the precise reason.
    """
    try:
        return await service.validate(token)
    except (ValidationError, NotFoundError) as e:
        raise AuthenticationError(e.message, reason=e.reason) from e


async def get_session_context(token: BearerToken, service: SessionServiceDep) -> SessionContext:
    """Validate the bearer session and bind the user to the log context."""
    if token is None:
        raise AuthenticationError(
            "Missing or invalid authorization header", reason="missing_token"
        )
    context = await authenticate_session(token, service)

    bind_user_context(context.user.id, context.user.email)
    return context


CurrentSession = Annotated[SessionContext, Depends(get_session_context)]

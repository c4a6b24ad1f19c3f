"""CSRF gate for state-changing routes."""

from typing import Annotated, Any

from fastapi import Depends, Request

from src.auth_service.api.dependencies.auth import BearerToken
from src.auth_service.api.dependencies.services import CsrfServiceDep
from src.auth_service.core.config import get_settings
from src.auth_service.core.exceptions import ValidationError
from src.auth_service.services.csrf_service import anonymous_context_key, session_context_key
from src.auth_service.services.session_service import split_session_token

CSRF_HEADER = "X-CSRF-Token"
CSRF_BODY_FIELD = "csrf_token"
MAX_ANONYMOUS_CONTEXT_LENGTH = 48


def read_anonymous_context(request: Request) -> str | None:
    """Anonymous context cookie value, ignoring anything malformed."""
    value = request.cookies.get(get_settings().csrf_cookie_name)
    if value and len(value) <= MAX_ANONYMOUS_CONTEXT_LENGTH and value.isascii() and value.isalnum():
        return value
    return None


def get_csrf_context(request: Request, token: BearerToken) -> str | None:
    """Context a CSRF token is bound to.

    The session id when a session token is presented, otherwise the anonymous
    context cookie. The session itself is validated by the route, not here.
    """
    if token is not None:
        try:
            session_id, _ = split_session_token(token)
        except ValidationError:
            return None
        return session_context_key(session_id)

    cookie = read_anonymous_context(request)
    return anonymous_context_key(cookie) if cookie else None


CsrfContext = Annotated[str | None, Depends(get_csrf_context)]


async def _token_from_body(request: Request) -> str | None:
    if "application/json" not in request.headers.get("content-type", ""):
        return None
    try:
        body: Any = await request.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get(CSRF_BODY_FIELD), str):
        return body[CSRF_BODY_FIELD]  # type: ignore[no-any-return]
    return None


async def require_csrf(request: Request, context: CsrfContext, service: CsrfServiceDep) -> None:
    """Reject the request unless it carries the CSRF token of its context."""
    if not get_settings().csrf_enabled:
        return
    token = request.headers.get(CSRF_HEADER) or await _token_from_body(request)
    await service.validate(context, token)


CsrfProtected = Depends(require_csrf)

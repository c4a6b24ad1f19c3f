"""OAuth sign-in endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status
from fastapi.responses import RedirectResponse
from starlette.requests import Request
from starlette.responses import Response

from src.auth_service.api.dependencies import OAuthServiceDep
from src.auth_service.core.config import get_settings
from src.auth_service.core.exceptions import UpstreamError, ValidationError
from src.auth_service.core.logging import get_logger
from src.auth_service.core.rate_limit import DEFAULT_AUTH_LIMIT, limiter
from src.auth_service.schemas.oauth import OAuthCallbackResponse
from src.auth_service.schemas.user import UserRead

logger = get_logger(__name__)

router = APIRouter(prefix="/auth/oauth", tags=["oauth"])


@router.get(
    "/{provider}/authorize",
    status_code=status.HTTP_302_FOUND,
    response_class=RedirectResponse,
    responses={404: {"description": "Provider not configured for this site"}},
)
@limiter.limit(DEFAULT_AUTH_LIMIT)
async def authorize(request: Request, provider: str, service: OAuthServiceDep) -> Response:
    """Redirect to the provider's consent page."""
    settings = get_settings()
    redirect = await service.authorize(provider)

    response = RedirectResponse(redirect.url, status_code=status.HTTP_302_FOUND)
    # Lax, so the cookie survives the top-level redirect back from the provider
    response.set_cookie(
        settings.oauth_state_cookie_name,
        redirect.nonce,
        max_age=settings.oauth_state_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/auth/oauth",
    )
    return response


@router.get(
    "/{provider}/callback",
    response_model=OAuthCallbackResponse,
    responses={
        401: {"description": "Invalid or expired state"},
        404: {"description": "Provider not configured for this site"},
        409: {"description": "Linking collided with concurrent sign-ins"},
        502: {"description": "Provider rejected the code or was unreachable"},
    },
)
@limiter.limit(DEFAULT_AUTH_LIMIT)
async def callback(
    request: Request,
    response: Response,
    provider: str,
    service: OAuthServiceDep,
    code: Annotated[str | None, Query(max_length=2048)] = None,
    state: Annotated[str | None, Query(max_length=4096)] = None,
    error: Annotated[str | None, Query(max_length=256)] = None,
) -> OAuthCallbackResponse:
    """Finish the provider sign-in and issue a session token."""
    settings = get_settings()

    if error:
        logger.info("OAuth provider returned an error", provider=provider, error=error)
        raise UpstreamError("Sign-in was cancelled or denied", reason="oauth_denied")
    if not code or not state:
        raise ValidationError("Missing code or state", reason="invalid_callback")

    user, token = await service.callback(
        provider, code, state, request.cookies.get(settings.oauth_state_cookie_name)
    )

    response.delete_cookie(settings.oauth_state_cookie_name, path="/auth/oauth")
    return OAuthCallbackResponse(
        user=UserRead.model_validate(user), session_token=token, provider=provider
    )

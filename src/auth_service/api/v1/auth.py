"""Account and session endpoints."""

from datetime import timedelta

from fastapi import APIRouter, Response, status
from starlette.requests import Request

from src.auth_service.api.dependencies import (
    AccountServiceDep,
    BearerToken,
    CsrfProtected,
    CsrfServiceDep,
    CurrentSession,
    SessionServiceDep,
    authenticate_session,
)
from src.auth_service.api.dependencies.csrf import read_anonymous_context
from src.auth_service.core.config import get_settings
from src.auth_service.core.exceptions import AuthenticationError, NotFoundError
from src.auth_service.core.rate_limit import (
    DEFAULT_AUTH_LIMIT,
    LOGIN_LIMIT,
    SESSION_LIMIT,
    SIGNUP_LIMIT,
    limiter,
)
from src.auth_service.core.security import generate_secure_random_string
from src.auth_service.schemas.auth import (
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
from src.auth_service.schemas.user import UserRead
from src.auth_service.services.csrf_service import anonymous_context_key, session_context_key

router = APIRouter(prefix="/auth", tags=["auth"])

PASSWORD_RESET_MESSAGE = "If an account exists for this email, a reset link has been sent"
RESEND_VERIFICATION_MESSAGE = (
    "If an unverified account exists for this email, a verification link has been sent"
)


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[CsrfProtected],
    responses={
        409: {"description": "Email already registered"},
        422: {"description": "Invalid input or weak password"},
    },
)
@limiter.limit(SIGNUP_LIMIT)
async def signup(
    request: Request, signup_data: SignupRequest, service: AccountServiceDep
) -> SignupResponse:
    """Create an account and sign it in.

    A verification email is attempted; ``email_sent`` reports whether the
    notifier accepted it. The account exists either way.
    """
    result = await service.signup(
        signup_data.email,
        signup_data.password,
        signup_data.first_name,
        signup_data.last_name,
    )
    return SignupResponse(
        user=UserRead.model_validate(result.user),
        session_token=result.session_token,
        email_sent=result.email_sent,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[CsrfProtected],
    responses={
        200: {
            "description": "Successful authentication",
            "content": {
                "application/json": {
                    "example": {
                        "session_token": "k3h9...x2a.p7q4...m8c",
                        "token_type": "bearer",
                    }
                }
            },
        },
        401: {"description": "Invalid credentials or account locked"},
    },
)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request, login_data: LoginRequest, service: AccountServiceDep
) -> LoginResponse:
    """Exchange email and password for a session token."""
    user, token = await service.login(login_data.email, login_data.password)
    return LoginResponse(user=UserRead.model_validate(user), session_token=token)


@router.post("/logout", response_model=MessageResponse, dependencies=[CsrfProtected])
@limiter.limit(DEFAULT_AUTH_LIMIT)
async def logout(
    request: Request, token: BearerToken, service: AccountServiceDep
) -> MessageResponse:
    """Revoke the presented session. Unknown or expired sessions are ignored."""
    if token is not None:
        await service.logout(token)
    return MessageResponse(message="Logged out")


@router.get(
    "/session",
    response_model=SessionResponse,
    responses={401: {"description": "Missing, malformed, unknown or expired session"}},
)
@limiter.limit(SESSION_LIMIT)
async def read_session(request: Request, context: CurrentSession) -> SessionResponse:
    """Validate the bearer session and describe it."""
    ttl = timedelta(hours=get_settings().session_ttl_hours)
    return SessionResponse(
        user=UserRead.model_validate(context.user),
        session_id=context.session.id,
        created_at=context.session.created_at,
        expires_at=context.session.created_at + ttl,
    )


@router.post(
    "/refresh",
    response_model=LoginResponse,
    dependencies=[CsrfProtected],
    responses={401: {"description": "Missing, malformed, unknown or expired session"}},
)
@limiter.limit(SESSION_LIMIT)
async def refresh_session(
    request: Request, context: CurrentSession, session_service: SessionServiceDep
) -> LoginResponse:
    """Swap the bearer session for a new one with a fresh lifetime.

    The presented token stops working. Fetch a new CSRF token for the new session.
    """
    try:
        token = await session_service.rotate(context)
    except NotFoundError as e:
        raise AuthenticationError(e.message, reason=e.reason) from e
    return LoginResponse(user=UserRead.model_validate(context.user), session_token=token)


@router.get("/csrf-token", response_model=CsrfTokenResponse)
@limiter.limit(DEFAULT_AUTH_LIMIT)
async def issue_csrf_token(
    request: Request,
    response: Response,
    token: BearerToken,
    session_service: SessionServiceDep,
    csrf_service: CsrfServiceDep,
) -> CsrfTokenResponse:
    """Issue a CSRF token for the caller's context.

    Signed-in callers get a token bound to their session. Anonymous callers get
    one bound to a context cookie, which is set here on first use.
    """
    settings = get_settings()

    if token is not None:
        context = await authenticate_session(token, session_service)
        context_key = session_context_key(context.session.id)
    else:
        anonymous = read_anonymous_context(request)
        if anonymous is None:
            anonymous = generate_secure_random_string()
            response.set_cookie(
                settings.csrf_cookie_name,
                anonymous,
                httponly=True,
                secure=settings.cookie_secure,
                samesite="strict",
                path="/auth",
            )
        context_key = anonymous_context_key(anonymous)

    csrf_token = await csrf_service.issue(context_key)
    return CsrfTokenResponse(
        csrf_token=csrf_token, expires_in=settings.csrf_token_ttl_minutes * 60
    )


@router.post(
    "/password-reset",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[CsrfProtected],
)
@limiter.limit(DEFAULT_AUTH_LIMIT)
async def request_password_reset(
    request: Request, reset_data: PasswordResetRequest, service: AccountServiceDep
) -> MessageResponse:
    """Send a reset link. The response never reveals whether the account exists."""
    await service.request_password_reset(reset_data.email)
    return MessageResponse(message=PASSWORD_RESET_MESSAGE)


@router.post(
    "/password-reset/confirm",
    response_model=MessageResponse,
    dependencies=[CsrfProtected],
    responses={
        404: {"description": "Unknown token"},
        409: {"description": "Token already used"},
        410: {"description": "Token expired"},
    },
)
@limiter.limit(DEFAULT_AUTH_LIMIT)
async def confirm_password_reset(
    request: Request, confirm_data: PasswordResetConfirmRequest, service: AccountServiceDep
) -> MessageResponse:
    """Set a new password. Every existing session of the account is revoked."""
    await service.confirm_password_reset(confirm_data.token, confirm_data.new_password)
    return MessageResponse(message="Password has been reset")


@router.post(
    "/email/verify",
    response_model=VerifyEmailResponse,
    dependencies=[CsrfProtected],
    responses={
        404: {"description": "Unknown token"},
        409: {"description": "Token already used"},
        410: {"description": "Token expired"},
    },
)
@limiter.limit(DEFAULT_AUTH_LIMIT)
async def verify_email(
    request: Request, verify_data: VerifyEmailRequest, service: AccountServiceDep
) -> VerifyEmailResponse:
    user = await service.verify_email(verify_data.token)
    return VerifyEmailResponse(
        message="Email verified successfully",
        verified=True,
        user=UserRead.model_validate(user),
    )


@router.post(
    "/email/resend-verification",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[CsrfProtected],
)
@limiter.limit(DEFAULT_AUTH_LIMIT)
async def resend_verification(
    request: Request, resend_data: ResendVerificationRequest, service: AccountServiceDep
) -> MessageResponse:
    """Send a fresh verification link. Same response whatever the account state."""
    await service.resend_verification(resend_data.email)
    return MessageResponse(message=RESEND_VERIFICATION_MESSAGE)

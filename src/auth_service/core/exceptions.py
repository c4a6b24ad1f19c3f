"""Domain errors and the handlers that render them with request_id."""

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.auth_service.core.logging import get_logger

logger = get_logger(__name__)


class AuthServiceError(Exception):
    """Base class for errors surfaced to API callers.

    ``reason`` is a stable machine-readable code (e.g. ``invalid_secret``),
    ``message`` is safe to show to end users.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_reason: str = "error"

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason or self.default_reason
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AuthServiceError):
    """Malformed input."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_reason = "invalid_input"


class AuthenticationError(AuthServiceError):
    """Bad credentials, bad session secret or locked account."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_reason = "invalid_credentials"


class NotFoundError(AuthServiceError):
    """Unknown session, token or resource."""

    status_code = status.HTTP_404_NOT_FOUND
    default_reason = "not_found"


class ConflictError(AuthServiceError):
    """Duplicate email, duplicate identity link or an already-used token."""

    status_code = status.HTTP_409_CONFLICT
    default_reason = "conflict"


class ExpiredError(AuthServiceError):
    """Session or token past its TTL."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_reason = "expired"


class UpstreamError(AuthServiceError):
    """OAuth provider, billing provider or notifier failure."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_reason = "upstream_error"


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(AuthServiceError)
    async def auth_service_exception_handler(
        request: Request, exc: AuthServiceError
    ) -> JSONResponse:
        headers = None
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.message,
                "code": exc.reason,
                "request_id": correlation_id.get(),
            },
            headers=headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )

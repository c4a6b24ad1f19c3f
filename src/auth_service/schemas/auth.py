from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from src.auth_service.schemas.user import UserRead


class CsrfProtectedRequest(BaseModel):
    """Body of a state-changing request.

    The CSRF token may be sent here or in the ``X-CSRF-Token`` header.
    """

    csrf_token: str | None = Field(default=None, max_length=128)


class SignupRequest(CsrfProtectedRequest):
    email: EmailStr
    # Strength is checked by the credential service against the configured policy
    password: str = Field(min_length=1, max_length=128)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)


class SignupResponse(BaseModel):
    user: UserRead
    session_token: str
    token_type: str = "bearer"
    email_sent: bool


class LoginRequest(CsrfProtectedRequest):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class LoginResponse(BaseModel):
    user: UserRead
    session_token: str
    token_type: str = "bearer"


class SessionResponse(BaseModel):
    """Result of validating a session token."""

    user: UserRead
    session_id: str
    created_at: datetime
    expires_at: datetime


class CsrfTokenResponse(BaseModel):
    csrf_token: str
    expires_in: int  # seconds


class PasswordResetRequest(CsrfProtectedRequest):
    email: EmailStr


class PasswordResetConfirmRequest(CsrfProtectedRequest):
    token: str = Field(min_length=16, max_length=128)
    new_password: str = Field(min_length=1, max_length=128)


class VerifyEmailRequest(CsrfProtectedRequest):
    token: str = Field(min_length=16, max_length=128)


class VerifyEmailResponse(BaseModel):
    message: str
    verified: bool
    user: UserRead


class ResendVerificationRequest(CsrfProtectedRequest):
    email: EmailStr


class MessageResponse(BaseModel):
    message: str

"""Single-use emailed tokens and CSRF tokens."""

from datetime import datetime
from uuid import UUID

from sqlmodel import Field, SQLModel

from src.auth_service.models.base import TENANT_SCHEMA, utc_now


class SingleUseToken(SQLModel):
    """Shared columns of password reset and email verification tokens.

    ``used_at`` moves from NULL to a timestamp exactly once.
    """

    token_hash: str = Field(primary_key=True, max_length=64)
    user_id: UUID = Field(foreign_key=f"{TENANT_SCHEMA}.users.id", index=True)
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime
    used_at: datetime | None = Field(default=None)


class PasswordResetToken(SingleUseToken, table=True):
    __tablename__ = "password_reset_tokens"
    __table_args__ = {"schema": TENANT_SCHEMA}


class EmailVerificationToken(SingleUseToken, table=True):
    __tablename__ = "email_verification_tokens"
    __table_args__ = {"schema": TENANT_SCHEMA}


class CsrfToken(SQLModel, table=True):
    """Last CSRF token issued for a request context (session id or anonymous cookie)."""

    __tablename__ = "csrf_tokens"
    __table_args__ = {"schema": TENANT_SCHEMA}

    context_key: str = Field(primary_key=True, max_length=64)
    token_hash: str = Field(max_length=64)
    created_at: datetime = Field(default_factory=utc_now)

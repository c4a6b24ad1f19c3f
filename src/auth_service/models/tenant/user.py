"""User model - one row per account within a tenant partition."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.auth_service.models.base import TENANT_SCHEMA, utc_now


class User(SQLModel, table=True):
    """Local account. Never hard-deleted by this service."""

    __tablename__ = "users"
    __table_args__ = {"schema": TENANT_SCHEMA}

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    # None for accounts created through OAuth until a password is set via reset
    password_hash: str | None = Field(default=None, max_length=255)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    failed_login_attempts: int = Field(default=0)
    lockout_until: datetime | None = Field(default=None)
    email_verified: bool = Field(default=False)
    email_verified_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    def is_locked(self, now: datetime) -> bool:
        return self.lockout_until is not None and self.lockout_until > now

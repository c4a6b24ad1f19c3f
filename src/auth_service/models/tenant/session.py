"""Session model - server side half of a split session token."""

from datetime import datetime
from uuid import UUID

from sqlmodel import Field, SQLModel

from src.auth_service.models.base import TENANT_SCHEMA, utc_now


class AuthSession(SQLModel, table=True):
    """Login session. Only the SHA-256 of the token secret is stored."""

    __tablename__ = "sessions"
    __table_args__ = {"schema": TENANT_SCHEMA}

    id: str = Field(primary_key=True, max_length=32)
    user_id: UUID = Field(foreign_key=f"{TENANT_SCHEMA}.users.id", index=True)
    secret_hash: str = Field(max_length=64)
    created_at: datetime = Field(default_factory=utc_now)

"""OAuth provider configuration and linked external identities."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from src.auth_service.models.base import TENANT_SCHEMA, utc_now


class OAuthProviderConfig(SQLModel, table=True):
    """Per-tenant provider credentials, written at provisioning time."""

    __tablename__ = "oauth_provider_configs"
    __table_args__ = {"schema": TENANT_SCHEMA}

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    provider: str = Field(max_length=32, unique=True)
    client_id: str = Field(max_length=255)
    client_secret: str = Field(max_length=512)
    redirect_uri: str = Field(max_length=2048)
    scopes: str | None = Field(default=None, max_length=512)  # space separated
    enabled: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class OAuthIdentity(SQLModel, table=True):
    """External account linked to exactly one local user. Immutable once created."""

    __tablename__ = "oauth_identities"
    __table_args__ = (
        UniqueConstraint("provider", "provider_user_id", name="uq_oauth_identities_provider_user"),
        {"schema": TENANT_SCHEMA},
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    provider: str = Field(max_length=32)
    provider_user_id: str = Field(max_length=255)
    user_id: UUID = Field(foreign_key=f"{TENANT_SCHEMA}.users.id", index=True)
    created_at: datetime = Field(default_factory=utc_now)

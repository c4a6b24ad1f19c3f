"""Tenant model - registry in public schema."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.auth_service.core.security.validators import (
    MAX_DOMAIN_LENGTH,
    MAX_TENANT_SLUG_LENGTH,
    slug_to_schema_name,
    validate_schema_name,
)
from src.auth_service.models.base import PUBLIC_SCHEMA, utc_now
from src.auth_service.models.enums import TenantStatus


class Tenant(SQLModel, table=True):
    """One onboarded frontend property, keyed by the domain it is served from.

    Rows are written by the deployment layer; this service only reads them.
    """

    __tablename__ = "tenants"
    __table_args__ = {"schema": PUBLIC_SCHEMA}

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    domain: str = Field(max_length=MAX_DOMAIN_LENGTH, unique=True, index=True)
    slug: str = Field(max_length=MAX_TENANT_SLUG_LENGTH, unique=True, index=True)
    status: str = Field(default=TenantStatus.PROVISIONING.value)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def schema_name(self) -> str:
        """Storage prefix of this tenant's partition.

        Raises:
            ValueError: If the slug does not produce a valid schema name
        """
        name = slug_to_schema_name(self.slug)
        validate_schema_name(name)
        return name

    @property
    def status_enum(self) -> TenantStatus:
        """Get status as TenantStatus enum."""
        return TenantStatus(self.status)

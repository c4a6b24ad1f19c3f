"""Mirrored billing state."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.auth_service.models.base import TENANT_SCHEMA, utc_now
from src.auth_service.models.enums import SubscriptionStatus


class Subscription(SQLModel, table=True):
    """Latest subscription state reported by the billing provider, one per user."""

    __tablename__ = "subscriptions"
    __table_args__ = {"schema": TENANT_SCHEMA}

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key=f"{TENANT_SCHEMA}.users.id", unique=True, index=True)
    external_subscription_id: str | None = Field(
        default=None, max_length=255, unique=True, index=True
    )
    status: str = Field(default=SubscriptionStatus.FREE.value, max_length=20)
    plan_id: str | None = Field(default=None, max_length=255)
    current_period_end: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class BillingCustomer(SQLModel, table=True):
    """Billing provider customer created for a user on first checkout."""

    __tablename__ = "billing_customers"
    __table_args__ = {"schema": TENANT_SCHEMA}

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key=f"{TENANT_SCHEMA}.users.id", unique=True, index=True)
    external_customer_id: str = Field(max_length=255, unique=True, index=True)
    created_at: datetime = Field(default_factory=utc_now)


class WebhookEvent(SQLModel, table=True):
    """Processed webhook deliveries, for de-duplication."""

    __tablename__ = "webhook_events"
    __table_args__ = {"schema": TENANT_SCHEMA}

    external_event_id: str = Field(primary_key=True, max_length=255)
    event_type: str = Field(max_length=100)
    processed_at: datetime = Field(default_factory=utc_now)

"""Repositories for subscriptions, billing customers and webhook events."""

from uuid import UUID

from sqlmodel import select

from src.auth_service.models.tenant import BillingCustomer, Subscription, WebhookEvent
from src.auth_service.repositories.base import BaseRepository


class SubscriptionRepository(BaseRepository[Subscription]):
    model = Subscription

    async def get_by_user_id(self, user_id: UUID) -> Subscription | None:
        result = await self.session.execute(
            select(Subscription).where(Subscription.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_external_id(self, external_subscription_id: str) -> Subscription | None:
        result = await self.session.execute(
            select(Subscription).where(
                Subscription.external_subscription_id == external_subscription_id
            )
        )
        return result.scalar_one_or_none()


class BillingCustomerRepository(BaseRepository[BillingCustomer]):
    model = BillingCustomer

    async def get_by_user_id(self, user_id: UUID) -> BillingCustomer | None:
        result = await self.session.execute(
            select(BillingCustomer).where(BillingCustomer.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_external_id(self, external_customer_id: str) -> BillingCustomer | None:
        result = await self.session.execute(
            select(BillingCustomer).where(
                BillingCustomer.external_customer_id == external_customer_id
            )
        )
        return result.scalar_one_or_none()


class WebhookEventRepository(BaseRepository[WebhookEvent]):
    model = WebhookEvent

    async def exists(self, external_event_id: str) -> bool:
        return await self.session.get(WebhookEvent, external_event_id) is not None

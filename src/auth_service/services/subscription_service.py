"""Subscription service - mirrors billing provider state into the tenant partition."""

from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from src.auth_service.core.billing import (
    StripeClient,
    parse_subscription_event,
    verify_webhook_signature,
)
from src.auth_service.core.config import get_settings
from src.auth_service.core.exceptions import NotFoundError, UpstreamError
from src.auth_service.core.logging import get_logger
from src.auth_service.models.base import utc_now
from src.auth_service.models.enums import SubscriptionStatus
from src.auth_service.models.tenant import BillingCustomer, Subscription, User, WebhookEvent
from src.auth_service.repositories import (
    BillingCustomerRepository,
    SubscriptionRepository,
    WebhookEventRepository,
)

logger = get_logger(__name__)


class SubscriptionService:
    """Records the latest subscription state reported by the billing provider.

    This service does not judge whether a transition is legal; the provider is
    the source of truth and the last reported state wins.
    """

    def __init__(
        self,
        subscription_repo: SubscriptionRepository,
        customer_repo: BillingCustomerRepository,
        webhook_event_repo: WebhookEventRepository,
        session: AsyncSession,
        billing_client: StripeClient | None = None,
    ):
        self.subscription_repo = subscription_repo
        self.customer_repo = customer_repo
        self.webhook_event_repo = webhook_event_repo
        self.session = session
        self.billing_client = billing_client

    def create_initial_subscription(self, user_id: UUID) -> Subscription:
        """Stage the ``free`` subscription of a new user. The caller commits."""
        subscription = Subscription(user_id=user_id, status=SubscriptionStatus.FREE.value)
        self.subscription_repo.add(subscription)
        return subscription

    async def apply_event(
        self,
        external_subscription_id: str,
        status: SubscriptionStatus,
        period_end: datetime | None = None,
        plan_id: str | None = None,
        external_customer_id: str | None = None,
    ) -> Subscription | None:
        """Idempotently upsert subscription state keyed by the external id.

        Returns the subscription, or None if its owner could not be resolved.
        """
        try:
            subscription = await self._apply(
                external_subscription_id, status, period_end, plan_id, external_customer_id
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return subscription

    async def _apply(
        self,
        external_subscription_id: str,
        status: SubscriptionStatus,
        period_end: datetime | None,
        plan_id: str | None,
        external_customer_id: str | None,
    ) -> Subscription | None:
        subscription = await self.subscription_repo.get_by_external_id(external_subscription_id)

        if subscription is None:
            customer = None
            if external_customer_id:
                customer = await self.customer_repo.get_by_external_id(external_customer_id)
            if customer is None:
                logger.warning(
                    "Ignoring billing event for unknown subscription owner",
                    external_subscription_id=external_subscription_id,
                    external_customer_id=external_customer_id,
                )
                return None
            # Reuse the free row created at signup
            subscription = await self.subscription_repo.get_by_user_id(customer.user_id)
            if subscription is None:
                subscription = Subscription(user_id=customer.user_id)
                self.subscription_repo.add(subscription)
            subscription.external_subscription_id = external_subscription_id

        # Fields an event does not carry are left as they are
        updates = {"status": status.value, "current_period_end": period_end, "plan_id": plan_id}
        changed = {
            field: value
            for field, value in updates.items()
            if value is not None and getattr(subscription, field) != value
        }
        if changed:
            for field, value in changed.items():
                setattr(subscription, field, value)
            subscription.updated_at = utc_now()
            logger.info(
                "Subscription updated",
                user_id=str(subscription.user_id),
                external_subscription_id=external_subscription_id,
                fields=sorted(changed),
            )
        return subscription

    async def handle_webhook(self, payload: bytes, signature_header: str | None) -> bool:
        """Verify and apply a billing webhook delivery.

        Returns False for duplicate deliveries, True otherwise (including
        unsupported event types, which are recorded and ignored).

        Raises:
            ValidationError: Signature or payload rejected
            UpstreamError: Webhooks are not configured (503)
        """
        settings = get_settings()
        if not settings.stripe_webhook_secret:
            raise UpstreamError(
                "Billing webhooks are not configured",
                reason="billing_unavailable",
                status_code=HTTP_503_SERVICE_UNAVAILABLE,
            )

        event = verify_webhook_signature(
            payload,
            signature_header,
            settings.stripe_webhook_secret,
            settings.stripe_webhook_tolerance_seconds,
        )
        event_id = str(event["id"])
        event_type = str(event["type"])

        if await self.webhook_event_repo.exists(event_id):
            logger.info("Duplicate webhook delivery", event_id=event_id, event_type=event_type)
            return False

        try:
            parsed = parse_subscription_event(event)
            if parsed is None:
                logger.info("Ignoring webhook event", event_id=event_id, event_type=event_type)
            else:
                await self._apply(
                    parsed.external_subscription_id,
                    parsed.status,
                    parsed.period_end,
                    parsed.plan_id,
                    parsed.external_customer_id,
                )
            self.webhook_event_repo.add(
                WebhookEvent(external_event_id=event_id, event_type=event_type)
            )
            await self.session.commit()
        except IntegrityError:
            # Concurrent delivery of the same event won
            await self.session.rollback()
            logger.info("Duplicate webhook delivery", event_id=event_id, event_type=event_type)
            return False
        except Exception:
            await self.session.rollback()
            raise
        return True

    def _require_client(self) -> StripeClient:
        if self.billing_client is None:
            raise UpstreamError(
                "Billing is not configured",
                reason="billing_unavailable",
                status_code=HTTP_503_SERVICE_UNAVAILABLE,
            )
        return self.billing_client

    async def _get_or_create_customer(
        self, user_id: UUID, email: str, domain: str
    ) -> BillingCustomer:
        customer = await self.customer_repo.get_by_user_id(user_id)
        if customer is not None:
            return customer

        client = self._require_client()
        external_customer_id = await client.create_customer(email, str(user_id), domain)
        customer = BillingCustomer(user_id=user_id, external_customer_id=external_customer_id)
        try:
            self.customer_repo.add(customer)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.warning(
                "Billing customer created concurrently, discarding duplicate",
                user_id=str(user_id),
                external_customer_id=external_customer_id,
            )
            existing = await self.customer_repo.get_by_user_id(user_id)
            if existing is None:
                raise
            return existing
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Billing customer created", user_id=str(user_id))
        return customer

    async def create_checkout_session(
        self,
        user: User,
        price_id: str,
        success_url: str,
        cancel_url: str,
        domain: str,
    ) -> str:
        """Start a hosted checkout for a subscription. Returns the checkout URL."""
        # Read before any rollback can expire the instance
        user_id, email = user.id, user.email
        customer = await self._get_or_create_customer(user_id, email, domain)
        return await self._require_client().create_checkout_session(
            customer.external_customer_id,
            price_id,
            success_url,
            cancel_url,
            str(user_id),
            domain,
        )

    async def create_portal_session(self, user: User, return_url: str) -> str:
        """Open the billing portal for an existing customer. Returns the portal URL.

        Raises:
            NotFoundError: The user never went through checkout
        """
        customer = await self.customer_repo.get_by_user_id(user.id)
        if customer is None:
            raise NotFoundError("No billing account for this user", reason="no_billing_customer")
        return await self._require_client().create_portal_session(
            customer.external_customer_id, return_url
        )

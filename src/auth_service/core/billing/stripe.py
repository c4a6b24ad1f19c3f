"""Stripe REST client, webhook signature verification and event translation."""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx
import stripe

from src.auth_service.core.exceptions import UpstreamError, ValidationError
from src.auth_service.core.logging import get_logger
from src.auth_service.models.enums import SubscriptionStatus

logger = get_logger(__name__)

# Stripe subscription status -> locally mirrored status
STRIPE_STATUS_MAP: dict[str, SubscriptionStatus] = {
    "active": SubscriptionStatus.STANDARD,
    "trialing": SubscriptionStatus.STANDARD,
    "past_due": SubscriptionStatus.PAST_DUE,
    "unpaid": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "incomplete_expired": SubscriptionStatus.CANCELED,
}

SUPPORTED_EVENT_TYPES = frozenset(
    {
        "checkout.session.completed",
        "customer.subscription.created",
        "customer.subscription.updated",
        "customer.subscription.deleted",
        "invoice.payment_failed",
    }
)


@dataclass(frozen=True)
class SubscriptionEvent:
    """Billing state change extracted from a webhook event."""

    external_subscription_id: str
    status: SubscriptionStatus
    period_end: datetime | None = None
    plan_id: str | None = None
    external_customer_id: str | None = None


def verify_webhook_signature(
    payload: bytes,
    signature_header: str | None,
    secret: str,
    tolerance_seconds: int,
) -> dict[str, Any]:
    """Check a ``Stripe-Signature`` header and return the decoded event.

    The header is checked by the stripe SDK: HMAC-SHA256 over
    ``"{timestamp}.{payload}"``, any ``v1`` signature may match (secret
    rotation), and timestamps older than ``tolerance_seconds`` are refused.

    Raises:
        ValidationError: If the header is missing, malformed, stale or does not match
    """
    if not signature_header:
        raise ValidationError("Missing webhook signature", reason="invalid_signature")

    try:
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"), signature_header, secret, tolerance_seconds
        )
    except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
        logger.warning("Webhook signature rejected", error=str(e))
        raise ValidationError("Invalid webhook signature", reason="invalid_signature") from e

    try:
        event = json.loads(payload)
    except ValueError as e:
        raise ValidationError("Webhook payload is not JSON", reason="invalid_payload") from e
    if not isinstance(event, dict) or not event.get("id") or not event.get("type"):
        raise ValidationError("Webhook payload is not an event", reason="invalid_payload")
    return event


def _from_epoch(value: Any) -> datetime | None:
    if not isinstance(value, int | float):
        return None
    return datetime.fromtimestamp(value, UTC).replace(tzinfo=None)


def _subscription_fields(obj: dict[str, Any]) -> tuple[datetime | None, str | None]:
    """Period end and price id; newer API versions moved both onto the items."""
    items = (obj.get("items") or {}).get("data") or []
    first_item = items[0] if items else {}
    period_end = obj.get("current_period_end") or first_item.get("current_period_end")
    plan_id = (first_item.get("price") or {}).get("id") or (obj.get("plan") or {}).get("id")
    return _from_epoch(period_end), plan_id


def parse_subscription_event(event: dict[str, Any]) -> SubscriptionEvent | None:
    """Translate a webhook event. Returns None for events that carry no state to apply."""
    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}

    if event_type == "checkout.session.completed":
        subscription_id = obj.get("subscription")
        if not subscription_id:
            return None  # one-off payment, nothing to mirror
        return SubscriptionEvent(
            external_subscription_id=subscription_id,
            status=SubscriptionStatus.STANDARD,
            external_customer_id=obj.get("customer"),
        )

    if event_type in (
        "customer.subscription.created",
        "customer.subscription.updated",
        "customer.subscription.deleted",
    ):
        if event_type == "customer.subscription.deleted":
            status: SubscriptionStatus | None = SubscriptionStatus.CANCELED
        else:
            status = STRIPE_STATUS_MAP.get(obj.get("status", ""))
        if status is None or not obj.get("id"):
            return None
        period_end, plan_id = _subscription_fields(obj)
        return SubscriptionEvent(
            external_subscription_id=obj["id"],
            status=status,
            period_end=period_end,
            plan_id=plan_id,
            external_customer_id=obj.get("customer"),
        )

    if event_type == "invoice.payment_failed":
        subscription_id = obj.get("subscription")
        if not subscription_id:
            return None
        return SubscriptionEvent(
            external_subscription_id=subscription_id,
            status=SubscriptionStatus.PAST_DUE,
            external_customer_id=obj.get("customer"),
        )

    return None


class StripeClient:
    """Minimal Stripe REST client. One bounded attempt per call."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.stripe.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    async def _post(
        self, path: str, data: dict[str, str], idempotency_key: str | None = None
    ) -> dict[str, Any]:
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
                auth=(self.api_key, ""),
            ) as client:
                response = await client.post(path, data=data, headers=headers)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Billing provider returned an error",
                path=path,
                status_code=e.response.status_code,
                error=str(e),
            )
            raise UpstreamError(
                "The billing provider returned an error", reason="billing_error"
            ) from e
        except httpx.HTTPError as e:
            logger.error("Billing provider unreachable", path=path, error=str(e))
            raise UpstreamError(
                "The billing provider could not be reached", reason="billing_unavailable"
            ) from e
        except ValueError as e:
            logger.error("Billing provider sent a malformed response", path=path, error=str(e))
            raise UpstreamError(
                "The billing provider sent an unexpected response", reason="billing_error"
            ) from e

        if not isinstance(body, dict):
            raise UpstreamError(
                "The billing provider sent an unexpected response", reason="billing_error"
            )
        return body

    async def create_customer(self, email: str, user_id: str, domain: str) -> str:
        """Create the customer of a user.

        Keyed for idempotency on tenant and user, so a retried or concurrent
        checkout gets the same customer back instead of a duplicate.
        """
        body = await self._post(
            "/v1/customers",
            {"email": email, "metadata[user_id]": user_id, "metadata[domain]": domain},
            idempotency_key=f"customer_{domain}_{user_id}",
        )
        return self._require(body, "id")

    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        user_id: str,
        domain: str,
    ) -> str:
        body = await self._post(
            "/v1/checkout/sessions",
            {
                "customer": customer_id,
                "mode": "subscription",
                "payment_method_types[0]": "card",
                "line_items[0][price]": price_id,
                "line_items[0][quantity]": "1",
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata[user_id]": user_id,
                "metadata[domain]": domain,
            },
        )
        return self._require(body, "url")

    async def create_portal_session(self, customer_id: str, return_url: str) -> str:
        body = await self._post(
            "/v1/billing_portal/sessions",
            {"customer": customer_id, "return_url": return_url},
        )
        return self._require(body, "url")

    @staticmethod
    def _require(body: dict[str, Any], key: str) -> str:
        value = body.get(key)
        if not isinstance(value, str) or not value:
            raise UpstreamError(
                "The billing provider sent an unexpected response", reason="billing_error"
            )
        return value

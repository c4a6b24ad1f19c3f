"""Billing provider integration."""

from src.auth_service.core.billing.stripe import (
    StripeClient,
    SubscriptionEvent,
    parse_subscription_event,
    verify_webhook_signature,
)

__all__ = [
    "StripeClient",
    "SubscriptionEvent",
    "parse_subscription_event",
    "verify_webhook_signature",
]

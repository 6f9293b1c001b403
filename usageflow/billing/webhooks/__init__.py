"""Stripe webhook processing."""

from usageflow.billing.webhooks.stripe_webhook import (
    StripeEventHandler,
    StripeWebhookProcessor,
    SubscriptionCancelledHandler,
    SubscriptionPriceSyncHandler,
    default_handlers,
)

__all__ = [
    "StripeEventHandler",
    "StripeWebhookProcessor",
    "SubscriptionCancelledHandler",
    "SubscriptionPriceSyncHandler",
    "default_handlers",
]

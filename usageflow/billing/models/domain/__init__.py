"""Billing domain models."""

from usageflow.billing.models.domain.stripe_webhooks import (
    StripeEventData,
    StripeSubscriptionData,
    StripeSubscriptionStatus,
    StripeWebhookPayload,
    StripeWebhookType,
)

__all__ = [
    "StripeEventData",
    "StripeSubscriptionData",
    "StripeSubscriptionStatus",
    "StripeWebhookPayload",
    "StripeWebhookType",
]

"""Billing services."""

from usageflow.billing.services.subscription_sync import SubscriptionSyncService

__all__ = ["SubscriptionSyncService"]

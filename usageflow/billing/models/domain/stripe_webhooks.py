"""
Domain models for Stripe webhook payloads.

Only the subscription fields needed to keep a user's plan identifier in sync
are modelled; everything else in the payload is ignored.
"""

from typing import Optional, Any
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class StripeWebhookType(str, Enum):
    """Stripe webhook event types we act on."""

    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"


class StripeSubscriptionStatus(str, Enum):
    """Stripe subscription status values."""

    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    PAUSED = "paused"


class StripePrice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str


class StripeSubscriptionItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    price: StripePrice


class StripeSubscriptionItems(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[StripeSubscriptionItem] = Field(default_factory=list)


class StripeSubscriptionData(BaseModel):
    """Stripe subscription object."""

    model_config = ConfigDict(extra="ignore")

    id: str
    customer: str
    status: StripeSubscriptionStatus
    items: StripeSubscriptionItems = Field(default_factory=StripeSubscriptionItems)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def price_id(self) -> Optional[str]:
        """Price of the first subscription item."""
        if not self.items.data:
            return None
        return self.items.data[0].price.id


class StripeEventData(BaseModel):
    """Stripe event data wrapper."""

    object: dict[str, Any]  # The actual object (subscription, invoice, etc.)


class StripeWebhookPayload(BaseModel):
    """Complete Stripe webhook payload."""

    model_config = ConfigDict(extra="ignore")

    id: str
    # str rather than StripeWebhookType so unhandled event types still parse
    type: str
    data: StripeEventData
    created: int
    livemode: bool = False

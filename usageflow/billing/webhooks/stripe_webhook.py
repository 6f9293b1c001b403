"""
Stripe webhook processing.

Keeps user plan identifiers in sync with subscription lifecycle events:
- Subscription created/updated: write the subscription's price id, or clear
  it once the subscription has lapsed
- Subscription deleted: clear the price id

Handlers are passed to the processor at construction; each declares the
event types it accepts and runs in list order.
"""

from abc import ABC, abstractmethod
from typing import ClassVar, Optional, Sequence

from pydantic import ValidationError

from usageflow.common.core.exceptions import WebhookError
from usageflow.common.core.telemetry import trace_span, get_logger
from usageflow.billing.models.domain.stripe_webhooks import (
    StripeSubscriptionData,
    StripeSubscriptionStatus,
    StripeWebhookPayload,
    StripeWebhookType,
)
from usageflow.billing.providers.payment.interface import PaymentProviderInterface
from usageflow.usage.models.domain.limits import UserProfile
from usageflow.usage.repositories.limit_repository import UserRepository

logger = get_logger(__name__)

# Statuses after which the subscription no longer grants its plan
LAPSED_STATUSES = frozenset(
    {
        StripeSubscriptionStatus.CANCELED,
        StripeSubscriptionStatus.UNPAID,
        StripeSubscriptionStatus.INCOMPLETE_EXPIRED,
    }
)


class StripeEventHandler(ABC):
    """Handles one or more Stripe event types."""

    event_types: ClassVar[frozenset[str]] = frozenset()

    def handles(self, event_type: str) -> bool:
        return event_type in self.event_types

    @abstractmethod
    async def handle(self, payload: StripeWebhookPayload) -> None:
        pass


def _parse_subscription(payload: StripeWebhookPayload) -> StripeSubscriptionData:
    try:
        return StripeSubscriptionData(**payload.data.object)
    except ValidationError as e:
        raise WebhookError(
            "Invalid subscription object in webhook",
            details={"event_id": payload.id, "validation_errors": e.errors()},
        ) from e


class SubscriptionPriceSyncHandler(StripeEventHandler):
    """
    Writes a created or updated subscription's price id onto its user.

    A subscription in a lapsed status clears the price id instead.
    """

    event_types = frozenset(
        {
            StripeWebhookType.SUBSCRIPTION_CREATED.value,
            StripeWebhookType.SUBSCRIPTION_UPDATED.value,
        }
    )

    def __init__(self, user_repo: UserRepository, payment: PaymentProviderInterface):
        self.user_repo = user_repo
        self.payment = payment

    async def _find_user(self, customer_id: str) -> Optional[UserProfile]:
        user = await self.user_repo.get_by_stripe_customer_id(customer_id)
        if user:
            return user

        # Users created before checkout only have an email on file
        customer = await self.payment.retrieve_customer(customer_id)
        email = getattr(customer, "email", None) if customer else None
        if not email:
            return None
        return await self.user_repo.get_by_email(email)

    @trace_span
    async def handle(self, payload: StripeWebhookPayload) -> None:
        subscription = _parse_subscription(payload)

        user = await self._find_user(subscription.customer)
        if not user:
            logger.warning(
                f"No user for Stripe customer {subscription.customer}",
                extra={"event_id": payload.id, "customer_id": subscription.customer},
            )
            return

        price_id = (
            None if subscription.status in LAPSED_STATUSES else subscription.price_id
        )
        await self.user_repo.set_price_id(
            user.id, price_id, stripe_customer_id=subscription.customer
        )
        logger.info(
            f"Set price id for user {user.id} from {payload.type}",
            extra={
                "user_id": user.id,
                "subscription_id": subscription.id,
                "price_id": price_id,
                "status": subscription.status.value,
            },
        )


class SubscriptionCancelledHandler(StripeEventHandler):
    """Clears the price id of the user whose subscription was deleted."""

    event_types = frozenset({StripeWebhookType.SUBSCRIPTION_DELETED.value})

    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    @trace_span
    async def handle(self, payload: StripeWebhookPayload) -> None:
        subscription = _parse_subscription(payload)

        user = await self.user_repo.get_by_stripe_customer_id(subscription.customer)
        if not user:
            logger.warning(
                f"No user for Stripe customer {subscription.customer}",
                extra={"event_id": payload.id, "customer_id": subscription.customer},
            )
            return

        await self.user_repo.set_price_id(user.id, None)
        logger.info(
            f"Cleared price id for user {user.id}",
            extra={"user_id": user.id, "subscription_id": subscription.id},
        )


def default_handlers(
    user_repo: UserRepository, payment: PaymentProviderInterface
) -> list[StripeEventHandler]:
    return [
        SubscriptionPriceSyncHandler(user_repo, payment),
        SubscriptionCancelledHandler(user_repo),
    ]


class StripeWebhookProcessor:
    """Verifies Stripe webhooks and dispatches them to handlers."""

    def __init__(
        self,
        payment: PaymentProviderInterface,
        handlers: Sequence[StripeEventHandler],
    ):
        self.payment = payment
        self.handlers = tuple(handlers)

    @trace_span
    async def process(self, payload_bytes: bytes, signature: Optional[str]) -> dict[str, str]:
        """
        Verify, parse and dispatch one webhook delivery.

        Raises:
            WebhookError: missing or invalid signature, or malformed payload
        """
        if not signature:
            raise WebhookError("Missing stripe-signature header")

        event = self.payment.construct_event(payload_bytes, signature)

        try:
            payload = StripeWebhookPayload(**event)
        except ValidationError as e:
            logger.error(
                "Invalid Stripe webhook payload", extra={"validation_errors": e.errors()}
            )
            raise WebhookError(
                "Invalid webhook payload",
                details={"validation_errors": e.errors()},
            ) from e

        logger.info(
            f"Received Stripe webhook: {payload.type}",
            extra={
                "event_id": payload.id,
                "event_type": payload.type,
                "livemode": payload.livemode,
            },
        )

        matched = [handler for handler in self.handlers if handler.handles(payload.type)]
        if not matched:
            logger.info(f"Unhandled Stripe webhook type: {payload.type}")
            return {"status": "ignored"}

        for handler in matched:
            await handler.handle(payload)
        return {"status": "success"}

"""
Service for syncing a user's plan identifier from their Stripe subscription.
"""

from typing import Optional

from usageflow.common.core.exceptions import UserNotFoundError, InvalidParamsError
from usageflow.common.core.telemetry import trace_span, get_logger
from usageflow.billing.providers.payment.interface import PaymentProviderInterface
from usageflow.usage.repositories.limit_repository import UserRepository

logger = get_logger(__name__)


class SubscriptionSyncService:
    """Pulls the active subscription for a user and writes its price id."""

    def __init__(self, user_repo: UserRepository, payment: PaymentProviderInterface):
        self.user_repo = user_repo
        self.payment = payment

    @trace_span
    async def sync_subscription(self, user_id: str) -> Optional[str]:
        """
        Sync a user's plan identifier with Stripe.

        Returns:
            The price id now on the profile, or None when the user has no
            active subscription (the profile is left untouched)

        Raises:
            InvalidParamsError: missing user_id, or the user has no email
            UserNotFoundError: unknown user
        """
        if not user_id:
            raise InvalidParamsError(
                "Missing required parameters: user_id",
                details={"missing": ["user_id"]},
            )

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError("User not found", details={"user_id": user_id})
        if not user.email:
            raise InvalidParamsError(
                "User has no email to look up a subscription",
                details={"user_id": user_id},
            )

        subscription = await self.payment.fetch_subscription(user.email)
        if subscription is None:
            logger.info(
                f"No active subscription for user {user_id}, profile unchanged",
                extra={"user_id": user_id},
            )
            return None

        price_id = subscription.price_id
        await self.user_repo.set_price_id(
            user_id, price_id, stripe_customer_id=subscription.customer
        )

        logger.info(
            f"Synced subscription {subscription.id} for user {user_id}",
            extra={
                "user_id": user_id,
                "subscription_id": subscription.id,
                "price_id": price_id,
            },
        )
        return price_id

"""
Stripe implementation of payment provider.
"""

from typing import Any, Optional
import stripe

from usageflow.common.core.exceptions import WebhookError
from usageflow.billing.models.domain.stripe_webhooks import StripeSubscriptionData
from usageflow.common.core.telemetry import trace_span, get_logger
from usageflow.billing.providers.payment.interface import PaymentProviderInterface

logger = get_logger(__name__)


def _to_dict(obj: Any) -> dict[str, Any]:
    """Plain dict from a StripeObject."""
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripePaymentProvider(PaymentProviderInterface):
    """Stripe-based payment implementation."""

    def __init__(self, secret_key: str, webhook_secret: Optional[str] = None):
        """Initialize Stripe with API credentials."""
        stripe.api_key = secret_key
        self.webhook_secret = webhook_secret

    @trace_span
    async def fetch_subscription(self, email: str) -> Optional[StripeSubscriptionData]:
        """First active subscription of the first customer with this email."""
        try:
            customers = stripe.Customer.list(email=email, limit=1)
            if not customers.data:
                logger.info("No Stripe customer for email", extra={"email": email})
                return None

            subscriptions = stripe.Subscription.list(
                customer=customers.data[0].id,
                status="active",
                limit=1,
            )
            if not subscriptions.data:
                return None
            return StripeSubscriptionData.model_validate(_to_dict(subscriptions.data[0]))

        except Exception as e:
            logger.error(
                f"Failed to fetch subscription: {str(e)}",
                extra={"email": email, "error": str(e)},
            )
            raise

    @trace_span
    async def update_subscription(
        self, subscription_id: str, metadata: dict[str, Any]
    ) -> Any:
        """Update Stripe subscription metadata."""
        try:
            subscription = stripe.Subscription.modify(subscription_id, metadata=metadata)

            logger.info(
                "Updated Stripe subscription metadata",
                extra={"subscription_id": subscription_id},
            )
            return subscription

        except Exception as e:
            logger.error(
                f"Failed to update subscription: {str(e)}",
                extra={"subscription_id": subscription_id, "error": str(e)},
            )
            raise

    @trace_span
    async def retrieve_customer(self, customer_id: str) -> Optional[Any]:
        """Retrieve a Stripe customer; deleted customers count as missing."""
        try:
            customer = stripe.Customer.retrieve(customer_id)
        except stripe.InvalidRequestError as e:
            logger.warning(
                f"Stripe customer not found: {str(e)}",
                extra={"customer_id": customer_id},
            )
            return None

        if getattr(customer, "deleted", False):
            return None
        return customer

    def construct_event(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify the Stripe-Signature header and parse the event."""
        if not self.webhook_secret:
            raise WebhookError("Stripe webhook secret is not configured")

        try:
            event = stripe.Webhook.construct_event(
                payload, signature, self.webhook_secret
            )
        except stripe.SignatureVerificationError as e:
            logger.error(f"Stripe webhook signature verification failed: {str(e)}")
            raise WebhookError(
                "Invalid signature", details={"error": str(e)}
            ) from e
        except ValueError as e:
            raise WebhookError(
                "Invalid webhook payload", details={"error": str(e)}
            ) from e

        return _to_dict(event)

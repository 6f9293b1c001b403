"""
Interface for payment providers.

Abstracts the payment platform away from the usage engine, which only needs a
user's current plan identifier.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from usageflow.billing.models.domain.stripe_webhooks import StripeSubscriptionData


class PaymentProviderInterface(ABC):
    """Abstract interface for payment providers."""

    @abstractmethod
    async def fetch_subscription(self, email: str) -> Optional[StripeSubscriptionData]:
        """
        Find the active subscription of the customer with this email.

        Args:
            email: Customer email

        Returns:
            The first active subscription of the first matching customer,
            or None
        """
        pass

    @abstractmethod
    async def update_subscription(
        self, subscription_id: str, metadata: dict[str, Any]
    ) -> Any:
        """
        Replace a subscription's metadata.

        Args:
            subscription_id: Payment provider subscription ID
            metadata: Metadata to set
        """
        pass

    @abstractmethod
    async def retrieve_customer(self, customer_id: str) -> Optional[Any]:
        """
        Load a customer by ID.

        Returns:
            The customer, or None if it does not exist
        """
        pass

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> dict[str, Any]:
        """
        Verify a webhook signature and parse the event.

        Raises:
            WebhookError: the signature or payload is invalid
        """
        pass

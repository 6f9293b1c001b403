"""Payment providers - subscription lookup and webhook verification."""

from usageflow.billing.providers.payment.interface import PaymentProviderInterface
from usageflow.billing.providers.payment.stripe_payment import StripePaymentProvider
from usageflow.billing.providers.payment.factory import get_payment_provider

__all__ = [
    "PaymentProviderInterface",
    "StripePaymentProvider",
    "get_payment_provider",
]

"""
Factory for getting payment provider instance.
"""

from usageflow.common.core.config import UsageFlowSettings
from usageflow.common.core.exceptions import ConfigError
from usageflow.billing.providers.payment.interface import PaymentProviderInterface
from usageflow.billing.providers.payment.stripe_payment import StripePaymentProvider


def get_payment_provider(settings: UsageFlowSettings) -> PaymentProviderInterface:
    """
    Get payment provider instance based on configuration.

    Currently only Stripe is supported.

    Raises:
        ConfigError: no Stripe secret key configured
    """
    if not settings.stripe_secret_key:
        raise ConfigError(
            "Missing required config: stripe_secret_key",
            details={"missing": ["stripe_secret_key"]},
        )
    return StripePaymentProvider(
        secret_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
    )

"""Usage services."""

from usageflow.usage.services.usage_recorder import UsageRecorder
from usageflow.usage.services.usage_aggregator import UsageAggregator
from usageflow.usage.services.adjustment_service import AdjustmentResolver
from usageflow.usage.services.limit_service import LimitResolver
from usageflow.usage.services.authorization_service import AuthorizationEngine

__all__ = [
    "UsageRecorder",
    "UsageAggregator",
    "AdjustmentResolver",
    "LimitResolver",
    "AuthorizationEngine",
]

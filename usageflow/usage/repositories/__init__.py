"""Usage repositories."""

from usageflow.usage.repositories.usage_repository import UsageEventRepository
from usageflow.usage.repositories.limit_repository import (
    FeatureLimitRepository,
    PlanRepository,
    UserRepository,
)
from usageflow.usage.repositories.adjustment_repository import (
    LimitAdjustmentRepository,
)

__all__ = [
    "UsageEventRepository",
    "FeatureLimitRepository",
    "PlanRepository",
    "UserRepository",
    "LimitAdjustmentRepository",
]

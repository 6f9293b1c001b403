"""Domain models for usage accounting."""

from usageflow.usage.models.domain.enums import (
    AdjustmentType,
    COUNTABLE_EVENT_TYPES,
    GroupBy,
    UsageEventType,
    UsagePeriod,
)
from usageflow.usage.models.domain.usage import (
    PeriodUsage,
    UsageEvent,
    UsageEventCreateModel,
    UsageStats,
    UsageSummary,
)
from usageflow.usage.models.domain.limits import FeatureLimit, Plan, UserProfile
from usageflow.usage.models.domain.adjustments import (
    LimitAdjustment,
    LimitAdjustmentCreateModel,
)

__all__ = [
    # Enums
    "AdjustmentType",
    "COUNTABLE_EVENT_TYPES",
    "GroupBy",
    "UsageEventType",
    "UsagePeriod",
    # Usage
    "PeriodUsage",
    "UsageEvent",
    "UsageEventCreateModel",
    "UsageStats",
    "UsageSummary",
    # Limits
    "FeatureLimit",
    "Plan",
    "UserProfile",
    # Adjustments
    "LimitAdjustment",
    "LimitAdjustmentCreateModel",
]

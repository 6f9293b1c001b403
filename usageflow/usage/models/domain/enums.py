"""
Usage enums - strongly typed enumerations for events, periods and buckets.
"""

from enum import Enum


class UsageEventType(str, Enum):
    """Kinds of recorded usage events."""

    USAGE = "usage"  # Consumption of a feature
    ADJUSTMENT = "adjustment"  # Manual correction, signed, requires a reason
    CREDIT = "credit"  # Credit granted back to the user


# Event kinds that count toward totals. A kind added later does not alter
# quota accounting until it is listed here.
COUNTABLE_EVENT_TYPES: frozenset[UsageEventType] = frozenset(
    {UsageEventType.USAGE, UsageEventType.ADJUSTMENT, UsageEventType.CREDIT}
)


class AdjustmentType(str, Enum):
    """Limit adjustment kinds. Recorded only; resolution treats both alike."""

    ONE_TIME = "one_time"
    RECURRING = "recurring"


class UsagePeriod(str, Enum):
    """Aggregation windows, each resolving to a start instant."""

    CURRENT_MONTH = "current_month"
    LAST_30_DAYS = "last_30_days"
    LAST_28_DAYS = "last_28_days"
    CURRENT_WEEK = "current_week"


class GroupBy(str, Enum):
    """Bucket granularity for usage statistics."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

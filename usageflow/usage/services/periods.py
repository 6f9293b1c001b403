"""
Time-window arithmetic and bucketing for usage aggregation.

Pure functions; every instant is handled in UTC. Weeks start on Sunday.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Union

from usageflow.common.core.exceptions import InvalidGroupByError, InvalidPeriodError
from usageflow.usage.models.domain.enums import GroupBy, UsagePeriod
from usageflow.usage.models.domain.usage import PeriodUsage, UsageEvent, UsageStats


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_period(period: Union[UsagePeriod, str]) -> UsagePeriod:
    try:
        return UsagePeriod(period)
    except ValueError:
        raise InvalidPeriodError(
            "Invalid period. Must be one of: "
            + ", ".join(member.value for member in UsagePeriod),
            details={"period": period},
        )


def parse_group_by(group_by: Union[GroupBy, str]) -> GroupBy:
    try:
        return GroupBy(group_by)
    except ValueError:
        raise InvalidGroupByError(
            "Invalid groupBy parameter. Must be one of: "
            + ", ".join(member.value for member in GroupBy),
            details={"group_by": group_by},
        )


def week_start(value: datetime) -> datetime:
    """Midnight UTC of the Sunday on or before value."""
    value = _as_utc(value)
    # weekday(): Monday=0 ... Sunday=6
    days_since_sunday = (value.weekday() + 1) % 7
    start = value - timedelta(days=days_since_sunday)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def get_period_start(period: Union[UsagePeriod, str], now: datetime) -> datetime:
    """Resolve a period name to the instant its window starts."""
    period = parse_period(period)
    now = _as_utc(now)

    if period == UsagePeriod.CURRENT_MONTH:
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if period == UsagePeriod.LAST_30_DAYS:
        return now - timedelta(days=30)
    if period == UsagePeriod.LAST_28_DAYS:
        return now - timedelta(days=28)
    return week_start(now)


def get_period_key(timestamp: datetime, group_by: Union[GroupBy, str]) -> str:
    """Bucket key for an event timestamp at the given granularity."""
    group_by = parse_group_by(group_by)
    timestamp = _as_utc(timestamp)

    if group_by == GroupBy.HOUR:
        return timestamp.strftime("%Y-%m-%dT%H:00:00Z")
    if group_by == GroupBy.DAY:
        return timestamp.strftime("%Y-%m-%d")
    if group_by == GroupBy.WEEK:
        return week_start(timestamp).strftime("%Y-%m-%d")
    return timestamp.strftime("%Y-%m")


def group_events_by_period(
    events: Iterable[UsageEvent], group_by: Union[GroupBy, str]
) -> dict[str, float]:
    """
    Sum credits per bucket.

    Buckets keep the order in which they first occur when events are
    walked oldest first, not lexical key order.
    """
    group_by = parse_group_by(group_by)
    grouped: dict[str, float] = {}
    for event in sorted(events, key=lambda e: _as_utc(e.timestamp)):
        key = get_period_key(event.timestamp, group_by)
        grouped[key] = grouped.get(key, 0) + event.credits_used
    return grouped


def calculate_stats(grouped: dict[str, float]) -> UsageStats:
    """Total, average, max and min over bucket sums."""
    if not grouped:
        return UsageStats()

    totals = list(grouped.values())
    total = sum(totals)
    return UsageStats(
        total=total,
        average=total / len(totals),
        max=max(totals),
        min=min(totals),
        by_period=[PeriodUsage(date=key, total=value) for key, value in grouped.items()],
    )

"""
Service for usage totals and bucketed statistics.

Totals are always recomputed from raw events, restricted to the countable
event kinds.
"""

from datetime import datetime
from typing import Sequence, Union

from usageflow.common.core.telemetry import trace_span, get_logger
from usageflow.usage.models.domain.enums import GroupBy, UsagePeriod
from usageflow.usage.models.domain.usage import UsageEvent, UsageStats
from usageflow.usage.repositories.usage_repository import UsageEventRepository
from usageflow.usage.services.periods import (
    calculate_stats,
    get_period_start,
    group_events_by_period,
    parse_group_by,
    utcnow,
)
from usageflow.usage.services.validation import (
    require_identifiers,
    require_non_empty_list,
)

logger = get_logger(__name__)


class UsageAggregator:
    """Service for aggregating usage over time windows."""

    def __init__(self, usage_repo: UsageEventRepository):
        self.usage_repo = usage_repo

    @trace_span
    async def get_total_usage(
        self,
        user_id: str,
        feature_name: str,
        period: Union[UsagePeriod, str] = UsagePeriod.CURRENT_MONTH,
    ) -> float:
        """
        Sum credits for a user and feature since the start of the period.

        Raises:
            InvalidParamsError: missing ids
            InvalidPeriodError: unknown period
        """
        require_identifiers(user_id=user_id, feature_name=feature_name)
        start_date = get_period_start(period, utcnow())
        return await self.usage_repo.sum_credits_since(user_id, feature_name, start_date)

    @trace_span
    async def sum_usage_since(
        self, user_id: str, feature_name: str, start_date: datetime
    ) -> float:
        """Sum credits since an explicit instant."""
        return await self.usage_repo.sum_credits_since(user_id, feature_name, start_date)

    @trace_span
    async def get_usage_stats(
        self,
        user_id: str,
        feature_name: str,
        period: Union[UsagePeriod, str] = UsagePeriod.CURRENT_MONTH,
        group_by: Union[GroupBy, str] = GroupBy.DAY,
    ) -> UsageStats:
        """
        Bucket in-window events and summarise the bucket sums.

        Raises:
            InvalidParamsError: missing ids
            InvalidPeriodError: unknown period
            InvalidGroupByError: unknown granularity
        """
        require_identifiers(user_id=user_id, feature_name=feature_name)
        group_by = parse_group_by(group_by)
        start_date = get_period_start(period, utcnow())

        events = await self.usage_repo.get_events_since(user_id, feature_name, start_date)
        return self._stats_for(events, group_by)

    @trace_span
    async def get_batch_usage_stats(
        self,
        user_ids: Sequence[str],
        feature_names: Sequence[str],
        period: Union[UsagePeriod, str] = UsagePeriod.CURRENT_MONTH,
        group_by: Union[GroupBy, str] = GroupBy.DAY,
    ) -> dict[str, dict[str, UsageStats]]:
        """
        Statistics for every (user, feature) pair.

        Events for all pairs are read in a single fetch and partitioned in
        memory.

        Returns:
            Mapping user_id -> feature_name -> UsageStats
        """
        user_ids = require_non_empty_list("user_ids", user_ids)
        feature_names = require_non_empty_list("feature_names", feature_names)
        group_by = parse_group_by(group_by)
        start_date = get_period_start(period, utcnow())

        events = await self.usage_repo.get_events_for_pairs(
            user_ids, feature_names, start_date
        )

        by_pair: dict[tuple[str, str], list[UsageEvent]] = {}
        for event in events:
            by_pair.setdefault((event.user_id, event.feature_name), []).append(event)

        results: dict[str, dict[str, UsageStats]] = {}
        for user_id in user_ids:
            results[user_id] = {}
            for feature_name in feature_names:
                results[user_id][feature_name] = self._stats_for(
                    by_pair.get((user_id, feature_name), []), group_by
                )

        logger.debug(
            f"Computed batch usage stats for {len(user_ids)} users x {len(feature_names)} features",
            extra={"event_count": len(events), "period": str(period)},
        )
        return results

    def _stats_for(self, events: list[UsageEvent], group_by: GroupBy) -> UsageStats:
        if not events:
            return UsageStats()
        return calculate_stats(group_events_by_period(events, group_by))

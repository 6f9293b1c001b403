"""
Unit tests for UsageAggregator.

Events are seeded with explicit timestamps to exercise window boundaries.
"""

import pytest
from datetime import timedelta
from unittest.mock import patch

from usageflow.common.core.exceptions import (
    InvalidGroupByError,
    InvalidParamsError,
    InvalidPeriodError,
)
from usageflow.usage.models.domain import UsageStats
from usageflow.usage.services.periods import week_start
from usageflow.usage.services.usage_aggregator import UsageAggregator


@pytest.mark.asyncio
class TestGetTotalUsage:
    async def test_only_events_inside_window_count(self, usage_repo, seed, now):
        await seed.event("user-1", "api_calls", 5, now - timedelta(days=40))
        await seed.event("user-1", "api_calls", 3, now - timedelta(days=1))
        aggregator = UsageAggregator(usage_repo)

        total = await aggregator.get_total_usage("user-1", "api_calls", "last_30_days")

        assert total == 3

    async def test_other_users_and_features_ignored(self, usage_repo, seed, now):
        await seed.event("user-1", "api_calls", 2, now - timedelta(hours=1))
        await seed.event("user-2", "api_calls", 50, now - timedelta(hours=1))
        await seed.event("user-1", "exports", 50, now - timedelta(hours=1))
        aggregator = UsageAggregator(usage_repo)

        total = await aggregator.get_total_usage("user-1", "api_calls", "last_28_days")

        assert total == 2

    async def test_all_countable_kinds_are_summed(self, usage_repo, seed, now):
        ts = now - timedelta(hours=2)
        await seed.event("user-1", "api_calls", 10, ts, event_type="usage")
        await seed.event("user-1", "api_calls", -3, ts, event_type="adjustment")
        await seed.event("user-1", "api_calls", 1, ts, event_type="credit")
        aggregator = UsageAggregator(usage_repo)

        total = await aggregator.get_total_usage("user-1", "api_calls", "last_30_days")

        assert total == 8

    async def test_unknown_event_kinds_are_excluded(self, usage_repo, seed, now):
        await seed.event("user-1", "api_calls", 4, now - timedelta(hours=2))
        await seed.event(
            "user-1", "api_calls", 100, now - timedelta(hours=2), event_type="reservation"
        )
        aggregator = UsageAggregator(usage_repo)

        total = await aggregator.get_total_usage("user-1", "api_calls", "last_30_days")

        assert total == 4

    async def test_current_week_starts_sunday_midnight(self, usage_repo, seed, now):
        start = week_start(now)
        await seed.event("user-1", "api_calls", 9, start - timedelta(minutes=1))
        await seed.event("user-1", "api_calls", 2, start)
        aggregator = UsageAggregator(usage_repo)

        total = await aggregator.get_total_usage("user-1", "api_calls", "current_week")

        assert total == 2

    async def test_no_events_gives_zero(self, usage_repo):
        aggregator = UsageAggregator(usage_repo)

        assert await aggregator.get_total_usage("user-1", "api_calls") == 0

    async def test_invalid_period(self, usage_repo):
        aggregator = UsageAggregator(usage_repo)

        with pytest.raises(InvalidPeriodError):
            await aggregator.get_total_usage("user-1", "api_calls", "forever")

    async def test_missing_ids(self, usage_repo):
        aggregator = UsageAggregator(usage_repo)

        with pytest.raises(InvalidParamsError):
            await aggregator.get_total_usage("", "api_calls")


@pytest.mark.asyncio
class TestGetUsageStats:
    async def test_daily_buckets(self, usage_repo, seed, now):
        day_one = (now - timedelta(days=3)).replace(hour=9, minute=0, second=0, microsecond=0)
        day_two = day_one + timedelta(days=1)
        await seed.event("user-1", "api_calls", 3, day_one)
        await seed.event("user-1", "api_calls", 1, day_one + timedelta(hours=2))
        await seed.event("user-1", "api_calls", 10, day_two)
        aggregator = UsageAggregator(usage_repo)

        stats = await aggregator.get_usage_stats(
            "user-1", "api_calls", period="last_30_days", group_by="day"
        )

        assert stats.total == 14
        assert stats.average == 7
        assert stats.max == 10
        assert stats.min == 4
        assert [p.date for p in stats.by_period] == [
            day_one.strftime("%Y-%m-%d"),
            day_two.strftime("%Y-%m-%d"),
        ]

    async def test_hourly_buckets(self, usage_repo, seed, now):
        hour = (now - timedelta(days=2)).replace(minute=5, second=0, microsecond=0)
        await seed.event("user-1", "api_calls", 2, hour)
        await seed.event("user-1", "api_calls", 2, hour + timedelta(minutes=30))
        aggregator = UsageAggregator(usage_repo)

        stats = await aggregator.get_usage_stats(
            "user-1", "api_calls", period="last_30_days", group_by="hour"
        )

        assert len(stats.by_period) == 1
        assert stats.by_period[0].date == hour.strftime("%Y-%m-%dT%H:00:00Z")
        assert stats.by_period[0].total == 4

    async def test_no_events_gives_zeroed_stats(self, usage_repo):
        aggregator = UsageAggregator(usage_repo)

        stats = await aggregator.get_usage_stats("user-1", "api_calls")

        assert stats == UsageStats()
        assert stats.by_period == []

    async def test_invalid_group_by(self, usage_repo):
        aggregator = UsageAggregator(usage_repo)

        with pytest.raises(InvalidGroupByError):
            await aggregator.get_usage_stats("user-1", "api_calls", group_by="minute")


@pytest.mark.asyncio
class TestGetBatchUsageStats:
    async def test_one_entry_per_pair(self, usage_repo, seed, now):
        ts = now - timedelta(days=2)
        await seed.event("user-1", "api_calls", 5, ts)
        await seed.event("user-2", "exports", 2, ts)
        await seed.event("user-3", "api_calls", 99, ts)
        aggregator = UsageAggregator(usage_repo)

        results = await aggregator.get_batch_usage_stats(
            ["user-1", "user-2"], ["api_calls", "exports"], period="last_30_days"
        )

        assert set(results) == {"user-1", "user-2"}
        assert set(results["user-1"]) == {"api_calls", "exports"}
        assert set(results["user-2"]) == {"api_calls", "exports"}
        assert results["user-1"]["api_calls"].total == 5
        assert results["user-1"]["exports"] == UsageStats()
        assert results["user-2"]["exports"].total == 2
        assert results["user-2"]["api_calls"] == UsageStats()

    async def test_single_store_fetch(self, usage_repo, seed, now):
        await seed.event("user-1", "api_calls", 1, now - timedelta(hours=1))
        aggregator = UsageAggregator(usage_repo)

        with patch.object(
            usage_repo.store, "fetch_many", wraps=usage_repo.store.fetch_many
        ) as fetch_many:
            await aggregator.get_batch_usage_stats(
                ["user-1", "user-2", "user-3"], ["api_calls", "exports"]
            )

        assert fetch_many.await_count == 1

    @pytest.mark.parametrize(
        "user_ids,feature_names",
        [([], ["api_calls"]), (["user-1"], []), (None, ["api_calls"])],
    )
    async def test_empty_lists_rejected(self, usage_repo, user_ids, feature_names):
        aggregator = UsageAggregator(usage_repo)

        with pytest.raises(InvalidParamsError):
            await aggregator.get_batch_usage_stats(user_ids, feature_names)

"""
Unit tests for UsageEventRepository.
"""

import pytest
from datetime import timedelta

from usageflow.usage.models.domain import UsageEventType


@pytest.mark.asyncio
class TestUsageEventRepository:
    async def test_events_since_oldest_first(self, usage_repo, seed, now):
        await seed.event("user-1", "api_calls", 2, now - timedelta(hours=1))
        await seed.event("user-1", "api_calls", 1, now - timedelta(hours=5))

        events = await usage_repo.get_events_since(
            "user-1", "api_calls", now - timedelta(days=1)
        )

        assert [event.credits_used for event in events] == [1, 2]
        assert all(event.timestamp.tzinfo is not None for event in events)

    async def test_event_type_filter(self, usage_repo, seed, now):
        ts = now - timedelta(hours=1)
        await seed.event("user-1", "api_calls", 2, ts, event_type="usage")
        await seed.event("user-1", "api_calls", 5, ts, event_type="credit")

        events = await usage_repo.get_events_since(
            "user-1", "api_calls", now - timedelta(days=1), event_types=[UsageEventType.CREDIT]
        )

        assert [event.event_type for event in events] == [UsageEventType.CREDIT]

    async def test_events_for_pairs(self, usage_repo, seed, now):
        ts = now - timedelta(hours=1)
        await seed.event("user-1", "api_calls", 1, ts)
        await seed.event("user-2", "exports", 1, ts)
        await seed.event("user-3", "api_calls", 1, ts)

        events = await usage_repo.get_events_for_pairs(
            ["user-1", "user-2"], ["api_calls", "exports"], now - timedelta(days=1)
        )

        assert sorted(event.user_id for event in events) == ["user-1", "user-2"]

    async def test_sum_credits_since(self, usage_repo, seed, now):
        await seed.event("user-1", "api_calls", 1.5, now - timedelta(hours=1))
        await seed.event("user-1", "api_calls", 2.5, now - timedelta(hours=2))

        total = await usage_repo.sum_credits_since(
            "user-1", "api_calls", now - timedelta(days=1)
        )

        assert total == 4

"""
Repository for usage events.
"""

from datetime import datetime
from typing import Iterable, Sequence

from usageflow.common.core.telemetry import trace_span
from usageflow.common.repositories.base import EventStore, eq, gte, in_
from usageflow.common.repositories.repository import BaseRepository
from usageflow.usage.models.domain.enums import COUNTABLE_EVENT_TYPES, UsageEventType
from usageflow.usage.models.domain.usage import UsageEvent


def _type_values(event_types: Iterable[UsageEventType]) -> list[str]:
    return sorted(event_type.value for event_type in event_types)


class UsageEventRepository(BaseRepository[UsageEvent]):
    """Repository for appending and reading usage events."""

    def __init__(self, store: EventStore, collection: str):
        super().__init__(store, collection, UsageEvent)

    @trace_span
    async def get_events_since(
        self,
        user_id: str,
        feature_name: str,
        start_date: datetime,
        event_types: Iterable[UsageEventType] = COUNTABLE_EVENT_TYPES,
    ) -> list[UsageEvent]:
        """Events of one user and feature at or after start_date, oldest first."""
        return await self.get_many(
            [
                eq("user_id", user_id),
                eq("feature_name", feature_name),
                gte("timestamp", start_date),
                in_("event_type", _type_values(event_types)),
            ],
            order_by="timestamp",
        )

    @trace_span
    async def get_events_for_pairs(
        self,
        user_ids: Sequence[str],
        feature_names: Sequence[str],
        start_date: datetime,
        event_types: Iterable[UsageEventType] = COUNTABLE_EVENT_TYPES,
    ) -> list[UsageEvent]:
        """
        Events for every (user, feature) combination in one fetch.

        Used by batch statistics to avoid one round trip per pair.
        """
        return await self.get_many(
            [
                in_("user_id", user_ids),
                in_("feature_name", feature_names),
                gte("timestamp", start_date),
                in_("event_type", _type_values(event_types)),
            ],
            order_by="timestamp",
        )

    @trace_span
    async def sum_credits_since(
        self,
        user_id: str,
        feature_name: str,
        start_date: datetime,
        event_types: Iterable[UsageEventType] = COUNTABLE_EVENT_TYPES,
    ) -> float:
        """Sum of credits_used for one user and feature since start_date."""
        events = await self.get_events_since(
            user_id, feature_name, start_date, event_types=event_types
        )
        return sum(event.credits_used for event in events)

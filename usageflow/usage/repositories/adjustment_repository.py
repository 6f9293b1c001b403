"""
Repository for limit adjustments.
"""

from datetime import datetime

from usageflow.common.core.telemetry import trace_span
from usageflow.common.repositories.base import EventStore, eq, gte, lte
from usageflow.common.repositories.repository import BaseRepository
from usageflow.usage.models.domain.adjustments import LimitAdjustment


class LimitAdjustmentRepository(BaseRepository[LimitAdjustment]):
    """Repository for temporary limit adjustments."""

    def __init__(self, store: EventStore, collection: str):
        super().__init__(store, collection, LimitAdjustment)

    @trace_span
    async def get_active(
        self, user_id: str, feature_name: str, now: datetime
    ) -> list[LimitAdjustment]:
        """Adjustments whose window [start_date, end_date] contains now."""
        return await self.get_many(
            [
                eq("user_id", user_id),
                eq("feature_name", feature_name),
                lte("start_date", now),
                gte("end_date", now),
            ]
        )

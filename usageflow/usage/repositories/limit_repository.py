"""
Repositories for users, plans and feature limits.
"""

from typing import Optional

from usageflow.common.core.telemetry import trace_span
from usageflow.common.repositories.base import EventStore, eq
from usageflow.common.repositories.repository import BaseRepository
from usageflow.usage.models.domain.limits import FeatureLimit, Plan, UserProfile


class UserRepository(BaseRepository[UserProfile]):
    """Repository for user profiles."""

    def __init__(self, store: EventStore, collection: str):
        super().__init__(store, collection, UserProfile)

    @trace_span
    async def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        return await self.get_one([eq("id", user_id)])

    @trace_span
    async def get_by_email(self, email: str) -> Optional[UserProfile]:
        return await self.get_one([eq("email", email)])

    @trace_span
    async def get_by_stripe_customer_id(self, customer_id: str) -> Optional[UserProfile]:
        return await self.get_one([eq("stripe_customer_id", customer_id)])

    @trace_span
    async def set_price_id(
        self,
        user_id: str,
        price_id: Optional[str],
        stripe_customer_id: Optional[str] = None,
    ) -> bool:
        """
        Point a user at a new plan identifier.

        Returns:
            True if the user exists and was updated
        """
        values = {"price_id": price_id}
        if stripe_customer_id:
            values["stripe_customer_id"] = stripe_customer_id
        updated = await self.store.update(self.collection, [eq("id", user_id)], values)
        return updated > 0


class PlanRepository(BaseRepository[Plan]):
    """Repository for plan records."""

    def __init__(self, store: EventStore, collection: str):
        super().__init__(store, collection, Plan)

    @trace_span
    async def get_by_price_id(self, price_id: str) -> Optional[Plan]:
        return await self.get_one([eq("price_id", price_id)])


class FeatureLimitRepository(BaseRepository[FeatureLimit]):
    """Repository for per-plan feature limits."""

    def __init__(self, store: EventStore, collection: str):
        super().__init__(store, collection, FeatureLimit)

    @trace_span
    async def get_limit(self, plan_id: int, feature_name: str) -> Optional[FeatureLimit]:
        """The limit row for a plan and feature; None means unlimited."""
        return await self.get_one(
            [eq("plan_id", plan_id), eq("feature_name", feature_name)]
        )

"""
Service for resolving feature limits.
"""

from typing import Optional

from usageflow.common.core.exceptions import (
    AdjustmentError,
    InvalidParamsError,
    PlanNotFoundError,
    ProfileNotFoundError,
)
from usageflow.common.core.telemetry import trace_span, get_logger
from usageflow.usage.repositories.limit_repository import (
    FeatureLimitRepository,
    PlanRepository,
    UserRepository,
)
from usageflow.usage.services.adjustment_service import AdjustmentResolver
from usageflow.usage.services.validation import require_identifiers

logger = get_logger(__name__)


class LimitResolver:
    """Resolves base and effective feature limits."""

    def __init__(
        self,
        user_repo: UserRepository,
        plan_repo: PlanRepository,
        limit_repo: FeatureLimitRepository,
        adjustment_resolver: AdjustmentResolver,
    ):
        self.user_repo = user_repo
        self.plan_repo = plan_repo
        self.limit_repo = limit_repo
        self.adjustment_resolver = adjustment_resolver

    @trace_span
    async def fetch_feature_limit(
        self, plan_id: int, feature_name: str
    ) -> Optional[float]:
        """
        Base limit of a feature on a plan.

        Returns:
            The limit, or None when the plan has no limit for the feature
        """
        if plan_id is None or plan_id == "":
            raise InvalidParamsError(
                "Missing required parameters: plan_id",
                details={"missing": ["plan_id"]},
            )
        require_identifiers(feature_name=feature_name)

        limit = await self.limit_repo.get_limit(plan_id, feature_name)
        return limit.limit_value if limit else None

    @trace_span
    async def fetch_feature_limit_for_user(
        self, user_id: str, feature_name: str
    ) -> Optional[float]:
        """
        Effective limit for a user: the plan's base limit plus active adjustments.

        Raises:
            InvalidParamsError: missing ids
            ProfileNotFoundError: no profile for the user
            PlanNotFoundError: no plan identifier, or no plan record for it
            AdjustmentError: adjustments could not be read
        """
        require_identifiers(user_id=user_id, feature_name=feature_name)

        profile = await self.user_repo.get_by_id(user_id)
        if not profile:
            raise ProfileNotFoundError(
                "User profile not found",
                details={"user_id": user_id},
            )

        if not profile.price_id:
            raise PlanNotFoundError(
                "No plan identifier on user profile",
                details={"user_id": user_id},
            )

        plan = await self.plan_repo.get_by_price_id(profile.price_id)
        if not plan:
            raise PlanNotFoundError(
                "Plan not found for price id",
                details={"user_id": user_id, "price_id": profile.price_id},
            )

        limit = await self.fetch_feature_limit(plan.id, feature_name)
        if limit is None or not self.adjustment_resolver.enabled:
            return limit

        try:
            adjustment = await self.adjustment_resolver.sum_active_adjustments(
                user_id, feature_name
            )
        except Exception as e:
            logger.error(
                f"Failed to apply limit adjustments: {e}",
                extra={"user_id": user_id, "feature_name": feature_name},
            )
            raise AdjustmentError(
                "Failed to apply limit adjustments",
                details={
                    "user_id": user_id,
                    "feature_name": feature_name,
                    "error": str(e),
                },
            ) from e

        return limit + adjustment

"""
Service for authorization decisions against plan limits.
"""

from datetime import timedelta

from usageflow.common.core.constants import AUTHORIZATION_WINDOW_DAYS
from usageflow.common.core.exceptions import (
    NoPlanAssignedError,
    PlanNotFoundError,
    UserNotFoundError,
)
from usageflow.common.core.telemetry import trace_span, get_logger
from usageflow.usage.repositories.limit_repository import (
    PlanRepository,
    UserRepository,
)
from usageflow.usage.services.limit_service import LimitResolver
from usageflow.usage.services.periods import utcnow
from usageflow.usage.services.usage_aggregator import UsageAggregator
from usageflow.usage.services.validation import require_identifiers

logger = get_logger(__name__)


class AuthorizationEngine:
    """Decides whether a user may consume a feature right now."""

    def __init__(
        self,
        user_repo: UserRepository,
        plan_repo: PlanRepository,
        limit_resolver: LimitResolver,
        aggregator: UsageAggregator,
    ):
        self.user_repo = user_repo
        self.plan_repo = plan_repo
        self.limit_resolver = limit_resolver
        self.aggregator = aggregator

    @trace_span
    async def authorize(self, user_id: str, feature_name: str) -> bool:
        """
        Check usage over the trailing window against the plan's base limit.

        The decision is a snapshot; nothing is reserved, so concurrent
        callers can both be allowed just below the limit. Limit adjustments
        are not applied here.

        Returns:
            True if usage is strictly below the limit or the feature is unlimited

        Raises:
            InvalidParamsError: missing ids
            UserNotFoundError: unknown user
            NoPlanAssignedError: user has no plan identifier
            PlanNotFoundError: no plan record for the identifier
        """
        require_identifiers(user_id=user_id, feature_name=feature_name)

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(
                "User not found",
                details={"user_id": user_id},
            )

        if not user.price_id:
            raise NoPlanAssignedError(
                "User has no plan assigned",
                details={"user_id": user_id},
            )

        plan = await self.plan_repo.get_by_price_id(user.price_id)
        if not plan:
            raise PlanNotFoundError(
                "Plan not found for price id",
                details={"user_id": user_id, "price_id": user.price_id},
            )

        limit = await self.limit_resolver.fetch_feature_limit(plan.id, feature_name)
        if limit is None:
            logger.debug(
                f"No limit for {feature_name} on plan {plan.name}, allowing",
                extra={"user_id": user_id, "plan_id": plan.id},
            )
            return True

        start_date = utcnow() - timedelta(days=AUTHORIZATION_WINDOW_DAYS)
        usage = await self.aggregator.sum_usage_since(user_id, feature_name, start_date)
        allowed = usage < limit

        logger.info(
            f"Authorization for {feature_name}: {'allowed' if allowed else 'denied'}",
            extra={
                "user_id": user_id,
                "feature_name": feature_name,
                "usage": usage,
                "limit": limit,
                "allowed": allowed,
            },
        )
        return allowed

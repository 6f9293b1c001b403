"""
Service for temporary limit adjustments.
"""

from datetime import datetime, timedelta
from typing import Optional, Union

from usageflow.common.core.constants import DEFAULT_ADJUSTMENT_DAYS
from usageflow.common.core.exceptions import (
    AdjustmentsDisabledError,
    InvalidParamsError,
    StorageError,
)
from usageflow.common.core.telemetry import trace_span, get_logger, log_span_event
from usageflow.usage.models.domain.adjustments import (
    LimitAdjustment,
    LimitAdjustmentCreateModel,
)
from usageflow.usage.models.domain.enums import AdjustmentType
from usageflow.usage.repositories.adjustment_repository import (
    LimitAdjustmentRepository,
)
from usageflow.usage.services.periods import utcnow
from usageflow.usage.services.validation import require_identifiers, require_number

logger = get_logger(__name__)


class AdjustmentResolver:
    """Creates limit adjustments and sums the ones currently active."""

    def __init__(self, adjustment_repo: LimitAdjustmentRepository, enabled: bool):
        self.adjustment_repo = adjustment_repo
        self.enabled = enabled

    @trace_span
    async def get_active_adjustments(self, user_id: str, feature_name: str) -> float:
        """
        Sum of active adjustment amounts, failing open.

        A store failure is logged and treated as no adjustments, so an
        adjustment-store outage degrades to base plan limits instead of
        blocking callers.
        """
        if not self.enabled:
            return 0

        try:
            return await self.sum_active_adjustments(user_id, feature_name)
        except StorageError as e:
            logger.error(
                f"Error fetching adjustments, treating as none: {e.message}",
                extra={
                    "user_id": user_id,
                    "feature_name": feature_name,
                    "error": str(e),
                },
            )
            log_span_event(
                "adjustments.fail_open",
                {"user_id": user_id, "feature_name": feature_name},
            )
            return 0

    @trace_span
    async def sum_active_adjustments(self, user_id: str, feature_name: str) -> float:
        """
        Sum of active adjustment amounts.

        Raises:
            StorageError: the store failed
        """
        if not self.enabled:
            return 0

        adjustments = await self.adjustment_repo.get_active(
            user_id, feature_name, utcnow()
        )
        return sum(adjustment.amount for adjustment in adjustments)

    @trace_span
    async def add_adjustment(
        self,
        user_id: str,
        feature_name: str,
        amount: float,
        type: Union[AdjustmentType, str] = AdjustmentType.ONE_TIME,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> LimitAdjustment:
        """
        Create a limit adjustment.

        Args:
            user_id: User receiving the adjustment
            feature_name: Feature whose limit is adjusted
            amount: Signed delta applied to the base limit
            type: one_time or recurring
            start_date: Window start, defaults to now
            end_date: Window end, defaults to 30 days after now

        Raises:
            AdjustmentsDisabledError: adjustments are disabled
            InvalidParamsError: bad arguments or an inverted window
        """
        if not self.enabled:
            raise AdjustmentsDisabledError(
                "User adjustments are not enabled in configuration",
                details={"enable_user_adjustments": False},
            )

        require_identifiers(user_id=user_id, feature_name=feature_name)
        require_number("amount", amount)
        try:
            adjustment_type = AdjustmentType(type)
        except ValueError:
            raise InvalidParamsError(
                "Invalid adjustment type. Must be one of: "
                + ", ".join(member.value for member in AdjustmentType),
                details={"type": type},
            )

        now = utcnow()
        start_date = start_date or now
        end_date = end_date or now + timedelta(days=DEFAULT_ADJUSTMENT_DAYS)
        if end_date < start_date:
            raise InvalidParamsError(
                "Adjustment end_date must not be before start_date",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )

        adjustment = await self.adjustment_repo.create(
            LimitAdjustmentCreateModel(
                user_id=user_id,
                feature_name=feature_name,
                amount=amount,
                type=adjustment_type,
                start_date=start_date,
                end_date=end_date,
            )
        )

        logger.info(
            f"Added {adjustment_type.value} limit adjustment {adjustment.id}",
            extra={
                "adjustment_id": adjustment.id,
                "user_id": user_id,
                "feature_name": feature_name,
                "amount": amount,
            },
        )
        return adjustment

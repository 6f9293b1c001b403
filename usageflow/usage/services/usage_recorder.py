"""
Service for recording usage events.
"""

from typing import Any, Optional, Union

from usageflow.common.core.exceptions import (
    AdjustmentError,
    InvalidParamsError,
    StorageError,
)
from usageflow.common.core.telemetry import trace_span, get_logger
from usageflow.usage.models.domain.enums import UsageEventType
from usageflow.usage.models.domain.usage import UsageEvent, UsageEventCreateModel
from usageflow.usage.repositories.usage_repository import UsageEventRepository
from usageflow.usage.services.periods import utcnow
from usageflow.usage.services.validation import (
    require_identifiers,
    require_metadata,
    require_number,
)

logger = get_logger(__name__)


class UsageRecorder:
    """Validates and appends usage events. Append-only; no read-modify-write."""

    def __init__(self, usage_repo: UsageEventRepository):
        self.usage_repo = usage_repo

    @trace_span
    async def record_usage(
        self,
        user_id: str,
        feature_name: str,
        credits_used: float,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UsageEvent:
        """
        Record consumption of a feature.

        Args:
            user_id: User consuming the feature
            feature_name: Metered feature key
            credits_used: Credits consumed (signed)
            metadata: Opaque event metadata

        Raises:
            InvalidParamsError: missing ids or non-numeric credits
            StorageError: the store rejected the event
        """
        return await self._append(
            user_id, feature_name, credits_used, UsageEventType.USAGE, metadata
        )

    @trace_span
    async def record_adjustment(
        self,
        user_id: str,
        feature_name: str,
        amount: float,
        metadata: Optional[dict[str, Any]],
    ) -> UsageEvent:
        """
        Record a manual correction to a user's usage.

        The amount is stored as-is in credits_used. metadata must carry a
        non-empty "reason".

        Raises:
            InvalidParamsError: missing ids or non-numeric amount
            AdjustmentError: no reason given
            StorageError: the store rejected the event
        """
        require_identifiers(user_id=user_id, feature_name=feature_name)
        require_number("amount", amount)
        metadata = require_metadata(metadata)

        if not metadata.get("reason"):
            logger.warning(
                "Rejected usage adjustment without a reason",
                extra={"user_id": user_id, "feature_name": feature_name},
            )
            raise AdjustmentError(
                "Adjustment metadata must include a reason",
                details={"user_id": user_id, "feature_name": feature_name},
            )

        return await self._append(
            user_id, feature_name, amount, UsageEventType.ADJUSTMENT, metadata
        )

    @trace_span
    async def record_credit(
        self,
        user_id: str,
        feature_name: str,
        amount: float,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UsageEvent:
        """Record credits granted back to a user."""
        return await self._append(
            user_id, feature_name, amount, UsageEventType.CREDIT, metadata
        )

    @trace_span
    async def track_event(
        self,
        user_id: str,
        feature_name: str,
        event_type: Union[UsageEventType, str],
        credits_used: float,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UsageEvent:
        """Record an event of any known type; adjustments still need a reason."""
        try:
            event_type = UsageEventType(event_type)
        except ValueError:
            raise InvalidParamsError(
                "Invalid event type. Must be one of: "
                + ", ".join(member.value for member in UsageEventType),
                details={"event_type": event_type},
            )

        if event_type == UsageEventType.ADJUSTMENT:
            return await self.record_adjustment(
                user_id, feature_name, credits_used, metadata
            )
        return await self._append(
            user_id, feature_name, credits_used, event_type, metadata
        )

    async def _append(
        self,
        user_id: str,
        feature_name: str,
        credits_used: float,
        event_type: UsageEventType,
        metadata: Optional[dict[str, Any]],
    ) -> UsageEvent:
        require_identifiers(user_id=user_id, feature_name=feature_name)
        require_number("credits_used", credits_used)

        event_data = UsageEventCreateModel(
            user_id=user_id,
            feature_name=feature_name,
            credits_used=credits_used,
            event_type=event_type,
            metadata=require_metadata(metadata),
            timestamp=utcnow(),
        )

        try:
            event = await self.usage_repo.create(event_data)
        except StorageError as e:
            raise StorageError(
                f"Failed to record {event_type.value} event",
                details={
                    "collection": self.usage_repo.collection,
                    "event": event_data.model_dump(mode="json"),
                    "cause": e.details,
                },
            ) from e

        logger.debug(
            f"Recorded {event_type.value} event {event.id}",
            extra={
                "event_id": event.id,
                "user_id": user_id,
                "feature_name": feature_name,
                "credits_used": credits_used,
            },
        )
        return event

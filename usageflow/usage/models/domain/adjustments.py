"""Domain models for temporary limit adjustments."""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from usageflow.usage.models.domain.enums import AdjustmentType


class LimitAdjustment(BaseModel):
    """
    A signed delta on a user's base limit for one feature.

    Counted while start_date <= now <= end_date; never mutated or deleted.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    user_id: str
    feature_name: str
    amount: float
    type: AdjustmentType
    start_date: datetime
    end_date: datetime


class LimitAdjustmentCreateModel(BaseModel):
    """Model for creating a limit adjustment."""

    model_config = ConfigDict(use_enum_values=True)

    user_id: str
    feature_name: str
    amount: float
    type: AdjustmentType = Field(default=AdjustmentType.ONE_TIME, validate_default=True)
    start_date: datetime
    end_date: datetime

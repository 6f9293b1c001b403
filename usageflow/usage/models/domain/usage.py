"""
Domain models for usage events and statistics.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from usageflow.usage.models.domain.enums import UsageEventType


class UsageEvent(BaseModel):
    """
    Individual usage event record.

    Immutable once stored; totals are always derived by re-aggregating
    these rows.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    user_id: str
    feature_name: str
    credits_used: float
    event_type: UsageEventType
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class UsageEventCreateModel(BaseModel):
    """Model for creating a usage event."""

    model_config = ConfigDict(use_enum_values=True)

    user_id: str
    feature_name: str
    credits_used: float
    event_type: UsageEventType
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class PeriodUsage(BaseModel):
    """Summed credits for one bucket."""

    date: str
    total: float


class UsageStats(BaseModel):
    """
    Bucketed usage statistics for one user and feature.

    average, max and min are computed over bucket sums, not raw events.
    """

    total: float = 0
    average: float = 0
    max: float = 0
    min: float = 0
    by_period: list[PeriodUsage] = Field(default_factory=list)


class UsageSummary(BaseModel):
    """Current consumption against the effective limit."""

    current: float
    limit: Optional[float] = None
    remaining: Optional[float] = None
    is_unlimited: bool

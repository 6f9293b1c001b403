"""Usage accounting and plan limit enforcement."""

from usageflow.client import UsageFlow
from usageflow.common.core.config import UsageFlowSettings, load_settings
from usageflow.common.core.exceptions import (
    AdjustmentError,
    AdjustmentsDisabledError,
    ConfigError,
    ErrorCode,
    InvalidGroupByError,
    InvalidParamsError,
    InvalidPeriodError,
    NoPlanAssignedError,
    PlanNotFoundError,
    ProfileNotFoundError,
    StorageError,
    UsageFlowError,
    UserNotFoundError,
    WebhookError,
)

__all__ = [
    "UsageFlow",
    "UsageFlowSettings",
    "load_settings",
    # Errors
    "AdjustmentError",
    "AdjustmentsDisabledError",
    "ConfigError",
    "ErrorCode",
    "InvalidGroupByError",
    "InvalidParamsError",
    "InvalidPeriodError",
    "NoPlanAssignedError",
    "PlanNotFoundError",
    "ProfileNotFoundError",
    "StorageError",
    "UsageFlowError",
    "UserNotFoundError",
    "WebhookError",
]

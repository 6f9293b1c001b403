import json
from enum import Enum
from typing import Any, Optional


class AppException(Exception):
    """Base application exception."""

    pass


class ErrorCode(str, Enum):
    """Stable error codes surfaced to callers."""

    INVALID_PARAMS = "USAGE_INVALID_PARAMS"
    INVALID_PERIOD = "USAGE_INVALID_PERIOD"
    INVALID_GROUP_BY = "USAGE_INVALID_GROUP_BY"
    USER_NOT_FOUND = "USAGE_USER_NOT_FOUND"
    NO_PLAN_ASSIGNED = "USAGE_NO_PLAN_ASSIGNED"
    PROFILE_NOT_FOUND = "USAGE_PROFILE_NOT_FOUND"
    PLAN_NOT_FOUND = "USAGE_PLAN_NOT_FOUND"
    ADJUSTMENT_ERROR = "USAGE_ADJUSTMENT_ERROR"
    STORAGE_ERROR = "USAGE_STORAGE_ERROR"
    CONFIG_ERROR = "USAGE_CONFIG_ERROR"
    WEBHOOK_ERROR = "USAGE_WEBHOOK_ERROR"


class UsageFlowError(AppException):
    """
    Classified error with a code and structured details.

    Subclasses pin the code; details carry the lookup keys or payload
    that make the failure diagnosable.
    """

    code: ErrorCode = ErrorCode.INVALID_PARAMS

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        code: Optional[ErrorCode] = None,
    ):
        if code is not None:
            self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self._format())

    def _format(self) -> str:
        details = json.dumps(self.details, default=str, sort_keys=True)
        return f"{self.message} (Code: {self.code.value}) - Details: {details}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidParamsError(UsageFlowError):
    """Required argument missing or of the wrong type."""

    code = ErrorCode.INVALID_PARAMS


class InvalidPeriodError(UsageFlowError):
    """Unsupported aggregation period."""

    code = ErrorCode.INVALID_PERIOD


class InvalidGroupByError(UsageFlowError):
    """Unsupported bucket granularity."""

    code = ErrorCode.INVALID_GROUP_BY


class UserNotFoundError(UsageFlowError):
    code = ErrorCode.USER_NOT_FOUND


class NoPlanAssignedError(UsageFlowError):
    code = ErrorCode.NO_PLAN_ASSIGNED


class ProfileNotFoundError(UsageFlowError):
    code = ErrorCode.PROFILE_NOT_FOUND


class PlanNotFoundError(UsageFlowError):
    code = ErrorCode.PLAN_NOT_FOUND


class AdjustmentError(UsageFlowError):
    """Invalid adjustment event, or adjustment summing failed during limit resolution."""

    code = ErrorCode.ADJUSTMENT_ERROR


class StorageError(UsageFlowError):
    """The event store raised; details name the collection and query keys."""

    code = ErrorCode.STORAGE_ERROR


class ConfigError(UsageFlowError):
    code = ErrorCode.CONFIG_ERROR


class AdjustmentsDisabledError(ConfigError):
    """Limit adjustments were requested but are disabled in configuration."""

    pass


class WebhookError(UsageFlowError):
    """Webhook payload could not be verified or parsed."""

    code = ErrorCode.WEBHOOK_ERROR

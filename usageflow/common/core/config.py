from typing import Any, Optional

from pydantic import ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from usageflow.common.core.exceptions import ConfigError

_SECRET_FIELDS = ("database_url", "stripe_secret_key", "stripe_webhook_secret")

_STRIPE_FIELDS = ("stripe_secret_key", "stripe_webhook_secret")


class UsageFlowSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="USAGEFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Database
    database_url: str
    db_use_nullpool: bool = False
    db_pool_size: int = 10
    db_pool_overflow: int = 5

    # Collections
    users_table: str = "users"
    plans_table: str = "plans"
    usage_events_table: str = "usage_events"
    usage_feature_limits_table: str = "usage_feature_limits"
    user_limit_adjustments_table: str = "user_limit_adjustments"

    # Limit adjustments
    enable_user_adjustments: bool = False

    # Stripe
    manual_stripe_integration: bool = False
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None

    # OpenTelemetry
    otel_service_name: str = "usageflow"
    otel_service_version: str = "0.1.0"
    otlp_endpoint: Optional[str] = None  # traces are only exported when set
    otlp_headers: dict[str, str] = {}

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver selected."""
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.database_url

    @model_validator(mode="after")
    def _require_stripe_credentials(self) -> "UsageFlowSettings":
        if self.manual_stripe_integration:
            return self

        missing = [name for name in _STRIPE_FIELDS if not getattr(self, name)]
        if missing:
            raise ValueError(f"Missing required config: {', '.join(missing)}")
        return self

    def redacted(self) -> dict[str, Any]:
        """Settings as a dict that is safe to log."""
        data = self.model_dump()
        for name in _SECRET_FIELDS:
            if data.get(name):
                data[name] = "[REDACTED]"
        if data.get("otlp_headers"):
            data["otlp_headers"] = {key: "[REDACTED]" for key in data["otlp_headers"]}
        return data


def load_settings(**overrides: Any) -> UsageFlowSettings:
    """
    Build settings from the environment plus explicit overrides.

    Fails fast with a ConfigError naming every missing required field.
    """
    try:
        return UsageFlowSettings(**overrides)
    except ValidationError as e:
        missing = []
        for error in e.errors():
            if error["type"] == "missing":
                missing.append(".".join(str(part) for part in error["loc"]))
            elif error["type"] == "value_error":
                # raised by _require_stripe_credentials
                missing.extend(
                    name
                    for name in _STRIPE_FIELDS
                    if name in error["msg"] and name not in missing
                )

        if missing:
            raise ConfigError(
                f"Missing required config: {', '.join(missing)}",
                details={"missing": missing},
            ) from e
        raise ConfigError(
            "Invalid configuration",
            details={"errors": [error["msg"] for error in e.errors()]},
        ) from e

"""
UsageFlow client.

Wires the store, repositories and services together from one settings
object and exposes the public operations.
"""

from datetime import datetime
from typing import Any, Optional, Sequence, Union

from sqlalchemy import select

from usageflow.common.core.config import UsageFlowSettings, load_settings
from usageflow.common.core.exceptions import ConfigError
from usageflow.common.core.telemetry import configure_telemetry, get_logger, trace_span
from usageflow.common.db.session import create_engine, create_session_factory
from usageflow.common.repositories.sqlalchemy_store import SQLAlchemyEventStore
from usageflow.usage.models.database.tables import build_tables
from usageflow.usage.models.domain import (
    AdjustmentType,
    GroupBy,
    LimitAdjustment,
    UsageEvent,
    UsageEventType,
    UsagePeriod,
    UsageStats,
    UsageSummary,
)
from usageflow.usage.repositories import (
    FeatureLimitRepository,
    LimitAdjustmentRepository,
    PlanRepository,
    UsageEventRepository,
    UserRepository,
)
from usageflow.usage.services import (
    AdjustmentResolver,
    AuthorizationEngine,
    LimitResolver,
    UsageAggregator,
    UsageRecorder,
)
from usageflow.billing.providers.payment.factory import get_payment_provider
from usageflow.billing.providers.payment.interface import PaymentProviderInterface
from usageflow.billing.services.subscription_sync import SubscriptionSyncService
from usageflow.billing.webhooks.stripe_webhook import (
    StripeWebhookProcessor,
    default_handlers,
)

logger = get_logger(__name__)


class UsageFlow:
    """
    Usage accounting and limit enforcement client.

    Build it from a UsageFlowSettings instance, or from keyword overrides on
    top of USAGEFLOW_* environment variables:

        flow = UsageFlow(database_url="postgresql://...", manual_stripe_integration=True)
        if await flow.authorize("user-1", "api_calls"):
            await flow.record_usage("user-1", "api_calls", 1)

    With automatic Stripe integration (the default) the client also keeps
    user plan identifiers in sync via sync_subscription and handle_webhook.
    In manual mode only the raw provider is exposed as ``stripe``, when a
    secret key is configured.
    """

    def __init__(self, settings: Optional[UsageFlowSettings] = None, **overrides: Any):
        self.settings = settings or load_settings(**overrides)
        configure_telemetry(self.settings)
        logger.debug("UsageFlow configuration", extra={"config": self.settings.redacted()})

        self.engine = create_engine(self.settings)
        self.session_factory = create_session_factory(self.engine)
        self.tables = build_tables(self.settings)
        self.store = SQLAlchemyEventStore(self.tables.by_name(), self.session_factory)

        self.users = UserRepository(self.store, self.settings.users_table)
        self.plans = PlanRepository(self.store, self.settings.plans_table)
        self.limits = FeatureLimitRepository(
            self.store, self.settings.usage_feature_limits_table
        )
        self.usage_events = UsageEventRepository(
            self.store, self.settings.usage_events_table
        )
        self.adjustments = LimitAdjustmentRepository(
            self.store, self.settings.user_limit_adjustments_table
        )

        self.recorder = UsageRecorder(self.usage_events)
        self.aggregator = UsageAggregator(self.usage_events)
        self.adjustment_resolver = AdjustmentResolver(
            self.adjustments, self.settings.enable_user_adjustments
        )
        self.limit_resolver = LimitResolver(
            self.users, self.plans, self.limits, self.adjustment_resolver
        )
        self.authorization = AuthorizationEngine(
            self.users, self.plans, self.limit_resolver, self.aggregator
        )

        self.stripe: Optional[PaymentProviderInterface] = None
        self.subscription_sync: Optional[SubscriptionSyncService] = None
        self.webhook_processor: Optional[StripeWebhookProcessor] = None

        if self.settings.manual_stripe_integration:
            if self.settings.stripe_secret_key:
                self.stripe = get_payment_provider(self.settings)
        else:
            payment = get_payment_provider(self.settings)
            self.subscription_sync = SubscriptionSyncService(self.users, payment)
            self.webhook_processor = StripeWebhookProcessor(
                payment, default_handlers(self.users, payment)
            )

        logger.info(
            "UsageFlow initialized",
            extra={
                "adjustments_enabled": self.settings.enable_user_adjustments,
                "manual_stripe_integration": self.settings.manual_stripe_integration,
            },
        )

    # Recording

    async def record_usage(
        self,
        user_id: str,
        feature_name: str,
        credits_used: float,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UsageEvent:
        return await self.recorder.record_usage(user_id, feature_name, credits_used, metadata)

    async def record_adjustment(
        self,
        user_id: str,
        feature_name: str,
        amount: float,
        metadata: Optional[dict[str, Any]],
    ) -> UsageEvent:
        return await self.recorder.record_adjustment(user_id, feature_name, amount, metadata)

    async def record_credit(
        self,
        user_id: str,
        feature_name: str,
        amount: float,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UsageEvent:
        return await self.recorder.record_credit(user_id, feature_name, amount, metadata)

    async def track_event(
        self,
        user_id: str,
        feature_name: str,
        event_type: Union[UsageEventType, str],
        credits_used: float,
        metadata: Optional[dict[str, Any]] = None,
    ) -> UsageEvent:
        return await self.recorder.track_event(
            user_id, feature_name, event_type, credits_used, metadata
        )

    # Limits and authorization

    async def authorize(self, user_id: str, feature_name: str) -> bool:
        return await self.authorization.authorize(user_id, feature_name)

    async def fetch_feature_limit(self, plan_id: int, feature_name: str) -> Optional[float]:
        return await self.limit_resolver.fetch_feature_limit(plan_id, feature_name)

    async def fetch_feature_limit_for_user(
        self, user_id: str, feature_name: str
    ) -> Optional[float]:
        return await self.limit_resolver.fetch_feature_limit_for_user(user_id, feature_name)

    async def get_active_adjustments(self, user_id: str, feature_name: str) -> float:
        return await self.adjustment_resolver.get_active_adjustments(user_id, feature_name)

    async def add_limit_adjustment(
        self,
        user_id: str,
        feature_name: str,
        amount: float,
        type: Union[AdjustmentType, str] = AdjustmentType.ONE_TIME,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> LimitAdjustment:
        return await self.adjustment_resolver.add_adjustment(
            user_id, feature_name, amount, type, start_date, end_date
        )

    # Aggregation

    async def get_total_usage(
        self,
        user_id: str,
        feature_name: str,
        period: Union[UsagePeriod, str] = UsagePeriod.CURRENT_MONTH,
    ) -> float:
        return await self.aggregator.get_total_usage(user_id, feature_name, period)

    async def get_usage_stats(
        self,
        user_id: str,
        feature_name: str,
        period: Union[UsagePeriod, str] = UsagePeriod.CURRENT_MONTH,
        group_by: Union[GroupBy, str] = GroupBy.DAY,
    ) -> UsageStats:
        return await self.aggregator.get_usage_stats(user_id, feature_name, period, group_by)

    async def get_batch_usage_stats(
        self,
        user_ids: Sequence[str],
        feature_names: Sequence[str],
        period: Union[UsagePeriod, str] = UsagePeriod.CURRENT_MONTH,
        group_by: Union[GroupBy, str] = GroupBy.DAY,
    ) -> dict[str, dict[str, UsageStats]]:
        return await self.aggregator.get_batch_usage_stats(
            user_ids, feature_names, period, group_by
        )

    @trace_span
    async def fetch_usage(self, user_id: str, feature_name: str) -> UsageSummary:
        """
        Current-month usage against the user's effective limit.

        remaining is None for unlimited features and negative when the user
        is over quota.
        """
        current = await self.aggregator.get_total_usage(user_id, feature_name)
        limit = await self.limit_resolver.fetch_feature_limit_for_user(user_id, feature_name)

        if limit is None:
            return UsageSummary(current=current, is_unlimited=True)
        return UsageSummary(
            current=current,
            limit=limit,
            remaining=limit - current,
            is_unlimited=False,
        )

    # Operations

    @trace_span
    async def connection_check(self) -> bool:
        """Run one cheap read against the usage events table."""
        try:
            async with self.session_factory() as session:
                await session.execute(select(self.tables.usage_events.c.id).limit(1))
            return True
        except Exception as e:
            logger.error(
                f"Connection check failed: {str(e)}",
                extra={"collection": self.settings.usage_events_table, "error": str(e)},
            )
            return False

    async def create_tables(self) -> None:
        """Create any missing tables; intended for local setups and tests."""
        async with self.engine.begin() as conn:
            await conn.run_sync(self.tables.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    # Payment integration

    def _require_automatic_stripe(self) -> None:
        if self.settings.manual_stripe_integration:
            raise ConfigError(
                "Automatic Stripe integration is disabled (manual_stripe_integration=True)",
                details={"manual_stripe_integration": True},
            )

    async def sync_subscription(self, user_id: str) -> Optional[str]:
        self._require_automatic_stripe()
        return await self.subscription_sync.sync_subscription(user_id)

    async def handle_webhook(
        self, payload: bytes, signature: Optional[str]
    ) -> dict[str, str]:
        self._require_automatic_stripe()
        return await self.webhook_processor.process(payload, signature)

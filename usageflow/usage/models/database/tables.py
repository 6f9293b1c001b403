"""
Table definitions for the usage engine.

Table names are configurable, so tables are built per settings on their own
MetaData instead of being declared once at import time.
"""

from dataclasses import dataclass

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Index,
    JSON,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from usageflow.common.core.config import UsageFlowSettings
from usageflow.common.db.base import BigIntegerType, UTCDateTime


@dataclass(frozen=True)
class UsageTables:
    """The tables backing one UsageFlow instance."""

    metadata: MetaData
    users: Table
    plans: Table
    feature_limits: Table
    usage_events: Table
    limit_adjustments: Table

    def by_name(self) -> dict[str, Table]:
        """Map of collection name -> table, as the event store expects."""
        return {
            table.name: table
            for table in (
                self.users,
                self.plans,
                self.feature_limits,
                self.usage_events,
                self.limit_adjustments,
            )
        }


def build_tables(settings: UsageFlowSettings) -> UsageTables:
    metadata = MetaData()

    # User profile. price_id is the plan identifier kept in sync by the
    # payment integration; null means no plan.
    users = Table(
        settings.users_table,
        metadata,
        Column("id", String(255), primary_key=True),
        Column("email", String(255), nullable=True, index=True),
        Column("price_id", String(255), nullable=True, index=True),
        Column("stripe_customer_id", String(255), nullable=True, unique=True),
        Column("created_at", UTCDateTime, server_default=func.now()),
    )

    plans = Table(
        settings.plans_table,
        metadata,
        Column("id", BigIntegerType, primary_key=True, autoincrement=True),
        Column("name", String(255), nullable=False),
        Column("price_id", String(255), nullable=False, unique=True),
        Column("created_at", UTCDateTime, server_default=func.now()),
    )

    # Absence of a row for (plan_id, feature_name) means unlimited.
    feature_limits = Table(
        settings.usage_feature_limits_table,
        metadata,
        Column("id", BigIntegerType, primary_key=True, autoincrement=True),
        Column(
            "plan_id",
            BigIntegerType,
            ForeignKey(f"{settings.plans_table}.id", ondelete="CASCADE"),
            nullable=False,
        ),
        Column("feature_name", String(255), nullable=False),
        Column("limit_value", Float, nullable=False),
        UniqueConstraint(
            "plan_id",
            "feature_name",
            name=f"uq_{settings.usage_feature_limits_table}_plan_feature",
        ),
    )

    # Append-only. High volume table - partition by timestamp in production.
    usage_events = Table(
        settings.usage_events_table,
        metadata,
        Column("id", BigIntegerType, primary_key=True, autoincrement=True),
        Column("user_id", String(255), nullable=False),
        Column("feature_name", String(255), nullable=False),
        Column("credits_used", Float, nullable=False),
        Column("event_type", String(50), nullable=False),  # usage, adjustment, credit
        Column("metadata", JSON, nullable=False),
        Column("timestamp", UTCDateTime, nullable=False),
        Index(
            f"idx_{settings.usage_events_table}_user_feature_ts",
            "user_id",
            "feature_name",
            "timestamp",
        ),
    )

    limit_adjustments = Table(
        settings.user_limit_adjustments_table,
        metadata,
        Column("id", BigIntegerType, primary_key=True, autoincrement=True),
        Column("user_id", String(255), nullable=False),
        Column("feature_name", String(255), nullable=False),
        Column("amount", Float, nullable=False),
        Column("type", String(50), nullable=False),  # one_time, recurring
        Column("start_date", UTCDateTime, nullable=False),
        Column("end_date", UTCDateTime, nullable=False),
        Column("created_at", UTCDateTime, server_default=func.now()),
        Index(
            f"idx_{settings.user_limit_adjustments_table}_user_feature_window",
            "user_id",
            "feature_name",
            "start_date",
            "end_date",
        ),
    )

    return UsageTables(
        metadata=metadata,
        users=users,
        plans=plans,
        feature_limits=feature_limits,
        usage_events=usage_events,
        limit_adjustments=limit_adjustments,
    )

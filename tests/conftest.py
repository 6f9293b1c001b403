# Shared pytest configuration and fixtures for all test types
from datetime import datetime, timezone
from typing import Any, Optional

import pytest
import pytest_asyncio

from usageflow.common.core.config import UsageFlowSettings
from usageflow.common.db.session import create_engine, create_session_factory
from usageflow.common.repositories.sqlalchemy_store import SQLAlchemyEventStore
from usageflow.usage.models.database.tables import build_tables
from usageflow.usage.repositories import (
    FeatureLimitRepository,
    LimitAdjustmentRepository,
    PlanRepository,
    UsageEventRepository,
    UserRepository,
)

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def make_settings(**overrides: Any) -> UsageFlowSettings:
    values = {
        "database_url": TEST_DATABASE_URL,
        "manual_stripe_integration": True,
        "enable_user_adjustments": True,
    }
    values.update(overrides)
    return UsageFlowSettings(_env_file=None, **values)


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def settings() -> UsageFlowSettings:
    return make_settings()


@pytest.fixture
def tables(settings):
    return build_tables(settings)


@pytest_asyncio.fixture(scope="function")
async def test_engine(settings, tables):
    """Create test database engine and initialize schema."""
    engine = create_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(tables.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest_asyncio.fixture(scope="function")
async def store(tables, test_session_factory):
    return SQLAlchemyEventStore(tables.by_name(), test_session_factory)


@pytest.fixture
def user_repo(store, settings):
    return UserRepository(store, settings.users_table)


@pytest.fixture
def plan_repo(store, settings):
    return PlanRepository(store, settings.plans_table)


@pytest.fixture
def limit_repo(store, settings):
    return FeatureLimitRepository(store, settings.usage_feature_limits_table)


@pytest.fixture
def usage_repo(store, settings):
    return UsageEventRepository(store, settings.usage_events_table)


@pytest.fixture
def adjustment_repo(store, settings):
    return LimitAdjustmentRepository(store, settings.user_limit_adjustments_table)


class Seeder:
    """Inserts raw rows, including back-dated events, straight through the store."""

    def __init__(self, store: SQLAlchemyEventStore, settings: UsageFlowSettings):
        self.store = store
        self.settings = settings

    async def user(
        self,
        user_id: str,
        price_id: Optional[str] = None,
        email: Optional[str] = None,
        stripe_customer_id: Optional[str] = None,
    ) -> dict:
        return await self.store.insert(
            self.settings.users_table,
            {
                "id": user_id,
                "email": email,
                "price_id": price_id,
                "stripe_customer_id": stripe_customer_id,
            },
        )

    async def plan(self, name: str, price_id: str) -> int:
        row = await self.store.insert(
            self.settings.plans_table, {"name": name, "price_id": price_id}
        )
        return row["id"]

    async def limit(self, plan_id: int, feature_name: str, limit_value: float) -> dict:
        return await self.store.insert(
            self.settings.usage_feature_limits_table,
            {"plan_id": plan_id, "feature_name": feature_name, "limit_value": limit_value},
        )

    async def event(
        self,
        user_id: str,
        feature_name: str,
        credits_used: float,
        timestamp: datetime,
        event_type: str = "usage",
        metadata: Optional[dict] = None,
    ) -> dict:
        return await self.store.insert(
            self.settings.usage_events_table,
            {
                "user_id": user_id,
                "feature_name": feature_name,
                "credits_used": credits_used,
                "event_type": event_type,
                "metadata": metadata or {},
                "timestamp": timestamp,
            },
        )

    async def adjustment(
        self,
        user_id: str,
        feature_name: str,
        amount: float,
        start_date: datetime,
        end_date: datetime,
        type: str = "one_time",
    ) -> dict:
        return await self.store.insert(
            self.settings.user_limit_adjustments_table,
            {
                "user_id": user_id,
                "feature_name": feature_name,
                "amount": amount,
                "type": type,
                "start_date": start_date,
                "end_date": end_date,
            },
        )


@pytest.fixture
def seed(store, settings) -> Seeder:
    return Seeder(store, settings)


@pytest_asyncio.fixture(scope="function")
async def pro_user(seed):
    """User on a plan with a 10-credit api_calls limit and no limit on exports."""
    plan_id = await seed.plan("Pro", "price_pro")
    await seed.limit(plan_id, "api_calls", 10)
    await seed.user("user-1", price_id="price_pro", email="user1@example.com")
    return {"user_id": "user-1", "plan_id": plan_id}


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)

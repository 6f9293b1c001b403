"""Domain models for users, plans and per-plan feature limits."""

from typing import Optional
from pydantic import BaseModel, ConfigDict


class UserProfile(BaseModel):
    """A user and the plan identifier synced from the payment system."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[str] = None
    price_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None


class Plan(BaseModel):
    """Internal plan record, resolved from a price identifier."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price_id: str


class FeatureLimit(BaseModel):
    """Base limit of one feature on one plan."""

    model_config = ConfigDict(from_attributes=True)

    plan_id: int
    feature_name: str
    limit_value: float

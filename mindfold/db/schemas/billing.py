import uuid
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict


class SubscriptionPlan(BaseModel):
    id: uuid.UUID
    plan_name: str
    display_name: str | None = None
    description: str | None = None
    price_monthly: float
    price_yearly: float
    quick_reflect_limit: int
    deep_reflect_limit: int
    therapist_sessions_per_week: int
    features: List[Any] = []
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class UserSubscription(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    plan_name: str
    status: str
    dodo_subscription_id: str | None = None
    dodo_customer_id: str | None = None
    billing_cycle: str
    amount: float
    currency: str
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool = False
    cancelled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PaymentHistory(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID | None = None
    dodo_payment_id: str
    amount: float
    currency: str
    status: str
    payment_method: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ActivateSubscriptionRequest(BaseModel):
    subscriptionId: Optional[str] = None
    planName: str = "basic"
    billingCycle: str = "monthly"


class CheckoutRequest(BaseModel):
    planId: Optional[str] = None
    billingCycle: Optional[str] = None


class UsageRequest(BaseModel):
    feature: Optional[str] = None

import uuid
from sqlalchemy import (
    Column, String, Text, Date, DateTime, Integer, Numeric, Boolean, ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class SubscriptionPlan(Base):
    __tablename__ = 'subscription_plans'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    plan_name = Column(String(40), nullable=False, unique=True)
    display_name = Column(String(80), nullable=True)
    description = Column(Text, nullable=True)
    price_monthly = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    price_yearly = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    # Negative limits mean unlimited
    quick_reflect_limit = Column(Integer, nullable=False, default=0)
    deep_reflect_limit = Column(Integer, nullable=False, default=0)
    therapist_sessions_per_week = Column(Integer, nullable=False, default=0)
    dodo_product_id = Column(String, nullable=True)
    features = Column(JSONB, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)


class UserSubscription(Base):
    __tablename__ = 'user_subscriptions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    plan_name = Column(String(40), nullable=False)
    # 'active'|'superseded'|'cancelled'|'expired'|'on_hold'|'failed'
    status = Column(String(20), nullable=False, default='active')
    dodo_subscription_id = Column(String, nullable=True, index=True)
    dodo_customer_id = Column(String, nullable=True)
    # 'monthly'|'yearly'
    billing_cycle = Column(String(20), nullable=False, default='monthly')
    amount = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    currency = Column(String(8), nullable=False, default='USD')
    current_period_start = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    current_period_end = Column(DateTime(timezone=True), nullable=False)
    cancel_at_period_end = Column(Boolean, nullable=False, default=False)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('ix_user_subscriptions_user_status', 'user_id', 'status'),
    )


class UsageTracking(Base):
    __tablename__ = 'usage_tracking'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    subscription_id = Column(UUID(as_uuid=True), ForeignKey('user_subscriptions.id', ondelete='CASCADE'), nullable=False)
    period_start = Column(DateTime(timezone=True), nullable=False)
    period_end = Column(DateTime(timezone=True), nullable=False)
    quick_reflect_used = Column(Integer, nullable=False, default=0)
    deep_reflect_used = Column(Integer, nullable=False, default=0)
    therapist_sessions_used = Column(Integer, nullable=False, default=0)
    # Monday of the week the therapist session counter belongs to
    week_start = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        UniqueConstraint('subscription_id', 'period_start', name='uq_usage_tracking_subscription_period'),
    )


class PaymentHistory(Base):
    __tablename__ = 'payment_history'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True)
    dodo_payment_id = Column(String, nullable=False, unique=True)
    dodo_customer_id = Column(String, nullable=True)
    amount = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    currency = Column(String(8), nullable=False, default='USD')
    # 'succeeded'|'failed'|'cancelled'
    status = Column(String(20), nullable=False)
    payment_method = Column(String, nullable=True)
    metadata_json = Column('metadata', JSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)


class BillingTransaction(Base):
    __tablename__ = 'billing_transactions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    amount = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    currency = Column(String(8), nullable=False, default='USD')
    description = Column(Text, nullable=True)
    # 'subscription'|'therapist_payment'|'refund'
    transaction_type = Column(String(40), nullable=False)
    payment_provider_id = Column(String, nullable=True)
    # 'pending'|'completed'|'failed'|'refunded'
    status = Column(String(20), nullable=False, default='pending')
    created_at = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        Index('ix_billing_transactions_status_created_at', 'status', 'created_at'),
        Index('ix_billing_transactions_user_id', 'user_id'),
    )


class WebhookEvent(Base):
    __tablename__ = 'webhook_events'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    webhook_id = Column(String, nullable=False, unique=True)
    event_type = Column(String, nullable=True)
    received_at = Column(DateTime(timezone=True), default=now_utc)

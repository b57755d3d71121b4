"""
Plans, subscriptions, payments and billing transaction repository functions.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mindfold.db import models


# Plans

def list_active_plans(db: Session):
    return (
        db.query(models.SubscriptionPlan)
        .filter(models.SubscriptionPlan.is_active.is_(True))
        .order_by(models.SubscriptionPlan.price_monthly.asc())
        .all()
    )


def get_plan(db: Session, plan_name: str, *, active_only: bool = False) -> Optional[models.SubscriptionPlan]:
    query = db.query(models.SubscriptionPlan).filter(models.SubscriptionPlan.plan_name == plan_name)
    if active_only:
        query = query.filter(models.SubscriptionPlan.is_active.is_(True))
    return query.first()


# Subscriptions

def get_active_subscription(db: Session, user_id: uuid.UUID) -> Optional[models.UserSubscription]:
    return (
        db.query(models.UserSubscription)
        .filter(models.UserSubscription.user_id == user_id, models.UserSubscription.status == "active")
        .order_by(models.UserSubscription.created_at.desc())
        .first()
    )


def get_by_provider_id(db: Session, dodo_subscription_id: str) -> Optional[models.UserSubscription]:
    return (
        db.query(models.UserSubscription)
        .filter(models.UserSubscription.dodo_subscription_id == dodo_subscription_id)
        .order_by(models.UserSubscription.created_at.desc())
        .first()
    )


def supersede_active(db: Session, user_id: uuid.UUID, *, keep_id: Optional[uuid.UUID] = None) -> int:
    query = db.query(models.UserSubscription).filter(
        models.UserSubscription.user_id == user_id, models.UserSubscription.status == "active"
    )
    if keep_id is not None:
        query = query.filter(models.UserSubscription.id != keep_id)
    return query.update({models.UserSubscription.status: "superseded"}, synchronize_session=False)


def insert_subscription(db: Session, **fields) -> models.UserSubscription:
    subscription = models.UserSubscription(**fields)
    db.add(subscription)
    db.flush()
    return subscription


# Payments

def upsert_payment(
    db: Session,
    *,
    dodo_payment_id: str,
    user_id: Optional[uuid.UUID],
    amount: float,
    currency: str,
    status: str,
    dodo_customer_id: Optional[str] = None,
    payment_method: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> models.PaymentHistory:
    payment = (
        db.query(models.PaymentHistory)
        .filter(models.PaymentHistory.dodo_payment_id == dodo_payment_id)
        .first()
    )
    if payment is None:
        payment = models.PaymentHistory(dodo_payment_id=dodo_payment_id)
        db.add(payment)
    payment.user_id = user_id or payment.user_id
    payment.amount = amount
    payment.currency = currency
    payment.status = status
    payment.dodo_customer_id = dodo_customer_id or payment.dodo_customer_id
    payment.payment_method = payment_method or payment.payment_method
    payment.metadata_json = metadata
    db.flush()
    return payment


def list_payments(db: Session, user_id: uuid.UUID):
    return (
        db.query(models.PaymentHistory)
        .filter(models.PaymentHistory.user_id == user_id)
        .order_by(models.PaymentHistory.created_at.desc())
        .all()
    )


# Billing transactions

def add_transaction(
    db: Session,
    *,
    user_id: uuid.UUID,
    amount: float,
    currency: str,
    transaction_type: str,
    status: str,
    description: Optional[str] = None,
    payment_provider_id: Optional[str] = None,
) -> models.BillingTransaction:
    transaction = models.BillingTransaction(
        user_id=user_id,
        amount=amount,
        currency=currency,
        transaction_type=transaction_type,
        status=status,
        description=description,
        payment_provider_id=payment_provider_id,
    )
    db.add(transaction)
    db.flush()
    return transaction


def list_transactions(db: Session, *, since: Optional[datetime] = None, until: Optional[datetime] = None, status: Optional[str] = None):
    query = db.query(models.BillingTransaction)
    if since is not None:
        query = query.filter(models.BillingTransaction.created_at >= since)
    if until is not None:
        query = query.filter(models.BillingTransaction.created_at < until)
    if status is not None:
        query = query.filter(models.BillingTransaction.status == status)
    return query.order_by(models.BillingTransaction.created_at.desc()).all()


def list_user_transactions(db: Session, user_id: uuid.UUID, *, status: Optional[str] = None, limit: Optional[int] = None):
    query = db.query(models.BillingTransaction).filter(models.BillingTransaction.user_id == user_id)
    if status is not None:
        query = query.filter(models.BillingTransaction.status == status)
    query = query.order_by(models.BillingTransaction.created_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


# Webhook deliveries

def record_webhook_delivery(db: Session, webhook_id: str, event_type: Optional[str]) -> bool:
    """Store a delivery id; return False when it was already processed.

    Must be the first write of the delivery transaction: a conflicting id
    rolls the session back.
    """
    db.add(models.WebhookEvent(webhook_id=webhook_id, event_type=event_type))
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        return False
    return True

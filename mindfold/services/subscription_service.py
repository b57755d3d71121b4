"""
Subscription lifecycle and payment webhook reconciliation.

Activation supersedes any current active subscription and inserts a new
one so history is preserved; the user profile mirrors the active plan.
Webhook events from the payment provider are deduplicated on their
delivery id and applied inside a single transaction.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from mindfold.db import models
from mindfold.db.repositories import billing as billing_repo
from mindfold.db.repositories import profiles as profile_repo
from mindfold.utils.dates import parse_iso_datetime, period_end

logger = logging.getLogger(__name__)


class PlanNotFound(LookupError):
    pass


def _cents(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value) / 100
    except (TypeError, ValueError):
        return None


def _as_uuid(value: Any) -> Optional[uuid.UUID]:
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError:
        logger.warning("Ignoring malformed user id in payment metadata: %r", value)
        return None


def activate_subscription(
    db: Session,
    *,
    user_id: uuid.UUID,
    plan_name: str,
    billing_cycle: str = "monthly",
    dodo_subscription_id: Optional[str] = None,
    dodo_customer_id: Optional[str] = None,
    amount: Optional[float] = None,
    currency: Optional[str] = None,
    period_start: Optional[datetime] = None,
    period_end_at: Optional[datetime] = None,
) -> models.UserSubscription:
    """Supersede the user's active subscription and insert a new active one.

    Flushes but does not commit; callers own the transaction.
    """
    start = period_start or models.now_utc()
    end = period_end_at or period_end(start, billing_cycle)
    if amount is None:
        plan = billing_repo.get_plan(db, plan_name)
        if plan is not None:
            amount = plan.price_yearly if billing_cycle == "yearly" else plan.price_monthly

    billing_repo.supersede_active(db, user_id)
    subscription = billing_repo.insert_subscription(
        db,
        user_id=user_id,
        plan_name=plan_name,
        status="active",
        dodo_subscription_id=dodo_subscription_id,
        dodo_customer_id=dodo_customer_id,
        billing_cycle=billing_cycle,
        amount=amount or 0,
        currency=currency or "USD",
        current_period_start=start,
        current_period_end=end,
    )

    user_profile = profile_repo.ensure_user_profile(db, user_id)
    user_profile.subscription_plan = plan_name
    user_profile.subscription_start_date = start
    user_profile.subscription_end_date = end
    if dodo_customer_id:
        user_profile.dodo_customer_id = dodo_customer_id
    db.flush()
    logger.info("Activated %s/%s subscription for user %s", plan_name, billing_cycle, user_id)
    return subscription


def activate_from_request(
    db: Session,
    *,
    user_id: uuid.UUID,
    plan_name: str,
    billing_cycle: str,
    dodo_subscription_id: Optional[str] = None,
) -> models.UserSubscription:
    """Client-confirmed activation after a successful checkout redirect."""
    plan = billing_repo.get_plan(db, plan_name)
    if plan is None:
        raise PlanNotFound(plan_name)
    subscription = activate_subscription(
        db,
        user_id=user_id,
        plan_name=plan_name,
        billing_cycle=billing_cycle,
        dodo_subscription_id=dodo_subscription_id,
        amount=plan.price_yearly if billing_cycle == "yearly" else plan.price_monthly,
    )
    db.commit()
    db.refresh(subscription)
    return subscription


# Webhook handlers

def _current_row(db: Session, data: Dict[str, Any]) -> Optional[models.UserSubscription]:
    """Newest local row for the event's provider subscription id.

    Earlier rows sharing the id were superseded by a later activation and
    are left as history.
    """
    subscription_id = data.get("subscription_id")
    if not subscription_id:
        return None
    row = billing_repo.get_by_provider_id(db, subscription_id)
    if row is None:
        logger.warning("No local subscription for provider id %s", subscription_id)
    return row


def _mark_active(db: Session, row: models.UserSubscription) -> None:
    billing_repo.supersede_active(db, row.user_id, keep_id=row.id)
    row.status = "active"


def _on_subscription_active(db: Session, data: Dict[str, Any]) -> None:
    meta = data.get("metadata") or {}
    user_id = _as_uuid(meta.get("user_id"))
    plan_name = meta.get("plan_name")
    billing_cycle = meta.get("billing_cycle") or "monthly"
    if not user_id or not plan_name:
        logger.warning("subscription.active without user_id/plan_name metadata; skipping")
        return

    start = parse_iso_datetime(data.get("previous_billing_date")) or models.now_utc()
    end = parse_iso_datetime(data.get("next_billing_date")) or period_end(start, billing_cycle)
    activate_subscription(
        db,
        user_id=user_id,
        plan_name=plan_name,
        billing_cycle=billing_cycle,
        dodo_subscription_id=data.get("subscription_id"),
        dodo_customer_id=(data.get("customer") or {}).get("customer_id"),
        amount=_cents(data.get("recurring_pre_tax_amount")) or 0,
        currency=data.get("currency"),
        period_start=start,
        period_end_at=end,
    )


def _on_subscription_renewed(db: Session, data: Dict[str, Any]) -> None:
    row = _current_row(db, data)
    if row is None:
        return
    start = parse_iso_datetime(data.get("previous_billing_date")) or models.now_utc()
    end = parse_iso_datetime(data.get("next_billing_date")) or period_end(start, row.billing_cycle or "monthly")
    _mark_active(db, row)
    row.current_period_start = start
    row.current_period_end = end
    amount = _cents(data.get("recurring_pre_tax_amount"))
    if amount is not None:
        row.amount = amount
    if data.get("currency"):
        row.currency = data["currency"]
    logger.info("subscription.renewed for %s", row.dodo_subscription_id)


def _status_handler(new_status: str) -> Callable[[Session, Dict[str, Any]], None]:
    def handler(db: Session, data: Dict[str, Any]) -> None:
        row = _current_row(db, data)
        if row is None:
            return
        row.status = new_status
        if new_status == "cancelled":
            cancel_at_end = data.get("cancel_at_next_billing_date")
            row.cancel_at_period_end = True if cancel_at_end is None else bool(cancel_at_end)
            row.cancelled_at = parse_iso_datetime(data.get("cancelled_at")) or models.now_utc()
        logger.info("subscription.%s for %s", new_status, row.dodo_subscription_id)

    return handler


def _on_plan_changed(db: Session, data: Dict[str, Any]) -> None:
    plan_name = (data.get("metadata") or {}).get("plan_name")
    if not plan_name:
        logger.warning("subscription.plan_changed without metadata.plan_name; skipping")
        return
    row = _current_row(db, data)
    if row is None:
        return
    row.plan_name = plan_name
    amount = _cents(data.get("recurring_pre_tax_amount"))
    if amount is not None:
        row.amount = amount
    if data.get("currency"):
        row.currency = data["currency"]
    profile_repo.ensure_user_profile(db, row.user_id).subscription_plan = plan_name
    logger.info("subscription.plan_changed for %s -> %s", row.dodo_subscription_id, plan_name)


def _on_subscription_updated(db: Session, data: Dict[str, Any]) -> None:
    row = _current_row(db, data)
    if row is None:
        return
    new_status = data.get("status")
    if new_status == "active":
        _mark_active(db, row)
    elif new_status:
        row.status = new_status
    next_billing = parse_iso_datetime(data.get("next_billing_date"))
    previous_billing = parse_iso_datetime(data.get("previous_billing_date"))
    if next_billing:
        row.current_period_end = next_billing
    if previous_billing:
        row.current_period_start = previous_billing
    plan_name = (data.get("metadata") or {}).get("plan_name")
    if plan_name:
        row.plan_name = plan_name


def _record_payment(
db: Session, data: Dict[str, Any], status: str) -> Optional[models.PaymentHistory]:
    payment_id = data.get("payment_id")
    if not payment_id:
        return None
    meta = data.get("metadata") or {}
    return billing_repo.upsert_payment(
        db,
        dodo_payment_id=payment_id,
        user_id=_as_uuid(meta.get("user_id")),
        amount=_cents(data.get("total_amount")) or 0,
        currency=data.get("currency") or "USD",
        status=status,
        dodo_customer_id=(data.get("customer") or {}).get("customer_id"),
        payment_method=data.get("payment_method"),
        metadata=data.get("metadata"),
    )


def _on_payment_succeeded(db: Session, data: Dict[str, Any], *, completed: bool) -> None:
    payment = _record_payment(db, data, "succeeded")
    meta = data.get("metadata") or {}
    user_id = _as_uuid(meta.get("user_id"))
    plan_name = meta.get("plan_name")

    if completed and payment is not None and payment.user_id is not None:
        billing_repo.add_transaction(
            db,
            user_id=payment.user_id,
            amount=payment.amount,
            currency=payment.currency,
            transaction_type="subscription",
            status="completed",
            description=f"Subscription payment ({plan_name})" if plan_name else "Subscription payment",
            payment_provider_id=payment.dodo_payment_id,
        )

    if not user_id or not plan_name:
        return
    if billing_repo.get_active_subscription(db, user_id) is not None:
        return
    activate_subscription(
        db,
        user_id=user_id,
        plan_name=plan_name,
        billing_cycle=meta.get("billing_cycle") or "monthly",
        dodo_subscription_id=data.get("subscription_id"),
        dodo_customer_id=(data.get("customer") or {}).get("customer_id"),
        amount=_cents(data.get("total_amount")),
        currency=data.get("currency"),
    )


def _on_payment_failed(db: Session, data: Dict[str, Any]) -> None:
    payment = _record_payment(db, data, "failed")
    if payment is not None and payment.user_id is not None:
        billing_repo.add_transaction(
            db,
            user_id=payment.user_id,
            amount=payment.amount,
            currency=payment.currency,
            transaction_type="subscription",
            status="failed",
            description="Failed subscription payment",
            payment_provider_id=payment.dodo_payment_id,
        )
    logger.info("payment.failed for %s", data.get("payment_id"))


EVENT_HANDLERS: Dict[str, Callable[[Session, Dict[str, Any]], None]] = {
    "subscription.active": _on_subscription_active,
    "subscription.renewed": _on_subscription_renewed,
    "subscription.cancelled": _status_handler("cancelled"),
    "subscription.expired": _status_handler("expired"),
    "subscription.on_hold": _status_handler("on_hold"),
    "subscription.failed": _status_handler("failed"),
    "subscription.plan_changed": _on_plan_changed,
    "subscription.updated": _on_subscription_updated,
    "payment.succeeded": lambda db, data: _on_payment_succeeded(db, data, completed=True),
    "payment.processing": lambda db, data: _on_payment_succeeded(db, data, completed=False),
    "payment.failed": _on_payment_failed,
    "payment.cancelled": lambda db, data: _record_payment(db, data, "cancelled"),
}


def process_webhook_event(db: Session, webhook_id: str, event: Dict[str, Any]) -> bool:
    """Apply one verified webhook delivery.

    Returns False for a delivery id that was already processed. Handler
    errors roll back the whole delivery (so a retry can apply it) and are
    logged, never raised.
    """
    event_type = event.get("type")
    if not billing_repo.record_webhook_delivery(db, webhook_id, event_type):
        db.rollback()
        logger.info("Duplicate webhook delivery %s (%s) ignored", webhook_id, event_type)
        return False

    handler = EVENT_HANDLERS.get(event_type or "")
    try:
        if handler is None:
            logger.info("Unhandled webhook event type: %s", event_type)
        else:
            handler(db, event.get("data") or {})
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Webhook handler failed for %s (%s)", event_type, webhook_id)
    return True

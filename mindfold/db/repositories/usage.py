"""
Usage tracking repository functions.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mindfold.db import models

logger = logging.getLogger(__name__)


def find_period(db: Session, subscription: models.UserSubscription) -> Optional[models.UsageTracking]:
    return (
        db.query(models.UsageTracking)
        .filter(
            models.UsageTracking.subscription_id == subscription.id,
            models.UsageTracking.period_start == subscription.current_period_start,
        )
        .first()
    )


def get_or_create_period(db: Session, subscription: models.UserSubscription, current_week: date) -> models.UsageTracking:
    usage = find_period(db, subscription)
    if usage is not None:
        return usage

    usage = models.UsageTracking(
        user_id=subscription.user_id,
        subscription_id=subscription.id,
        period_start=subscription.current_period_start,
        period_end=subscription.current_period_end,
        quick_reflect_used=0,
        deep_reflect_used=0,
        therapist_sessions_used=0,
        week_start=current_week,
    )
    db.add(usage)
    try:
        db.flush()
    except IntegrityError:
        # A concurrent request created the row for this period first
        db.rollback()
        logger.info("Usage row for subscription %s already created; reloading", subscription.id)
        usage = find_period(db, subscription)
        if usage is None:
            raise
    return usage

"""
Usage metering against subscription plan quotas.

Each active subscription gets one usage row per billing period, created on
first use. Quick/deep reflect counters live for the whole period; the
therapist-session counter restarts every ISO week (Monday start).
A negative plan limit means unlimited.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Dict, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from mindfold.db import models
from mindfold.db.repositories import billing as billing_repo
from mindfold.db.repositories import usage as usage_repo
from mindfold.utils.dates import week_start
from mindfold.utils.feature_flags import usage_limits_enforced

logger = logging.getLogger(__name__)

# feature -> (usage counter column, plan limit column)
FEATURES: Dict[str, Tuple[str, str]] = {
    "quick_reflect": ("quick_reflect_used", "quick_reflect_limit"),
    "deep_reflect": ("deep_reflect_used", "deep_reflect_limit"),
    "therapist_session": ("therapist_sessions_used", "therapist_sessions_per_week"),
}


class UsageLimitExceeded(Exception):
    def __init__(self, feature: str):
        super().__init__(f"Usage limit reached for {feature}")
        self.feature = feature


def _today() -> date:
    return models.now_utc().date()


def _load(db: Session, user_id: uuid.UUID):
    subscription = billing_repo.get_active_subscription(db, user_id)
    if subscription is None:
        return None, None, None
    plan = billing_repo.get_plan(db, subscription.plan_name)
    if plan is None:
        logger.warning("Active subscription %s references unknown plan %s", subscription.id, subscription.plan_name)
        return subscription, None, None
    current_week = week_start(_today())
    usage = usage_repo.get_or_create_period(db, subscription, current_week)
    if usage.week_start != current_week:
        usage.therapist_sessions_used = 0
        usage.week_start = current_week
        db.flush()
    return subscription, plan, usage


def can_use(db: Session, user_id: uuid.UUID, feature: str) -> bool:
    if feature not in FEATURES:
        raise ValueError(f"Unknown feature: {feature}")
    if not usage_limits_enforced():
        return True
    _, plan, usage = _load(db, user_id)
    db.commit()
    if plan is None or usage is None:
        return False
    counter, limit_column = FEATURES[feature]
    limit = getattr(plan, limit_column)
    if limit < 0:
        return True
    return getattr(usage, counter) < limit


def increment_usage(db: Session, user_id: uuid.UUID, feature: str) -> bool:
    """Count one use of `feature`. Returns False when the quota is spent."""
    if feature not in FEATURES:
        raise ValueError(f"Unknown feature: {feature}")
    if not usage_limits_enforced():
        return True
    _, plan, usage = _load(db, user_id)
    if plan is None or usage is None:
        db.commit()
        return False

    counter, limit_column = FEATURES[feature]
    limit = getattr(plan, limit_column)
    column = getattr(models.UsageTracking, counter)
    stmt = (
        update(models.UsageTracking)
        .where(models.UsageTracking.id == usage.id)
        .values({counter: column + 1, "updated_at": models.now_utc()})
    )
    if limit >= 0:
        # Conditional update keeps concurrent requests from overshooting
        stmt = stmt.where(column < limit)
    result = db.execute(stmt.execution_options(synchronize_session=False))
    db.commit()
    allowed = result.rowcount == 1
    if not allowed:
        logger.info("Usage limit reached for user %s on %s", user_id, feature)
    return allowed


def consume(db: Session, user_id: uuid.UUID, feature: str) -> None:
    """Like `increment_usage` but raises UsageLimitExceeded."""
    if not increment_usage(db, user_id, feature):
        raise UsageLimitExceeded(feature)


def usage_summary(db: Session, user_id: uuid.UUID) -> Optional[dict]:
    """Current-period counters and limits for the user's active subscription."""
    subscription, plan, usage = _load(db, user_id)
    db.commit()
    if subscription is None:
        return None

    def block(counter: str, limit_column: str) -> dict:
        used = getattr(usage, counter) if usage is not None else 0
        limit = getattr(plan, limit_column) if plan is not None else 0
        return {"used": used, "limit": limit, "remaining": limit - used}

    return {
        "usage": {
            "quick_reflect_used": usage.quick_reflect_used if usage else 0,
            "deep_reflect_used": usage.deep_reflect_used if usage else 0,
            "therapist_sessions_used": usage.therapist_sessions_used if usage else 0,
        },
        "limits": {
            "quick_reflect": block(*FEATURES["quick_reflect"]),
            "deep_reflect": block(*FEATURES["deep_reflect"]),
            "therapist_sessions": block(*FEATURES["therapist_session"]),
        },
    }

"""
Journal reports and admin analytics.

Wraps summarise a user's scored entries over a calendar week
(Sunday-Saturday), a month, or all time. Admin analytics aggregate users,
entries and completed billing transactions over a rolling range with a
comparison against the preceding range of equal length.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from mindfold.db import models
from mindfold.db.repositories import billing as billing_repo
from mindfold.db.repositories import journal as journal_repo
from mindfold.utils.dates import add_months, ensure_utc

logger = logging.getLogger(__name__)

RANGE_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _short_date(value: date) -> str:
    return f"{value:%b} {value.day}"


# Wraps

def wrap_window(period: str, offset: int, today: date):
    """Return (start, end, label) for a wrap period; start/end are None for all time."""
    if period == "week":
        reference = today - timedelta(days=offset * 7)
        # Sunday-based week
        start = reference - timedelta(days=(reference.weekday() + 1) % 7)
        end = start + timedelta(days=6)
        return start, end, f"{_short_date(start)} – {_short_date(end)}"
    if period == "month":
        first = add_months(datetime(today.year, today.month, 1), -offset).date()
        next_first = add_months(datetime(first.year, first.month, 1), 1).date()
        return first, next_first - timedelta(days=1), f"{first:%B} {first.year}"
    return None, None, "All Time"


def score_label(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    if score >= 20:
        return "Needs Attention"
    return "Critical"


def _metric_block(values: List[int]) -> Dict[str, Any]:
    trend = 0.0
    if len(values) >= 4:
        mid = len(values) // 2
        trend = _mean(values[mid:]) - _mean(values[:mid])
    return {"avg": round(_mean(values), 1), "count": len(values), "trend": round(trend, 1), "_raw": _mean(values)}


def _entry_summary(entry: Optional[models.JournalEntry]) -> Optional[Dict[str, Any]]:
    if entry is None:
        return None
    return {
        "id": str(entry.id),
        "entry_date": entry.entry_date.isoformat(),
        "mental_health_score": entry.mental_health_score,
    }


def build_wrap(db: Session, user_id: uuid.UUID, period: str = "week", offset: int = 0, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or models.now_utc().date()
    start, end, label = wrap_window(period, max(offset, 0), today)
    entries = [
        e for e in journal_repo.list_entries(db, user_id, start=start, end=end, newest_first=False)
        if e.mental_health_score is not None
    ]

    metrics: Dict[str, Dict[str, Any]] = {}
    raw: Dict[str, float] = {}
    for field in journal_repo.SCORE_FIELDS:
        block = _metric_block([getattr(e, field) for e in entries if getattr(e, field) is not None])
        raw[field] = block.pop("_raw")
        metrics[field] = block

    best = worst = None
    for entry in entries:
        if best is None or (entry.mental_health_score or 0) > (best.mental_health_score or 0):
            best = entry
        if worst is None or (entry.mental_health_score or 100) < (worst.mental_health_score or 100):
            worst = entry

    overall = 0
    if entries:
        overall = round((
            raw["mental_health_score"]
            + raw["happiness_score"]
            + raw["accountability_score"]
            + (100 - raw["stress_score"])
            + (100 - raw["burnout_risk_score"])
        ) / 5)

    return {
        "period": period,
        "offset": offset,
        "period_label": label,
        "start_date": start.isoformat() if start else None,
        "end_date": end.isoformat() if end else None,
        "entry_count": len(entries),
        "metrics": metrics,
        "best_day": _entry_summary(best),
        "worst_day": _entry_summary(worst),
        "overall_score": overall,
        "overall_label": score_label(overall),
    }


def dashboard_overview(db: Session, profile: models.Profile) -> Dict[str, Any]:
    entries = journal_repo.list_entries(db, profile.id)
    scored = [e for e in entries if e.mental_health_score is not None]
    averages = {
        field.replace("_score", ""): round(_mean([getattr(e, field) or 0 for e in scored]))
        for field in journal_repo.SCORE_FIELDS
    }
    return {
        "full_name": profile.full_name,
        "total_entries": len(entries),
        "averages": averages,
        "recent_entries": [
            {
                "id": str(e.id),
                "entry_date": e.entry_date.isoformat(),
                "mood": e.mood,
                "mental_health_score": e.mental_health_score,
                "ai_reflection": e.ai_reflection,
            }
            for e in entries[:5]
        ],
    }


# Admin analytics

def percent_change(current: float, previous: float) -> int:
    if previous == 0:
        return 100 if current > 0 else 0
    return round((current - previous) / previous * 100)


def _sum(transactions: Iterable[models.BillingTransaction], kind: Optional[str] = None) -> float:
    return sum(float(t.amount or 0) for t in transactions if kind is None or t.transaction_type == kind)


def _user_growth(created: List[datetime], days: int, now: datetime) -> List[Dict[str, Any]]:
    interval = 1 if days <= 7 else 5 if days <= 30 else 15 if days <= 90 else 30
    series = []
    for back in range(days, -1, -interval):
        point = now - timedelta(days=back)
        series.append({"date": _short_date(point), "count": sum(1 for c in created if c <= point)})
    return series


def _monthly_revenue(transactions: List[models.BillingTransaction], days: int, now: datetime) -> List[Dict[str, Any]]:
    months = 4 if days <= 30 else 6 if days <= 90 else 12
    this_month = datetime(now.year, now.month, 1, tzinfo=now.tzinfo)
    result = []
    for back in range(months - 1, -1, -1):
        start = add_months(this_month, -back)
        end = add_months(start, 1)
        amount = sum(
            float(t.amount or 0) for t in transactions
            if start <= ensure_utc(t.created_at) < end
        )
        result.append({"month": f"{start:%b}", "amount": round(amount, 2)})
    return result


def admin_analytics(db: Session, range_key: str = "30d", now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or models.now_utc()
    days = RANGE_DAYS.get(range_key, 365)
    start = now - timedelta(days=days)
    previous_start = start - timedelta(days=days)

    users = db.query(models.Profile).filter(models.Profile.role == "user").all()
    therapists = db.query(models.Profile).filter(models.Profile.role == "therapist").all()
    user_created = [ensure_utc(u.created_at) for u in users]
    previous_users = sum(1 for c in user_created if c < start)
    previous_therapists = sum(1 for t in therapists if ensure_utc(t.created_at) < start)

    total_entries = db.query(models.JournalEntry).count()
    previous_entries = (
        db.query(models.JournalEntry)
        .filter(models.JournalEntry.entry_date < start.date())
        .count()
    )

    completed = billing_repo.list_transactions(db, status="completed")
    current = [t for t in completed if ensure_utc(t.created_at) >= start]
    previous = [t for t in completed if previous_start <= ensure_utc(t.created_at) < start]

    month_ago = now - timedelta(days=31)
    active_subscribers = {
        t.user_id for t in completed
        if t.transaction_type == "subscription" and ensure_utc(t.created_at) >= month_ago
    }
    previous_subscribers = {t.user_id for t in previous if t.transaction_type == "subscription"}

    names = {p.id: p.full_name for p in db.query(models.Profile).all()}
    earnings: Dict[uuid.UUID, Dict[str, Any]] = {}
    for t in current:
        if t.transaction_type != "therapist_payment":
            continue
        row = earnings.setdefault(t.user_id, {"name": names.get(t.user_id) or "Unknown", "earnings": 0.0, "sessions": 0})
        row["earnings"] += float(t.amount or 0)
        row["sessions"] += 1
    top_therapists = sorted(earnings.values(), key=lambda r: r["earnings"], reverse=True)[:5]
    for row in top_therapists:
        row["earnings"] = round(row["earnings"], 2)

    recent = billing_repo.list_transactions(db)[:10]

    return {
        "totalUsers": len(users),
        "totalTherapists": len(therapists),
        "pendingVerifications": db.query(models.TherapistProfile)
        .filter(models.TherapistProfile.verification_status == "pending")
        .count(),
        "totalEntries": total_entries,
        "totalRevenue": round(_sum(completed), 2),
        "subscriptionRevenue": round(_sum(completed, "subscription"), 2),
        "therapistEarnings": round(_sum(completed, "therapist_payment"), 2),
        "activeSubscriptions": len(active_subscribers),
        "userGrowth": _user_growth([c for c in user_created if c >= start], days, now),
        "revenueByMonth": _monthly_revenue(current, days, now),
        "topTherapists": top_therapists,
        "recentTransactions": [
            {
                "id": str(t.id),
                "user": names.get(t.user_id) or "Unknown",
                "amount": float(t.amount or 0),
                "type": t.transaction_type,
                "date": ensure_utc(t.created_at).isoformat(),
            }
            for t in recent
        ],
        "changes": {
            "users": percent_change(len(users), previous_users),
            "therapists": percent_change(len(therapists), previous_therapists),
            "revenue": percent_change(_sum(current), _sum(previous)),
            "subscriptions": percent_change(len(active_subscribers), len(previous_subscribers)),
            "entries": percent_change(total_entries - previous_entries, previous_entries),
            "subscriptionRevenue": percent_change(_sum(current, "subscription"), _sum(previous, "subscription")),
            "therapistEarnings": percent_change(_sum(current, "therapist_payment"), _sum(previous, "therapist_payment")),
            "pendingVerifications": 0,
        },
    }


def _completed_spend(db: Session, user_id: uuid.UUID) -> float:
    return round(_sum(billing_repo.list_user_transactions(db, user_id, status="completed")), 2)


def admin_user_rows(db: Session) -> List[Dict[str, Any]]:
    rows = []
    for profile in (
        db.query(models.Profile)
        .filter(models.Profile.role == "user")
        .order_by(models.Profile.created_at.desc())
        .all()
    ):
        entries = journal_repo.list_entries(db, profile.id)
        scored = [e.mental_health_score for e in entries if e.mental_health_score is not None]
        last_entry = max((ensure_utc(e.created_at) for e in entries), default=None)
        user_profile = profile.user_profile
        rows.append({
            "id": str(profile.id),
            "full_name": profile.full_name or "Unknown",
            "email": profile.email,
            "created_at": ensure_utc(profile.created_at).isoformat(),
            "subscription_tier": user_profile.subscription_plan if user_profile else "basic",
            "total_entries": len(entries),
            "avg_mental_health": round(_mean(scored), 1),
            "last_entry_date": (last_entry or ensure_utc(profile.created_at)).isoformat(),
            "total_spent": _completed_spend(db, profile.id),
        })
    return rows


def admin_user_detail(db: Session, profile: models.Profile) -> Dict[str, Any]:
    entries = journal_repo.list_entries(db, profile.id)

    def avg(field: str) -> float:
        return round(_mean([getattr(e, field) or 0 for e in entries]), 1)

    transactions = billing_repo.list_user_transactions(db, profile.id, status="completed", limit=10)
    user_profile = profile.user_profile
    return {
        "id": str(profile.id),
        "full_name": profile.full_name,
        "email": profile.email,
        "created_at": ensure_utc(profile.created_at).isoformat(),
        "subscription_plan": user_profile.subscription_plan if user_profile else "basic",
        "subscription_start_date": user_profile.subscription_start_date if user_profile else None,
        "subscription_end_date": user_profile.subscription_end_date if user_profile else None,
        "total_entries": len(entries),
        "avg_mental_health": avg("mental_health_score"),
        "avg_happiness": avg("happiness_score"),
        "avg_stress": avg("stress_score"),
        "avg_burnout": avg("burnout_risk_score"),
        "total_spent": round(_sum(transactions), 2),
        "recent_transactions": [
            {
                "id": str(t.id),
                "amount": float(t.amount or 0),
                "type": t.transaction_type,
                "date": ensure_utc(t.created_at).isoformat(),
            }
            for t in transactions
        ],
    }

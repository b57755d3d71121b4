"""
Journal entry repository functions.
"""
from __future__ import annotations

import uuid
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from mindfold.db import models

SCORE_FIELDS = (
    "mental_health_score",
    "happiness_score",
    "accountability_score",
    "stress_score",
    "burnout_risk_score",
)


def list_entries(
    db: Session,
    user_id: uuid.UUID,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    on: Optional[date] = None,
    limit: Optional[int] = None,
    newest_first: bool = True,
):
    query = db.query(models.JournalEntry).filter(models.JournalEntry.user_id == user_id)
    if on is not None:
        query = query.filter(models.JournalEntry.entry_date == on)
    if start is not None:
        query = query.filter(models.JournalEntry.entry_date >= start)
    if end is not None:
        query = query.filter(models.JournalEntry.entry_date <= end)
    order = models.JournalEntry.entry_date.desc() if newest_first else models.JournalEntry.entry_date.asc()
    query = query.order_by(order)
    if limit:
        query = query.limit(limit)
    return query.all()


def get_entry(db: Session, entry_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.JournalEntry]:
    return (
        db.query(models.JournalEntry)
        .filter(models.JournalEntry.id == entry_id, models.JournalEntry.user_id == user_id)
        .first()
    )


def upsert_entry(db: Session, user_id: uuid.UUID, entry_date: date, content: str, analysis: dict) -> models.JournalEntry:
    entry = (
        db.query(models.JournalEntry)
        .filter(models.JournalEntry.user_id == user_id, models.JournalEntry.entry_date == entry_date)
        .first()
    )
    if entry is None:
        entry = models.JournalEntry(user_id=user_id, entry_date=entry_date)
        db.add(entry)
    entry.content = content
    entry.ai_reflection = analysis.get("ai_reflection")
    entry.mood = analysis.get("mood")
    for field in SCORE_FIELDS:
        setattr(entry, field, analysis.get(field))
    db.commit()
    db.refresh(entry)
    return entry


def delete_all_entries(db: Session, user_id: uuid.UUID) -> int:
    removed = (
        db.query(models.JournalEntry)
        .filter(models.JournalEntry.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return removed


def set_visibility(db: Session, entry: models.JournalEntry, visible: bool) -> models.JournalEntry:
    entry.visible_to_therapist = visible
    db.commit()
    db.refresh(entry)
    return entry


def hide_all_from_therapist(db: Session, user_id: uuid.UUID) -> None:
    (
        db.query(models.JournalEntry)
        .filter(models.JournalEntry.user_id == user_id)
        .update({models.JournalEntry.visible_to_therapist: False}, synchronize_session=False)
    )


def list_visible_entries(db: Session, user_id: uuid.UUID):
    return (
        db.query(models.JournalEntry)
        .filter(models.JournalEntry.user_id == user_id, models.JournalEntry.visible_to_therapist.is_(True))
        .order_by(models.JournalEntry.entry_date.desc())
        .all()
    )

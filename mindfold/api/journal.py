"""
Journal entry endpoints.

Entries are one per user per calendar day; saving an entry runs the AI
analysis and overwrites that day's scores.
"""
import calendar
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from mindfold.api.deps import get_current_profile
from mindfold.db import models, schemas
from mindfold.db.database import get_db
from mindfold.db.repositories import journal as journal_repo
from mindfold.services import ai_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/journal", tags=["journal"])


def _parse_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} must be YYYY-MM-DD")


def _month_bounds(value: str):
    try:
        year_text, month_text = value.split("-")
        year, month = int(year_text), int(month_text)
        last_day = calendar.monthrange(year, month)[1]
    except (ValueError, calendar.IllegalMonthError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="month must be YYYY-MM")
    return date(year, month, 1), date(year, month, last_day)


@router.get("", response_model=List[schemas.JournalEntry])
def list_entries(
    month: Optional[str] = Query(default=None),
    date_filter: Optional[str] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if date_filter:
        return journal_repo.list_entries(db, profile.id, on=_parse_date(date_filter, "date"))
    if month:
        start, end = _month_bounds(month)
        return journal_repo.list_entries(db, profile.id, start=start, end=end)
    return journal_repo.list_entries(db, profile.id)


@router.post("", response_model=schemas.JournalEntry)
def save_entry(
    payload: schemas.JournalEntryCreate,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    content = (payload.content or "").strip()
    if not payload.entry_date or not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="entry_date and content are required")
    entry_date = _parse_date(payload.entry_date, "entry_date")

    analysis = ai_service.analyze_journal_entry(content)
    return journal_repo.upsert_entry(db, profile.id, entry_date, content, analysis)


@router.delete("")
def delete_entries(
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    removed = journal_repo.delete_all_entries(db, profile.id)
    logger.info("Deleted %d journal entries for %s", removed, profile.id)
    return {"success": True, "deleted": removed}


@router.patch("/visibility", response_model=schemas.JournalEntry)
def set_visibility(
    payload: schemas.VisibilityUpdate,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if payload.entry_id is None or not isinstance(payload.visible, bool):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="entry_id and a boolean visible are required",
        )
    entry = journal_repo.get_entry(db, payload.entry_id, profile.id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found")
    return journal_repo.set_visibility(db, entry, payload.visible)

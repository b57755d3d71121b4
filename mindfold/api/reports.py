import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from mindfold.api.deps import get_current_profile
from mindfold.db import models
from mindfold.db.database import get_db
from mindfold.services import reports_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"])

WRAP_PERIODS = ("week", "month", "all")


@router.get("/wraps")
def get_wrap(
    period: str = Query(default="week"),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    """Summarise the caller's journal scores for a week, a month or all time."""
    if period not in WRAP_PERIODS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="period must be week, month or all")
    return reports_service.build_wrap(db, profile.id, period, offset)


@router.get("/dashboard/overview")
def dashboard_overview(
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    return reports_service.dashboard_overview(db, profile)

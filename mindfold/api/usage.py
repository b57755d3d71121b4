"""
Plan usage metering endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from mindfold.api.deps import get_current_profile
from mindfold.db import models, schemas
from mindfold.db.database import get_db
from mindfold.services import usage_service

router = APIRouter(prefix="/usage", tags=["usage"])


def _require_feature(feature: Optional[str]) -> str:
    if not feature or feature not in usage_service.FEATURES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"feature must be one of: {', '.join(usage_service.FEATURES)}",
        )
    return feature


@router.post("")
def record_usage(
    payload: schemas.UsageRequest,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    feature = _require_feature(payload.feature)
    if not usage_service.increment_usage(db, profile.id, feature):
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"success": False, "limitExceeded": True, "error": "Usage limit reached"},
        )
    return {"success": True}


@router.get("")
def check_usage(
    feature: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    feature = _require_feature(feature)
    return {"canUse": usage_service.can_use(db, profile.id, feature), "feature": feature}

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from mindfold.api.deps import get_current_profile
from mindfold.db import models, schemas
from mindfold.db.database import get_db
from mindfold.db.repositories import therapists as therapist_repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("")
def list_reviews(
    therapist_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    _profile: models.Profile = Depends(get_current_profile),
):
    if not therapist_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="therapist_id is required")
    try:
        therapist_uuid = uuid.UUID(therapist_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="therapist_id must be a UUID")

    results = []
    for review, full_name in therapist_repo.list_reviews(db, therapist_uuid):
        data = schemas.Review.model_validate(review).model_dump(mode="json")
        data["profiles"] = {"full_name": full_name or "Anonymous"}
        results.append(data)
    return results


@router.post("", response_model=schemas.Review)
def submit_review(
    payload: schemas.ReviewCreate,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if payload.therapist_id is None or payload.rating is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="therapist_id and rating are required")
    if not 1 <= payload.rating <= 5:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="rating must be between 1 and 5")
    therapist = therapist_repo.get_therapist(db, payload.therapist_id)
    if therapist is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Therapist not found")

    review = therapist_repo.upsert_review(
        db,
        therapist_id=therapist.id,
        user_id=profile.id,
        rating=payload.rating,
        review_text=payload.review_text,
    )
    therapist.rating = therapist_repo.average_rating(db, therapist.id)
    db.commit()
    db.refresh(review)
    return review

"""
Therapist profile, service, review and relationship repository functions.
"""
from __future__ import annotations

import uuid
from typing import Iterable, Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from mindfold.db import models


def get_therapist(db: Session, therapist_id: uuid.UUID) -> Optional[models.TherapistProfile]:
    return db.get(models.TherapistProfile, therapist_id)


def create_therapist(db: Session, profile: models.Profile, **fields) -> models.TherapistProfile:
    therapist = models.TherapistProfile(id=profile.id, **fields)
    db.add(therapist)
    db.flush()
    return therapist


def search_approved(db: Session, search: Optional[str] = None):
    query = (
        db.query(models.TherapistProfile)
        .join(models.Profile, models.Profile.id == models.TherapistProfile.id)
        .filter(models.TherapistProfile.verification_status == "approved")
    )
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(
            or_(
                func.lower(models.TherapistProfile.display_name).like(pattern),
                func.lower(models.TherapistProfile.description).like(pattern),
                func.lower(models.Profile.full_name).like(pattern),
            )
        )
    return query.order_by(models.TherapistProfile.rating.desc()).all()


def list_all(db: Session):
    return db.query(models.TherapistProfile).order_by(models.TherapistProfile.created_at.desc()).all()


def count_by_status(db: Session, status: str) -> int:
    return (
        db.query(models.TherapistProfile)
        .filter(models.TherapistProfile.verification_status == status)
        .count()
    )


def get_service(db: Session, service_id: uuid.UUID, therapist_id: uuid.UUID) -> Optional[models.TherapistService]:
    return (
        db.query(models.TherapistService)
        .filter(models.TherapistService.id == service_id, models.TherapistService.therapist_id == therapist_id)
        .first()
    )


def replace_services(db: Session, therapist: models.TherapistProfile, services: Iterable[dict]) -> None:
    therapist.services.clear()
    db.flush()
    for item in services:
        therapist.services.append(
            models.TherapistService(
                sessions_per_week=item.get("sessions_per_week", 1),
                price_per_session=item.get("price_per_session", 0),
                description=item.get("description"),
                is_active=True,
            )
        )
    db.flush()


# Relationships

def get_relationship(db: Session, relationship_id: uuid.UUID) -> Optional[models.TherapistPatient]:
    return db.get(models.TherapistPatient, relationship_id)


def get_active_relationship(
    db: Session,
    *,
    user_id: uuid.UUID,
    therapist_id: Optional[uuid.UUID] = None,
    relationship_id: Optional[uuid.UUID] = None,
) -> Optional[models.TherapistPatient]:
    query = db.query(models.TherapistPatient).filter(
        models.TherapistPatient.user_id == user_id,
        models.TherapistPatient.is_active.is_(True),
    )
    if therapist_id is not None:
        query = query.filter(models.TherapistPatient.therapist_id == therapist_id)
    if relationship_id is not None:
        query = query.filter(models.TherapistPatient.id == relationship_id)
    return query.order_by(models.TherapistPatient.created_at.desc()).first()


def list_active_patients(db: Session, therapist_id: uuid.UUID):
    return (
        db.query(models.TherapistPatient)
        .filter(models.TherapistPatient.therapist_id == therapist_id, models.TherapistPatient.is_active.is_(True))
        .order_by(models.TherapistPatient.created_at.desc())
        .all()
    )


def create_relationship(db: Session, *, therapist_id: uuid.UUID, user_id: uuid.UUID, service_id: uuid.UUID) -> models.TherapistPatient:
    (
        db.query(models.TherapistPatient)
        .filter(models.TherapistPatient.therapist_id == therapist_id, models.TherapistPatient.user_id == user_id)
        .delete(synchronize_session=False)
    )
    relationship = models.TherapistPatient(
        therapist_id=therapist_id,
        user_id=user_id,
        service_id=service_id,
        is_active=True,
    )
    db.add(relationship)
    db.flush()
    return relationship


def purge_relationship_records(db: Session, relationship_id: uuid.UUID) -> None:
    """Remove sessions (with their notes), messages and prescriptions of a relationship."""
    sessions = (
        db.query(models.SessionRequest)
        .filter(models.SessionRequest.relationship_id == relationship_id)
        .all()
    )
    session_ids = [s.id for s in sessions]
    if session_ids:
        (
            db.query(models.SessionNote)
            .filter(models.SessionNote.session_id.in_(session_ids))
            .delete(synchronize_session=False)
        )
    for session in sessions:
        db.delete(session)
    (
        db.query(models.TherapistMessage)
        .filter(models.TherapistMessage.relationship_id == relationship_id)
        .delete(synchronize_session=False)
    )
    (
        db.query(models.Prescription)
        .filter(models.Prescription.relationship_id == relationship_id)
        .delete(synchronize_session=False)
    )
    db.flush()


# Reviews

def list_reviews(db: Session, therapist_id: uuid.UUID):
    return (
        db.query(models.TherapistReview, models.Profile.full_name)
        .outerjoin(models.Profile, models.Profile.id == models.TherapistReview.user_id)
        .filter(models.TherapistReview.therapist_id == therapist_id)
        .order_by(models.TherapistReview.created_at.desc())
        .all()
    )


def upsert_review(db: Session, *, therapist_id: uuid.UUID, user_id: uuid.UUID, rating: int, review_text: Optional[str]) -> models.TherapistReview:
    review = (
        db.query(models.TherapistReview)
        .filter(models.TherapistReview.therapist_id == therapist_id, models.TherapistReview.user_id == user_id)
        .first()
    )
    if review is None:
        review = models.TherapistReview(therapist_id=therapist_id, user_id=user_id)
        db.add(review)
    review.rating = rating
    review.review_text = review_text
    db.flush()
    return review


def average_rating(db: Session, therapist_id: uuid.UUID) -> float:
    value = (
        db.query(func.avg(models.TherapistReview.rating))
        .filter(models.TherapistReview.therapist_id == therapist_id)
        .scalar()
    )
    return round(float(value or 0), 2)

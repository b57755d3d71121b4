"""
Therapy sessions, session notes, therapist messages and prescriptions.

Every record hangs off a therapist/patient relationship; only the two
participants of that relationship may read or write it.
"""
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from mindfold.api.deps import get_current_profile, require_therapist
from mindfold.db import models, schemas
from mindfold.db.database import get_db
from mindfold.db.repositories import care as care_repo
from mindfold.db.repositories import therapists as therapist_repo
from mindfold.services import usage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions"])

SESSION_STATUSES = ("requested", "scheduled", "completed", "cancelled", "postponed")
PRESCRIPTION_TYPES = ("prescription", "preventive_measure")


def _participant(relationship: Optional[models.TherapistPatient], profile_id: uuid.UUID) -> bool:
    return relationship is not None and profile_id in (relationship.user_id, relationship.therapist_id)


def _uuid_param(value: Optional[str], field: str) -> uuid.UUID:
    if not value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} is required")
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} must be a UUID")


# Sessions

@router.get("/sessions", response_model=List[schemas.SessionWithNotes])
def list_sessions(
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if profile.role == "therapist":
        return care_repo.list_sessions(db, therapist_id=profile.id)
    return care_repo.list_sessions(db, user_id=profile.id)


@router.post("/sessions", response_model=schemas.SessionRequest)
def request_session(
    payload: schemas.SessionCreate,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if payload.relationship_id is None or payload.therapist_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="relationship_id and therapist_id are required",
        )
    relationship = therapist_repo.get_active_relationship(
        db,
        user_id=profile.id,
        therapist_id=payload.therapist_id,
        relationship_id=payload.relationship_id,
    )
    if relationship is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No active relationship with this therapist")

    if not usage_service.increment_usage(db, profile.id, "therapist_session"):
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"success": False, "limitExceeded": True, "error": "Weekly session limit reached"},
        )

    return care_repo.create_session(
        db,
        relationship_id=relationship.id,
        user_id=profile.id,
        therapist_id=relationship.therapist_id,
        user_notes=payload.user_notes,
    )


@router.patch("/sessions", response_model=schemas.SessionRequest)
def update_session(
    payload: schemas.SessionUpdate,
    db: Session = Depends(get_db),
    therapist: models.Profile = Depends(require_therapist),
):
    if payload.status not in SESSION_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"status must be one of: {', '.join(SESSION_STATUSES)}",
        )
    session = care_repo.get_session(db, payload.session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    if session.therapist_id != therapist.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    session.status = payload.status
    if payload.meeting_link:
        session.meeting_link = payload.meeting_link
    if payload.scheduled_date:
        session.scheduled_date = payload.scheduled_date
    db.commit()
    db.refresh(session)
    logger.info("Session %s moved to %s", session.id, session.status)
    return session


@router.post("/sessions/notes", response_model=schemas.SessionNote)
def add_session_note(
    payload: schemas.SessionNoteCreate,
    db: Session = Depends(get_db),
    therapist: models.Profile = Depends(require_therapist),
):
    session = care_repo.get_session(db, payload.session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    if session.therapist_id != therapist.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return care_repo.add_note(
        db,
        session_id=session.id,
        therapist_id=therapist.id,
        user_id=session.user_id,
        summary=payload.summary,
        doctors_notes=payload.doctors_notes,
        prescription=payload.prescription,
        exercises=payload.exercises,
    )


# Messages

@router.get("/messages", response_model=List[schemas.Message])
def list_messages(
    relationship_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    relationship = therapist_repo.get_relationship(db, _uuid_param(relationship_id, "relationship_id"))
    if not _participant(relationship, profile.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return care_repo.list_messages(db, relationship.id)


@router.post("/messages", response_model=schemas.Message)
def send_message(
    payload: schemas.MessageCreate,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    content = (payload.content or "").strip()
    if payload.relationship_id is None or payload.receiver_id is None or not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="relationship_id, receiver_id, and content are required",
        )
    relationship = therapist_repo.get_relationship(db, payload.relationship_id)
    if not _participant(relationship, profile.id) or not _participant(relationship, payload.receiver_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    if payload.receiver_id == profile.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="receiver_id must be the other participant")
    return care_repo.add_message(
        db,
        relationship_id=relationship.id,
        sender_id=profile.id,
        receiver_id=payload.receiver_id,
        content=content,
    )


# Prescriptions

@router.get("/prescriptions", response_model=List[schemas.Prescription])
def list_prescriptions(
    user_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    target = _uuid_param(user_id, "user_id") if user_id else profile.id
    if target == profile.id:
        return care_repo.list_prescriptions(db, profile.id)

    if profile.role != "therapist":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    if therapist_repo.get_active_relationship(db, user_id=target, therapist_id=profile.id) is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No active relationship with this patient")
    return care_repo.list_prescriptions(db, target, therapist_id=profile.id)


@router.post("/prescriptions", response_model=schemas.Prescription)
def add_prescription(
    payload: schemas.PrescriptionCreate,
    db: Session = Depends(get_db),
    therapist: models.Profile = Depends(require_therapist),
):
    title = (payload.title or "").strip()
    content = (payload.content or "").strip()
    if payload.user_id is None or payload.relationship_id is None or not payload.type or not title or not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="user_id, relationship_id, type, title, and content are required",
        )
    if payload.type not in PRESCRIPTION_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"type must be one of: {', '.join(PRESCRIPTION_TYPES)}",
        )
    relationship = therapist_repo.get_active_relationship(
        db,
        user_id=payload.user_id,
        therapist_id=therapist.id,
        relationship_id=payload.relationship_id,
    )
    if relationship is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No active relationship with this patient")
    return care_repo.add_prescription(
        db,
        therapist_id=therapist.id,
        user_id=payload.user_id,
        relationship_id=relationship.id,
        type=payload.type,
        title=title,
        content=content,
    )

"""
Session, note, message and prescription repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session, selectinload

from mindfold.db import models


def list_sessions(db: Session, *, therapist_id: Optional[uuid.UUID] = None, user_id: Optional[uuid.UUID] = None):
    query = db.query(models.SessionRequest).options(selectinload(models.SessionRequest.notes))
    if therapist_id is not None:
        query = query.filter(models.SessionRequest.therapist_id == therapist_id)
    if user_id is not None:
        query = query.filter(models.SessionRequest.user_id == user_id)
    return query.order_by(models.SessionRequest.created_at.desc()).all()


def get_session(db: Session, session_id: uuid.UUID) -> Optional[models.SessionRequest]:
    return db.get(models.SessionRequest, session_id)


def count_sessions(db: Session, therapist_id: uuid.UUID, status: str) -> int:
    return (
        db.query(models.SessionRequest)
        .filter(models.SessionRequest.therapist_id == therapist_id, models.SessionRequest.status == status)
        .count()
    )


def create_session(db: Session, **fields) -> models.SessionRequest:
    session = models.SessionRequest(status="requested", **fields)
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def add_note(db: Session, **fields) -> models.SessionNote:
    note = models.SessionNote(**fields)
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


def list_messages(db: Session, relationship_id: uuid.UUID):
    return (
        db.query(models.TherapistMessage)
        .filter(models.TherapistMessage.relationship_id == relationship_id)
        .order_by(models.TherapistMessage.created_at.asc())
        .all()
    )


def add_message(db: Session, **fields) -> models.TherapistMessage:
    message = models.TherapistMessage(**fields)
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def list_prescriptions(db: Session, user_id: uuid.UUID, therapist_id: Optional[uuid.UUID] = None):
    query = db.query(models.Prescription).filter(models.Prescription.user_id == user_id)
    if therapist_id is not None:
        query = query.filter(models.Prescription.therapist_id == therapist_id)
    return query.order_by(models.Prescription.created_at.desc()).all()


def add_prescription(db: Session, **fields) -> models.Prescription:
    prescription = models.Prescription(**fields)
    db.add(prescription)
    db.commit()
    db.refresh(prescription)
    return prescription

"""
Therapist directory, hiring, patient access and therapist self-service.
"""
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from mindfold import audit
from mindfold.api.deps import get_current_profile, require_therapist
from mindfold.db import models, schemas
from mindfold.db.database import get_db
from mindfold.db.repositories import care as care_repo
from mindfold.db.repositories import journal as journal_repo
from mindfold.db.repositories import profiles as profile_repo
from mindfold.db.repositories import therapists as therapist_repo
from mindfold.services import storage_service
from mindfold.services.storage_service import DocumentValidationError, StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/therapists", tags=["therapists"])


def _dump(schema, row) -> dict:
    return schema.model_validate(row).model_dump(mode="json")


def _therapist_card(db: Session, therapist: models.TherapistProfile) -> dict:
    data = _dump(schemas.TherapistProfile, therapist)
    data["profiles"] = {
        "full_name": therapist.profile.full_name if therapist.profile else "",
        "email": therapist.profile.email if therapist.profile else "",
    }
    data["therapist_services"] = [_dump(schemas.TherapistService, s) for s in therapist.services]
    data["therapist_reviews"] = [
        _dump(schemas.Review, review) for review, _name in therapist_repo.list_reviews(db, therapist.id)
    ]
    return data


def _refresh_patient_count(db: Session, therapist_id: uuid.UUID) -> None:
    therapist = therapist_repo.get_therapist(db, therapist_id)
    if therapist is not None:
        therapist.total_patients = len(therapist_repo.list_active_patients(db, therapist_id))


def _parse_uuid(value: Optional[str], field: str) -> uuid.UUID:
    if not value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} is required")
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} must be a UUID")


@router.get("")
def search_therapists(
    search: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    _profile: models.Profile = Depends(get_current_profile),
):
    term = (search or "").strip() or None
    return [_therapist_card(db, t) for t in therapist_repo.search_approved(db, term)]


@router.post("", response_model=schemas.TherapistPatient)
def hire_therapist(
    payload: schemas.HireRequest,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if payload.therapist_id is None or payload.service_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="therapist_id and service_id are required")

    therapist = therapist_repo.get_therapist(db, payload.therapist_id)
    if therapist is None or therapist.verification_status != "approved":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Therapist not found")
    if therapist_repo.get_service(db, payload.service_id, therapist.id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")

    user_profile = profile_repo.ensure_user_profile(db, profile.id)
    relationship = therapist_repo.create_relationship(
        db,
        therapist_id=therapist.id,
        user_id=profile.id,
        service_id=payload.service_id,
    )
    user_profile.current_therapist_id = therapist.id
    _refresh_patient_count(db, therapist.id)
    db.commit()
    db.refresh(relationship)

    audit.log(
        db,
        action=audit.AuditAction.THERAPIST_HIRE,
        target_type="therapist_patient",
        target_id=relationship.id,
        actor_user_id=profile.id,
        metadata={"therapist_id": str(therapist.id), "service_id": str(payload.service_id)},
    )
    return relationship


@router.post("/unhire")
def unhire_therapist(
    payload: schemas.UnhireRequest,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if payload.relationship_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="relationship_id is required")
    relationship = therapist_repo.get_relationship(db, payload.relationship_id)
    if relationship is None or relationship.user_id != profile.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Relationship not found")

    therapist_repo.purge_relationship_records(db, relationship.id)
    journal_repo.hide_all_from_therapist(db, profile.id)
    user_profile = profile_repo.ensure_user_profile(db, profile.id)
    user_profile.current_therapist_id = None
    user_profile.allow_therapist_access = False
    relationship.is_active = False
    relationship.end_date = models.now_utc()
    _refresh_patient_count(db, relationship.therapist_id)
    db.commit()

    audit.log(
        db,
        action=audit.AuditAction.THERAPIST_UNHIRE,
        target_type="therapist_patient",
        target_id=relationship.id,
        actor_user_id=profile.id,
        metadata={"therapist_id": str(relationship.therapist_id)},
    )
    return {"success": True}


@router.get("/patients")
def list_patients(
    db: Session = Depends(get_db),
    therapist: models.Profile = Depends(require_therapist),
):
    results = []
    for relationship in therapist_repo.list_active_patients(db, therapist.id):
        patient = profile_repo.get_profile(db, relationship.user_id)
        data = _dump(schemas.TherapistPatient, relationship)
        data["patient"] = {
            "id": str(relationship.user_id),
            "full_name": patient.full_name if patient else None,
            "email": patient.email if patient else None,
        }
        results.append(data)
    return results


@router.get("/patients/relationship", response_model=schemas.TherapistPatient)
def get_relationship(
    therapist_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    relationship = therapist_repo.get_active_relationship(
        db, user_id=profile.id, therapist_id=_parse_uuid(therapist_id, "therapist_id")
    )
    if relationship is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active relationship")
    return relationship


@router.get("/journal", response_model=List[schemas.JournalEntry])
def patient_journal(
    user_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    therapist: models.Profile = Depends(require_therapist),
):
    patient_id = _parse_uuid(user_id, "user_id")
    relationship = therapist_repo.get_active_relationship(db, user_id=patient_id, therapist_id=therapist.id)
    if relationship is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No active relationship with this patient")
    return journal_repo.list_visible_entries(db, patient_id)


@router.get("/settings")
def get_settings(
    db: Session = Depends(get_db),
    therapist: models.Profile = Depends(require_therapist),
):
    profile = therapist_repo.get_therapist(db, therapist.id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Therapist profile not found")
    return {
        "profile": _dump(schemas.TherapistProfile, profile),
        "services": [_dump(schemas.TherapistService, s) for s in profile.services],
    }


@router.patch("/settings")
def update_settings(
    payload: schemas.TherapistSettingsUpdate,
    db: Session = Depends(get_db),
    therapist: models.Profile = Depends(require_therapist),
):
    profile = therapist_repo.get_therapist(db, therapist.id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Therapist profile not found")

    if payload.display_name is not None:
        profile.display_name = payload.display_name
    if payload.description is not None:
        profile.description = payload.description
    if payload.qualifications is not None:
        profile.qualifications = list(payload.qualifications)
    if payload.services is not None:
        therapist_repo.replace_services(db, profile, [s.model_dump() for s in payload.services])
    db.commit()
    return {"success": True}


@router.get("/reverification")
def reverification_status(
    db: Session = Depends(get_db),
    therapist: models.Profile = Depends(require_therapist),
):
    profile = therapist_repo.get_therapist(db, therapist.id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Therapist profile not found")
    return {
        "verification_status": profile.verification_status,
        "rejection_reason": profile.rejection_reason,
        "rejection_count": profile.rejection_count,
        "can_resubmit": profile.can_resubmit,
    }


@router.post("/reverification")
async def resubmit_documents(
    government_id: Optional[UploadFile] = File(default=None),
    degree_certificate: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    caller: models.Profile = Depends(get_current_profile),
):
    if caller.role != "therapist":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    profile = therapist_repo.get_therapist(db, caller.id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Therapist profile not found")
    if profile.verification_status != "rejected":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Re-verification only available for rejected applications",
        )
    if not profile.can_resubmit:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Maximum rejection limit reached. Cannot resubmit.")
    if government_id is None or degree_certificate is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Both documents are required")

    government_bytes = await storage_service.read_upload(government_id)
    degree_bytes = await storage_service.read_upload(degree_certificate)
    try:
        storage_service.validate_document(government_id.content_type, government_bytes, "Government ID")
        storage_service.validate_document(degree_certificate.content_type, degree_bytes, "Degree certificate")
    except DocumentValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    old_paths = (profile.government_id_path, profile.degree_certificate_path)
    try:
        government_path = storage_service.save_document(
            f"{caller.id}/government_id_{storage_service.sanitize_filename(government_id.filename)}",
            government_bytes,
        )
        degree_path = storage_service.save_document(
            f"{caller.id}/degree_certificate_{storage_service.sanitize_filename(degree_certificate.filename)}",
            degree_bytes,
        )
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    for old_path in old_paths:
        if old_path and old_path not in (government_path, degree_path):
            storage_service.delete_document(old_path)

    profile.government_id_path = government_path
    profile.degree_certificate_path = degree_path
    profile.verification_status = "pending"
    profile.resubmission_requested = True
    profile.rejection_reason = None
    db.commit()

    audit.log(
        db,
        action=audit.AuditAction.THERAPIST_RESUBMIT,
        target_type="therapist_profile",
        target_id=profile.id,
        actor_user_id=caller.id,
        metadata={"rejection_count": profile.rejection_count},
    )
    return {"success": True, "message": "Documents resubmitted for verification"}


@router.get("/overview")
def therapist_overview(
    db: Session = Depends(get_db),
    therapist: models.Profile = Depends(require_therapist),
):
    profile = therapist_repo.get_therapist(db, therapist.id)
    return {
        "full_name": therapist.full_name,
        "display_name": profile.display_name if profile else None,
        "is_verified": bool(profile and profile.verification_status == "approved"),
        "verification_status": profile.verification_status if profile else None,
        "active_patients": len(therapist_repo.list_active_patients(db, therapist.id)),
        "pending_sessions": care_repo.count_sessions(db, therapist.id, "requested"),
        "rating": round(float(profile.rating or 0), 1) if profile else 0,
        "total_earnings": float(profile.total_earnings or 0) if profile else 0,
    }

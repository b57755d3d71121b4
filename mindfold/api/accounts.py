"""
Account endpoints: registration, therapist onboarding and role lookup.
"""
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from mindfold.api.auth import home_path_for
from mindfold.api.deps import get_current_profile
from mindfold.db import models, schemas
from mindfold.db.database import get_db
from mindfold.db.repositories import profiles as profile_repo
from mindfold.db.repositories import therapists as therapist_repo
from mindfold.services import storage_service
from mindfold.services.storage_service import DocumentValidationError, StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=schemas.Profile)
def register(
    payload: schemas.RegisterRequest,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    full_name = payload.full_name.strip()
    if not full_name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="full_name is required")
    profile.full_name = full_name
    profile_repo.ensure_user_profile(db, profile.id)
    db.commit()
    db.refresh(profile)
    return profile


@router.post("/therapist-register", status_code=status.HTTP_201_CREATED)
async def therapist_register(
    full_name: str = Form(...),
    license_number: str = Form(...),
    government_id: UploadFile = File(...),
    degree_certificate: UploadFile = File(...),
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if profile.role == "therapist" or therapist_repo.get_therapist(db, profile.id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already registered as a therapist")
    if profile.role == "admin":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot register as therapists")

    government_bytes = await storage_service.read_upload(government_id)
    degree_bytes = await storage_service.read_upload(degree_certificate)
    try:
        storage_service.validate_document(government_id.content_type, government_bytes, "Government ID")
        storage_service.validate_document(degree_certificate.content_type, degree_bytes, "Degree certificate")
        government_path = storage_service.save_document(
            f"{profile.id}/government_id_{storage_service.sanitize_filename(government_id.filename)}",
            government_bytes,
        )
        degree_path = storage_service.save_document(
            f"{profile.id}/degree_certificate_{storage_service.sanitize_filename(degree_certificate.filename)}",
            degree_bytes,
        )
    except DocumentValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))

    profile.full_name = full_name.strip() or profile.full_name
    profile.role = "therapist"
    therapist = therapist_repo.create_therapist(
        db,
        profile,
        display_name=profile.full_name,
        license_number=license_number.strip(),
        verification_status="pending",
        government_id_path=government_path,
        degree_certificate_path=degree_path,
        qualifications=[],
    )
    db.commit()
    logger.info("Therapist registration submitted for %s", profile.id)
    return {
        "success": True,
        "therapist_id": str(therapist.id),
        "verification_status": therapist.verification_status,
        "home_path": home_path_for(profile.role),
    }


@router.get("/me", response_model=schemas.MeResponse)
def me(profile: models.Profile = Depends(get_current_profile)):
    return {"profile": profile, "role": profile.role, "home_path": home_path_for(profile.role)}

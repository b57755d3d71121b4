"""
Admin portal endpoints.

Platform statistics, therapist verification decisions, analytics, user and
transaction listings, landing content management and the audit trail.
Stored verification documents are only reachable through short-lived
signed URLs handed out by `GET /admin/therapists`.
"""
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from mindfold import audit
from mindfold.api.deps import require_admin
from mindfold.db import models, schemas
from mindfold.db.database import get_db
from mindfold.db.repositories import audits as audit_repo
from mindfold.db.repositories import billing as billing_repo
from mindfold.db.repositories import content as content_repo
from mindfold.db.repositories import profiles as profile_repo
from mindfold.db.repositories import therapists as therapist_repo
from mindfold.services import email_service, reports_service, storage_service
from mindfold.services.storage_service import StorageError
from mindfold.utils.feature_flags import verification_emails_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])
documents_router = APIRouter(prefix="/documents", tags=["documents"])

MAX_REJECTIONS = 3
VERIFICATION_DECISIONS = ("approved", "rejected")


@router.get("/stats")
def platform_stats(
    db: Session = Depends(get_db),
    _admin: models.Profile = Depends(require_admin),
):
    return {
        "total_users": profile_repo.count_by_role(db, "user"),
        "total_therapists": profile_repo.count_by_role(db, "therapist"),
        "pending_therapists": therapist_repo.count_by_status(db, "pending"),
    }


@router.patch("/stats")
def decide_verification(
    payload: schemas.VerificationUpdate,
    db: Session = Depends(get_db),
    admin: models.Profile = Depends(require_admin),
):
    if payload.status not in VERIFICATION_DECISIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="status must be approved or rejected")
    therapist = therapist_repo.get_therapist(db, payload.therapist_id)
    if therapist is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Therapist not found")

    therapist.verification_status = payload.status
    therapist.resubmission_requested = False
    if payload.status == "approved":
        therapist.rejection_reason = None
        action = audit.AuditAction.THERAPIST_APPROVE
    else:
        therapist.rejection_reason = payload.reason
        therapist.rejection_count = (therapist.rejection_count or 0) + 1
        therapist.can_resubmit = therapist.rejection_count < MAX_REJECTIONS
        action = audit.AuditAction.THERAPIST_REJECT
    db.commit()
    db.refresh(therapist)

    audit.log(
        db,
        action=action,
        target_type="therapist_profile",
        target_id=therapist.id,
        actor_user_id=admin.id,
        reason=payload.reason,
        metadata={"rejection_count": therapist.rejection_count, "can_resubmit": therapist.can_resubmit},
    )

    if verification_emails_enabled() and therapist.profile is not None:
        result = email_service.send_verification_decision(
            therapist.profile.email,
            therapist_name=therapist.display_name or therapist.profile.full_name or "there",
            status=payload.status,
            reason=payload.reason,
            can_resubmit=therapist.can_resubmit,
        )
        if not result.get("success"):
            logger.warning("Verification email not sent for %s: %s", therapist.id, result.get("error"))

    return {"success": True}


@router.get("/analytics")
def analytics(
    range: str = Query(default="30d"),
    db: Session = Depends(get_db),
    _admin: models.Profile = Depends(require_admin),
):
    if range not in reports_service.RANGE_DAYS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="range must be one of 7d, 30d, 90d, 1y")
    return reports_service.admin_analytics(db, range)


@router.get("/users")
def list_users(
    db: Session = Depends(get_db),
    _admin: models.Profile = Depends(require_admin),
):
    return reports_service.admin_user_rows(db)


@router.get("/users/{user_id}")
def user_detail(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    _admin: models.Profile = Depends(require_admin),
):
    profile = profile_repo.get_profile(db, user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return reports_service.admin_user_detail(db, profile)


@router.get("/therapists")
def list_therapists(
    db: Session = Depends(get_db),
    _admin: models.Profile = Depends(require_admin),
):
    results = []
    for therapist in therapist_repo.list_all(db):
        data = schemas.TherapistProfile.model_validate(therapist).model_dump(mode="json")
        data["profiles"] = {
            "full_name": therapist.profile.full_name if therapist.profile else None,
            "email": therapist.profile.email if therapist.profile else None,
        }
        data["government_id_url"] = storage_service.signed_url(therapist.government_id_path)
        data["degree_certificate_url"] = storage_service.signed_url(therapist.degree_certificate_path)
        results.append(data)
    return results


@router.get("/transactions")
def list_transactions(
    db: Session = Depends(get_db),
    _admin: models.Profile = Depends(require_admin),
):
    profiles = {p.id: p for p in db.query(models.Profile).all()}
    results = []
    for t in billing_repo.list_transactions(db):
        owner = profiles.get(t.user_id)
        results.append({
            "id": str(t.id),
            "user_name": owner.full_name if owner and owner.full_name else "Unknown",
            "user_email": owner.email if owner else "—",
            "amount": float(t.amount or 0),
            "currency": t.currency,
            "transaction_type": t.transaction_type,
            "status": t.status,
            "description": t.description,
            "created_at": t.created_at,
        })
    return results


@router.get("/landing", response_model=List[schemas.LandingSection])
def list_landing_sections(
    db: Session = Depends(get_db),
    _admin: models.Profile = Depends(require_admin),
):
    return content_repo.list_sections(db, active_only=False)


@router.patch("/landing")
def update_landing_section(
    payload: schemas.LandingSectionUpdate,
    db: Session = Depends(get_db),
    admin: models.Profile = Depends(require_admin),
):
    section = content_repo.get_section(db, payload.section_id)
    if section is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found")
    content_repo.update_section(
        db,
        section,
        updated_by=admin.id,
        content=payload.content,
        is_active=payload.is_active,
        display_order=payload.display_order,
    )
    audit.log(
        db,
        action=audit.AuditAction.LANDING_UPDATE,
        target_type="landing_page_section",
        target_id=section.id,
        actor_user_id=admin.id,
        metadata={"section_name": section.section_name},
    )
    return {"success": True}


@router.get("/audit-logs", response_model=List[schemas.AuditLog])
def list_audit_logs(
    actor_user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    target_type: Optional[str] = None,
    skip: int = 0,
    limit: int = Query(default=100, le=500),
    db: Session = Depends(get_db),
    _admin: models.Profile = Depends(require_admin),
):
    return audit_repo.get_audit_logs(
        db,
        actor_user_id=actor_user_id,
        action_type=action_type,
        target_type=target_type,
        skip=skip,
        limit=limit,
    )


@documents_router.get("/{path:path}")
def serve_document(
    path: str,
    expires: Optional[int] = Query(default=None),
    signature: Optional[str] = Query(default=None),
):
    if expires is None or not signature or not storage_service.verify_signature(path, expires, signature):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired link")
    try:
        target = storage_service.read_document(path)
    except (FileNotFoundError, StorageError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return FileResponse(target)

"""
Account settings for end users.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from mindfold import audit
from mindfold.api.deps import get_current_profile
from mindfold.db import models, schemas
from mindfold.db.database import get_db
from mindfold.db.repositories import profiles as profile_repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user/settings", tags=["settings"])


@router.get("")
def get_settings(
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    user_profile = profile_repo.ensure_user_profile(db, profile.id)
    db.commit()
    merged = schemas.Profile.model_validate(profile).model_dump(mode="json")
    merged.update(schemas.UserProfile.model_validate(user_profile).model_dump(mode="json"))
    return merged


@router.patch("")
def update_settings(
    payload: schemas.UserSettingsUpdate,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    # Credentials are owned by the identity provider in front of the API
    if payload.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password changes are managed by your sign-in provider",
        )
    if payload.full_name:
        profile.full_name = payload.full_name.strip()
    if payload.allow_therapist_access is not None:
        profile_repo.ensure_user_profile(db, profile.id).allow_therapist_access = payload.allow_therapist_access
    db.commit()
    return {"success": True}


@router.delete("")
def delete_account(
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    profile_id = profile.id
    profile_repo.delete_account(db, profile)
    logger.info("Deleted account %s", profile_id)
    audit.log(
        db,
        action=audit.AuditAction.ACCOUNT_DELETE,
        target_type="profile",
        target_id=profile_id,
    )
    return {"success": True}

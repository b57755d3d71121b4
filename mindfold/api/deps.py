"""
API dependency helpers.

Resolves the calling profile from proxy headers (or the DEV_MODE identity)
and guards role-restricted routes.
"""
from typing import Optional, Tuple, Dict, Any

from fastapi import Header, HTTPException, status, Depends
from sqlalchemy.orm import Session

from mindfold.db import models
from mindfold.db.database import get_db
from mindfold.api.auth import resolve_identity_from_headers, get_or_create_profile
from mindfold.utils.runtime import dev_mode_active, DEV_USER_EMAIL, DEV_USER_NAME

# Contract:
# Returns (Profile ORM row, current_user_context_dict)
# Raises 401 if identity cannot be resolved.

def get_current_user_context(
    db: Session = Depends(get_db),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Tuple[models.Profile, Dict[str, Any]]:
    name, email = resolve_identity_from_headers(
        x_auth_request_user=x_auth_request_user,
        x_auth_request_email=x_auth_request_email,
        x_forwarded_user=x_forwarded_user,
        x_forwarded_email=x_forwarded_email,
    )
    if not email and dev_mode_active():
        name, email = DEV_USER_NAME, DEV_USER_EMAIL
    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    profile = get_or_create_profile(db, email=email, full_name=name)
    current_user = {
        "id": profile.id,
        "email": profile.email,
        "full_name": profile.full_name,
        "role": profile.role,
        "is_admin": profile.role == "admin",
        "is_therapist": profile.role == "therapist",
    }
    return profile, current_user


def get_current_profile(
    user_and_context=Depends(get_current_user_context),
) -> models.Profile:
    profile, _ctx = user_and_context
    return profile


def require_admin(profile: models.Profile = Depends(get_current_profile)) -> models.Profile:
    if profile.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return profile


def require_therapist(profile: models.Profile = Depends(get_current_profile)) -> models.Profile:
    if profile.role != "therapist":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Therapist access required")
    return profile

"""
Authentication helpers and identity resolution.

Identity arrives from the authenticating reverse proxy as request headers.
Profiles are created on first sight; ADMIN_EMAILS promotes matching
identities to the admin role.
"""
import logging
import os
from typing import Optional, Tuple
from sqlalchemy.orm import Session

from mindfold.db import models
from mindfold.db.repositories import profiles as profile_repo

logger = logging.getLogger(__name__)

ROLE_HOME_PATHS = {
    "therapist": "/therapist/overview",
    "admin": "/admin/overview",
    "user": "/dashboard/overview",
}


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower() or None


def _admin_emails() -> set:
    values = set()
    for entry in os.getenv("ADMIN_EMAILS", "").split(","):
        cleaned = entry.strip().strip('"').strip("'")
        if cleaned:
            values.add(cleaned.lower())
    return values


def resolve_identity_from_headers(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    name = x_auth_request_user or x_forwarded_user
    email = _normalize_email(x_auth_request_email or x_forwarded_email)
    return name, email


def home_path_for(role: str) -> str:
    return ROLE_HOME_PATHS.get(role, ROLE_HOME_PATHS["user"])


def get_or_create_profile(db: Session, email: str, full_name: Optional[str] = None) -> models.Profile:
    profile = profile_repo.get_profile_by_email(db, email)
    if profile is None:
        profile = profile_repo.create_profile(db, email=email, full_name=full_name)
        logger.info("Created profile %s", profile.id)

    if email in _admin_emails() and profile.role != "admin":
        profile.role = "admin"
        db.commit()
        db.refresh(profile)
    return profile

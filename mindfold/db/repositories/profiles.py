"""
Profile repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from mindfold.db import models


def get_profile(db: Session, profile_id: uuid.UUID) -> Optional[models.Profile]:
    return db.query(models.Profile).filter(models.Profile.id == profile_id).first()


def get_profile_by_email(db: Session, email: str) -> Optional[models.Profile]:
    return db.query(models.Profile).filter(models.Profile.email == email.lower()).first()


def create_profile(db: Session, *, email: str, full_name: Optional[str] = None, role: str = "user") -> models.Profile:
    profile = models.Profile(email=email.lower(), full_name=full_name, role=role)
    db.add(profile)
    db.flush()
    db.add(models.UserProfile(id=profile.id, subscription_plan="basic"))
    db.commit()
    db.refresh(profile)
    return profile


def ensure_user_profile(db: Session, profile_id: uuid.UUID) -> models.UserProfile:
    user_profile = db.get(models.UserProfile, profile_id)
    if user_profile is None:
        user_profile = models.UserProfile(id=profile_id, subscription_plan="basic")
        db.add(user_profile)
        db.flush()
    return user_profile


def count_by_role(db: Session, role: str) -> int:
    return db.query(models.Profile).filter(models.Profile.role == role).count()


def delete_account(db: Session, profile: models.Profile) -> None:
    """Remove a profile with its journal, chat history and dependent profiles."""
    db.query(models.JournalEntry).filter(models.JournalEntry.user_id == profile.id).delete(synchronize_session=False)
    for conversation in (
        db.query(models.JournalChatConversation)
        .filter(models.JournalChatConversation.user_id == profile.id)
        .all()
    ):
        db.delete(conversation)
    db.query(models.UsageTracking).filter(models.UsageTracking.user_id == profile.id).delete(synchronize_session=False)
    db.query(models.UserSubscription).filter(models.UserSubscription.user_id == profile.id).delete(synchronize_session=False)
    db.delete(profile)
    db.commit()

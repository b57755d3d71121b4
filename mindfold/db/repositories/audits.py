"""
Audit log repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from mindfold.db import schemas, models


def create_audit_log(db: Session, audit_log: schemas.AuditLogCreate, actor_user_id: Optional[uuid.UUID] = None):
    data = audit_log.model_dump()
    metadata_payload = data.pop('metadata', None)
    row = models.AuditLog(**data, actor_user_id=actor_user_id, metadata_json=metadata_payload)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_audit_logs(
    db: Session,
    actor_user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    target_type: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(models.AuditLog)
    if actor_user_id:
        query = query.filter(models.AuditLog.actor_user_id == actor_user_id)
    if action_type:
        query = query.filter(models.AuditLog.action_type == action_type)
    if target_type:
        query = query.filter(models.AuditLog.target_type == target_type)
    return query.order_by(models.AuditLog.created_at.desc()).offset(skip).limit(limit).all()

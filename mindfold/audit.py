"""
Audit logging helpers and enums.

Persists normalized audit records for administrative and account-level
actions through a single entry point.
"""
from __future__ import annotations
import logging
import uuid
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from mindfold.db import schemas
from mindfold.db.repositories import audits as audit_repo

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    # Therapist verification
    THERAPIST_APPROVE = "therapist_approve"
    THERAPIST_REJECT = "therapist_reject"
    THERAPIST_RESUBMIT = "therapist_resubmit"
    # Landing content
    LANDING_UPDATE = "landing_update"
    # Subscriptions
    SUBSCRIPTION_ACTIVATE = "subscription_activate"
    # Accounts
    ACCOUNT_DELETE = "account_delete"
    # Care relationships
    THERAPIST_HIRE = "therapist_hire"
    THERAPIST_UNHIRE = "therapist_unhire"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[uuid.UUID] = None,
    actor_user_id: Optional[uuid.UUID] = None,
    reason: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[schemas.AuditLog]:
    """Persist one audit record; failures are logged and never raised."""
    # Store plain strings, not Enum reprs
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    entry = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        reason=reason,
        metadata=metadata or {},
    )
    try:
        return audit_repo.create_audit_log(db, audit_log=entry, actor_user_id=actor_user_id)
    except Exception:
        db.rollback()
        logger.exception("Failed to write audit log for %s", action_value)
        return None


__all__ = ["AuditAction", "AuditStatus", "log"]

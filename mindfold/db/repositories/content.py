"""
Landing page section repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from mindfold.db import models


def list_sections(db: Session, *, active_only: bool):
    query = db.query(models.LandingPageSection)
    if active_only:
        return (
            query.filter(models.LandingPageSection.is_active.is_(True))
            .order_by(models.LandingPageSection.display_order.asc())
            .all()
        )
    return query.order_by(models.LandingPageSection.section_name.asc()).all()


def get_section(db: Session, section_id: uuid.UUID) -> Optional[models.LandingPageSection]:
    return db.get(models.LandingPageSection, section_id)


def update_section(
    db: Session,
    section: models.LandingPageSection,
    *,
    updated_by: uuid.UUID,
    content: Optional[dict] = None,
    is_active: Optional[bool] = None,
    display_order: Optional[int] = None,
) -> models.LandingPageSection:
    if content is not None:
        section.content = content
    if is_active is not None:
        section.is_active = is_active
    if display_order is not None:
        section.display_order = display_order
    section.updated_by = updated_by
    db.commit()
    db.refresh(section)
    return section

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mindfold.db import schemas
from mindfold.db.database import get_db
from mindfold.db.repositories import content as content_repo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/landing", tags=["landing"])


@router.get("")
def get_landing_sections(db: Session = Depends(get_db)):
    """Public landing content; degrades to an empty page instead of erroring."""
    try:
        sections = content_repo.list_sections(db, active_only=True)
        return [schemas.LandingSection.model_validate(s).model_dump(mode="json") for s in sections]
    except (SQLAlchemyError, ValueError) as exc:
        logger.error("Failed to load landing sections: %s", exc)
        return []

import uuid
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict


class LandingSection(BaseModel):
    id: uuid.UUID
    section_name: str
    display_order: int
    is_active: bool
    content: Dict[str, Any] = {}
    updated_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class LandingSectionUpdate(BaseModel):
    section_id: uuid.UUID
    content: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None
    display_order: Optional[int] = None


class VerificationUpdate(BaseModel):
    therapist_id: uuid.UUID
    status: str
    reason: Optional[str] = None

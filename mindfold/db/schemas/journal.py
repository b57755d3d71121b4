import uuid
from datetime import date, datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class JournalEntryCreate(BaseModel):
    entry_date: Optional[str] = None
    content: Optional[str] = None


class JournalEntry(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    entry_date: date
    content: str
    ai_reflection: str | None = None
    mood: str | None = None
    mental_health_score: int | None = None
    happiness_score: int | None = None
    accountability_score: int | None = None
    stress_score: int | None = None
    burnout_risk_score: int | None = None
    visible_to_therapist: bool = False
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class VisibilityUpdate(BaseModel):
    entry_id: Optional[uuid.UUID] = None
    visible: Optional[Any] = None

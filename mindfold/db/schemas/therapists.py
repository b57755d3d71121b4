import uuid
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class TherapistService(BaseModel):
    id: uuid.UUID
    therapist_id: uuid.UUID
    sessions_per_week: int
    price_per_session: float
    description: str | None = None
    is_active: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class TherapistServiceInput(BaseModel):
    sessions_per_week: int = Field(default=1, ge=1)
    price_per_session: float = Field(default=0, ge=0)
    description: Optional[str] = None


class TherapistProfile(BaseModel):
    id: uuid.UUID
    display_name: str | None = None
    description: str | None = None
    photo_url: str | None = None
    qualifications: List[str] = []
    verification_status: str
    license_number: str | None = None
    rating: float = 0
    total_patients: int = 0
    total_earnings: float = 0
    rejection_reason: str | None = None
    rejection_count: int = 0
    can_resubmit: bool = True
    resubmission_requested: bool = False
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class TherapistSettingsUpdate(BaseModel):
    display_name: Optional[str] = None
    description: Optional[str] = None
    qualifications: Optional[List[str]] = None
    services: Optional[List[TherapistServiceInput]] = None


class TherapistPatient(BaseModel):
    id: uuid.UUID
    therapist_id: uuid.UUID
    user_id: uuid.UUID
    service_id: uuid.UUID | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class HireRequest(BaseModel):
    therapist_id: Optional[uuid.UUID] = None
    service_id: Optional[uuid.UUID] = None


class UnhireRequest(BaseModel):
    relationship_id: Optional[uuid.UUID] = None


class Review(BaseModel):
    id: uuid.UUID
    therapist_id: uuid.UUID
    user_id: uuid.UUID
    rating: int
    review_text: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ReviewCreate(BaseModel):
    therapist_id: Optional[uuid.UUID] = None
    rating: Optional[int] = None
    review_text: Optional[str] = None

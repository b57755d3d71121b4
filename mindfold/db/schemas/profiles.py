import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class Profile(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str | None = None
    role: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UserProfile(BaseModel):
    id: uuid.UUID
    subscription_plan: str
    subscription_start_date: datetime | None = None
    subscription_end_date: datetime | None = None
    current_therapist_id: uuid.UUID | None = None
    allow_therapist_access: bool = False
    model_config = ConfigDict(from_attributes=True)


class RegisterRequest(BaseModel):
    full_name: str


class MeResponse(BaseModel):
    profile: Profile
    role: str
    home_path: str


class UserSettingsUpdate(BaseModel):
    full_name: Optional[str] = None
    allow_therapist_access: Optional[bool] = None
    password: Optional[str] = None

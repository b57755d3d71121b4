import uuid
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class SessionNote(BaseModel):
    id: uuid.UUID
    session_id: uuid.UUID
    therapist_id: uuid.UUID
    user_id: uuid.UUID
    summary: str | None = None
    doctors_notes: str | None = None
    prescription: str | None = None
    exercises: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class SessionRequest(BaseModel):
    id: uuid.UUID
    relationship_id: uuid.UUID
    user_id: uuid.UUID
    therapist_id: uuid.UUID
    status: str
    requested_date: datetime | None = None
    scheduled_date: datetime | None = None
    meeting_link: str | None = None
    user_notes: str | None = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class SessionWithNotes(SessionRequest):
    notes: List[SessionNote] = []


class SessionCreate(BaseModel):
    relationship_id: Optional[uuid.UUID] = None
    therapist_id: Optional[uuid.UUID] = None
    user_notes: Optional[str] = None


class SessionUpdate(BaseModel):
    session_id: uuid.UUID
    status: str
    meeting_link: Optional[str] = None
    scheduled_date: Optional[datetime] = None


class SessionNoteCreate(BaseModel):
    session_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    summary: Optional[str] = None
    doctors_notes: Optional[str] = None
    prescription: Optional[str] = None
    exercises: Optional[str] = None


class Message(BaseModel):
    id: uuid.UUID
    relationship_id: uuid.UUID
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    content: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class MessageCreate(BaseModel):
    relationship_id: Optional[uuid.UUID] = None
    receiver_id: Optional[uuid.UUID] = None
    content: Optional[str] = None


class Prescription(BaseModel):
    id: uuid.UUID
    therapist_id: uuid.UUID
    user_id: uuid.UUID
    relationship_id: uuid.UUID
    type: str
    title: str
    content: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PrescriptionCreate(BaseModel):
    user_id: Optional[uuid.UUID] = None
    relationship_id: Optional[uuid.UUID] = None
    type: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None

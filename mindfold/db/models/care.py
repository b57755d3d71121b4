import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class SessionRequest(Base):
    __tablename__ = 'session_requests'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    relationship_id = Column(UUID(as_uuid=True), ForeignKey('therapist_patients.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    therapist_id = Column(UUID(as_uuid=True), ForeignKey('therapist_profiles.id', ondelete='CASCADE'), nullable=False)
    # 'requested'|'scheduled'|'completed'|'cancelled'|'postponed'
    status = Column(String(20), nullable=False, default='requested')
    requested_date = Column(DateTime(timezone=True), default=now_utc)
    scheduled_date = Column(DateTime(timezone=True), nullable=True)
    meeting_link = Column(String, nullable=True)
    user_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    notes = relationship(
        "SessionNote",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionNote.created_at",
    )

    __table_args__ = (
        Index('ix_session_requests_therapist_status', 'therapist_id', 'status'),
        Index('ix_session_requests_user_created_at', 'user_id', 'created_at'),
    )


class SessionNote(Base):
    __tablename__ = 'session_notes'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(UUID(as_uuid=True), ForeignKey('session_requests.id', ondelete='CASCADE'), nullable=False)
    therapist_id = Column(UUID(as_uuid=True), ForeignKey('therapist_profiles.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    summary = Column(Text, nullable=True)
    doctors_notes = Column(Text, nullable=True)
    prescription = Column(Text, nullable=True)
    exercises = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    session = relationship("SessionRequest", back_populates="notes")


class TherapistMessage(Base):
    __tablename__ = 'therapist_messages'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    relationship_id = Column(UUID(as_uuid=True), ForeignKey('therapist_patients.id', ondelete='CASCADE'), nullable=False)
    sender_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    receiver_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        Index('ix_therapist_messages_relationship_created_at', 'relationship_id', 'created_at'),
    )


class Prescription(Base):
    __tablename__ = 'prescriptions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    therapist_id = Column(UUID(as_uuid=True), ForeignKey('therapist_profiles.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    relationship_id = Column(UUID(as_uuid=True), ForeignKey('therapist_patients.id', ondelete='CASCADE'), nullable=False)
    # 'prescription'|'preventive_measure'
    type = Column(String(40), nullable=False)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

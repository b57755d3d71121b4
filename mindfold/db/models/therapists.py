import uuid
from sqlalchemy import (
    Column, String, Text, DateTime, Integer, Float, Numeric, Boolean, ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class TherapistProfile(Base):
    __tablename__ = 'therapist_profiles'
    id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), primary_key=True)
    display_name = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    photo_url = Column(String, nullable=True)
    qualifications = Column(JSONB, nullable=False, default=list)
    # 'pending'|'approved'|'rejected'
    verification_status = Column(String(20), nullable=False, default='pending')
    license_number = Column(String, nullable=True)
    # Storage-relative paths, never public URLs
    government_id_path = Column(String, nullable=True)
    degree_certificate_path = Column(String, nullable=True)
    rating = Column(Float, nullable=False, default=0)
    total_patients = Column(Integer, nullable=False, default=0)
    total_earnings = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    rejection_reason = Column(Text, nullable=True)
    rejection_count = Column(Integer, nullable=False, default=0)
    can_resubmit = Column(Boolean, nullable=False, default=True)
    resubmission_requested = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    profile = relationship("Profile", back_populates="therapist_profile")
    services = relationship(
        "TherapistService",
        back_populates="therapist",
        cascade="all, delete-orphan",
        order_by="TherapistService.created_at",
    )

    __table_args__ = (
        Index('ix_therapist_profiles_verification_status', 'verification_status'),
    )


class TherapistService(Base):
    __tablename__ = 'therapist_services'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    therapist_id = Column(UUID(as_uuid=True), ForeignKey('therapist_profiles.id', ondelete='CASCADE'), nullable=False)
    sessions_per_week = Column(Integer, nullable=False, default=1)
    price_per_session = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    therapist = relationship("TherapistProfile", back_populates="services")


class TherapistReview(Base):
    __tablename__ = 'therapist_reviews'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    therapist_id = Column(UUID(as_uuid=True), ForeignKey('therapist_profiles.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    rating = Column(Integer, nullable=False)
    review_text = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        UniqueConstraint('therapist_id', 'user_id', name='uq_therapist_reviews_therapist_user'),
    )


class TherapistPatient(Base):
    __tablename__ = 'therapist_patients'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    therapist_id = Column(UUID(as_uuid=True), ForeignKey('therapist_profiles.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(UUID(as_uuid=True), ForeignKey('therapist_services.id', ondelete='SET NULL'), nullable=True)
    start_date = Column(DateTime(timezone=True), default=now_utc)
    end_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        Index('ix_therapist_patients_therapist_active', 'therapist_id', 'is_active'),
        Index('ix_therapist_patients_user_active', 'user_id', 'is_active'),
    )

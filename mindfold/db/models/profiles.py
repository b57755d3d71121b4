import uuid
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Profile(Base):
    __tablename__ = 'profiles'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=True)
    # 'user'|'therapist'|'admin'
    role = Column(String(20), nullable=False, default='user')
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    user_profile = relationship(
        "UserProfile",
        back_populates="profile",
        uselist=False,
        cascade="all, delete-orphan",
        foreign_keys="UserProfile.id",
    )
    therapist_profile = relationship(
        "TherapistProfile",
        back_populates="profile",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index('ix_profiles_role_created_at', 'role', 'created_at'),
    )


class UserProfile(Base):
    __tablename__ = 'user_profiles'
    id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), primary_key=True)
    # 'free'|'basic'|'intermediate'|'advanced'
    subscription_plan = Column(String(40), nullable=False, default='basic')
    subscription_start_date = Column(DateTime(timezone=True), nullable=True)
    subscription_end_date = Column(DateTime(timezone=True), nullable=True)
    current_therapist_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True)
    allow_therapist_access = Column(Boolean, nullable=False, default=False)
    dodo_customer_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    profile = relationship("Profile", back_populates="user_profile", foreign_keys=[id])

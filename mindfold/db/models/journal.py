import uuid
from sqlalchemy import Column, String, Text, Date, DateTime, Integer, Boolean, ForeignKey, UniqueConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class JournalEntry(Base):
    __tablename__ = 'journal_entries'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    entry_date = Column(Date, nullable=False)
    content = Column(Text, nullable=False)
    ai_reflection = Column(Text, nullable=True)
    mood = Column(String(40), nullable=True)
    # 0..100; stress and burnout are inverted (100 = calm / no burnout risk)
    mental_health_score = Column(Integer, nullable=True)
    happiness_score = Column(Integer, nullable=True)
    accountability_score = Column(Integer, nullable=True)
    stress_score = Column(Integer, nullable=True)
    burnout_risk_score = Column(Integer, nullable=True)
    visible_to_therapist = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        UniqueConstraint('user_id', 'entry_date', name='uq_journal_entries_user_date'),
        Index('ix_journal_entries_user_entry_date', 'user_id', 'entry_date'),
    )


class JournalChatConversation(Base):
    __tablename__ = 'journal_chat_conversations'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    title = Column(String, nullable=False)
    # 'quick_reflect'|'deep_reflect'
    chat_mode = Column(String(20), nullable=False, default='quick_reflect')
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    messages = relationship(
        "JournalChatMessage",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="JournalChatMessage.created_at",
    )

    __table_args__ = (
        Index('ix_journal_chat_conversations_user_updated_at', 'user_id', 'updated_at'),
    )


class JournalChatMessage(Base):
    __tablename__ = 'journal_chat_messages'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    conversation_id = Column(
        UUID(as_uuid=True), ForeignKey('journal_chat_conversations.id', ondelete='CASCADE'), nullable=False
    )
    # 'user'|'assistant'
    role = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    conversation = relationship("JournalChatConversation", back_populates="messages")

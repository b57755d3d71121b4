"""
Ask-journal conversation repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional
from sqlalchemy.orm import Session

from mindfold.db import models


def list_conversations(db: Session, user_id: uuid.UUID):
    return (
        db.query(models.JournalChatConversation)
        .filter(models.JournalChatConversation.user_id == user_id)
        .order_by(models.JournalChatConversation.updated_at.desc())
        .all()
    )


def get_conversation(db: Session, conversation_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.JournalChatConversation]:
    return (
        db.query(models.JournalChatConversation)
        .filter(
            models.JournalChatConversation.id == conversation_id,
            models.JournalChatConversation.user_id == user_id,
        )
        .first()
    )


def create_conversation(db: Session, user_id: uuid.UUID, title: str, chat_mode: str) -> models.JournalChatConversation:
    conversation = models.JournalChatConversation(user_id=user_id, title=title, chat_mode=chat_mode)
    db.add(conversation)
    db.commit()
    db.refresh(conversation)
    return conversation


def add_message(db: Session, conversation: models.JournalChatConversation, role: str, content: str) -> models.JournalChatMessage:
    message = models.JournalChatMessage(conversation_id=conversation.id, role=role, content=content)
    db.add(message)
    conversation.updated_at = models.now_utc()
    db.commit()
    db.refresh(message)
    return message


def list_messages(db: Session, conversation_id: uuid.UUID):
    return (
        db.query(models.JournalChatMessage)
        .filter(models.JournalChatMessage.conversation_id == conversation_id)
        .order_by(models.JournalChatMessage.created_at.asc())
        .all()
    )


def delete_conversation(db: Session, conversation: models.JournalChatConversation) -> None:
    db.delete(conversation)
    db.commit()

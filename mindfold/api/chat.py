"""
Ask-journal chat endpoints.

Each user message is metered against the plan quota of its chat mode and
answered from the user's own journal: the last 14 days for quick reflect,
up to 100 most recent entries for deep reflect.
"""
import logging
import uuid
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from mindfold.api.deps import get_current_profile
from mindfold.db import models, schemas
from mindfold.db.database import get_db
from mindfold.db.repositories import chat as chat_repo
from mindfold.db.repositories import journal as journal_repo
from mindfold.services import ai_service, usage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

CHAT_MODES = ("quick_reflect", "deep_reflect")
QUICK_REFLECT_DAYS = 14
DEEP_REFLECT_LIMIT = 100
TITLE_LENGTH = 50

NO_ENTRIES_REPLY = (
    "It looks like your journal entries are missing! To help you reflect, I'll need to read "
    "what you've written.\n\nPlease start journaling by going to the Journal page, and then "
    "I'll be able to give you personalized, thoughtful, and supportive answers to your questions."
)


def _title_for(message: str) -> str:
    if len(message) > TITLE_LENGTH:
        return message[:TITLE_LENGTH] + "..."
    return message


def _context_entries(db: Session, user_id: uuid.UUID, mode: str):
    if mode == "quick_reflect":
        since = models.now_utc().date() - timedelta(days=QUICK_REFLECT_DAYS)
        entries = journal_repo.list_entries(db, user_id, start=since)
    else:
        entries = journal_repo.list_entries(db, user_id, limit=DEEP_REFLECT_LIMIT)
    return [{"entry_date": e.entry_date.isoformat(), "content": e.content} for e in entries]


@router.get("", response_model=List[schemas.Conversation])
def list_conversations(
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    return chat_repo.list_conversations(db, profile.id)


@router.post("", response_model=schemas.ChatResponse)
def send_message(
    payload: schemas.ChatRequest,
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    message = (payload.message or "").strip()
    if not message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="message is required")
    if payload.chat_mode is not None and payload.chat_mode not in CHAT_MODES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"chat_mode must be one of: {', '.join(CHAT_MODES)}",
        )

    conversation = None
    if payload.conversation_id is not None:
        conversation = chat_repo.get_conversation(db, payload.conversation_id, profile.id)
        if conversation is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    mode = payload.chat_mode or (conversation.chat_mode if conversation else "quick_reflect")

    if not usage_service.increment_usage(db, profile.id, mode):
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"success": False, "limitExceeded": True, "error": "Usage limit reached"},
        )

    if conversation is None:
        conversation = chat_repo.create_conversation(db, profile.id, _title_for(message), mode)
    chat_repo.add_message(db, conversation, "user", message)

    entries = _context_entries(db, profile.id, mode)
    if not entries:
        reply = NO_ENTRIES_REPLY
    else:
        reply = ai_service.ask_journal(message, entries, mode)

    chat_repo.add_message(db, conversation, "assistant", reply)
    return {"conversation_id": conversation.id, "response": reply}


@router.delete("")
def delete_conversation(
    payload: Optional[schemas.ConversationDeleteRequest] = Body(default=None),
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if payload is None or payload.conversation_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="conversation_id is required")
    conversation = chat_repo.get_conversation(db, payload.conversation_id, profile.id)
    if conversation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    chat_repo.delete_conversation(db, conversation)
    return {"success": True}


@router.get("/messages", response_model=List[schemas.ChatMessage])
def list_messages(
    conversation_id: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    profile: models.Profile = Depends(get_current_profile),
):
    if not conversation_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="conversation_id is required")
    try:
        parsed_id = uuid.UUID(conversation_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="conversation_id must be a UUID")
    conversation = chat_repo.get_conversation(db, parsed_id, profile.id)
    if conversation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    return chat_repo.list_messages(db, conversation.id)

import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class Conversation(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    chat_mode: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ChatMessage(BaseModel):
    id: uuid.UUID
    conversation_id: Optional[uuid.UUID] = None
    role: str
    content: str
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ChatRequest(BaseModel):
    conversation_id: Optional[uuid.UUID] = None
    message: Optional[str] = None
    chat_mode: Optional[str] = None


class ChatResponse(BaseModel):
    conversation_id: Optional[uuid.UUID] = None
    response: str


class ConversationDeleteRequest(BaseModel):
    conversation_id: Optional[uuid.UUID] = None

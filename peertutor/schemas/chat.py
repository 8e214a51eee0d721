"""Chat-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from peertutor.config import settings


class ChatCreate(BaseModel):
    user_id: str  # the other participant


class ChatOut(BaseModel):
    id: str
    participants: list[str]
    last_message: str | None
    last_message_time: datetime | None
    unread_counts: dict[str, int]

    model_config = {"from_attributes": True}


class ChatMessageIn(BaseModel):
    text: str = Field(min_length=1, max_length=settings.MAX_MESSAGE_LENGTH)


class ChatMessageOut(BaseModel):
    id: str
    chat_id: str
    sender_id: str
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ChatUnread(BaseModel):
    unread: int

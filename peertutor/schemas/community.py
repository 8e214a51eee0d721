"""Community-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from peertutor.config import settings


class CommunityCreate(BaseModel):
    name: str = Field(min_length=3, max_length=50)
    description: str | None = Field(default=None, max_length=500)
    topic: str | None = None
    icon: str | None = Field(default=None, max_length=16)


class CommunityOut(BaseModel):
    id: str
    name: str
    description: str | None
    topic: str | None
    icon: str
    created_by: str
    members: list[str]
    member_count: int
    created_at: datetime

    model_config = {"from_attributes": True}


class MembersIn(BaseModel):
    user_ids: list[str] = Field(min_length=1)


class ChannelCreate(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    description: str | None = Field(default=None, max_length=500)


class ChannelOut(BaseModel):
    id: str
    community_id: str
    name: str
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ChannelMessageIn(BaseModel):
    text: str = Field(min_length=1, max_length=settings.MAX_MESSAGE_LENGTH)


class ChannelMessageOut(BaseModel):
    id: str
    channel_id: str
    user_id: str
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}

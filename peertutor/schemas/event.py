"""Event-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class EventCreate(BaseModel):
    title: str = Field(min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    topic: str | None = None
    community_id: str | None = None
    start_time: datetime
    end_time: datetime
    max_participants: int | None = Field(default=None, ge=2, le=100)


class EventOut(BaseModel):
    id: str
    title: str
    description: str | None
    topic: str | None
    community_id: str | None
    created_by: str
    start_time: datetime
    end_time: datetime
    participants: list[str]
    max_participants: int | None
    created_at: datetime

    model_config = {"from_attributes": True}

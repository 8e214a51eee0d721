"""Moderation and admin Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from peertutor.schemas.user import UserState


class ReportCreate(BaseModel):
    target_type: str
    target_id: str
    reason: str
    description: str | None = Field(default=None, max_length=500)


class ReportOut(BaseModel):
    id: str
    reporter_id: str
    target_type: str
    target_id: str
    reason: str
    description: str | None
    status: str
    admin_notes: str | None
    created_at: datetime
    reviewed_at: datetime | None

    model_config = {"from_attributes": True}


class ReportStatusUpdate(BaseModel):
    status: str
    admin_notes: str = ""


class ReportList(BaseModel):
    items: list[ReportOut]
    total: int
    total_pages: int
    page: int


class BanRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class UserList(BaseModel):
    items: list[UserState]
    total: int
    total_pages: int
    page: int


class PlatformStats(BaseModel):
    users: dict[str, int]
    content: dict[str, int]

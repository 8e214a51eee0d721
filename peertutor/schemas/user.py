"""User-related Pydantic schemas."""

from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from peertutor.config import settings


class UserCreate(BaseModel):
    display_name: str = Field(min_length=2, max_length=50)
    email: EmailStr

    @field_validator("display_name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class ProfileUpdate(BaseModel):
    display_name: str | None = Field(default=None, min_length=2, max_length=50)
    bio: str | None = Field(default=None, max_length=settings.MAX_BIO_LENGTH)
    skills: list[str] | None = Field(default=None, min_length=1, max_length=settings.MAX_SKILLS)
    needs: list[str] | None = Field(default=None, max_length=settings.MAX_NEEDS)
    show_in_discover: bool | None = None

    @field_validator("display_name")
    @classmethod
    def _strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class UserPublic(BaseModel):
    """What other users can see."""
    id: str
    display_name: str
    bio: str | None
    skills: list[str]
    needs: list[str]
    streak_count: int

    model_config = {"from_attributes": True}


class UserState(UserPublic):
    """The caller's own profile."""
    email: str
    role: str
    status: str
    blocked: list[str]
    streak_last_active: date | None
    show_in_discover: bool
    created_at: datetime
    updated_at: datetime


class UserPage(BaseModel):
    items: list[UserPublic]
    next_page_token: str | None = None


class StreakStatus(BaseModel):
    count: int
    last_active: date | None


class NotificationSettings(BaseModel):
    push_notifications: bool = True
    connection_requests: bool = True
    connection_accepted: bool = True
    new_messages: bool = True
    event_reminders: bool = True
    event_updates: bool = True
    community_invites: bool = True
    new_matches: bool = True


class NotificationSettingsUpdate(BaseModel):
    """Only the toggles that were sent change."""
    push_notifications: bool | None = None
    connection_requests: bool | None = None
    connection_accepted: bool | None = None
    new_messages: bool | None = None
    event_reminders: bool | None = None
    event_updates: bool | None = None
    community_invites: bool | None = None
    new_matches: bool | None = None

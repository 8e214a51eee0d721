"""User model - profile, skill/need tags, block list and activity streak."""

from datetime import date, datetime

from sqlalchemy import JSON, Boolean, Date, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from peertutor.db.database import Base, new_id, utcnow

ROLE_USER = "user"
ROLE_ADMIN = "admin"

STATUS_ACTIVE = "active"
STATUS_BANNED = "banned"

# Push preferences; the in-app record is written regardless
NOTIFICATION_SETTING_DEFAULTS = {
    "push_notifications": True,
    "connection_requests": True,
    "connection_accepted": True,
    "new_messages": True,
    "event_reminders": True,
    "event_updates": True,
    "community_invites": True,
    "new_matches": True,
}


def default_notification_settings() -> dict:
    return dict(NOTIFICATION_SETTING_DEFAULTS)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    display_name: Mapped[str] = mapped_column(String(50))
    email: Mapped[str] = mapped_column(String(255), unique=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)

    role: Mapped[str] = mapped_column(String(20), default=ROLE_USER)
    status: Mapped[str] = mapped_column(String(20), default=STATUS_ACTIVE)
    ban_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    banned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Topic ids: what the user can teach / wants to learn
    skills: Mapped[list] = mapped_column(JSON, default=list)
    needs: Mapped[list] = mapped_column(JSON, default=list)
    # User ids excluded from matching and connection
    blocked: Mapped[list] = mapped_column(JSON, default=list)

    streak_count: Mapped[int] = mapped_column(Integer, default=0)
    streak_last_active: Mapped[date | None] = mapped_column(Date, nullable=True)

    push_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
    show_in_discover: Mapped[bool] = mapped_column(Boolean, default=True)
    notification_settings: Mapped[dict] = mapped_column(JSON, default=default_notification_settings)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_banned(self) -> bool:
        return self.status == STATUS_BANNED

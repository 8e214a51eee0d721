"""Event model - scheduled tutoring sessions, optionally scoped to a community."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from peertutor.db.database import Base, new_id, utcnow


class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    topic: Mapped[str | None] = mapped_column(String(50), nullable=True)
    community_id: Mapped[str | None] = mapped_column(ForeignKey("communities.id"), nullable=True)
    created_by: Mapped[str] = mapped_column(ForeignKey("users.id"))

    start_time: Mapped[datetime] = mapped_column(DateTime, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime)

    participants: Mapped[list] = mapped_column(JSON, default=list)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)  # None = unlimited

    reminder_sent_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    @property
    def is_full(self) -> bool:
        return (
            self.max_participants is not None
            and len(self.participants or []) >= self.max_participants
        )

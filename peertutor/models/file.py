"""File model - a document shared in a community's file library."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from peertutor.db.database import Base, new_id, utcnow


class File(Base):
    __tablename__ = "files"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    community_id: Mapped[str] = mapped_column(ForeignKey("communities.id"), index=True)
    channel_id: Mapped[str | None] = mapped_column(ForeignKey("channels.id"), nullable=True)
    uploaded_by: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)

    file_name: Mapped[str] = mapped_column(String(255))
    file_type: Mapped[str] = mapped_column(String(100))
    file_size: Mapped[int] = mapped_column(Integer)
    # Where the bytes live in the object store, and the URL it handed back
    storage_path: Mapped[str] = mapped_column(String(512))
    download_url: Mapped[str] = mapped_column(Text)

    description: Mapped[str] = mapped_column(Text, default="")
    tags: Mapped[list] = mapped_column(JSON, default=list)

    uploaded_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)

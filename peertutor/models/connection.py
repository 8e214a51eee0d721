"""Connection model - a peer-connection request between two users."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from peertutor.db.database import Base, new_id, utcnow

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"


def ordered_pair(user_a: str, user_b: str) -> tuple[str, str]:
    """Canonical (low, high) ordering of an unordered user pair."""
    return (user_a, user_b) if user_a <= user_b else (user_b, user_a)


class Connection(Base):
    __tablename__ = "connections"
    # One active (pending or accepted) request per pair; declined rows are deleted.
    __table_args__ = (UniqueConstraint("user_low", "user_high", name="uq_connection_pair"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_low: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    user_high: Mapped[str] = mapped_column(ForeignKey("users.id"), index=True)
    initiator_id: Mapped[str] = mapped_column(ForeignKey("users.id"))
    status: Mapped[str] = mapped_column(String(20), default=STATUS_PENDING)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @property
    def participants(self) -> tuple[str, str]:
        return (self.user_low, self.user_high)

    def other(self, user_id: str) -> str:
        """The participant that is not `user_id`."""
        return self.user_high if user_id == self.user_low else self.user_low

    @property
    def recipient_id(self) -> str:
        return self.other(self.initiator_id)

"""Connection-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel


class ConnectionRequestIn(BaseModel):
    to_user_id: str


class ConnectionOut(BaseModel):
    id: str
    participants: tuple[str, str]
    initiator_id: str
    status: str  # "pending" or "accepted"
    created_at: datetime
    accepted_at: datetime | None

    model_config = {"from_attributes": True}


class PendingRequests(BaseModel):
    incoming: list[ConnectionOut]
    outgoing: list[ConnectionOut]


class ConnectionStatus(BaseModel):
    connected: bool
    request: ConnectionOut | None = None

"""Notification schemas - domain events, typed payloads and inbox responses.

Both ``DomainEvent`` and ``NotificationPayload`` are tagged unions
discriminated on ``type``.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    CONNECTION_REQUEST = "connection_request"
    CONNECTION_ACCEPTED = "connection_accepted"
    NEW_MESSAGE = "new_message"
    NEW_EVENT = "new_event"
    EVENT_REMINDER = "event_reminder"
    COMMUNITY_INVITE = "community_invite"
    NEW_MATCH = "new_match"


# ---------------------------------------------------------------------------
# Domain events (inputs to the fan-out policy)
# ---------------------------------------------------------------------------


class ConnectionRequested(BaseModel):
    type: Literal["connection_request"] = "connection_request"
    connection_id: str
    from_user_id: str
    from_name: str | None = None
    to_user_id: str


class ConnectionAccepted(BaseModel):
    type: Literal["connection_accepted"] = "connection_accepted"
    connection_id: str
    initiator_id: str
    accepter_id: str
    accepter_name: str | None = None


class MessageSent(BaseModel):
    type: Literal["new_message"] = "new_message"
    chat_id: str
    sender_id: str
    sender_name: str | None = None
    participants: list[str]
    text: str


class EventCreated(BaseModel):
    type: Literal["new_event"] = "new_event"
    event_id: str
    title: str
    creator_id: str
    creator_name: str | None = None
    community_id: str | None = None
    community_members: list[str] = []


class EventReminderDue(BaseModel):
    type: Literal["event_reminder"] = "event_reminder"
    event_id: str
    title: str
    participants: list[str]


class CommunityMembersAdded(BaseModel):
    type: Literal["community_invite"] = "community_invite"
    community_id: str
    community_name: str
    added_by_name: str | None = None
    members_before: list[str]
    members_after: list[str]


class MatchFound(BaseModel):
    type: Literal["new_match"] = "new_match"
    user_id: str  # who asked to be notified
    matched_user_id: str
    matched_name: str | None = None
    score: int


DomainEvent = Annotated[
    Union[
        ConnectionRequested,
        ConnectionAccepted,
        MessageSent,
        EventCreated,
        EventReminderDue,
        CommunityMembersAdded,
        MatchFound,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Payloads (stored in Notification.data and sent as push data)
# ---------------------------------------------------------------------------


class ConnectionRequestPayload(BaseModel):
    type: Literal["connection_request"] = "connection_request"
    from_user_id: str
    connection_id: str


class ConnectionAcceptedPayload(BaseModel):
    type: Literal["connection_accepted"] = "connection_accepted"
    user_id: str
    connection_id: str


class NewMessagePayload(BaseModel):
    type: Literal["new_message"] = "new_message"
    chat_id: str
    sender_id: str


class NewEventPayload(BaseModel):
    type: Literal["new_event"] = "new_event"
    event_id: str
    created_by: str


class EventReminderPayload(BaseModel):
    type: Literal["event_reminder"] = "event_reminder"
    event_id: str


class CommunityInvitePayload(BaseModel):
    type: Literal["community_invite"] = "community_invite"
    community_id: str


class NewMatchPayload(BaseModel):
    type: Literal["new_match"] = "new_match"
    matched_user_id: str
    score: int


NotificationPayload = Annotated[
    Union[
        ConnectionRequestPayload,
        ConnectionAcceptedPayload,
        NewMessagePayload,
        NewEventPayload,
        EventReminderPayload,
        CommunityInvitePayload,
        NewMatchPayload,
    ],
    Field(discriminator="type"),
]

class NotificationDraft(BaseModel):
    """One recipient's notification, before it is persisted and pushed."""
    recipient_id: str
    title: str
    body: str
    payload: NotificationPayload

    @property
    def type(self) -> str:
        return self.payload.type


# ---------------------------------------------------------------------------
# API schemas
# ---------------------------------------------------------------------------


class NotificationOut(BaseModel):
    id: str
    type: NotificationType
    title: str
    body: str
    data: NotificationPayload
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationPage(BaseModel):
    items: list[NotificationOut]
    next_page_token: str | None = None


class UnreadCount(BaseModel):
    unread: int


class PushTokenIn(BaseModel):
    token: str = Field(min_length=1, max_length=255)

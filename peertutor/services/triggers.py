"""Triggers - turn completed writes into domain events for the notification fan-out.

Document triggers run right after the write they react to, in the same
session; the caller then commits through
``NotificationService.commit_and_publish`` so the real-time feed only sees
committed notifications. The two scheduled ones are driven by
``peertutor.scheduler``.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from peertutor.db.database import utcnow
from peertutor.models.chat import Chat, ChatMessage
from peertutor.models.community import Community
from peertutor.models.connection import Connection
from peertutor.models.event import Event
from peertutor.models.user import User
from peertutor.schemas.notification import (
    CommunityMembersAdded,
    ConnectionAccepted,
    ConnectionRequested,
    EventCreated,
    EventReminderDue,
    MessageSent,
)
from peertutor.services.community_service import CommunityService
from peertutor.services.event_service import EventService
from peertutor.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


async def _display_name(db: AsyncSession, user_id: str) -> str | None:
    user = await db.get(User, user_id)
    return user.display_name if user else None


async def on_connection_requested(
    db: AsyncSession, notifier: NotificationService, connection: Connection
) -> None:
    await notifier.dispatch(db, ConnectionRequested(
        connection_id=connection.id,
        from_user_id=connection.initiator_id,
        from_name=await _display_name(db, connection.initiator_id),
        to_user_id=connection.recipient_id,
    ))


async def on_connection_accepted(
    db: AsyncSession, notifier: NotificationService, connection: Connection
) -> None:
    accepter_id = connection.recipient_id
    await notifier.dispatch(db, ConnectionAccepted(
        connection_id=connection.id,
        initiator_id=connection.initiator_id,
        accepter_id=accepter_id,
        accepter_name=await _display_name(db, accepter_id),
    ))


async def on_message_sent(
    db: AsyncSession, notifier: NotificationService, chat: Chat, message: ChatMessage
) -> None:
    await notifier.dispatch(db, MessageSent(
        chat_id=chat.id,
        sender_id=message.sender_id,
        sender_name=await _display_name(db, message.sender_id),
        participants=list(chat.participants or []),
        text=message.text,
    ))


async def on_event_created(db: AsyncSession, notifier: NotificationService, event: Event) -> None:
    members: list[str] = []
    if event.community_id:
        community = await CommunityService.get_community(db, event.community_id)
        members = list(community.members or [])
    await notifier.dispatch(db, EventCreated(
        event_id=event.id,
        title=event.title,
        creator_id=event.created_by,
        creator_name=await _display_name(db, event.created_by),
        community_id=event.community_id,
        community_members=members,
    ))


async def on_community_members_added(
    db: AsyncSession,
    notifier: NotificationService,
    community: Community,
    before: list[str],
    after: list[str],
    actor_id: str,
) -> None:
    await notifier.dispatch(db, CommunityMembersAdded(
        community_id=community.id,
        community_name=community.name,
        added_by_name=await _display_name(db, actor_id),
        members_before=before,
        members_after=after,
    ))


async def send_event_reminders(
    db: AsyncSession, notifier: NotificationService, now: datetime | None = None
) -> int:
    """Remind participants of events starting soon; each event is reminded once."""
    now = now or utcnow()
    events = await EventService.due_for_reminder(db, now)
    for event in events:
        if event.participants:
            await notifier.dispatch(db, EventReminderDue(
                event_id=event.id, title=event.title, participants=list(event.participants)
            ))
        event.reminder_sent_at = now
    await db.flush()
    logger.info("Sent reminders for %d event(s)", len(events))
    return len(events)


async def purge_old_notifications(
    db: AsyncSession, notifier: NotificationService, now: datetime | None = None
) -> int:
    return await notifier.purge_expired(db, now)
